"""auth/ -- Authentication protocol and storage backends for auther.

Entry points: auth.authenticator.Authenticator and the
new_in_memory_authenticator / new_sql_authenticator factories.

Layer rule: auth/ imports only stdlib, third-party libraries, and core/.
core/ never imports from auth/.
"""
