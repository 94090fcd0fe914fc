"""core/ -- Configuration kernel for auther. Imports nothing from auth/."""
