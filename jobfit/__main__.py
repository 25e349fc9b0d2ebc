"""Main entry point when executing jobfit as a package.

This allows running the package using python -m jobfit.
"""

from jobfit.main import cli_entry_point

if __name__ == "__main__":
    cli_entry_point()
