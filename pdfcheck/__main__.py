"""Main entry point when executing pdfcheck as a package.

This allows running the package using python -m pdfcheck.
"""

from pdfcheck.main import cli_entry_point

if __name__ == "__main__":
    cli_entry_point()
