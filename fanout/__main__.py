"""Main entry point when executing fanout as a package.

This allows running the package using python -m fanout.
"""

from fanout.main import cli_entry_point

if __name__ == "__main__":
    cli_entry_point()
