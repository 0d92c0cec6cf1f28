"""Main entry point when executing azbclient as a package.

This allows running the package using python -m azbclient.
"""

from azbclient.main import cli_entry_point

if __name__ == "__main__":
    cli_entry_point()
