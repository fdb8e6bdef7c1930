"""Main entry point when executing waybackmcp as a package.

This allows running the package using python -m waybackmcp.
"""

from waybackmcp.main import cli_entry_point

if __name__ == "__main__":
    cli_entry_point()
