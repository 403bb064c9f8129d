"""Command-line front end for cmd-timing-lib."""
