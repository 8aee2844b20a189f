"""Flag sets with getopt-style parsing, environment variables and config files."""

__version__ = "0.1.0"