"""Command-line parsing, path defaults and log level for the hindsight development-history server."""

__version__ = "0.1.5"