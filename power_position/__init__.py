"""Daily power position extract service."""

__version__ = "1.0.0"
