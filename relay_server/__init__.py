"""Single endpoint HTTP relay."""

__version__ = "0.1.0"
