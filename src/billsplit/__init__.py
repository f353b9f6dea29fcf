"""Bill splitting engine for the restaurant POS."""

__version__ = "0.1.0"
