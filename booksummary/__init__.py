"""BookSummary: a book summary discovery service."""

__version__ = "1.0.0"
