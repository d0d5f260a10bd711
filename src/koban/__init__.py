"""Task boards stored as branches of a git repository."""

__version__ = "0.1.0"
