"""Authentication and account-linking service."""

__version__ = "1.0.0"
