"""HTTP API for listing, creating and deleting Active Directory users."""

__version__ = "0.1.0"
