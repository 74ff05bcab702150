"""Custom exceptions for broker store operations."""


class StoreError(Exception):
    """Base exception for broker store errors."""
    pass


class BrokerNotFoundError(StoreError):
    """Broker not found in the store."""

    def __init__(self, slug: str):
        self.slug = slug
        super().__init__(f"Broker not found: '{slug}'")
