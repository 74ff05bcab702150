"""Factory for creating broker stores.

Consumers (CLI, pipeline wiring) depend on the abstract ``BrokerStore``
only; the concrete backend is chosen from configuration.
"""

from typing import TYPE_CHECKING

from broker_import.store.base import BrokerStore
from broker_import.store.exceptions import StoreError

if TYPE_CHECKING:
    from broker_import.config.settings import Settings


def get_broker_store(config: "Settings") -> BrokerStore:
    """Get broker store based on configuration.

    Args:
        config: Application settings

    Returns:
        BrokerStore: Configured store instance

    Raises:
        StoreError: If backend type is not supported
    """
    backend_type = config.store.backend

    if backend_type == "json":
        from broker_import.store.json_store import JsonFileBrokerStore
        return JsonFileBrokerStore(config.store.path)
    elif backend_type == "memory":
        from broker_import.store.memory import InMemoryBrokerStore
        return InMemoryBrokerStore()
    else:
        raise StoreError(f"Unsupported store backend: {backend_type}")
