"""Broker persistence layer."""

from broker_import.store.base import BrokerStore, ImportResult, count_entities
from broker_import.store.exceptions import BrokerNotFoundError, StoreError
from broker_import.store.factory import get_broker_store
from broker_import.store.json_store import JsonFileBrokerStore
from broker_import.store.memory import InMemoryBrokerStore

__all__ = [
    "BrokerNotFoundError",
    "BrokerStore",
    "ImportResult",
    "InMemoryBrokerStore",
    "JsonFileBrokerStore",
    "StoreError",
    "count_entities",
    "get_broker_store",
]
