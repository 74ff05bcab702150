"""Broker record validators."""

from broker_import.validators.base import BrokerValidator
from broker_import.validators.broker_validator import BrokerDataValidator

__all__ = ["BrokerDataValidator", "BrokerValidator"]
