"""Declarative filter classes for API query parameter filtering."""

from .fraud_flag import FraudFlagFilter
from .order import OrderFilter

__all__ = ["FraudFlagFilter", "OrderFilter"]
