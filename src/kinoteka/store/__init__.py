"""Data access to the hosted store."""

from kinoteka.store.base import (
    Filter,
    Order,
    RemoteStore,
    Row,
    SelectResult,
    eq,
    ilike,
    in_,
    parse_row,
)
from kinoteka.store.rest import PostgrestStore

__all__ = [
    "Filter",
    "Order",
    "PostgrestStore",
    "RemoteStore",
    "Row",
    "SelectResult",
    "eq",
    "ilike",
    "in_",
    "parse_row",
]
