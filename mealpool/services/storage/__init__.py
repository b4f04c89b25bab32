"""
Storage Services Package

Provides the abstract ledger interface and its implementations.
The settlement engine never imports from here; only the flows do.
"""

from mealpool.services.storage.interface import (
    CycleStateError,
    DuplicateError,
    LedgerStorageInterface,
    NotFoundError,
    StorageError,
)
from mealpool.services.storage.json_file import JsonFileLedgerStorage
from mealpool.services.storage.memory import InMemoryLedgerStorage

__all__ = [
    # Interface
    "LedgerStorageInterface",
    # Exceptions
    "CycleStateError",
    "DuplicateError",
    "NotFoundError",
    "StorageError",
    # Implementations
    "InMemoryLedgerStorage",
    "JsonFileLedgerStorage",
]
