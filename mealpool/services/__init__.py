"""Services package."""

from mealpool.services.storage import (
    CycleStateError,
    DuplicateError,
    InMemoryLedgerStorage,
    JsonFileLedgerStorage,
    LedgerStorageInterface,
    NotFoundError,
    StorageError,
)

__all__ = [
    "CycleStateError",
    "DuplicateError",
    "InMemoryLedgerStorage",
    "JsonFileLedgerStorage",
    "LedgerStorageInterface",
    "NotFoundError",
    "StorageError",
]
