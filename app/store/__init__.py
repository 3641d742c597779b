"""File-backed document persistence."""
from .documents import (
    DocumentStore,
    InvalidKeyError,
    RecordExistsError,
    RecordNotFoundError,
    StoreError,
)

__all__ = [
    "DocumentStore",
    "InvalidKeyError",
    "RecordExistsError",
    "RecordNotFoundError",
    "StoreError",
]
