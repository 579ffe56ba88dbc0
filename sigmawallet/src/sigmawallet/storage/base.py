"""
Base key-value storage interface.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping


class KeyValueStorage(ABC):
    """
    Abstract persistence engine for wallet state.
    Keys and values are strings; the wallet store decides the layout.
    """

    @abstractmethod
    def get(self, key: str) -> str | None:
        """Get the value stored under key, or None"""

    @abstractmethod
    def scan(self, prefix: str) -> list[tuple[str, str]]:
        """All (key, value) pairs whose key starts with prefix, sorted by key"""

    @abstractmethod
    def write_batch(self, puts: Mapping[str, str], deletes: Iterable[str] = ()) -> None:
        """
        Apply all puts and deletes atomically.

        Either every change in the batch becomes visible or none does.
        Implementations raise StorageError on failure.
        """

    def close(self) -> None:
        """Release any resources held by the storage"""
        pass
