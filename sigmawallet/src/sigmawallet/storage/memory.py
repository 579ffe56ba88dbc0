"""
In-process storage, used by tests and for throwaway wallets.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping

from sigmawallet.storage.base import KeyValueStorage


class MemoryStorage(KeyValueStorage):
    def __init__(self, initial: Mapping[str, str] | None = None):
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def scan(self, prefix: str) -> list[tuple[str, str]]:
        return sorted((k, v) for k, v in self._data.items() if k.startswith(prefix))

    def write_batch(self, puts: Mapping[str, str], deletes: Iterable[str] = ()) -> None:
        staged = dict(self._data)
        staged.update(puts)
        for key in deletes:
            staged.pop(key, None)
        self._data = staged

    def snapshot(self) -> dict[str, str]:
        return dict(self._data)
