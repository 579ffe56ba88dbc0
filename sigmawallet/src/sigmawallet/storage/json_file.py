"""
Single-file JSON storage.

The whole key space lives in one JSON document. Every batch rewrites the
document to a temporary file in the same directory and swaps it in with
os.replace, so a crash leaves either the old or the new file.
"""

from __future__ import annotations

import contextlib
import json
import os
import tempfile
from collections.abc import Iterable, Mapping
from pathlib import Path

from loguru import logger

from sigmawallet.storage.base import KeyValueStorage
from sigmawallet.wallet.errors import StorageError

WALLET_FILE_NAME = "wallet.json"


class JsonFileStorage(KeyValueStorage):
    def __init__(self, path: Path):
        self.path = path
        self._data: dict[str, str] = self._load()

    @classmethod
    def in_directory(cls, data_dir: Path) -> JsonFileStorage:
        return cls(data_dir / WALLET_FILE_NAME)

    def _load(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise StorageError(f"Failed to read wallet file {self.path}: {e}") from e
        if not isinstance(raw, dict) or not all(isinstance(v, str) for v in raw.values()):
            raise StorageError(f"Wallet file {self.path} is malformed")
        logger.debug(f"Loaded {len(raw)} keys from {self.path}")
        return raw

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def scan(self, prefix: str) -> list[tuple[str, str]]:
        return sorted((k, v) for k, v in self._data.items() if k.startswith(prefix))

    def write_batch(self, puts: Mapping[str, str], deletes: Iterable[str] = ()) -> None:
        staged = dict(self._data)
        staged.update(puts)
        for key in deletes:
            staged.pop(key, None)

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(staged, f, indent=1, sort_keys=True)
                    f.flush()
                    os.fsync(f.fileno())
                os.replace(tmp_name, self.path)
            except BaseException:
                with contextlib.suppress(OSError):
                    os.unlink(tmp_name)
                raise
        except OSError as e:
            raise StorageError(f"Failed to write wallet file {self.path}: {e}") from e

        self._data = staged
