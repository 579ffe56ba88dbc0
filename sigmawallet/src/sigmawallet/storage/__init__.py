"""
Key-value storage engines for wallet state.
"""

from sigmawallet.storage.base import KeyValueStorage
from sigmawallet.storage.json_file import JsonFileStorage
from sigmawallet.storage.memory import MemoryStorage

__all__ = [
    "JsonFileStorage",
    "KeyValueStorage",
    "MemoryStorage",
]
