"""
Collaborator interfaces and implementations.

Available backends:
- InMemoryChain: regtest-like chain held in memory (tests, demos)
- LocalSpendEngine: placeholder proof engine checking serials against an InMemoryChain
"""

from sigmawallet.backends.base import (
    AssembledTransaction,
    ChainBackend,
    MintOutput,
    MintRequest,
    ObservedMint,
    SpendEngine,
    SpendInput,
    SpendRequest,
)
from sigmawallet.backends.memory import InMemoryChain, LocalSpendEngine

__all__ = [
    "AssembledTransaction",
    "ChainBackend",
    "InMemoryChain",
    "LocalSpendEngine",
    "MintOutput",
    "MintRequest",
    "ObservedMint",
    "SpendEngine",
    "SpendInput",
    "SpendRequest",
]
