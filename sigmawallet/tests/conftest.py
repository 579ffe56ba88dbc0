"""
Pytest configuration and fixtures for sigma wallet tests.
"""

from __future__ import annotations

from collections.abc import Callable

import pytest

from sigmawallet.backends.memory import InMemoryChain, LocalSpendEngine
from sigmawallet.storage.memory import MemoryStorage
from sigmawallet.wallet.denomination import Denomination
from sigmawallet.wallet.models import MintRecord
from sigmawallet.wallet.service import SigmaWalletService
from sigmawallet.wallet.store import WalletMintStore

CoinCounts = dict[Denomination, int]


@pytest.fixture
def master_seed() -> bytes:
    """Fixed 32 byte test seed (not for production use!)."""
    return bytes(range(32))


@pytest.fixture
def chain() -> InMemoryChain:
    return InMemoryChain()


@pytest.fixture
def engine(chain: InMemoryChain) -> LocalSpendEngine:
    return LocalSpendEngine(chain)


@pytest.fixture
def storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture
def store(storage: MemoryStorage) -> WalletMintStore:
    return WalletMintStore.open(storage)


@pytest.fixture
def wallet(
    master_seed: bytes, store: WalletMintStore, chain: InMemoryChain, engine: LocalSpendEngine
) -> SigmaWalletService:
    return SigmaWalletService(master_seed, store, chain, engine, lookahead=10)


@pytest.fixture
def fund_wallet(
    chain: InMemoryChain,
) -> Callable[[SigmaWalletService, CoinCounts, int], None]:
    """
    Mint coins into the wallet, mine them into a block, add confirmations and
    resync, like a regtest node would.
    """

    def _fund(wallet: SigmaWalletService, counts: CoinCounts, extra_blocks: int = 5) -> None:
        denominations = [d for d, n in sorted(counts.items()) for _ in range(n)]
        if denominations:
            receipt = wallet.mint_denominations(denominations).unwrap()
            chain.submit(receipt.transaction)
        chain.generate_block()
        chain.generate_empty_blocks(extra_blocks)
        wallet.sync_with_chain()

    return _fund


def coin_counts(d01: int = 0, d05: int = 0, d1: int = 0, d10: int = 0, d100: int = 0) -> CoinCounts:
    return {
        Denomination.D0_1: d01,
        Denomination.D0_5: d05,
        Denomination.D1: d1,
        Denomination.D10: d10,
        Denomination.D100: d100,
    }


def make_records(counts: CoinCounts, height: int = 1, start_index: int = 1) -> list[MintRecord]:
    """Confirmed, unused records with placeholder public values."""
    records = []
    index = start_index
    for denomination, count in sorted(counts.items()):
        for _ in range(count):
            records.append(
                MintRecord(
                    index=index,
                    denomination=denomination,
                    public_value=f"02{index:064x}",
                    group_id=1,
                    creation_height=height,
                )
            )
            index += 1
    return records


def denomination_counts(denominations) -> CoinCounts:
    counts = coin_counts()
    for d in denominations:
        counts[d] += 1
    return counts
