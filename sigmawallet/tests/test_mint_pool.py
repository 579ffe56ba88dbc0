"""
Tests for sigmawallet.wallet.mint_pool
"""

from __future__ import annotations

import pytest

from sigmawallet.wallet.derivation import derive_coin
from sigmawallet.wallet.mint_pool import MintPool
from sigmawallet.wallet.models import MintPoolEntry


class TestMintPool:
    def test_initial_fill(self, master_seed: bytes) -> None:
        pool = MintPool(master_seed, lookahead=5)
        added = pool.refill(0)

        assert [e.index for e in added] == [1, 2, 3, 4, 5]
        assert len(pool) == 5
        assert pool.unrecognized_count(0) == 5

    def test_entries_match_derivation(self, master_seed: bytes) -> None:
        pool = MintPool(master_seed, lookahead=3)
        pool.refill(0)
        for entry in pool.entries():
            assert entry.identity_hash == derive_coin(master_seed, entry.index).identity_hash

    def test_refill_after_advance(self, master_seed: bytes) -> None:
        pool = MintPool(master_seed, lookahead=5)
        pool.refill(0)
        added = pool.refill(3)

        assert [e.index for e in pool.entries()] == [1, 2, 3, 4, 5, 6, 7, 8]
        assert pool.unrecognized_count(3) == 5
        assert [e.index for e in added] == [6, 7, 8]

    def test_refill_is_idempotent(self, master_seed: bytes) -> None:
        pool = MintPool(master_seed, lookahead=4)
        pool.refill(2)
        assert pool.refill(2) == []
        assert len(pool) == 4

    def test_match_and_recognize(self, master_seed: bytes) -> None:
        pool = MintPool(master_seed, lookahead=5)
        pool.refill(0)
        target = derive_coin(master_seed, 3).identity_hash

        assert target in pool
        entry = pool.match(target)
        assert entry is not None and entry.index == 3
        assert not entry.recognized

        pool.recognize(3)
        assert pool.match(target).recognized
        assert pool.unrecognized_count(0) == 4

    def test_recognized_entries_extend_window(self, master_seed: bytes) -> None:
        pool = MintPool(master_seed, lookahead=3)
        pool.refill(0)
        pool.recognize(2)
        pool.refill(0)

        assert [e.index for e in pool.entries()] == [1, 2, 3, 4]
        assert pool.unrecognized_count(0) == 3

    def test_unseen_lower_entries_kept(self, master_seed: bytes) -> None:
        pool = MintPool(master_seed, lookahead=3)
        pool.refill(0)
        pool.recognize(2)
        pool.refill(2)

        assert [e.index for e in pool.entries()] == [1, 3, 4, 5]
        assert pool.match(derive_coin(master_seed, 1).identity_hash).index == 1

        pool.recognize(1)
        pool.refill(2)
        assert [e.index for e in pool.entries()] == [3, 4, 5]

    def test_discard(self, master_seed: bytes) -> None:
        pool = MintPool(master_seed, lookahead=3)
        pool.refill(0)
        pool.discard([1, 2, 9])
        pool.refill(2)

        assert [e.index for e in pool.entries()] == [3, 4, 5]
        assert derive_coin(master_seed, 1).identity_hash not in pool

    def test_unknown_hash(self, master_seed: bytes) -> None:
        pool = MintPool(master_seed, lookahead=2)
        pool.refill(0)
        assert pool.match("00" * 32) is None
        assert "00" * 32 not in pool

    def test_copy_is_independent(self, master_seed: bytes) -> None:
        pool = MintPool(master_seed, lookahead=3)
        pool.refill(0)
        staged = pool.copy()
        staged.refill(10)

        assert [e.index for e in pool.entries()] == [1, 2, 3]
        assert [e.index for e in staged.entries()] == [1, 2, 3, 11, 12, 13]

    def test_restored_from_entries(self, master_seed: bytes) -> None:
        pool = MintPool(master_seed, lookahead=3)
        pool.refill(0)
        restored = MintPool(master_seed, 3, pool.entries())

        assert restored.entries() == pool.entries()
        assert restored.refill(0) == []

    def test_entries_hold_no_secrets(self, master_seed: bytes) -> None:
        pool = MintPool(master_seed, lookahead=1)
        pool.refill(0)
        assert set(MintPoolEntry.model_fields) == {"index", "identity_hash", "recognized"}

    def test_invalid_lookahead(self, master_seed: bytes) -> None:
        with pytest.raises(ValueError):
            MintPool(master_seed, lookahead=0)
