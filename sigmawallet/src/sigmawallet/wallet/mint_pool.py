"""
Lookahead pool of derived-but-unseen mint identities.

During a rescan an on-chain mint can only be attributed to this wallet if we
know its public value in advance. The pool keeps the identity hashes of the
next ``lookahead`` derivation indices past the last used one, plus every lower
index not seen on chain yet, since mint transactions can confirm out of
derivation order. The secret material computed along the way is discarded
immediately.
"""

from __future__ import annotations

from collections.abc import Iterable

from loguru import logger

from sigmawallet.constants import DEFAULT_MINT_POOL_LOOKAHEAD
from sigmawallet.wallet.derivation import derive_coin
from sigmawallet.wallet.models import MintPoolEntry


class MintPool:
    def __init__(
        self,
        master_seed: bytes,
        lookahead: int = DEFAULT_MINT_POOL_LOOKAHEAD,
        entries: Iterable[MintPoolEntry] = (),
    ):
        if lookahead < 1:
            raise ValueError(f"Lookahead must be >= 1, got {lookahead}")
        self._master_seed = master_seed
        self.lookahead = lookahead
        self._entries: dict[int, MintPoolEntry] = {}
        self._by_hash: dict[str, int] = {}
        for entry in entries:
            self._put(entry)

    def _put(self, entry: MintPoolEntry) -> None:
        self._entries[entry.index] = entry
        self._by_hash[entry.identity_hash] = entry.index

    def _drop(self, index: int) -> None:
        entry = self._entries.pop(index)
        self._by_hash.pop(entry.identity_hash, None)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, identity_hash: object) -> bool:
        return identity_hash in self._by_hash

    def entries(self) -> list[MintPoolEntry]:
        return [self._entries[i] for i in sorted(self._entries)]

    def unrecognized_count(self, last_used_index: int) -> int:
        return sum(
            1 for e in self._entries.values() if e.index > last_used_index and not e.recognized
        )

    def refill(self, last_used_index: int) -> list[MintPoolEntry]:
        """
        Drop recognized entries at or below ``last_used_index`` and derive new
        ones until ``lookahead`` unrecognized entries sit above it. Unrecognized
        lower entries are kept so a later block can still match them.

        Returns:
            The newly derived entries
        """
        for index in [
            i for i, e in self._entries.items() if i <= last_used_index and e.recognized
        ]:
            self._drop(index)

        added: list[MintPoolEntry] = []
        index = last_used_index + 1
        while self.unrecognized_count(last_used_index) < self.lookahead:
            if index not in self._entries:
                coin = derive_coin(self._master_seed, index)
                entry = MintPoolEntry(index=index, identity_hash=coin.identity_hash)
                self._put(entry)
                added.append(entry)
            index += 1

        if added:
            logger.debug(
                f"Mint pool refilled with indices {added[0].index}..{added[-1].index} "
                f"(last used {last_used_index})"
            )
        return added

    def match(self, identity_hash: str) -> MintPoolEntry | None:
        index = self._by_hash.get(identity_hash)
        if index is None:
            return None
        return self._entries[index]

    def recognize(self, index: int) -> MintPoolEntry:
        entry = self._entries[index].model_copy(update={"recognized": True})
        self._put(entry)
        return entry

    def discard(self, indices: Iterable[int]) -> None:
        """Forget entries whose mints the wallet now holds as records."""
        for index in indices:
            if index in self._entries:
                self._drop(index)

    def copy(self) -> MintPool:
        return MintPool(self._master_seed, self.lookahead, self._entries.values())
