"""
Persisted lifecycle records for every mint this wallet derived.

Layout in the key-value storage:

    mint/<index>   MintRecord JSON, one per derived mint, never deleted
    seed/state     SeedState JSON (last used derivation index)
    pool/<index>   MintPoolEntry JSON for the lookahead window

Every mutating operation is a single storage batch. The in-memory view is
only updated after the batch has been written, so a StorageError leaves both
the storage and this object unchanged.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence

from loguru import logger
from pydantic import ValidationError

from sigmawallet.constants import MIN_SPEND_CONFIRMATIONS
from sigmawallet.storage.base import KeyValueStorage
from sigmawallet.wallet.errors import StorageError
from sigmawallet.wallet.models import MintPoolEntry, MintRecord, SeedState

MINT_PREFIX = "mint/"
POOL_PREFIX = "pool/"
SEED_STATE_KEY = "seed/state"
SEED_FINGERPRINT_KEY = "seed/fingerprint"


def _mint_key(index: int) -> str:
    return f"{MINT_PREFIX}{index:010d}"


def _pool_key(index: int) -> str:
    return f"{POOL_PREFIX}{index:010d}"


class WalletMintStore:
    def __init__(self, storage: KeyValueStorage):
        self.storage = storage
        self._records: dict[int, MintRecord] = {}
        self._by_identity: dict[str, int] = {}
        self._seed_state = SeedState()
        self._pool_entries: list[MintPoolEntry] = []
        self._fingerprint: str | None = None

    @classmethod
    def open(cls, storage: KeyValueStorage) -> WalletMintStore:
        store = cls(storage)
        store.load()
        return store

    def load(self) -> None:
        """Read all records, the seed state and the pool window from storage."""
        try:
            records = [
                MintRecord.model_validate_json(v) for _, v in self.storage.scan(MINT_PREFIX)
            ]
            pool = [
                MintPoolEntry.model_validate_json(v) for _, v in self.storage.scan(POOL_PREFIX)
            ]
            raw_state = self.storage.get(SEED_STATE_KEY)
            state = SeedState.model_validate_json(raw_state) if raw_state else SeedState()
        except ValidationError as e:
            raise StorageError(f"Corrupt wallet data: {e}") from e

        self._records = {r.index: r for r in records}
        self._by_identity = {r.identity_hash: r.index for r in records}
        self._pool_entries = pool
        self._seed_state = state
        self._fingerprint = self.storage.get(SEED_FINGERPRINT_KEY)

        logger.debug(
            f"Loaded {len(records)} mint records, {len(pool)} pool entries, "
            f"last used index {state.last_used_index}"
        )

    @property
    def seed_state(self) -> SeedState:
        return self._seed_state

    @property
    def pool_entries(self) -> list[MintPoolEntry]:
        return list(self._pool_entries)

    @property
    def seed_fingerprint(self) -> str | None:
        return self._fingerprint

    def bind_seed(self, fingerprint: str) -> None:
        """
        Tie this store to a master seed.

        Raises:
            ValueError: If the store already belongs to a different seed
        """
        if self._fingerprint == fingerprint:
            return
        if self._fingerprint is not None:
            raise ValueError("Wallet data belongs to a different master seed")
        self.storage.write_batch({SEED_FINGERPRINT_KEY: fingerprint})
        self._fingerprint = fingerprint

    def __len__(self) -> int:
        return len(self._records)

    def get(self, index: int) -> MintRecord | None:
        return self._records.get(index)

    def find_by_identity(self, identity_hash: str) -> MintRecord | None:
        index = self._by_identity.get(identity_hash)
        return self._records[index] if index is not None else None

    def list_mints(
        self, predicate: Callable[[MintRecord], bool] | None = None
    ) -> list[MintRecord]:
        records = [self._records[i] for i in sorted(self._records)]
        if predicate is None:
            return records
        return [r for r in records if predicate(r)]

    def spendable(
        self, current_height: int, min_confirmations: int = MIN_SPEND_CONFIRMATIONS
    ) -> list[MintRecord]:
        """Unused records with at least ``min_confirmations`` confirmations."""
        return self.list_mints(lambda r: r.is_spendable(current_height, min_confirmations))

    def balance(
        self, current_height: int | None = None, min_confirmations: int = MIN_SPEND_CONFIRMATIONS
    ) -> int:
        """Value of unused mints; only spendable ones when a height is given."""
        if current_height is None:
            records = self.list_mints(lambda r: not r.used)
        else:
            records = self.spendable(current_height, min_confirmations)
        return sum(r.value for r in records)

    def _commit(
        self,
        records: Sequence[MintRecord] = (),
        seed_state: SeedState | None = None,
        pool_entries: Sequence[MintPoolEntry] | None = None,
    ) -> None:
        puts: dict[str, str] = {_mint_key(r.index): r.model_dump_json() for r in records}
        deletes: list[str] = []

        if seed_state is not None:
            if seed_state.last_used_index < self._seed_state.last_used_index:
                raise ValueError(
                    f"Last used index cannot go backwards "
                    f"({self._seed_state.last_used_index} -> {seed_state.last_used_index})"
                )
            puts[SEED_STATE_KEY] = seed_state.model_dump_json()

        if pool_entries is not None:
            new_keys = {_pool_key(e.index) for e in pool_entries}
            deletes = [
                _pool_key(e.index)
                for e in self._pool_entries
                if _pool_key(e.index) not in new_keys
            ]
            puts.update({_pool_key(e.index): e.model_dump_json() for e in pool_entries})

        self.storage.write_batch(puts, deletes)

        for record in records:
            self._records[record.index] = record
            self._by_identity[record.identity_hash] = record.index
        if seed_state is not None:
            self._seed_state = seed_state
        if pool_entries is not None:
            self._pool_entries = sorted(pool_entries, key=lambda e: e.index)

    def _check_new(self, records: Iterable[MintRecord]) -> list[MintRecord]:
        new = list(records)
        seen: set[int] = set()
        for record in new:
            if record.index in self._records or record.index in seen:
                raise ValueError(f"Mint index {record.index} already exists")
            if record.used:
                raise ValueError(f"New mint {record.index} cannot already be used")
            seen.add(record.index)
        return new

    def _used_versions(
        self, indices: Iterable[int], spend_height: int, group_id: int | None
    ) -> list[MintRecord]:
        updated: list[MintRecord] = []
        for index in indices:
            record = self._records.get(index)
            if record is None:
                raise ValueError(f"Unknown mint index {index}")
            if record.used:
                raise ValueError(f"Mint {index} is already used")
            updated.append(
                record.model_copy(
                    update={
                        "used": True,
                        "spend_height": spend_height,
                        "group_id": group_id if group_id is not None else record.group_id,
                    }
                )
            )
        if len({r.index for r in updated}) != len(updated):
            raise ValueError("Duplicate mint index in spend")
        return updated

    def add_mint(self, record: MintRecord) -> None:
        self._commit(self._check_new([record]))

    def mark_used(
        self, indices: Sequence[int], spend_height: int, group_id: int | None = None
    ) -> list[MintRecord]:
        """Mark all ``indices`` used in one batch; nothing changes if any is invalid."""
        updated = self._used_versions(indices, spend_height, group_id)
        self._commit(updated)
        return updated

    def set_mint_seen(self, index: int, group_id: int, height: int) -> MintRecord:
        """Record the chain position of a mint once it is observed in a block."""
        record = self._records.get(index)
        if record is None:
            raise ValueError(f"Unknown mint index {index}")
        updated = record.model_copy(update={"group_id": group_id, "creation_height": height})
        self._commit([updated])
        return updated

    def commit_spend(
        self,
        spent: Sequence[int],
        spend_height: int,
        change: Sequence[MintRecord],
        seed_state: SeedState,
        pool_entries: Sequence[MintPoolEntry] | None = None,
    ) -> list[MintRecord]:
        """
        Atomically mark ``spent`` used, add the ``change`` records and persist
        the advanced seed state.

        Returns:
            The spent records in their used form
        """
        used = self._used_versions(spent, spend_height, None)
        new = self._check_new(change)
        self._commit([*used, *new], seed_state, pool_entries)
        return used

    def commit_mints(
        self,
        records: Sequence[MintRecord],
        seed_state: SeedState,
        pool_entries: Sequence[MintPoolEntry] | None = None,
        updated: Sequence[MintRecord] = (),
    ) -> None:
        """
        Atomically add new ``records``, replace ``updated`` existing ones and
        persist seed state and pool window.
        """
        new = self._check_new(records)
        for record in updated:
            if record.index not in self._records:
                raise ValueError(f"Unknown mint index {record.index}")
        self._commit([*updated, *new], seed_state, pool_entries)

    def save_seed_state(self, state: SeedState) -> None:
        self._commit(seed_state=state)

    def save_pool(self, entries: Sequence[MintPoolEntry]) -> None:
        self._commit(pool_entries=entries)
