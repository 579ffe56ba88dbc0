"""
Sigma wallet service: spend orchestration, minting and chain resync.
"""

from __future__ import annotations

import threading
from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import Enum

from loguru import logger

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
from sigmawallet.constants import (
    DEFAULT_MINT_POOL_LOOKAHEAD,
    MIN_SPEND_CONFIRMATIONS,
    MIN_SPENDABLE_MINTS,
)
from sigmawallet.wallet.denomination import Denomination, decompose_amount, format_amount
from sigmawallet.wallet.derivation import (
    PrivateCoinMaterial,
    derive_coin,
    regenerate_coin,
    seed_fingerprint,
    validate_master_seed,
)
from sigmawallet.wallet.errors import (
    DerivationError,
    EngineError,
    Err,
    FailureReason,
    InvalidDenominationError,
    Ok,
    Result,
    StorageError,
)
from sigmawallet.wallet.mint_pool import MintPool
from sigmawallet.wallet.models import MintRecord, Recipient, SeedState, SpendPlan
from sigmawallet.wallet.selector import select_coins
from sigmawallet.wallet.store import WalletMintStore


class SpendStage(str, Enum):
    PLANNING = "planning"
    DERIVING = "deriving"
    ASSEMBLING = "assembling"
    COMMITTING = "committing"
    DONE = "done"
    FAILED = "failed"


@dataclass
class SpendReceipt:
    """What a committed spend did to the wallet."""

    transaction: AssembledTransaction
    plan: SpendPlan
    spend_height: int
    spent: list[MintRecord] = field(default_factory=list)
    change: list[MintRecord] = field(default_factory=list)

    @property
    def txid(self) -> str:
        return self.transaction.txid


@dataclass
class MintReceipt:
    transaction: AssembledTransaction
    minted: list[MintRecord] = field(default_factory=list)

    @property
    def txid(self) -> str:
        return self.transaction.txid


@dataclass
class SyncResult:
    """Summary of a chain rescan."""

    scanned_from: int
    scanned_to: int
    recovered: list[int] = field(default_factory=list)
    confirmed: list[int] = field(default_factory=list)
    spent: list[int] = field(default_factory=list)


class SigmaWalletService:
    """
    Sigma mint wallet service.

    Owns the mint store, the derivation counter and the lookahead mint pool of
    one wallet. Spends, mints and chain resyncs each run under one exclusive
    lock, so two of them never read the same last used index or select the
    same mint.

    Every mint's secrets are derived from the master seed and its index:
    index 1, 2, 3, ... in the order the wallet creates or recognizes mints.
    """

    def __init__(
        self,
        master_seed: bytes,
        store: WalletMintStore,
        chain: ChainBackend,
        engine: SpendEngine,
        lookahead: int = DEFAULT_MINT_POOL_LOOKAHEAD,
        min_confirmations: int = MIN_SPEND_CONFIRMATIONS,
        min_spendable_mints: int = MIN_SPENDABLE_MINTS,
    ):
        validate_master_seed(master_seed)
        self._master_seed = master_seed
        self.store = store
        self.chain = chain
        self.engine = engine
        self.min_confirmations = min_confirmations
        self.min_spendable_mints = min_spendable_mints
        self.synced_height = 0

        self._lock = threading.RLock()

        store.bind_seed(seed_fingerprint(master_seed))

        self.pool = MintPool(master_seed, lookahead, store.pool_entries)
        self.pool.refill(store.seed_state.last_used_index)
        if self.pool.entries() != store.pool_entries:
            store.save_pool(self.pool.entries())

        logger.info(
            f"Initialized sigma wallet: {len(store)} mints, "
            f"last used index {store.seed_state.last_used_index}, lookahead {lookahead}"
        )

    @property
    def seed_state(self) -> SeedState:
        return self.store.seed_state

    def get_state(self) -> tuple[int, int]:
        """(last used index, number of pool entries)"""
        with self._lock:
            return self.store.seed_state.last_used_index, len(self.pool)

    def spendable_mints(self, current_height: int | None = None) -> list[MintRecord]:
        with self._lock:
            if current_height is None:
                current_height = self.chain.get_block_height()
            return self.store.spendable(current_height, self.min_confirmations)

    def list_mints(self, include_used: bool = True) -> list[MintRecord]:
        with self._lock:
            if include_used:
                return self.store.list_mints()
            return self.store.list_mints(lambda r: not r.used)

    def get_balance(self, spendable_only: bool = False) -> int:
        with self._lock:
            if spendable_only:
                return self.store.balance(self.chain.get_block_height(), self.min_confirmations)
            return self.store.balance()

    def regenerate(self, index: int) -> PrivateCoinMaterial:
        """
        Recompute the secrets of a stored mint.

        Raises:
            KeyError: If the wallet has no mint at index
            DerivationError: If the stored public value does not match the seed
        """
        with self._lock:
            record = self.store.get(index)
        if record is None:
            raise KeyError(f"No mint with index {index}")
        return regenerate_coin(self._master_seed, index, bytes.fromhex(record.public_value))

    def _fail(self, stage: SpendStage, reason: FailureReason, message: str) -> Err:
        if reason in (
            FailureReason.INSUFFICIENT_FUNDS,
            FailureReason.INSUFFICIENT_MINTS,
            FailureReason.INVALID_DENOMINATION,
        ):
            logger.warning(f"Operation failed during {stage.value}: {message}")
        else:
            logger.error(f"Operation failed during {stage.value}: {message}")
        return Err(reason, message, stage.value)

    def _derive_outputs(
        self, denominations: Sequence[Denomination], state: SeedState
    ) -> list[MintOutput]:
        # Indices are tentative until the commit persists the advanced state
        return [
            MintOutput(denomination, derive_coin(self._master_seed, state.last_used_index + i))
            for i, denomination in enumerate(denominations, start=1)
        ]

    def spend(self, recipients: Sequence[Recipient], fee: int = 0) -> Result[SpendReceipt]:
        """
        Spend mints to pay ``recipients``, reminting any change.

        Wallet state is only modified in the final committing stage, after the
        engine has assembled the transaction. A failure at any earlier stage
        leaves records and the last used index untouched, so retrying with
        the same inputs reproduces the same plan.

        Args:
            recipients: Outputs to pay
            fee: Extra amount to cover on top of the recipients

        Returns:
            Ok(SpendReceipt) or Err carrying the failure reason and stage
        """
        if not recipients:
            raise ValueError("At least one recipient is required")
        if fee < 0:
            raise ValueError(f"Fee cannot be negative, got {fee}")
        required = sum(r.amount for r in recipients) + fee

        with self._lock:
            stage = SpendStage.PLANNING
            height = self.chain.get_block_height()
            spendable = self.store.spendable(height, self.min_confirmations)
            selection = select_coins(required, spendable, self.min_spendable_mints)
            if isinstance(selection, Err):
                return self._fail(stage, selection.reason, selection.message)
            plan = selection.value
            logger.debug(
                f"Spend plan at height {height}: spend {list(plan.to_spend)}, "
                f"remint {[str(d) for d in plan.to_mint]}"
            )

            stage = SpendStage.DERIVING
            state = self.store.seed_state
            try:
                change = self._derive_outputs(plan.to_mint, state)
            except DerivationError as e:
                return self._fail(stage, FailureReason.DERIVATION_FAILURE, str(e))

            stage = SpendStage.ASSEMBLING
            records = {r.index: r for r in spendable}
            try:
                inputs = [
                    SpendInput(
                        record=records[index],
                        coin=regenerate_coin(
                            self._master_seed, index, bytes.fromhex(records[index].public_value)
                        ),
                    )
                    for index in plan.to_spend
                ]
                transaction = self.engine.assemble_spend(
                    SpendRequest(
                        spends=inputs, change=change, recipients=list(recipients), fee=fee
                    )
                )
            except DerivationError as e:
                return self._fail(stage, FailureReason.DERIVATION_FAILURE, str(e))
            except EngineError as e:
                return self._fail(stage, FailureReason.ENGINE_FAILURE, str(e))

            stage = SpendStage.COMMITTING
            new_state = state.advanced_to(state.last_used_index + len(change))
            change_records = [
                MintRecord(
                    index=output.coin.index,
                    denomination=output.denomination,
                    public_value=output.coin.public_value_hex,
                )
                for output in change
            ]
            try:
                pool = self.pool.copy()
                pool.discard(r.index for r in change_records)
                pool.refill(new_state.last_used_index)
                spent = self.store.commit_spend(
                    plan.to_spend, height, change_records, new_state, pool.entries()
                )
            except DerivationError as e:
                return self._fail(stage, FailureReason.DERIVATION_FAILURE, str(e))
            except StorageError as e:
                return self._fail(stage, FailureReason.STORAGE_FAILURE, str(e))
            self.pool = pool

            logger.info(
                f"Spend {transaction.txid} committed: {len(spent)} mints spent "
                f"({format_amount(plan.total_spent)}), {len(change_records)} change mints "
                f"({format_amount(plan.change)}), last used index {new_state.last_used_index}"
            )
            return Ok(
                SpendReceipt(
                    transaction=transaction,
                    plan=plan,
                    spend_height=height,
                    spent=spent,
                    change=change_records,
                )
            )

    def mint(self, amount: int) -> Result[MintReceipt]:
        """
        Create new mints worth ``amount``, split into the fewest denominations.

        The new records are stored unused and unconfirmed; they become
        spendable once a resync sees them on chain with enough confirmations.
        """
        if amount <= 0:
            raise ValueError(f"Mint amount must be positive, got {amount}")
        try:
            denominations = decompose_amount(amount)
        except InvalidDenominationError as e:
            return self._fail(SpendStage.PLANNING, FailureReason.INVALID_DENOMINATION, str(e))
        return self.mint_denominations(denominations)

    def mint_denominations(self, denominations: Sequence[Denomination]) -> Result[MintReceipt]:
        if not denominations:
            raise ValueError("At least one denomination is required")

        with self._lock:
            stage = SpendStage.DERIVING
            state = self.store.seed_state
            try:
                outputs = self._derive_outputs(denominations, state)
                stage = SpendStage.ASSEMBLING
                transaction = self.engine.assemble_mint(MintRequest(mints=outputs))

                stage = SpendStage.COMMITTING
                new_state = state.advanced_to(state.last_used_index + len(outputs))
                records = [
                    MintRecord(
                        index=output.coin.index,
                        denomination=output.denomination,
                        public_value=output.coin.public_value_hex,
                    )
                    for output in outputs
                ]
                pool = self.pool.copy()
                pool.discard(r.index for r in records)
                pool.refill(new_state.last_used_index)
                self.store.commit_mints(records, new_state, pool.entries())
            except DerivationError as e:
                return self._fail(stage, FailureReason.DERIVATION_FAILURE, str(e))
            except EngineError as e:
                return self._fail(stage, FailureReason.ENGINE_FAILURE, str(e))
            except StorageError as e:
                return self._fail(stage, FailureReason.STORAGE_FAILURE, str(e))
            self.pool = pool

            logger.info(
                f"Mint {transaction.txid} committed: {len(records)} mints "
                f"({', '.join(str(d) for d in denominations)}), "
                f"last used index {new_state.last_used_index}"
            )
            return Ok(MintReceipt(transaction=transaction, minted=records))

    def sync_with_chain(self, from_height: int | None = None) -> SyncResult:
        """
        Scan blocks for mints belonging to this wallet.

        Mints already in the store get their chain position recorded. Mints
        matching the lookahead pool are recovered as new records, advancing
        the last used index. Serials revealed on chain mark recovered mints
        used. Each block is committed as one storage batch.

        Raises:
            StorageError: If a block's changes cannot be persisted
            DerivationError: If a mint matching the pool does not re-derive
                from the seed
            ValueError: If the backend has no block at a scanned height
        """
        with self._lock:
            tip = self.chain.get_block_height()
            start = from_height if from_height is not None else self.synced_height + 1
            start = max(start, 1)
            result = SyncResult(scanned_from=start, scanned_to=tip)

            for height in range(start, tip + 1):
                self._process_block(
                    height,
                    self.chain.get_block_mints(height),
                    self.chain.get_block_spent_serials(height),
                    result,
                )
                self.synced_height = height

            logger.info(
                f"Synced blocks {start}..{tip}: {len(result.recovered)} recovered, "
                f"{len(result.confirmed)} confirmed, {len(result.spent)} marked spent"
            )
            return result

    def _process_block(
        self,
        height: int,
        mints: Sequence[ObservedMint],
        serials: Sequence[int],
        result: SyncResult,
    ) -> None:
        state = self.store.seed_state
        pool = self.pool.copy()
        new_records: dict[int, MintRecord] = {}
        updated: dict[int, MintRecord] = {}

        for mint in mints:
            identity = mint.identity_hash
            record = self.store.find_by_identity(identity)
            if record is not None:
                if record.creation_height is None and record.index not in updated:
                    updated[record.index] = record.model_copy(
                        update={"group_id": mint.group_id, "creation_height": height}
                    )
                continue

            entry = pool.match(identity)
            if entry is None or entry.recognized:
                continue

            regenerate_coin(self._master_seed, entry.index, bytes.fromhex(mint.public_value))
            new_records[entry.index] = MintRecord(
                index=entry.index,
                denomination=mint.denomination,
                public_value=mint.public_value,
                group_id=mint.group_id,
                creation_height=height,
            )
            pool.recognize(entry.index)
            if entry.index > state.last_used_index:
                state = state.advanced_to(entry.index)
            pool.refill(state.last_used_index)
            logger.debug(f"Recognized mint {entry.index} ({mint.denomination}) at height {height}")

        if serials:
            for index, record in self._match_serials(serials, new_records).items():
                source = new_records if index in new_records else updated
                current = source.get(index, record)
                source[index] = current.model_copy(update={"used": True, "spend_height": height})

        if not new_records and not updated:
            return

        self.store.commit_mints(
            list(new_records.values()), state, pool.entries(), list(updated.values())
        )
        self.pool = pool
        result.recovered.extend(sorted(new_records))
        result.confirmed.extend(sorted(i for i, r in updated.items() if not r.used))
        result.spent.extend(sorted(i for i, r in {**updated, **new_records}.items() if r.used))

    def _match_serials(
        self, serials: Sequence[int], pending: dict[int, MintRecord]
    ) -> dict[int, MintRecord]:
        """Unused mints (stored or pending) whose serial appears in ``serials``."""
        wanted = set(serials)
        candidates = {r.index: r for r in self.store.list_mints(lambda r: not r.used)}
        candidates.update(pending)
        matched: dict[int, MintRecord] = {}
        for index, record in candidates.items():
            if derive_coin(self._master_seed, index).serial_number in wanted:
                matched[index] = record
        return matched

    def close(self) -> None:
        """Close backend and storage"""
        self.chain.close()
        self.store.storage.close()
