"""
Wallet data models.

Persisted state (mint records, seed state, mint pool entries) uses Pydantic so
it can be validated on load; ephemeral values passed between the selector and
the orchestrator are plain dataclasses.
"""

from __future__ import annotations

from dataclasses import dataclass

from pydantic import BaseModel, Field

from sigmawallet.constants import MIN_SPEND_CONFIRMATIONS
from sigmawallet.wallet import derivation
from sigmawallet.wallet.denomination import Denomination


class MintRecord(BaseModel):
    """One coin ever derived by this wallet. Identity is ``index``."""

    index: int = Field(..., ge=1)
    denomination: Denomination
    public_value: str = Field(..., min_length=66, max_length=66)  # compressed point, hex
    group_id: int | None = None
    creation_height: int | None = None
    used: bool = False
    spend_height: int | None = None

    @property
    def identity_hash(self) -> str:
        return derivation.identity_hash(bytes.fromhex(self.public_value))

    @property
    def value(self) -> int:
        return int(self.denomination)

    @property
    def is_confirmed(self) -> bool:
        return self.creation_height is not None

    def confirmations(self, current_height: int) -> int:
        if self.creation_height is None:
            return 0
        return max(0, current_height - self.creation_height + 1)

    def is_spendable(
        self, current_height: int, min_confirmations: int = MIN_SPEND_CONFIRMATIONS
    ) -> bool:
        return not self.used and self.confirmations(current_height) >= min_confirmations

    model_config = {"frozen": True}


class SeedState(BaseModel):
    """Per-wallet derivation counter. Index 0 means nothing derived yet."""

    last_used_index: int = Field(default=0, ge=0)

    def advanced_to(self, index: int) -> SeedState:
        """Return the state after ``index`` was used; never moves backwards."""
        return SeedState(last_used_index=max(self.last_used_index, index))

    model_config = {"frozen": True}


class MintPoolEntry(BaseModel):
    index: int = Field(..., ge=1)
    identity_hash: str = Field(..., min_length=64, max_length=64)
    recognized: bool = False

    model_config = {"frozen": True}


@dataclass(frozen=True)
class SpendPlan:
    """
    Result of coin selection. Records are referenced by index.

    ``rounded_required`` is ``required`` rounded up to the smallest
    denomination; ``change`` is what gets reminted as ``to_mint``.
    """

    to_spend: tuple[int, ...]
    to_mint: tuple[Denomination, ...]
    required: int
    rounded_required: int
    total_spent: int

    @property
    def change(self) -> int:
        return self.total_spent - self.rounded_required

    @property
    def coin_count(self) -> int:
        return len(self.to_spend) + len(self.to_mint)


@dataclass(frozen=True)
class Recipient:
    address: str
    amount: int

    def __post_init__(self) -> None:
        if self.amount <= 0:
            raise ValueError(f"Recipient amount must be positive, got {self.amount}")

