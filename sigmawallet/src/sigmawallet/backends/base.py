"""
Base interfaces for the wallet's external collaborators.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field

from sigmawallet.wallet.denomination import Denomination
from sigmawallet.wallet.derivation import PrivateCoinMaterial, identity_hash
from sigmawallet.wallet.models import MintRecord, Recipient


@dataclass(frozen=True)
class ObservedMint:
    """A mint output seen in a block."""

    public_value: str
    denomination: Denomination
    group_id: int
    height: int

    @property
    def identity_hash(self) -> str:
        return identity_hash(bytes.fromhex(self.public_value))


@dataclass(frozen=True)
class SpendInput:
    record: MintRecord
    coin: PrivateCoinMaterial


@dataclass(frozen=True)
class MintOutput:
    denomination: Denomination
    coin: PrivateCoinMaterial


@dataclass
class SpendRequest:
    """Everything the proof engine needs to build a spend transaction."""

    spends: list[SpendInput]
    change: list[MintOutput]
    recipients: list[Recipient]
    fee: int = 0


@dataclass
class MintRequest:
    mints: list[MintOutput]


@dataclass
class AssembledTransaction:
    txid: str
    raw: bytes = b""
    serials: list[int] = field(default_factory=list, repr=False)
    # (public value hex, denomination) of every mint output
    mint_outputs: list[tuple[str, Denomination]] = field(default_factory=list)


class ChainBackend(ABC):
    """
    Read access to chain state needed by the wallet.
    """

    @abstractmethod
    def get_block_height(self) -> int:
        """Get current confirmed chain height"""

    @abstractmethod
    def get_block_mints(self, height: int) -> list[ObservedMint]:
        """Get the sigma mints created in the block at height"""

    def get_block_spent_serials(self, height: int) -> list[int]:
        """
        Get the coin serial numbers revealed by spends in the block at height.

        Only used when recovering a wallet from its seed; backends that cannot
        provide them return an empty list and recovered mints stay unused.
        """
        return []

    def close(self) -> None:
        """Close backend connection"""
        pass


class SpendEngine(ABC):
    """
    Zero-knowledge proof and transaction construction engine.

    Implementations raise EngineError when a transaction cannot be built
    (e.g. a serial is already spent on chain).
    """

    @abstractmethod
    def assemble_spend(self, request: SpendRequest) -> AssembledTransaction:
        """Prove and assemble a spend of request.spends paying request.recipients"""

    @abstractmethod
    def assemble_mint(self, request: MintRequest) -> AssembledTransaction:
        """Assemble a transaction creating request.mints"""
