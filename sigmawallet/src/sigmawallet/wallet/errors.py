"""
Failure taxonomy and result values for wallet operations.

Expected failures (not enough funds, bad denomination, a rejected spend) are
returned as ``Err`` values so callers handle each kind explicitly. Exceptions
are reserved for conditions raised by collaborators (storage, curve library,
proof engine) and are converted to ``Err`` at the orchestrator's boundary.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Generic, NoReturn, TypeVar, Union

T = TypeVar("T")


class FailureReason(str, Enum):
    INSUFFICIENT_FUNDS = "insufficient_funds"
    INSUFFICIENT_MINTS = "insufficient_mints"
    INVALID_DENOMINATION = "invalid_denomination"
    DERIVATION_FAILURE = "derivation_failure"
    STORAGE_FAILURE = "storage_failure"
    ENGINE_FAILURE = "engine_failure"


class SigmaWalletError(Exception):
    """Base class for wallet exceptions."""

    reason: FailureReason | None = None


class InvalidDenominationError(SigmaWalletError, ValueError):
    reason = FailureReason.INVALID_DENOMINATION


class DerivationError(SigmaWalletError):
    """The coin-construction primitive rejected derived material."""

    reason = FailureReason.DERIVATION_FAILURE


class StorageError(SigmaWalletError):
    """Persistence read or write failed."""

    reason = FailureReason.STORAGE_FAILURE


class EngineError(SigmaWalletError):
    """The proof/transaction engine could not assemble a transaction."""

    reason = FailureReason.ENGINE_FAILURE


class OperationFailedError(SigmaWalletError):
    """Raised by ``Err.unwrap()``."""

    def __init__(self, failure: Err):
        self.failure = failure
        self.reason = failure.reason
        super().__init__(str(failure))


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T

    @property
    def ok(self) -> bool:
        return True

    def unwrap(self) -> T:
        return self.value


@dataclass(frozen=True)
class Err:
    reason: FailureReason
    message: str = ""
    # Spend stage in which the failure happened, when produced by the orchestrator
    stage: str | None = None

    @property
    def ok(self) -> bool:
        return False

    def unwrap(self) -> NoReturn:
        raise OperationFailedError(self)

    def __str__(self) -> str:
        text = self.reason.value
        if self.stage:
            text = f"{text} during {self.stage}"
        if self.message:
            text = f"{text}: {self.message}"
        return text


Result = Union[Ok[T], Err]
