"""
sigmawallet - Wallet engine for denominated sigma mints

Provides deterministic mint derivation, the lookahead mint pool, coin
selection and the spend orchestrator.
"""

__version__ = "0.1.0"

from sigmawallet.constants import (
    COIN,
    DEFAULT_MINT_POOL_LOOKAHEAD,
    MIN_SPEND_CONFIRMATIONS,
    MIN_SPENDABLE_MINTS,
)
from sigmawallet.wallet.denomination import (
    Denomination,
    amount_to_denomination,
    decimal_to_denomination,
    decompose_amount,
    denomination_to_amount,
    string_to_denomination,
)
from sigmawallet.wallet.derivation import PrivateCoinMaterial, derive_coin
from sigmawallet.wallet.errors import (
    DerivationError,
    EngineError,
    Err,
    FailureReason,
    InvalidDenominationError,
    Ok,
    OperationFailedError,
    SigmaWalletError,
    StorageError,
)
from sigmawallet.wallet.mint_pool import MintPool
from sigmawallet.wallet.models import MintPoolEntry, MintRecord, Recipient, SeedState, SpendPlan
from sigmawallet.wallet.selector import select_coins
from sigmawallet.wallet.service import SigmaWalletService, SpendStage
from sigmawallet.wallet.store import WalletMintStore

__all__ = [
    "COIN",
    "DEFAULT_MINT_POOL_LOOKAHEAD",
    "DerivationError",
    "Denomination",
    "EngineError",
    "Err",
    "FailureReason",
    "InvalidDenominationError",
    "MIN_SPENDABLE_MINTS",
    "MIN_SPEND_CONFIRMATIONS",
    "MintPool",
    "MintPoolEntry",
    "MintRecord",
    "Ok",
    "OperationFailedError",
    "PrivateCoinMaterial",
    "Recipient",
    "SeedState",
    "SigmaWalletError",
    "SigmaWalletService",
    "SpendPlan",
    "SpendStage",
    "StorageError",
    "WalletMintStore",
    "amount_to_denomination",
    "decimal_to_denomination",
    "decompose_amount",
    "denomination_to_amount",
    "derive_coin",
    "select_coins",
    "string_to_denomination",
]
