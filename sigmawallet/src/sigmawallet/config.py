"""
Configuration management for the sigma wallet.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from sigmawallet.constants import (
    DEFAULT_MINT_POOL_LOOKAHEAD,
    MIN_SPEND_CONFIRMATIONS,
    MIN_SPENDABLE_MINTS,
)


class WalletSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="SIGMA_", env_file=".env", env_file_encoding="utf-8", case_sensitive=False
    )

    network: Literal["mainnet", "testnet", "regtest"] = "mainnet"

    data_dir: Path = Field(default_factory=lambda: Path.home() / ".sigmawallet")

    # Derived-but-unseen mints kept ahead of the last used index
    lookahead: int = Field(default=DEFAULT_MINT_POOL_LOOKAHEAD, ge=1, le=1000)
    min_confirmations: int = Field(default=MIN_SPEND_CONFIRMATIONS, ge=1)
    min_spendable_mints: int = Field(default=MIN_SPENDABLE_MINTS, ge=1)

    log_level: str = "INFO"

    @property
    def wallet_dir(self) -> Path:
        return self.data_dir / self.network


def get_settings() -> WalletSettings:
    return WalletSettings()
