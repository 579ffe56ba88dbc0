"""
Tests for configuration management.
"""

from pathlib import Path

import pytest
from pydantic import ValidationError

from sigmawallet.config import WalletSettings, get_settings


def test_default_settings(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("NETWORK", "LOOKAHEAD", "MIN_CONFIRMATIONS", "MIN_SPENDABLE_MINTS"):
        monkeypatch.delenv(f"SIGMA_{name}", raising=False)
    settings = WalletSettings()
    assert settings.network == "mainnet"
    assert settings.lookahead == 20
    assert settings.min_confirmations == 6
    assert settings.min_spendable_mints == 2


def test_env_overrides(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("SIGMA_NETWORK", "regtest")
    monkeypatch.setenv("SIGMA_DATA_DIR", str(tmp_path))
    monkeypatch.setenv("SIGMA_MIN_CONFIRMATIONS", "1")

    settings = get_settings()
    assert settings.network == "regtest"
    assert settings.min_confirmations == 1
    assert settings.wallet_dir == tmp_path / "regtest"


def test_invalid_network() -> None:
    with pytest.raises(ValidationError):
        WalletSettings(network="signet")


def test_lookahead_must_be_positive() -> None:
    with pytest.raises(ValidationError):
        WalletSettings(lookahead=0)
