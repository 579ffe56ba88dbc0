"""
Deterministic derivation of sigma coin secrets from a master seed.

Every mint's secret material is a pure function of (master_seed, index):

    coin_seed     = HMAC-SHA512(master_seed, "sigma-mint" || index)
    signing_key   = coin_seed[:32]                      (secp256k1 ECDSA key)
    serial_number = SHA256(compressed pubkey of signing_key) mod n
    randomness    = SHA256(coin_seed[32:]) mod n
    public_value  = serial_number*G + randomness*H      (Pedersen commitment)

Nothing derived here is ever persisted; a wallet is recovered from the seed
plus a chain rescan.
"""

from __future__ import annotations

import hashlib
import hmac
import secrets
from dataclasses import dataclass, field
from functools import lru_cache

from coincurve import PrivateKey, PublicKey

from sigmawallet.constants import (
    GENERATOR_H_SEED,
    MASTER_SEED_MAX_BYTES,
    MASTER_SEED_MIN_BYTES,
    MINT_SEED_TAG,
)
from sigmawallet.wallet.errors import DerivationError

# secp256k1 curve order
SECP256K1_N = int("FFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEBAAEDCE6AF48A03BBFD25E8CD0364141", 16)


@dataclass(frozen=True)
class PrivateCoinMaterial:
    """Secret opening of one mint. Lives only in memory."""

    index: int
    serial_number: int = field(repr=False)
    randomness: int = field(repr=False)
    signing_key: bytes = field(repr=False)
    public_value: bytes

    @property
    def identity_hash(self) -> str:
        return identity_hash(self.public_value)

    @property
    def public_value_hex(self) -> str:
        return self.public_value.hex()


def identity_hash(public_value: bytes) -> str:
    """Non-secret identifier of a coin, used to match on-chain mints."""
    return hashlib.sha256(public_value).hexdigest()


@lru_cache(maxsize=1)
def generator_h() -> PublicKey:
    """
    Second generator for the commitment, with unknown discrete log w.r.t. G.

    Found by hashing a fixed seed with an increasing counter until the digest
    is the x coordinate of a curve point.
    """
    counter = 0
    while True:
        x = hashlib.sha256(GENERATOR_H_SEED + counter.to_bytes(4, "big")).digest()
        try:
            return PublicKey(b"\x02" + x)
        except ValueError:
            counter += 1


def _scalar_bytes(value: int) -> bytes:
    return value.to_bytes(32, "big")


def validate_master_seed(master_seed: bytes) -> None:
    if not MASTER_SEED_MIN_BYTES <= len(master_seed) <= MASTER_SEED_MAX_BYTES:
        raise ValueError(
            f"Master seed must be {MASTER_SEED_MIN_BYTES}-{MASTER_SEED_MAX_BYTES} bytes, "
            f"got {len(master_seed)}"
        )


def coin_seed(master_seed: bytes, index: int) -> bytes:
    """Expand (master_seed, index) into 64 bytes of per-coin seed material."""
    if index < 1:
        raise ValueError(f"Mint index must be >= 1, got {index}")
    validate_master_seed(master_seed)
    message = MINT_SEED_TAG + index.to_bytes(4, "big")
    return hmac.new(master_seed, message, hashlib.sha512).digest()


def derive_coin(master_seed: bytes, index: int) -> PrivateCoinMaterial:
    """
    Derive the full private coin at ``index``.

    Raises:
        ValueError: If the index or seed length is invalid
        DerivationError: If the curve library rejects the derived scalars
    """
    seed = coin_seed(master_seed, index)

    try:
        signing_key = PrivateKey(seed[:32])
        pubkey_bytes = signing_key.public_key.format(compressed=True)

        serial_number = int.from_bytes(hashlib.sha256(pubkey_bytes).digest(), "big") % SECP256K1_N
        randomness = int.from_bytes(hashlib.sha256(seed[32:]).digest(), "big") % SECP256K1_N

        serial_point = PublicKey.from_secret(_scalar_bytes(serial_number))
        blinding_point = generator_h().multiply(_scalar_bytes(randomness))
        commitment = PublicKey.combine_keys([serial_point, blinding_point])
    except ValueError as e:
        raise DerivationError(f"Coin construction failed for index {index}: {e}") from e

    return PrivateCoinMaterial(
        index=index,
        serial_number=serial_number,
        randomness=randomness,
        signing_key=signing_key.secret,
        public_value=commitment.format(compressed=True),
    )


def regenerate_coin(master_seed: bytes, index: int, public_value: bytes) -> PrivateCoinMaterial:
    """
    Re-derive a stored mint and check it still opens the stored commitment.

    Raises:
        DerivationError: If the derived public value does not match
    """
    coin = derive_coin(master_seed, index)
    if not hmac.compare_digest(coin.public_value, public_value):
        raise DerivationError(f"Mint {index} does not belong to this seed")
    return coin


def generate_master_seed() -> bytes:
    return secrets.token_bytes(MASTER_SEED_MIN_BYTES)


def master_seed_from_mnemonic(mnemonic: str, passphrase: str = "") -> bytes:
    """
    Stretch a mnemonic phrase into a 64 byte master seed (BIP39 style PBKDF2).
    """
    mnemonic_bytes = mnemonic.encode("utf-8")
    salt = ("mnemonic" + passphrase).encode("utf-8")
    return hashlib.pbkdf2_hmac("sha512", mnemonic_bytes, salt, 2048, dklen=64)


def seed_fingerprint(master_seed: bytes) -> str:
    """Short non-secret tag identifying which seed a wallet file belongs to."""
    inner = hashlib.sha256(master_seed).digest()
    return hashlib.sha256(b"sigmawallet-fingerprint" + inner).hexdigest()[:16]
