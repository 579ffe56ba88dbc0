"""
Sigma mint protocol constants.

Amounts are integers in base units, 1 coin = COIN base units.
"""

from __future__ import annotations

COIN = 100_000_000

# A mint is spendable once its block has this many confirmations
# (the minting block itself counts as the first one).
MIN_SPEND_CONFIRMATIONS = 6

# At least this many confirmed, unused mints must exist before any spend
# is attempted, independent of the amount requested.
MIN_SPENDABLE_MINTS = 2

# Number of derived-but-unseen coin identities kept ahead of the last used index
DEFAULT_MINT_POOL_LOOKAHEAD = 20

# Domain separation tag for per-coin seed expansion
MINT_SEED_TAG = b"sigma-mint"

# Seed used to find the second Pedersen generator H (nothing up my sleeve)
GENERATOR_H_SEED = b"sigmawallet/pedersen-generator-h"

MASTER_SEED_MIN_BYTES = 32
MASTER_SEED_MAX_BYTES = 64
