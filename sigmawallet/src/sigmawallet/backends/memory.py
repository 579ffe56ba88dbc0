"""
In-memory chain and proof engine.

A tiny regtest stand-in: blocks are lists of observed mints. Transactions
assembled by LocalSpendEngine are submitted to the mempool by the caller and
land in the next generated block. No proofs are produced; serial numbers are
tracked so a double spend is rejected the way a real node would.
"""

from __future__ import annotations

import hashlib
import json

from loguru import logger

from sigmawallet.backends.base import (
    AssembledTransaction,
    ChainBackend,
    MintRequest,
    ObservedMint,
    SpendEngine,
    SpendRequest,
)
from sigmawallet.wallet.denomination import Denomination
from sigmawallet.wallet.errors import EngineError

DEFAULT_GROUP_ID = 1


class InMemoryChain(ChainBackend):
    def __init__(self, group_id: int = DEFAULT_GROUP_ID):
        self.group_id = group_id
        # blocks[h - 1] holds the mints of block h
        self.blocks: list[list[ObservedMint]] = []
        self.block_serials: list[list[int]] = []
        self.mempool: list[AssembledTransaction] = []
        self.spent_serials: set[int] = set()

    def get_block_height(self) -> int:
        return len(self.blocks)

    def get_block_mints(self, height: int) -> list[ObservedMint]:
        if not 1 <= height <= len(self.blocks):
            raise ValueError(f"No block at height {height}")
        return list(self.blocks[height - 1])

    def get_block_spent_serials(self, height: int) -> list[int]:
        if not 1 <= height <= len(self.blocks):
            raise ValueError(f"No block at height {height}")
        return list(self.block_serials[height - 1])

    def generate_block(self, mints: list[tuple[str, Denomination]] | None = None) -> int:
        """
        Mine a block with the given mint outputs plus everything in the mempool.

        Returns:
            Height of the new block
        """
        height = len(self.blocks) + 1
        outputs = list(mints or [])
        serials: list[int] = []
        for tx in self.mempool:
            serials.extend(tx.serials)
            outputs.extend(tx.mint_outputs)
        self.mempool.clear()
        self.spent_serials.update(serials)
        self.block_serials.append(serials)

        self.blocks.append(
            [
                ObservedMint(
                    public_value=public_value,
                    denomination=denomination,
                    group_id=self.group_id,
                    height=height,
                )
                for public_value, denomination in outputs
            ]
        )
        logger.debug(f"Generated block {height} with {len(outputs)} mints")
        return height

    def generate_empty_blocks(self, count: int) -> int:
        for _ in range(count):
            self.generate_block()
        return self.get_block_height()

    def submit(self, tx: AssembledTransaction) -> None:
        pending = {s for t in self.mempool for s in t.serials}
        if any(s in self.spent_serials or s in pending for s in tx.serials):
            raise EngineError(f"Transaction {tx.txid} spends an already used serial")
        self.mempool.append(tx)


def _txid(payload: dict) -> str:
    encoded = json.dumps(payload, sort_keys=True).encode("utf-8")
    return hashlib.sha256(hashlib.sha256(encoded).digest()).hexdigest()


class LocalSpendEngine(SpendEngine):
    """
    Assembles placeholder transactions.

    When given a chain it consults the chain's used serials and refuses to
    spend a coin twice.
    """

    def __init__(self, chain: InMemoryChain | None = None):
        self.chain = chain
        self.assembled: list[AssembledTransaction] = []

    def _record(self, tx: AssembledTransaction) -> AssembledTransaction:
        self.assembled.append(tx)
        logger.debug(f"Assembled transaction {tx.txid}")
        return tx

    def assemble_spend(self, request: SpendRequest) -> AssembledTransaction:
        if not request.spends:
            raise EngineError("Spend has no inputs")

        serials = [s.coin.serial_number for s in request.spends]
        if self.chain is not None and any(s in self.chain.spent_serials for s in serials):
            raise EngineError("Coin serial already spent on chain")

        mint_outputs = [(m.coin.public_value_hex, m.denomination) for m in request.change]
        txid = _txid(
            {
                "spends": [s.record.public_value for s in request.spends],
                "change": [pv for pv, _ in mint_outputs],
                "recipients": [[r.address, r.amount] for r in request.recipients],
                "fee": request.fee,
            }
        )
        return self._record(
            AssembledTransaction(txid=txid, serials=serials, mint_outputs=mint_outputs)
        )

    def assemble_mint(self, request: MintRequest) -> AssembledTransaction:
        if not request.mints:
            raise EngineError("Mint has no outputs")
        mint_outputs = [(m.coin.public_value_hex, m.denomination) for m in request.mints]
        txid = _txid({"mints": [pv for pv, _ in mint_outputs]})
        return self._record(AssembledTransaction(txid=txid, mint_outputs=mint_outputs))
