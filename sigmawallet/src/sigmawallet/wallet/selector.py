"""
Denomination-based coin selection.

Picks which confirmed mints to spend for a requested amount and which
denominations to remint as change. The cost of a spend is the number of
coins it touches: inputs spent plus change coins minted. Among all totals
that cover the (rounded up) requirement, the cheapest one wins; ties prefer
fewer inputs, then the smaller total.
"""

from __future__ import annotations

from collections.abc import Sequence

from loguru import logger

from sigmawallet.constants import MIN_SPENDABLE_MINTS
from sigmawallet.wallet.denomination import (
    DENOMINATIONS_DESCENDING,
    LARGEST_DENOMINATION,
    SMALLEST_DENOMINATION,
    Denomination,
    decompose_amount,
    format_amount,
    round_up_to_smallest,
)
from sigmawallet.wallet.errors import Err, FailureReason, Ok, Result
from sigmawallet.wallet.models import MintRecord, SpendPlan


def _selection_order(record: MintRecord) -> tuple[int, int]:
    # Oldest coins first, then lowest derivation index
    height = record.creation_height if record.creation_height is not None else 0
    return (height, record.index)


def group_by_denomination(records: Sequence[MintRecord]) -> dict[Denomination, list[MintRecord]]:
    grouped: dict[Denomination, list[MintRecord]] = {d: [] for d in DENOMINATIONS_DESCENDING}
    for record in records:
        grouped[record.denomination].append(record)
    for bucket in grouped.values():
        bucket.sort(key=_selection_order)
    return grouped


def cover_exactly(total: int, available: dict[Denomination, int]) -> dict[Denomination, int] | None:
    """
    Fewest coins summing exactly to ``total`` given per-denomination counts.

    Largest-first greedy is exact here: the face values form a divisible
    chain, so any representation using fewer large coins can swap a group of
    smaller ones for a large one.
    """
    counts: dict[Denomination, int] = {}
    remaining = total
    for denomination in DENOMINATIONS_DESCENDING:
        take = min(available.get(denomination, 0), remaining // int(denomination))
        if take:
            counts[denomination] = take
            remaining -= take * int(denomination)
    if remaining:
        return None
    return counts


def select_coins(
    required: int,
    spendable: Sequence[MintRecord],
    min_spendable_mints: int = MIN_SPENDABLE_MINTS,
) -> Result[SpendPlan]:
    """
    Build a spend plan for ``required`` base units.

    Args:
        required: Amount to cover, must be positive
        spendable: Confirmed, unused records (already filtered by the caller)
        min_spendable_mints: Minimum number of spendable mints before any spend

    Returns:
        Ok(SpendPlan), or Err with INSUFFICIENT_MINTS / INSUFFICIENT_FUNDS
    """
    if required <= 0:
        raise ValueError(f"Required amount must be positive, got {required}")

    if len(spendable) < min_spendable_mints:
        return Err(
            FailureReason.INSUFFICIENT_MINTS,
            f"Has to have at least {min_spendable_mints} confirmed mints to spend, "
            f"have {len(spendable)}",
        )

    available_total = sum(record.value for record in spendable)
    if available_total < required:
        return Err(
            FailureReason.INSUFFICIENT_FUNDS,
            f"Insufficient funds: need {format_amount(required)}, "
            f"have {format_amount(available_total)}",
        )

    rounded = round_up_to_smallest(required)
    grouped = group_by_denomination(spendable)
    available = {denomination: len(bucket) for denomination, bucket in grouped.items()}

    # Any cheapest cover overshoots by less than one largest coin
    unit = int(SMALLEST_DENOMINATION)
    upper = min(available_total, rounded + int(LARGEST_DENOMINATION) - unit)

    best_key: tuple[int, int, int] | None = None
    best_counts: dict[Denomination, int] = {}
    best_total = 0
    for total in range(rounded, upper + 1, unit):
        counts = cover_exactly(total, available)
        if counts is None:
            continue
        spent = sum(counts.values())
        minted = len(decompose_amount(total - rounded))
        key = (spent + minted, spent, total)
        if best_key is None or key < best_key:
            best_key, best_counts, best_total = key, counts, total

    if best_key is None:
        return Err(
            FailureReason.INSUFFICIENT_FUNDS,
            f"No combination of mints covers {format_amount(required)}",
        )

    to_spend: list[int] = []
    for denomination in DENOMINATIONS_DESCENDING:
        count = best_counts.get(denomination, 0)
        to_spend.extend(record.index for record in grouped[denomination][:count])

    plan = SpendPlan(
        to_spend=tuple(to_spend),
        to_mint=tuple(decompose_amount(best_total - rounded)),
        required=required,
        rounded_required=rounded,
        total_spent=best_total,
    )
    logger.debug(
        f"Selected {len(plan.to_spend)} mints totalling {format_amount(best_total)} "
        f"for {format_amount(required)}, reminting {len(plan.to_mint)} "
        f"({format_amount(plan.change)})"
    )
    return Ok(plan)
