"""
Tests for sigmawallet.wallet.selector
"""

from __future__ import annotations

import pytest
from conftest import coin_counts, denomination_counts, make_records

from sigmawallet.constants import COIN
from sigmawallet.wallet.denomination import Denomination
from sigmawallet.wallet.errors import Err, FailureReason, Ok
from sigmawallet.wallet.models import MintRecord
from sigmawallet.wallet.selector import cover_exactly, group_by_denomination, select_coins


def spent_counts(plan, records: list[MintRecord]):
    by_index = {r.index: r for r in records}
    return denomination_counts(by_index[i].denomination for i in plan.to_spend)


class TestSelectCoins:
    """Selection behaviour for the reference wallet scenarios."""

    def test_no_coins(self) -> None:
        result = select_coins(COIN // 10, [])
        assert isinstance(result, Err)
        assert result.reason == FailureReason.INSUFFICIENT_MINTS

    def test_different_denominations(self) -> None:
        """One of each denomination plus an extra 0.1 covers 111.7 exactly."""
        records = make_records(coin_counts(2, 1, 1, 1, 1))
        result = select_coins(111 * COIN + 7 * COIN // 10, records)

        assert isinstance(result, Ok)
        plan = result.value
        assert spent_counts(plan, records) == coin_counts(2, 1, 1, 1, 1)
        assert plan.to_mint == ()
        assert plan.change == 0

    def test_round_up_and_remint(self) -> None:
        """111.75 rounds up to 111.8: spend 100 + 10 + 1 + 1, remint 0.1 + 0.1."""
        records = make_records(coin_counts(5, 5, 5, 5, 5))
        result = select_coins(111 * COIN + 75 * COIN // 100, records)

        plan = result.unwrap()
        assert plan.rounded_required == 111 * COIN + 8 * COIN // 10
        assert spent_counts(plan, records) == coin_counts(0, 0, 2, 1, 1)
        assert sorted(plan.to_mint) == [Denomination.D0_1, Denomination.D0_1]
        assert plan.total_spent == 112 * COIN

    def test_not_enough(self) -> None:
        records = make_records(coin_counts(1, 1, 1, 1, 1))
        result = select_coins(111 * COIN + 7 * COIN // 10, records)

        assert isinstance(result, Err)
        assert result.reason == FailureReason.INSUFFICIENT_FUNDS

    def test_minimize_coins_exact_fit(self) -> None:
        records = make_records(coin_counts(0, 0, 0, 10, 1))
        plan = select_coins(100 * COIN, records).unwrap()

        assert spent_counts(plan, records) == coin_counts(0, 0, 0, 0, 1)
        assert plan.to_mint == ()

    def test_minimize_coins_spend(self) -> None:
        records = make_records(coin_counts(1, 0, 7, 1, 1))
        plan = select_coins(17 * COIN, records).unwrap()

        assert spent_counts(plan, records) == coin_counts(0, 0, 7, 1, 0)
        assert plan.to_mint == ()

    def test_choose_smallest_enough(self) -> None:
        """0.9 takes the single 1 coin and remints 0.1 rather than combining small coins."""
        records = make_records(coin_counts(1, 1, 1, 1, 1))
        plan = select_coins(9 * COIN // 10, records).unwrap()

        assert spent_counts(plan, records) == coin_counts(0, 0, 1, 0, 0)
        assert plan.to_mint == (Denomination.D0_1,)

    def test_single_coin_below_minimum_mint_count(self) -> None:
        records = make_records(coin_counts(d10=1))
        result = select_coins(5 * COIN, records)

        assert isinstance(result, Err)
        assert result.reason == FailureReason.INSUFFICIENT_MINTS
        assert "at least 2" in result.message

    def test_two_coins_remint_change(self) -> None:
        records = make_records(coin_counts(d10=2))
        plan = select_coins(15 * COIN, records).unwrap()

        assert len(plan.to_spend) == 2
        assert sum(int(d) for d in plan.to_mint) == 5 * COIN
        assert plan.to_mint == (Denomination.D1,) * 5

    def test_minimum_mint_count_is_configurable(self) -> None:
        records = make_records(coin_counts(d10=1))
        plan = select_coins(5 * COIN, records, min_spendable_mints=1).unwrap()
        assert len(plan.to_spend) == 1

    def test_required_must_be_positive(self) -> None:
        records = make_records(coin_counts(d1=2))
        with pytest.raises(ValueError, match="positive"):
            select_coins(0, records)

    def test_oldest_coins_selected_first(self) -> None:
        older = make_records(coin_counts(d1=1), height=3, start_index=10)
        newer = make_records(coin_counts(d1=1), height=1, start_index=20)
        plan = select_coins(COIN, older + newer).unwrap()
        assert plan.to_spend == (20,)

    def test_change_invariant(self) -> None:
        records = make_records(coin_counts(3, 2, 4, 3, 2))
        for required in (1, COIN // 3, 7 * COIN + 3, 55 * COIN, 123 * COIN + 45 * COIN // 100):
            plan = select_coins(required, records).unwrap()
            by_index = {r.index: r for r in records}
            spent_total = sum(by_index[i].value for i in plan.to_spend)
            assert spent_total == plan.total_spent
            assert spent_total >= required
            assert sum(int(d) for d in plan.to_mint) == spent_total - plan.rounded_required
            assert len(set(plan.to_spend)) == len(plan.to_spend)


class TestCoverExactly:
    def test_exact_cover(self) -> None:
        available = {Denomination.D10: 1, Denomination.D1: 7}
        assert cover_exactly(17 * COIN, available) == {Denomination.D10: 1, Denomination.D1: 7}

    def test_no_cover(self) -> None:
        available = {Denomination.D1: 1, Denomination.D0_1: 1}
        assert cover_exactly(COIN // 2, available) is None

    def test_uses_smaller_coins_when_large_run_out(self) -> None:
        available = {Denomination.D10: 1, Denomination.D1: 10}
        assert cover_exactly(20 * COIN, available) == {Denomination.D10: 1, Denomination.D1: 10}


def test_group_by_denomination_sorts_by_age() -> None:
    records = make_records(coin_counts(d1=2), height=5) + make_records(
        coin_counts(d1=1), height=2, start_index=50
    )
    grouped = group_by_denomination(records)
    assert [r.index for r in grouped[Denomination.D1]] == [50, 1, 2]
    assert grouped[Denomination.D100] == []
