"""
Tests for sigmawallet.wallet.denomination
"""

from __future__ import annotations

from decimal import Decimal

import pytest

from sigmawallet.constants import COIN
from sigmawallet.wallet.denomination import (
    DENOMINATIONS_DESCENDING,
    Denomination,
    amount_to_denomination,
    decimal_to_amount,
    decimal_to_denomination,
    decompose_amount,
    denomination_to_amount,
    denomination_to_decimal,
    format_amount,
    round_up_to_smallest,
    string_to_denomination,
)
from sigmawallet.wallet.errors import Err, FailureReason, InvalidDenominationError, Ok


class TestDenominationConversions:
    @pytest.mark.parametrize(
        "denomination,amount",
        [
            (Denomination.D0_1, 10_000_000),
            (Denomination.D0_5, 50_000_000),
            (Denomination.D1, COIN),
            (Denomination.D10, 10 * COIN),
            (Denomination.D100, 100 * COIN),
        ],
    )
    def test_amount_mapping(self, denomination: Denomination, amount: int) -> None:
        assert denomination_to_amount(denomination) == amount
        assert amount_to_denomination(amount) == Ok(denomination)

    def test_amount_not_a_denomination(self) -> None:
        result = amount_to_denomination(2 * COIN)
        assert isinstance(result, Err)
        assert result.reason == FailureReason.INVALID_DENOMINATION

    @pytest.mark.parametrize("text", ["0.1", "0.5", "1", "10", "100"])
    def test_string_forms(self, text: str) -> None:
        denomination = string_to_denomination(text).unwrap()
        assert str(denomination) == text

    @pytest.mark.parametrize("text", ["", "0.2", "1.0", "1000", "ten"])
    def test_invalid_strings(self, text: str) -> None:
        result = string_to_denomination(text)
        assert isinstance(result, Err)
        assert result.reason == FailureReason.INVALID_DENOMINATION

    def test_decimal_forms(self) -> None:
        assert decimal_to_denomination(Decimal("0.5")) == Ok(Denomination.D0_5)
        assert decimal_to_denomination(0.1) == Ok(Denomination.D0_1)
        assert decimal_to_denomination(10) == Ok(Denomination.D10)
        assert denomination_to_decimal(Denomination.D0_1) == Decimal("0.1")
        assert denomination_to_decimal(Denomination.D100) == Decimal("100")

    def test_decimal_not_a_denomination(self) -> None:
        assert isinstance(decimal_to_denomination(Decimal("0.3")), Err)
        assert isinstance(decimal_to_denomination("abc"), Err)

    def test_format_spec_uses_string_form(self) -> None:
        assert f"{Denomination.D0_5:>5}" == "  0.5"

    def test_descending_order(self) -> None:
        assert [int(d) for d in DENOMINATIONS_DESCENDING] == sorted(
            (int(d) for d in Denomination), reverse=True
        )


class TestDecimalToAmount:
    def test_valid_values(self) -> None:
        assert decimal_to_amount("111.75") == 11_175_000_000
        assert decimal_to_amount(Decimal("0.00000001")) == 1
        assert decimal_to_amount(0.1) == 10_000_000
        assert decimal_to_amount(3) == 3 * COIN

    def test_too_precise(self) -> None:
        with pytest.raises(InvalidDenominationError, match="precision"):
            decimal_to_amount("0.000000001")

    def test_precision_beyond_context_digits(self) -> None:
        with pytest.raises(InvalidDenominationError, match="precision"):
            decimal_to_amount("1.0000000000000000000000000001")

    @pytest.mark.parametrize("value", ["abc", "NaN", "Infinity"])
    def test_not_a_number(self, value: str) -> None:
        with pytest.raises(InvalidDenominationError):
            decimal_to_amount(value)


class TestDecomposeAmount:
    def test_fewest_coins(self) -> None:
        assert decompose_amount(111 * COIN + 8 * COIN // 10) == [
            Denomination.D100,
            Denomination.D10,
            Denomination.D1,
            Denomination.D0_5,
            Denomination.D0_1,
            Denomination.D0_1,
            Denomination.D0_1,
        ]

    def test_zero(self) -> None:
        assert decompose_amount(0) == []

    def test_sum_matches(self) -> None:
        amount = 1234 * COIN + 9 * COIN // 10
        assert sum(int(d) for d in decompose_amount(amount)) == amount

    def test_not_a_multiple(self) -> None:
        with pytest.raises(InvalidDenominationError, match="smallest denomination"):
            decompose_amount(COIN + 1)

    def test_negative(self) -> None:
        with pytest.raises(InvalidDenominationError):
            decompose_amount(-COIN)


def test_round_up_to_smallest() -> None:
    assert round_up_to_smallest(1) == 10_000_000
    assert round_up_to_smallest(10_000_000) == 10_000_000
    assert round_up_to_smallest(111 * COIN + 75 * COIN // 100) == 111 * COIN + 8 * COIN // 10


def test_format_amount() -> None:
    assert format_amount(11_175_000_000) == "111.75"
    assert format_amount(100 * COIN) == "100"
    assert format_amount(0) == "0"
