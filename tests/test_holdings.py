"""
Tests for holding-level buy, sell and price update transitions.
"""

from dataclasses import replace
from decimal import Decimal

import pytest

from eportfolio.models import FeeSchedule, Holding, HoldingType
from eportfolio.portfolio.holdings import (
    InsufficientQuantityError,
    InvalidTransactionError,
    buy,
    open_holding,
    sell,
    update_price,
)


class TestOpenHolding:
    """Tests for open_holding."""

    def test_new_stock(self, fees: FeeSchedule):
        holding = open_holding(HoldingType.STOCK, "ABC", "Alpha Corp", 10, Decimal("50"), fees)

        assert holding.quantity == 10
        assert holding.price == Decimal("50")
        assert holding.book_value == Decimal("509.99")
        assert holding.payment == Decimal("509.99")
        assert holding.last_gain is None

    def test_new_fund(self, fees: FeeSchedule):
        holding = open_holding(
            HoldingType.MUTUAL_FUND, "BFX", "Beta Growth Fund", 100, Decimal("12.50"), fees
        )

        assert holding.book_value == Decimal("1250.00")
        assert holding.payment == Decimal("1205.00")

    def test_strips_symbol_and_name(self, fees: FeeSchedule):
        holding = open_holding(HoldingType.STOCK, " ABC ", "  Alpha Corp ", 1, Decimal("1"), fees)
        assert holding.symbol == "ABC"
        assert holding.name == "Alpha Corp"

    @pytest.mark.parametrize("quantity", [0, -1])
    def test_rejects_non_positive_quantity(self, quantity: int, fees: FeeSchedule):
        with pytest.raises(InvalidTransactionError):
            open_holding(HoldingType.STOCK, "ABC", "Alpha", quantity, Decimal("1"), fees)

    def test_rejects_negative_price(self, fees: FeeSchedule):
        with pytest.raises(InvalidTransactionError):
            open_holding(HoldingType.STOCK, "ABC", "Alpha", 1, Decimal("-1"), fees)


class TestBuy:
    """Tests for buy."""

    def test_stock_book_value_grows_by_cost_plus_commission(
        self, stock_holding: Holding, fees: FeeSchedule
    ):
        before = stock_holding.book_value
        buy(stock_holding, 5, Decimal("60"), fees)

        assert stock_holding.book_value == before + 5 * Decimal("60") + fees.commission
        assert stock_holding.quantity == 15
        assert stock_holding.price == Decimal("60")
        assert stock_holding.payment == Decimal("309.99")

    def test_fund_book_value_grows_without_fee(self, fund_holding: Holding, fees: FeeSchedule):
        buy(fund_holding, 10, Decimal("13"), fees)

        assert fund_holding.book_value == Decimal("1380.00")
        assert fund_holding.quantity == 110
        assert fund_holding.payment == Decimal("85")

    def test_invalid_quantity_leaves_holding_unchanged(
        self, stock_holding: Holding, fees: FeeSchedule
    ):
        snapshot = replace(stock_holding)
        with pytest.raises(InvalidTransactionError):
            buy(stock_holding, 0, Decimal("60"), fees)
        assert stock_holding == snapshot


class TestSell:
    """Tests for sell."""

    def test_full_sale_realized_gain(self, stock_holding: Holding, fees: FeeSchedule):
        result = sell(stock_holding, 10, Decimal("60"), fees)

        # 10 * 60 - 9.99 - 509.99
        assert result.realized_gain == Decimal("80.02")
        assert result.book_value_sold == Decimal("509.99")
        assert result.closed is True
        assert stock_holding.quantity == 0
        assert stock_holding.book_value == Decimal("0")

    def test_partial_sale_removes_proportional_book_value(
        self, stock_holding: Holding, fees: FeeSchedule
    ):
        result = sell(stock_holding, 4, Decimal("60"), fees)

        assert result.book_value_sold == Decimal("203.996")
        assert stock_holding.book_value == Decimal("305.994")
        assert stock_holding.quantity == 6
        assert stock_holding.price == Decimal("60")
        assert result.realized_gain == Decimal("26.01")
        assert result.remaining_quantity == 6
        assert result.closed is False

    def test_fund_sale_deducts_commission(self, fund_holding: Holding, fees: FeeSchedule):
        result = sell(fund_holding, 100, Decimal("13"), fees)

        assert result.realized_gain == Decimal("40.01")
        assert result.closed is True

    def test_selling_more_than_held_raises(self, stock_holding: Holding, fees: FeeSchedule):
        snapshot = replace(stock_holding)

        with pytest.raises(InsufficientQuantityError) as exc_info:
            sell(stock_holding, 11, Decimal("60"), fees)

        assert exc_info.value.requested == 11
        assert exc_info.value.available == 10
        assert stock_holding == snapshot

    @pytest.mark.parametrize("quantity", [0, -1])
    def test_non_positive_quantity_is_insufficient(
        self, stock_holding: Holding, fees: FeeSchedule, quantity: int
    ):
        snapshot = replace(stock_holding)

        with pytest.raises(InsufficientQuantityError) as exc_info:
            sell(stock_holding, quantity, Decimal("60"), fees)

        assert exc_info.value.requested == quantity
        assert stock_holding == snapshot

    def test_fractional_quantity_rejected(self, stock_holding: Holding, fees: FeeSchedule):
        with pytest.raises(InvalidTransactionError):
            sell(stock_holding, 2.5, Decimal("60"), fees)

    def test_sale_does_not_touch_payment(self, stock_holding: Holding, fees: FeeSchedule):
        sell(stock_holding, 5, Decimal("60"), fees)
        assert stock_holding.payment == Decimal("509.99")


class TestUpdatePrice:
    """Tests for update_price."""

    def test_recomputes_payment_only(self, stock_holding: Holding, fees: FeeSchedule):
        update_price(stock_holding, Decimal("55"), fees)

        assert stock_holding.price == Decimal("55")
        assert stock_holding.payment == Decimal("559.99")
        assert stock_holding.book_value == Decimal("509.99")
        assert stock_holding.quantity == 10

    def test_fund_payment_after_update(self, fund_holding: Holding, fees: FeeSchedule):
        update_price(fund_holding, Decimal("13"), fees)
        assert fund_holding.payment == Decimal("1255")

    def test_negative_price_rejected(self, stock_holding: Holding, fees: FeeSchedule):
        with pytest.raises(InvalidTransactionError):
            update_price(stock_holding, Decimal("-0.01"), fees)
        assert stock_holding.price == Decimal("50")
