"""
Tests for the stock and mutual fund valuation rules.
"""

from decimal import Decimal

import pytest

from eportfolio.models import FeeSchedule, Holding, HoldingType
from eportfolio.portfolio.valuation import (
    VALUATION_RULES,
    calculate_book_value,
    calculate_gain,
    calculate_payment,
    calculate_sale_fee,
    round_money,
)


class TestRoundMoney:
    """Tests for half-up rounding to cents."""

    def test_rounds_half_up(self):
        assert round_money(Decimal("0.125")) == Decimal("0.13")
        assert round_money(Decimal("0.124")) == Decimal("0.12")

    def test_negative_half_rounds_away_from_zero(self):
        assert round_money(Decimal("-0.125")) == Decimal("-0.13")

    def test_result_has_two_places(self):
        assert str(round_money(Decimal("7"))) == "7.00"


class TestBookValue:
    """Tests for calculate_book_value."""

    def test_stock_includes_commission(self, fees: FeeSchedule):
        result = calculate_book_value(HoldingType.STOCK, 10, Decimal("50"), fees)
        assert result == Decimal("509.99")

    def test_fund_has_no_purchase_fee(self, fees: FeeSchedule):
        result = calculate_book_value(HoldingType.MUTUAL_FUND, 100, Decimal("12.50"), fees)
        assert result == Decimal("1250.00")

    def test_custom_commission(self):
        fees = FeeSchedule(commission=Decimal("4.95"))
        result = calculate_book_value(HoldingType.STOCK, 2, Decimal("10"), fees)
        assert result == Decimal("24.95")


class TestPayment:
    """Tests for calculate_payment."""

    def test_stock_payment_adds_commission(self, fees: FeeSchedule):
        assert calculate_payment(HoldingType.STOCK, 10, Decimal("50"), fees) == Decimal("509.99")

    def test_fund_payment_deducts_redemption_fee(self, fees: FeeSchedule):
        result = calculate_payment(HoldingType.MUTUAL_FUND, 100, Decimal("12.50"), fees)
        assert result == Decimal("1205.00")

    def test_custom_redemption_fee(self):
        fees = FeeSchedule(redemption_fee=Decimal("0"))
        result = calculate_payment(HoldingType.MUTUAL_FUND, 3, Decimal("10"), fees)
        assert result == Decimal("30")


class TestGain:
    """Tests for calculate_gain."""

    def test_stock_gain_subtracts_commission(self, stock_holding: Holding, fees: FeeSchedule):
        # 10 * 55 - 509.99 = 40.01, less 9.99 commission
        assert calculate_gain(stock_holding, Decimal("55"), fees) == Decimal("30.02")

    def test_stock_gain_at_purchase_price_is_two_commissions(
        self, stock_holding: Holding, fees: FeeSchedule
    ):
        assert calculate_gain(stock_holding, Decimal("50"), fees) == Decimal("-19.98")

    def test_fund_gain_deducts_redemption_fee(self, fund_holding: Holding, fees: FeeSchedule):
        # 100 * 13 - 45 - 1250 = 5
        assert calculate_gain(fund_holding, Decimal("13"), fees) == Decimal("5.00")

    def test_fund_gain_is_rounded(self, fund_holding: Holding, fees: FeeSchedule):
        # 100 * 12.33333 - 45 - 1250 = -61.667
        assert calculate_gain(fund_holding, Decimal("12.33333"), fees) == Decimal("-61.67")

    def test_gain_does_not_modify_holding(self, stock_holding: Holding, fees: FeeSchedule):
        calculate_gain(stock_holding, Decimal("99"), fees)
        assert stock_holding.price == Decimal("50")
        assert stock_holding.book_value == Decimal("509.99")
        assert stock_holding.payment == Decimal("509.99")


class TestSaleFee:
    """Tests for calculate_sale_fee."""

    @pytest.mark.parametrize("holding_type", list(HoldingType))
    def test_sale_fee_is_commission(self, holding_type: HoldingType, fees: FeeSchedule):
        assert calculate_sale_fee(holding_type, fees) == fees.commission


class TestRuleTable:
    """Tests for the rule table itself."""

    def test_every_holding_type_has_a_rule(self):
        assert set(VALUATION_RULES) == set(HoldingType)
