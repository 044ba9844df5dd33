"""
Pytest fixtures for the ePortfolio tests.

Provides common test data and utilities used across test modules.
"""

from decimal import Decimal
from pathlib import Path

import pytest

from eportfolio.models import FeeSchedule, Holding, HoldingType
from eportfolio.portfolio import Portfolio


SAMPLE_PORTFOLIO_TEXT = """\
Type = stock
Symbol = ABC
Name = Alpha Corp
Quantity = 10
Price = 50.00
BookValue = 509.99

Type = mutualfund
Symbol = BFX
Name = Beta Growth Fund
Quantity = 100
Price = 12.50
BookValue = 1250.00

Type = stock
Symbol = GAM
Name = Gamma Alpha Holdings
Quantity = 5
Price = 200.00
BookValue = 1009.99

"""


@pytest.fixture
def fees() -> FeeSchedule:
    """Default fee schedule (9.99 commission, 45.00 redemption fee)."""
    return FeeSchedule()


@pytest.fixture
def stock_holding() -> Holding:
    """A stock bought as 10 units at 50 with commission."""
    return Holding(
        holding_type=HoldingType.STOCK,
        symbol="ABC",
        name="Alpha Corp",
        quantity=10,
        price=Decimal("50"),
        book_value=Decimal("509.99"),
        payment=Decimal("509.99"),
    )


@pytest.fixture
def fund_holding() -> Holding:
    """A mutual fund bought as 100 units at 12.50."""
    return Holding(
        holding_type=HoldingType.MUTUAL_FUND,
        symbol="BFX",
        name="Beta Growth Fund",
        quantity=100,
        price=Decimal("12.50"),
        book_value=Decimal("1250.00"),
        payment=Decimal("1205.00"),
    )


@pytest.fixture
def sample_portfolio() -> Portfolio:
    """Portfolio with two stocks and one fund, built through buy()."""
    portfolio = Portfolio()
    portfolio.buy("ABC", "stock", "Alpha Corp", 10, Decimal("50"))
    portfolio.buy("BFX", "mutualfund", "Beta Growth Fund", 100, Decimal("12.50"))
    portfolio.buy("GAM", "stock", "Gamma Alpha Holdings", 5, Decimal("200"))
    return portfolio


@pytest.fixture
def portfolio_file(tmp_path: Path) -> Path:
    """Portfolio text file matching sample_portfolio."""
    path = tmp_path / "portfolio.txt"
    path.write_text(SAMPLE_PORTFOLIO_TEXT)
    return path


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch: pytest.MonkeyPatch, tmp_path: Path):
    """Keep EPORTFOLIO_* variables and a stray .env out of every test."""
    for key in (
        "EPORTFOLIO_FILE",
        "EPORTFOLIO_JOURNAL",
        "EPORTFOLIO_COMMISSION",
        "EPORTFOLIO_REDEMPTION_FEE",
    ):
        monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)
