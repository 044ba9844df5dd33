"""
Command-line interface for the ePortfolio tracker.

Provides commands for:
- buy: Buy units of a stock or mutual fund
- sell: Sell units of a holding
- update: Update holding prices and show gains
- gain: Total gain across the portfolio
- search: Search by symbol, name keywords and price range
- list / index: Show holdings or the keyword index
- export: Write a CSV holdings report
- shell: Interactive command loop
"""

import logging
import sys
from dataclasses import dataclass
from decimal import Decimal
from pathlib import Path
from typing import Optional

import click

from eportfolio import __version__
from eportfolio.config import AppConfig, ConfigurationError, load_app_config
from eportfolio.data import PersistenceError, export_holdings_report
from eportfolio.logging import TransactionLogger, get_logger
from eportfolio.models import Holding
from eportfolio.portfolio import Portfolio, PortfolioError


@dataclass
class CliState:
    """Settings shared by all subcommands."""
    config: AppConfig
    journal: TransactionLogger


@click.group()
@click.version_option(version=__version__, prog_name="eportfolio")
@click.option(
    "--file", "-f", "portfolio_file",
    type=click.Path(dir_okay=False),
    default=None,
    help="Portfolio file. Defaults to config portfolio_file.",
)
@click.option(
    "--config", "-c", "config_path",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="Path to configuration YAML file",
)
@click.option(
    "--journal", "-j", "journal_path",
    type=click.Path(dir_okay=False),
    default=None,
    help="Transaction journal (JSONL). Defaults to config journal_path.",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.pass_context
def main(
    ctx: click.Context,
    portfolio_file: Optional[str],
    config_path: Optional[str],
    journal_path: Optional[str],
    verbose: bool,
):
    """
    ePortfolio investment tracker.

    Keeps stocks and mutual funds in a plain text portfolio file and
    reports book value and gains.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    try:
        app_config = load_app_config(config_path)
    except ConfigurationError as e:
        click.echo(f"Error loading config: {e}", err=True)
        sys.exit(1)

    if portfolio_file:
        app_config.portfolio_file = Path(portfolio_file)
    if journal_path:
        app_config.journal_path = Path(journal_path)

    journal = get_logger(app_config.journal_path)
    if config_path:
        journal.log_config_loaded(app_config, config_path)

    ctx.obj = CliState(config=app_config, journal=journal)


@main.command()
@click.argument("holding_type")
@click.argument("symbol")
@click.option("--quantity", "-q", required=True, type=int, help="Units to buy")
@click.option("--price", "-p", required=True, type=float, help="Price per unit")
@click.option("--name", "-n", default="", help="Name (required for a new holding)")
@click.pass_obj
def buy(state: CliState, holding_type: str, symbol: str, quantity: int, price: float, name: str):
    """
    Buy units of a holding.

    HOLDING_TYPE is 'stock' or 'mutualfund'. Buying a symbol already held
    adds to that holding.
    """
    portfolio = _load_portfolio(state)
    unit_price = Decimal(str(price))

    try:
        holding = portfolio.buy(symbol, holding_type, name, quantity, unit_price)
    except PortfolioError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    _save_portfolio(state, portfolio)
    state.journal.log_holding_bought(holding, quantity, unit_price)

    click.echo(f"Bought {quantity} {holding.symbol} at ${unit_price:,.2f}")
    click.echo(f"  Payment:    ${holding.payment:,.2f}")
    click.echo(f"  Quantity:   {holding.quantity}")
    click.echo(f"  Book value: ${holding.book_value:,.2f}")


@main.command()
@click.argument("symbol")
@click.option("--quantity", "-q", required=True, type=int, help="Units to sell")
@click.option("--price", "-p", required=True, type=float, help="Sale price per unit")
@click.pass_obj
def sell(state: CliState, symbol: str, quantity: int, price: float):
    """Sell units of a holding; a holding sold out is removed."""
    portfolio = _load_portfolio(state)

    try:
        result = portfolio.sell(symbol, quantity, Decimal(str(price)))
    except PortfolioError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    _save_portfolio(state, portfolio)
    state.journal.log_holding_sold(result)

    click.echo(f"Sold {result.quantity_sold} {result.symbol} at ${result.sale_price:,.2f}")
    click.echo(f"  Gain from sale: ${result.realized_gain:,.2f}")
    if result.closed:
        click.echo("  Holding fully sold and removed from portfolio.")
    else:
        click.echo(f"  Remaining quantity: {result.remaining_quantity}")


@main.command()
@click.option(
    "--price", "-p", "prices",
    type=(str, float),
    multiple=True,
    help="SYMBOL PRICE pair; repeatable. Prompts for every holding if omitted.",
)
@click.pass_obj
def update(state: CliState, prices: tuple[tuple[str, float], ...]):
    """Update holding prices and show the gain at each new price."""
    portfolio = _load_portfolio(state)

    if prices:
        new_prices = {symbol: Decimal(str(value)) for symbol, value in prices}
    else:
        new_prices = {
            h.symbol: Decimal(str(click.prompt(f"New price for {h.symbol}", type=float)))
            for h in portfolio.holdings
        }

    try:
        gains = portfolio.update_prices(new_prices)
    except PortfolioError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    _save_portfolio(state, portfolio)
    state.journal.log_prices_updated(new_prices, gains)

    for symbol, gain in gains.items():
        click.echo(f"  {symbol}: gain ${gain:,.2f}")


@main.command()
@click.pass_obj
def gain(state: CliState):
    """Total gain of all holdings at their current prices."""
    portfolio = _load_portfolio(state)
    click.echo(f"Total gain for all investments: ${portfolio.total_gain():,.2f}")


@main.command()
@click.option("--symbol", "-s", default=None, help="Symbol to match")
@click.option("--keywords", "-k", default="", help="Space-separated name keywords")
@click.option("--low", "-l", type=float, default=None, help="Lower price bound (inclusive)")
@click.option("--high", "-u", type=float, default=None, help="Upper price bound (inclusive)")
@click.pass_obj
def search(
    state: CliState,
    symbol: Optional[str],
    keywords: str,
    low: Optional[float],
    high: Optional[float],
):
    """Search holdings by symbol, name keywords and price range."""
    portfolio = _load_portfolio(state)
    try:
        _print_search(portfolio, symbol, keywords, low, high)
    except PortfolioError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


@main.command(name="list")
@click.pass_obj
def list_holdings(state: CliState):
    """List holdings in portfolio order."""
    portfolio = _load_portfolio(state)
    if len(portfolio) == 0:
        click.echo("Portfolio is empty.")
        return
    for position, holding in enumerate(portfolio.holdings):
        _echo_holding(position, holding)


@main.command(name="index")
@click.pass_obj
def show_index(state: CliState):
    """Show the keyword index."""
    portfolio = _load_portfolio(state)
    for keyword, positions in sorted(portfolio.keyword_index.items()):
        click.echo(f"{keyword}: {positions}")


@main.command()
@click.argument("output", type=click.Path(dir_okay=False))
@click.pass_obj
def export(state: CliState, output: str):
    """Write a CSV report of holdings and their current gains."""
    portfolio = _load_portfolio(state)
    path = export_holdings_report(portfolio.holdings, output, state.config.fees)
    click.echo(f"Holdings report saved: {path}")


@main.command()
@click.pass_obj
def shell(state: CliState):
    """
    Interactive command loop.

    Commands: buy (b), sell (s), update (u), getgain (g), search, list (l),
    quit (q). Every buy, sell and update is saved as soon as it succeeds;
    end of input or Ctrl-C, even inside a prompt, exits like quit.
    """
    portfolio = _load_portfolio(state)

    while True:
        try:
            command = click.prompt(
                "Enter a command: buy, sell, update, getGain, search, list, quit",
                default="",
                show_default=False,
            ).strip().lower()

            if command in ("quit", "q"):
                break
            elif command in ("buy", "b"):
                _shell_buy(state, portfolio)
            elif command in ("sell", "s"):
                _shell_sell(state, portfolio)
            elif command in ("update", "u"):
                _shell_update(state, portfolio)
            elif command in ("getgain", "g"):
                click.echo(f"Total gain for all investments: ${portfolio.total_gain():,.2f}")
            elif command == "search":
                _shell_search(portfolio)
            elif command in ("list", "l"):
                for position, holding in enumerate(portfolio.holdings):
                    _echo_holding(position, holding)
            elif command:
                click.echo("Invalid command. Please try again.")
        except click.Abort:
            click.echo()
            break
        except PortfolioError as e:
            click.echo(f"Error: {e}", err=True)

    _save_portfolio(state, portfolio)
    click.echo("Exiting program.")


def _shell_buy(state: CliState, portfolio: Portfolio) -> None:
    holding_type = click.prompt("Investment type (stock or mutualfund)")
    symbol = click.prompt("Symbol")
    name = ""
    if symbol not in portfolio:
        name = click.prompt("Name")
    quantity = click.prompt("Quantity", type=int)
    price = Decimal(str(click.prompt("Price", type=float)))

    holding = portfolio.buy(symbol, holding_type, name, quantity, price)
    _save_portfolio(state, portfolio)
    state.journal.log_holding_bought(holding, quantity, price)
    click.echo(f"Payment: ${holding.payment:,.2f}; book value: ${holding.book_value:,.2f}")


def _shell_sell(state: CliState, portfolio: Portfolio) -> None:
    symbol = click.prompt("Symbol to sell")
    if symbol not in portfolio:
        click.echo("Investment with the given symbol not found.")
        return
    quantity = click.prompt("Quantity to sell", type=int)
    price = Decimal(str(click.prompt("Selling price", type=float)))

    result = portfolio.sell(symbol, quantity, price)
    _save_portfolio(state, portfolio)
    state.journal.log_holding_sold(result)
    click.echo(f"Gain from sale: ${result.realized_gain:,.2f}")
    if result.closed:
        click.echo("Investment fully sold and removed from portfolio.")


def _shell_update(state: CliState, portfolio: Portfolio) -> None:
    new_prices = {
        h.symbol: Decimal(str(click.prompt(f"New price for {h.symbol}", type=float)))
        for h in portfolio.holdings
    }
    gains = portfolio.update_prices(new_prices)
    _save_portfolio(state, portfolio)
    state.journal.log_prices_updated(new_prices, gains)
    for symbol, value in gains.items():
        click.echo(f"  {symbol}: gain ${value:,.2f}")


def _shell_search(portfolio: Portfolio) -> None:
    symbol = click.prompt("Symbol (blank for any)", default="", show_default=False)
    keywords = click.prompt("Name keywords (blank for any)", default="", show_default=False)
    low = click.prompt("Lower price bound (blank for none)", default="", show_default=False)
    high = click.prompt("Upper price bound (blank for none)", default="", show_default=False)

    try:
        low_value = float(low) if low.strip() else None
        high_value = float(high) if high.strip() else None
    except ValueError:
        click.echo("Price bounds must be numbers.", err=True)
        return

    _print_search(portfolio, symbol, keywords, low_value, high_value)


def _print_search(
    portfolio: Portfolio,
    symbol: Optional[str],
    keywords: str,
    low: Optional[float],
    high: Optional[float],
) -> None:
    matches = portfolio.search(
        symbol=symbol,
        keywords=keywords.split(),
        price_lower=Decimal(str(low)) if low is not None else None,
        price_upper=Decimal(str(high)) if high is not None else None,
    )

    if not matches:
        click.echo("No matching investments found.")
        return
    for match in matches:
        _echo_holding(match.position, match.holding)


def _echo_holding(position: int, holding: Holding) -> None:
    click.echo(f"[{position}] {holding}")


def _load_portfolio(state: CliState) -> Portfolio:
    path = state.config.portfolio_file
    portfolio = Portfolio(fees=state.config.fees)
    try:
        result = portfolio.load(path)
    except PersistenceError as e:
        click.echo(f"Error loading portfolio: {e}", err=True)
        sys.exit(1)

    for skipped in result.skipped:
        click.echo(f"Warning: skipped record at line {skipped.line_number}: {skipped.reason}",
                   err=True)
    state.journal.log_portfolio_loaded(path, len(result.holdings), len(result.skipped))
    return portfolio


def _save_portfolio(state: CliState, portfolio: Portfolio) -> None:
    path = state.config.portfolio_file
    try:
        portfolio.save(path)
    except PersistenceError as e:
        click.echo(f"Error saving portfolio: {e}", err=True)
        sys.exit(1)
    state.journal.log_portfolio_saved(path, len(portfolio))


if __name__ == "__main__":
    main()
