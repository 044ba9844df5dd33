"""
ePortfolio Investment Tracker (eportfolio)

Tracks a personal collection of stocks and mutual funds: buying and selling
units, updating prices, computing book value and gains, and searching
holdings by symbol, name keywords and price range. Holdings are kept in a
plain text portfolio file.
"""

__version__ = "0.1.0"
