"""
Static table of well-known symbols and the names people actually say.
Used for display and as grounding facts in mood narration.
"""

from typing import Optional

DEFAULT_SYMBOLS: tuple[str, ...] = ("SPY", "QQQ", "DIA")

COMMON_NAMES: dict[str, str] = {
    "SPY": "the S&P 500",
    "QQQ": "the Nasdaq",
    "DIA": "the Dow",
    "DJI": "the Dow",
    "DJIA": "the Dow",
    "MSFT": "Microsoft",
    "AAPL": "Apple",
    "GOOGL": "Google",
    "GOOG": "Google",
    "AMZN": "Amazon",
    "TSLA": "Tesla",
    "NVDA": "Nvidia",
    "META": "Meta",
    "NFLX": "Netflix",
    "AMD": "AMD",
    "INTC": "Intel",
    "JPM": "JPMorgan",
    "BAC": "Bank of America",
    "WMT": "Walmart",
    "V": "Visa",
    "MA": "Mastercard",
    "DIS": "Disney",
}


def common_name(symbol: str) -> Optional[str]:
    return COMMON_NAMES.get(symbol.strip().upper())
