"""Company ticker detection from free-text queries."""

from __future__ import annotations

import re
from types import MappingProxyType

# Canonical ticker -> aliases. The ticker itself always matches too, and all
# matching ignores case.
COMPANY_TICKERS = MappingProxyType({
    "AAPL": ("Apple", "iPhone", "Tim Cook"),
    "MSFT": ("Microsoft", "Azure", "Satya Nadella"),
    "GOOGL": ("Google", "Alphabet", "YouTube", "Sundar Pichai"),
    "AMZN": ("Amazon", "AWS", "Andy Jassy"),
    "META": ("Meta Platforms", "Facebook", "Instagram", "WhatsApp", "Mark Zuckerberg"),
    "TSLA": ("Tesla", "Elon Musk"),
    "NVDA": ("Nvidia", "Jensen Huang"),
    "NFLX": ("Netflix",),
    "AMD": ("Advanced Micro Devices", "Lisa Su"),
    "INTC": ("Intel",),
    "ORCL": ("Oracle",),
    "CRM": ("Salesforce",),
    "ADBE": ("Adobe",),
    "IBM": ("International Business Machines",),
    "CSCO": ("Cisco",),
    "QCOM": ("Qualcomm",),
    "AVGO": ("Broadcom",),
    "TSM": ("TSMC", "Taiwan Semiconductor"),
    "UBER": ("Uber",),
    "ABNB": ("Airbnb",),
    "SHOP": ("Shopify",),
    "PYPL": ("PayPal",),
    "SQ": ("Block Inc", "Cash App"),
    "COIN": ("Coinbase",),
    "PLTR": ("Palantir",),
    "SNOW": ("Snowflake",),
    "SPOT": ("Spotify",),
    "DIS": ("Disney", "Walt Disney"),
    "JPM": ("JPMorgan", "JP Morgan", "Chase Bank", "Jamie Dimon"),
    "BAC": ("Bank of America",),
    "GS": ("Goldman Sachs",),
    "V": ("Visa",),
    "MA": ("Mastercard",),
    "BRK.B": ("Berkshire Hathaway", "Warren Buffett"),
    "WMT": ("Walmart",),
    "COST": ("Costco",),
    "KO": ("Coca-Cola", "Coca Cola", "Coke"),
    "PEP": ("PepsiCo", "Pepsi"),
    "MCD": ("McDonald's", "McDonalds"),
    "SBUX": ("Starbucks",),
    "NKE": ("Nike",),
    "BA": ("Boeing",),
    "F": ("Ford Motor", "Ford"),
    "GM": ("General Motors",),
    "XOM": ("ExxonMobil", "Exxon"),
    "PFE": ("Pfizer",),
    "JNJ": ("Johnson & Johnson",),
    "LLY": ("Eli Lilly",),
})


def _pattern(alias: str) -> re.Pattern[str]:
    # \w-based lookarounds so aliases ending in punctuation still anchor
    return re.compile(rf"(?<!\w){re.escape(alias)}(?!\w)", re.IGNORECASE)


def _build_matchers() -> tuple[tuple[re.Pattern[str], str], ...]:
    entries: list[tuple[str, str]] = []
    for ticker, aliases in COMPANY_TICKERS.items():
        entries.append((ticker, ticker))
        entries.extend((alias, ticker) for alias in aliases)
    # Longest alias first, then alphabetical, so overlaps resolve the same way every time
    entries.sort(key=lambda e: (-len(e[0]), e[0].lower()))
    return tuple((_pattern(alias), ticker) for alias, ticker in entries)


_MATCHERS = _build_matchers()


def detect_ticker(query: str) -> str | None:
    """Return the ticker of the company a query is about, if any."""
    if not query:
        return None
    for pattern, ticker in _MATCHERS:
        if pattern.search(query):
            return ticker
    return None
