"""
Market symbol resolution

Maps the ticker an alert source writes (BTCUSD, ethperp, BTC-0326) to the
exchange's market identifier. The exchange names spot markets BASE/USD and
derivatives BASE-PERP or BASE-MMDD, so the separator depends only on whether
the trailing segment is literally USD.
"""

import re
from typing import Optional

# Lazy base: the trailing segment takes every digit of a dated future
# (BTC20210326 -> BTC-20210326). A greedy base splits it as BTC2021-0326.
_TICKER_RE = re.compile(r"^([A-Z0-9]+?)[-/]?(PERP|USD|\d{4,})$", re.IGNORECASE)


def resolve_market(token: str) -> Optional[str]:
    """
    Resolve a ticker token to an exchange market identifier.

    Examples:
        BTCUSD   -> BTC/USD
        btc-perp -> BTC-PERP
        ETH0326  -> ETH-0326
        ???      -> None
    """
    if not isinstance(token, str):
        return None
    match = _TICKER_RE.match(token.strip())
    if not match:
        return None
    base, trailing = match.group(1).upper(), match.group(2).upper()
    if trailing == "USD":
        return f"{base}/USD"
    return f"{base}-{trailing}"
