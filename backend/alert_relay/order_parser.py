"""
Alert text -> Order parsing

The alert format is operator-configured: a regular expression with named
groups ticker, side, size and optionally price and token. Templates may use
{ticker}, {side}, {size}, {price} and {token} placeholders which expand to
named groups with sensible defaults, e.g.

    {ticker} {side} {size} @ {price}

Parsing never raises. Any failure yields None and no partial Order is ever
returned.
"""

import logging
import math
import re
from typing import Optional

from alert_relay.markets import resolve_market
from alert_relay.models import Order, OrderType, Side

logger = logging.getLogger(__name__)

_NUMBER = r"[-+]?[0-9]*\.?[0-9]+(?:[eE][-+]?[0-9]+)?"

# Placeholder -> named group used when expanding pattern templates
_PLACEHOLDERS = {
    "{ticker}": r"(?P<ticker>[A-Za-z0-9]+(?:[-/][A-Za-z0-9]+)?)",
    "{side}": r"(?P<side>[A-Za-z]+)",
    "{size}": rf"(?P<size>{_NUMBER})",
    "{price}": rf"(?P<price>{_NUMBER})",
    "{token}": r"(?P<token>\S+)",
}


def expand_pattern(template: str) -> str:
    """Expand {placeholder} fields into named capture groups.

    Only the exact placeholder names are replaced, so regex quantifiers like
    {4,} pass through untouched.
    """
    pattern = template
    for placeholder, group in _PLACEHOLDERS.items():
        pattern = pattern.replace(placeholder, group)
    return pattern


def parse_order(pattern: str, text: str, expected_token: Optional[str] = None) -> Optional[Order]:
    """
    Parse alert text into an Order.

    Args:
        pattern: Alert pattern (raw regex or placeholder template)
        text: Raw alert body
        expected_token: Shared secret the token group must equal, if any

    Returns:
        A fully populated Order, or None when the text is not a valid order
    """
    try:
        regex = re.compile(expand_pattern(pattern), re.MULTILINE | re.DOTALL)
        match = regex.search(text)
        if not match:
            logger.info("Alert text does not match the configured pattern")
            return None

        if "token" in regex.groupindex and expected_token is not None:
            if match.group("token") != expected_token:
                logger.warning("Alert token mismatch - rejecting alert")
                return None

        market = resolve_market(match.group("ticker"))
        if market is None:
            logger.info(f"Unknown ticker in alert: {match.group('ticker')!r}")
            return None

        size = float(match.group("size"))
        if not math.isfinite(size) or size <= 0:
            logger.info(f"Invalid order size in alert: {match.group('size')!r}")
            return None

        price = None
        if "price" in regex.groupindex and match.group("price"):
            price = float(match.group("price"))
            if not math.isfinite(price):
                logger.info(f"Invalid order price in alert: {match.group('price')!r}")
                return None

        # Anything other than the exact literal "buy" sells
        side = Side.BUY if match.group("side") == "buy" else Side.SELL

        return Order(
            market=market,
            side=side,
            type=OrderType.LIMIT if price is not None else OrderType.MARKET,
            size=size,
            price=price,
        )
    except Exception as e:
        logger.warning(f"Failed to parse alert: {e}")
        return None
