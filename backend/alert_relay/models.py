"""
Value objects shared across the relay pipeline.

Order and Credentials are immutable; RelayOutcome is the terminal result of
one relay call.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional


class Side(str, Enum):
    BUY = "buy"
    SELL = "sell"


class OrderType(str, Enum):
    MARKET = "market"
    LIMIT = "limit"


class RelayState(str, Enum):
    SUCCEEDED = "succeeded"
    EXHAUSTED = "exhausted"


@dataclass(frozen=True)
class Order:
    market: str  # Exchange notation, e.g. "BTC/USD" or "BTC-PERP"
    side: Side
    type: OrderType
    size: float
    price: Optional[float] = None

    def to_payload(self) -> Dict[str, Any]:
        """Order body for POST /api/orders (price is null for market orders)"""
        return {
            "market": self.market,
            "side": self.side.value,
            "price": self.price,
            "type": self.type.value,
            "size": self.size,
        }


@dataclass(frozen=True)
class Credentials:
    api_key: str
    secret: str
    sub_account: Optional[str] = None

    def __repr__(self) -> str:
        # Never render the secret
        return f"Credentials(api_key={mask_value(self.api_key)!r}, sub_account={self.sub_account!r})"


@dataclass
class RelayOutcome:
    status: int
    body: str
    attempts: int
    elapsed_ms: float
    state: RelayState

    @property
    def succeeded(self) -> bool:
        return self.state == RelayState.SUCCEEDED


def mask_value(value: Optional[str]) -> str:
    """Shorten a sensitive value for display: first 4 chars + '...'"""
    if not value:
        return ""
    return value[:4] + "..." if len(value) > 8 else "***"
