"""
API Routers

- alert_router: free-text trading alerts relayed as exchange orders
- proxy_router: whitelisted exchange API calls described in JSON
"""

from alert_relay.routers import alert_router
from alert_relay.routers import proxy_router

__all__ = [
    "alert_router",
    "proxy_router",
]
