"""
Betting Automation - roulette automation core

Places validated bets through ranked backends (an isolated sandbox agent and
a browser-automation fallback) with retry, failover and session risk limits.
"""

from __future__ import annotations

__version__ = "1.0.0"

__all__ = [
    "__version__",
]
