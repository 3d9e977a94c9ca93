"""
Centralized configuration constants.

These values can be overridden via environment variables where noted.
"""

import os

# =============================================================================
# Sandbox Messaging
# =============================================================================

# Seconds to wait for the sandbox context to post READY
SANDBOX_READY_TIMEOUT: float = float(os.getenv("BETTING_AUTOMATION_READY_TIMEOUT", "30"))

# Seconds to wait for a LOGIN_RESULT
SANDBOX_LOGIN_TIMEOUT: float = float(os.getenv("BETTING_AUTOMATION_LOGIN_TIMEOUT", "30"))

# Seconds to wait for a BET_RESULT
SANDBOX_BET_TIMEOUT: float = float(os.getenv("BETTING_AUTOMATION_BET_TIMEOUT", "60"))

# Capacity of the inbound queue of a sandbox context
SANDBOX_CHANNEL_SIZE: int = int(os.getenv("BETTING_AUTOMATION_CHANNEL_SIZE", "64"))

# =============================================================================
# Retry / Failover
# =============================================================================

# Maximum attempts against one backend before failing over
DEFAULT_MAX_RETRIES: int = int(os.getenv("BETTING_AUTOMATION_MAX_RETRIES", "3"))

# Linear retry delay unit (delay = base * attempt) in seconds
RETRY_BASE_DELAY: float = float(os.getenv("BETTING_AUTOMATION_RETRY_BASE_DELAY", "1.0"))

# =============================================================================
# Risk Governance
# =============================================================================

# Error rate (%) above which new bets are refused
CIRCUIT_BREAKER_ERROR_RATE: float = 80.0

# =============================================================================
# Browser Automation
# =============================================================================

# Navigation / protocol timeout in milliseconds
BROWSER_NAVIGATION_TIMEOUT_MS: int = int(os.getenv("BETTING_AUTOMATION_NAV_TIMEOUT_MS", "60000"))

# Selector wait timeout in milliseconds
BROWSER_SELECTOR_TIMEOUT_MS: int = int(os.getenv("BETTING_AUTOMATION_SELECTOR_TIMEOUT_MS", "30000"))

# Seconds to wait for the wheel to settle after confirming bets
BROWSER_RESULT_WAIT: float = float(os.getenv("BETTING_AUTOMATION_RESULT_WAIT", "30"))

BROWSER_USER_AGENT: str = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)

BROWSER_LAUNCH_ARGS: tuple[str, ...] = (
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-web-security",
    "--disable-features=VizDisplayCompositor",
    "--disable-blink-features=AutomationControlled",
)
