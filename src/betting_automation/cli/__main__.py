"""
CLI entry point for the betting automation core.

Usage::

    # Via module
    python -m betting_automation.cli [command] [options]

    # Via installed script
    betting-automation [command] [options]

Commands
--------
- ``run``: Place a series of bets against the simulated table
- ``check``: Test the connection with the configured credentials
- ``providers``: List backends in the order they are tried

Exit Codes
----------
- 0: Success
- 1: Runtime error
- 2: Configuration error
"""

from __future__ import annotations

import sys

from . import main

if __name__ == "__main__":
    sys.exit(main())
