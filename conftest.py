"""Top-level pytest configuration."""

from __future__ import annotations

from typing import Any


def pytest_configure(config: Any) -> None:  # pragma: no cover
    config.addinivalue_line("markers", "property: hypothesis-based invariant tests")
