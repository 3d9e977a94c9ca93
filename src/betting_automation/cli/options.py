"""Argument helpers for the automation CLI."""

from __future__ import annotations

from argparse import ArgumentParser, ArgumentTypeError

from betting_automation.core.types import BetSelection, SelectionType

OUTPUT_FORMAT_CHOICES = ["text", "json"]
PROVIDER_CHOICES = ["auto", "sandbox", "web"]


def add_output_options(parser: ArgumentParser) -> None:
    parser.add_argument(
        "--format",
        "--output-format",
        dest="output_format",
        choices=OUTPUT_FORMAT_CHOICES,
        default="text",
        help="Output format: text for human-readable, json for machine-readable",
    )


def add_provider_option(parser: ArgumentParser) -> None:
    parser.add_argument(
        "--provider",
        choices=PROVIDER_CHOICES,
        default=None,
        help="Preferred backend kind (overrides BETTING_AUTOMATION_PROVIDER)",
    )


def parse_selection(raw: str) -> tuple[SelectionType, str]:
    """Parse ``type:value`` (e.g. ``color:red``, ``number:17``)."""
    kind, sep, value = raw.partition(":")
    if not sep or not value:
        raise ArgumentTypeError(f"Selection must look like type:value, got {raw!r}")
    try:
        return SelectionType(kind.strip().lower()), value.strip()
    except ValueError as exc:
        choices = ", ".join(t.value for t in SelectionType)
        raise ArgumentTypeError(f"Unknown selection type {kind!r} (choose from {choices})") from exc


def build_selections(
    parsed: list[tuple[SelectionType, str]], amount: float
) -> list[BetSelection]:
    """Spread ``amount`` evenly over the parsed selections."""
    share = amount / len(parsed)
    return [BetSelection(type=kind, value=value, amount=share) for kind, value in parsed]


__all__ = [
    "add_output_options",
    "add_provider_option",
    "build_selections",
    "parse_selection",
]
