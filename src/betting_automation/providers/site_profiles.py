"""Selector profiles for the browser-driven backend, keyed by site type."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field

from betting_automation.core.types import BetSelection, SelectionType, SiteType

# Reads the last settled spin from data attributes on the result widget
GENERIC_RESULT_SCRIPT = """
() => {
  const node = document.querySelector('[data-winning-number]');
  if (!node) { return null; }
  return {
    winningNumber: Number(node.getAttribute('data-winning-number')),
    winningColor: node.getAttribute('data-winning-color'),
    payout: Number(node.getAttribute('data-payout') || 0),
  };
}
"""


@dataclass(frozen=True)
class SiteProfile:
    """Everything the browser backend needs to know about one site's markup."""

    site_type: SiteType
    login_url: str
    table_url: str
    login_button: str
    username_field: str
    password_field: str
    submit_button: str
    logged_in_marker: str
    table: str
    bet_amount_input: str
    place_bet_button: str
    bet_confirmation: str
    clear_bets_button: str
    selection_templates: Mapping[SelectionType, str] = field(default_factory=dict)
    result_script: str = GENERIC_RESULT_SCRIPT

    def selection_selector(self, selection: BetSelection) -> str | None:
        template = self.selection_templates.get(selection.type)
        if template is None:
            return None
        return template.format(value=selection.value)


GENERIC_PROFILE = SiteProfile(
    site_type=SiteType.OTHER,
    login_url="",
    table_url="",
    login_button='[data-action="open-login"]',
    username_field='input[name="username"]',
    password_field='input[name="password"]',
    submit_button='[data-action="submit-login"]',
    logged_in_marker=".user-info, .account-balance, .logout-button",
    table='[data-role="roulette-table"]',
    bet_amount_input='[data-role="stake-input"]',
    place_bet_button='[data-action="place-bet"]',
    bet_confirmation='[data-role="bet-confirmed"]',
    clear_bets_button='.clear-bets, .remove-all-bets, [data-action="clear"]',
    selection_templates={
        SelectionType.NUMBER: '[data-bet="number"][data-value="{value}"]',
        SelectionType.COLOR: '[data-bet="color"][data-value="{value}"]',
        SelectionType.DOZEN: '[data-bet="dozen"][data-value="{value}"]',
        SelectionType.COLUMN: '[data-bet="column"][data-value="{value}"]',
        SelectionType.EVEN_ODD: '[data-bet="even_odd"][data-value="{value}"]',
        SelectionType.HIGH_LOW: '[data-bet="high_low"][data-value="{value}"]',
    },
)


class SiteProfileRegistry:
    """Lookup of site profiles with a generic fallback."""

    def __init__(
        self,
        profiles: Mapping[SiteType, SiteProfile] | None = None,
        *,
        fallback: SiteProfile = GENERIC_PROFILE,
    ) -> None:
        self._profiles: dict[SiteType, SiteProfile] = dict(profiles or {})
        self._fallback = fallback

    def register(self, profile: SiteProfile) -> None:
        self._profiles[profile.site_type] = profile

    def get(self, site_type: SiteType) -> SiteProfile:
        return self._profiles.get(site_type, self._fallback)

    def __contains__(self, site_type: object) -> bool:
        return site_type in self._profiles


__all__ = ["SiteProfile", "SiteProfileRegistry", "GENERIC_PROFILE", "GENERIC_RESULT_SCRIPT"]
