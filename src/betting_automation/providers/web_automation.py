"""
Out-of-process backend driving a headless Chromium through Playwright.

Direct control over a real browser: slower and more fragile than the sandbox
backend, so it sits lower in the priority order. Site markup comes from
``SiteProfile`` objects; nothing site-specific lives in this module.
"""

from __future__ import annotations

import asyncio
import importlib.util
from collections.abc import Callable
from typing import Any, ClassVar

from betting_automation.config.constants import (
    BROWSER_LAUNCH_ARGS,
    BROWSER_NAVIGATION_TIMEOUT_MS,
    BROWSER_RESULT_WAIT,
    BROWSER_SELECTOR_TIMEOUT_MS,
    BROWSER_USER_AGENT,
)
from betting_automation.core.types import BetRequest, BetResult, BetSelection, Credentials, WinningColor
from betting_automation.errors import ExecutionError, ProviderConnectionError
from betting_automation.providers.base import BaseBettingProvider
from betting_automation.providers.site_profiles import SiteProfile, SiteProfileRegistry
from betting_automation.utilities.logging_patterns import get_logger
from betting_automation.utilities.time_provider import TimeProvider

logger = get_logger(__name__, component="web_automation")

WEBDRIVER_MASK_SCRIPT = "Object.defineProperty(navigator, 'webdriver', { get: () => undefined });"
VIEWPORT = {"width": 1366, "height": 768}
LOGIN_VERIFY_TIMEOUT_MS = 10_000
CONFIRM_TIMEOUT_MS = 10_000

PlaywrightFactory = Callable[[], Any]


def _default_playwright_factory() -> Any:
    from playwright.async_api import async_playwright

    return async_playwright()


class WebAutomationProvider(BaseBettingProvider):
    name: ClassVar[str] = "WebAutomation"
    priority: ClassVar[int] = 3
    kind: ClassVar[str] = "web"

    def __init__(
        self,
        *,
        profiles: SiteProfileRegistry | None = None,
        playwright_factory: PlaywrightFactory | None = None,
        headless: bool = True,
        clock: TimeProvider | None = None,
        table_settle_delay: float = 2.0,
        chip_delay: float = 0.5,
        result_wait: float = BROWSER_RESULT_WAIT,
    ) -> None:
        super().__init__(clock=clock)
        self._profiles = profiles or SiteProfileRegistry()
        self._playwright_factory = playwright_factory
        self._headless = headless
        self._table_settle_delay = table_settle_delay
        self._chip_delay = chip_delay
        self._result_wait = result_wait
        self._playwright: Any = None
        self._browser: Any = None
        self._browser_context: Any = None
        self._page: Any = None
        self._profile: SiteProfile | None = None

    def is_available(self) -> bool:
        if self._playwright_factory is not None:
            return True
        return importlib.util.find_spec("playwright") is not None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def _do_connect(self, credentials: Credentials) -> None:
        await self._close_browser()
        self._profile = self._profiles.get(credentials.site_type)
        factory = self._playwright_factory or _default_playwright_factory

        try:
            self._playwright = await factory().start()
            self._browser = await self._playwright.chromium.launch(
                headless=self._headless,
                args=list(BROWSER_LAUNCH_ARGS),
                timeout=BROWSER_NAVIGATION_TIMEOUT_MS,
            )
            self._browser.on("disconnected", self._on_browser_disconnected)
            self._browser_context = await self._browser.new_context(
                user_agent=BROWSER_USER_AGENT, viewport=VIEWPORT
            )
            await self._browser_context.add_init_script(WEBDRIVER_MASK_SCRIPT)
            self._page = await self._browser_context.new_page()
            await self._login(credentials)
        except Exception as exc:
            await self._close_browser()
            raise ProviderConnectionError(
                f"Browser automation connection failed: {exc}",
                provider=self.name,
                original_error=exc,
            ) from exc

    async def _do_disconnect(self) -> None:
        await self._close_browser()

    async def _close_browser(self) -> None:
        page, self._page = self._page, None
        browser_context, self._browser_context = self._browser_context, None
        browser, self._browser = self._browser, None
        playwright, self._playwright = self._playwright, None
        self._profile = None

        if browser is not None:
            browser.remove_listener("disconnected", self._on_browser_disconnected)
        for label, closer in (
            ("page", page.close if page is not None else None),
            ("context", browser_context.close if browser_context is not None else None),
            ("browser", browser.close if browser is not None else None),
            ("playwright", playwright.stop if playwright is not None else None),
        ):
            if closer is None:
                continue
            try:
                await closer()
            except Exception as exc:
                logger.warning("Failed to close browser resource", resource=label, error=str(exc))

    def _on_browser_disconnected(self, browser: Any) -> None:
        if browser is not self._browser:
            return
        self._page = None
        self._browser_context = None
        self._browser = None
        self._mark_lost("Browser disconnected")

    # ------------------------------------------------------------------
    # Site flows
    # ------------------------------------------------------------------

    async def _login(self, credentials: Credentials) -> None:
        profile = self._require_profile()
        page = self._page

        await page.goto(
            credentials.site_url or profile.login_url,
            wait_until="domcontentloaded",
            timeout=BROWSER_NAVIGATION_TIMEOUT_MS,
        )
        await page.wait_for_selector(profile.login_button, timeout=BROWSER_SELECTOR_TIMEOUT_MS)
        await page.click(profile.login_button)
        await page.wait_for_selector(profile.username_field, timeout=BROWSER_SELECTOR_TIMEOUT_MS)
        await page.fill(profile.username_field, credentials.username)
        await page.fill(profile.password_field, credentials.password)
        await page.click(profile.submit_button)
        await page.wait_for_load_state("domcontentloaded", timeout=BROWSER_SELECTOR_TIMEOUT_MS)

        if not await self._verify_login(profile):
            raise ExecutionError("Login failed: invalid credentials or the site layout changed")

    async def _verify_login(self, profile: SiteProfile) -> bool:
        try:
            await self._page.wait_for_selector(profile.logged_in_marker, timeout=LOGIN_VERIFY_TIMEOUT_MS)
        except Exception as exc:
            logger.debug("Logged-in marker not found", provider=self.name, error=str(exc))
            return False
        return True

    async def _do_place_bet(self, request: BetRequest) -> BetResult:
        if self._page is None or self._profile is None:
            raise ExecutionError(f"Provider {self.name} has no open page")
        profile = self._profile

        await self._navigate_to_table(profile)
        await self._page.wait_for_selector(profile.table, timeout=BROWSER_SELECTOR_TIMEOUT_MS)
        await asyncio.sleep(self._table_settle_delay)

        await self._clear_previous_bets(profile)
        for selection in request.selections:
            await self._place_selection(profile, selection)
        await self._confirm_bets(profile)

        outcome = await self._wait_for_result(profile)
        payout = float(outcome.get("payout") or 0.0)
        raw_color = outcome.get("winningColor")
        raw_number = outcome.get("winningNumber")
        return BetResult(
            success=True,
            bet_id=f"web_{int(self._clock.time() * 1000)}",
            winning_number=int(raw_number) if raw_number is not None else None,
            winning_color=WinningColor(raw_color) if raw_color else None,
            payout=payout,
            profit=payout - request.total_amount,
            execution_time=0.0,
        )

    async def _navigate_to_table(self, profile: SiteProfile) -> None:
        if "roulette" in (self._page.url or "") or not profile.table_url:
            return
        await self._page.goto(
            profile.table_url, wait_until="domcontentloaded", timeout=BROWSER_SELECTOR_TIMEOUT_MS
        )

    async def _clear_previous_bets(self, profile: SiteProfile) -> None:
        clear_button = await self._page.query_selector(profile.clear_bets_button)
        if clear_button is not None:
            await clear_button.click()
            await asyncio.sleep(self._chip_delay)

    async def _place_selection(self, profile: SiteProfile, selection: BetSelection) -> None:
        selector = profile.selection_selector(selection)
        if selector is None:
            raise ExecutionError(
                f"Selection type {selection.type.value!r} is not supported on {profile.site_type.value}"
            )

        amount_input = await self._page.query_selector(profile.bet_amount_input)
        if amount_input is not None:
            await amount_input.click(click_count=3)
            await amount_input.fill(str(selection.amount))

        await self._page.wait_for_selector(selector, timeout=CONFIRM_TIMEOUT_MS)
        await self._page.click(selector)
        await asyncio.sleep(self._chip_delay)

    async def _confirm_bets(self, profile: SiteProfile) -> None:
        place_button = await self._page.query_selector(profile.place_bet_button)
        if place_button is None:
            raise ExecutionError("Place-bet button not found")
        await place_button.click()
        await self._page.wait_for_selector(profile.bet_confirmation, timeout=CONFIRM_TIMEOUT_MS)

    async def _wait_for_result(self, profile: SiteProfile) -> dict[str, Any]:
        await asyncio.sleep(self._result_wait)
        outcome = await self._page.evaluate(profile.result_script)
        if not isinstance(outcome, dict):
            raise ExecutionError("Could not read the spin result from the page")
        return outcome

    def _require_profile(self) -> SiteProfile:
        if self._profile is None or self._page is None:
            raise ExecutionError("Browser session is not initialised")
        return self._profile


__all__ = ["WebAutomationProvider", "PlaywrightFactory", "WEBDRIVER_MASK_SCRIPT"]
