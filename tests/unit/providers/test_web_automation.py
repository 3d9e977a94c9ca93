from __future__ import annotations

from types import SimpleNamespace
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from betting_automation.core.types import BetSelection, Credentials, SelectionType
from betting_automation.errors import ProviderConnectionError
from betting_automation.providers.site_profiles import GENERIC_PROFILE
from betting_automation.providers.web_automation import WEBDRIVER_MASK_SCRIPT, WebAutomationProvider
from tests.factories import make_request


class FakeBrowserStack:
    """Just enough of the Playwright async API for the web backend."""

    def __init__(self) -> None:
        self.element = AsyncMock()
        self.page = AsyncMock()
        self.page.url = "https://casino.example/roulette"
        self.page.query_selector = AsyncMock(return_value=self.element)
        self.page.evaluate = AsyncMock(
            return_value={"winningNumber": 32, "winningColor": "red", "payout": 20}
        )
        self.missing_selectors: set[str] = set()
        self.page.wait_for_selector = AsyncMock(side_effect=self._wait_for_selector)

        self.context = AsyncMock()
        self.context.new_page = AsyncMock(return_value=self.page)

        self.browser = MagicMock()
        self.browser.new_context = AsyncMock(return_value=self.context)
        self.browser.close = AsyncMock()
        self.handlers: dict[str, Any] = {}
        self.browser.on = MagicMock(side_effect=self.handlers.__setitem__)

        self.playwright = MagicMock()
        self.playwright.chromium.launch = AsyncMock(return_value=self.browser)
        self.playwright.stop = AsyncMock()

    async def _wait_for_selector(self, selector: str, **_: Any) -> Any:
        if selector in self.missing_selectors:
            raise TimeoutError(f"waiting for {selector}")
        return self.element

    def factory(self) -> Any:
        return SimpleNamespace(start=AsyncMock(return_value=self.playwright))


@pytest.fixture
def stack() -> FakeBrowserStack:
    return FakeBrowserStack()


@pytest.fixture
def provider(stack: FakeBrowserStack) -> WebAutomationProvider:
    return WebAutomationProvider(
        playwright_factory=stack.factory,
        table_settle_delay=0,
        chip_delay=0,
        result_wait=0,
    )


@pytest.fixture
def web_credentials() -> Credentials:
    return Credentials("https://casino.example", "alice", "pw")


@pytest.mark.asyncio
async def test_connect_launches_masked_browser_and_logs_in(
    provider: WebAutomationProvider, stack: FakeBrowserStack, web_credentials: Credentials
) -> None:
    await provider.connect(web_credentials)

    assert provider.is_connected is True
    assert stack.playwright.chromium.launch.await_args.kwargs["headless"] is True
    stack.context.add_init_script.assert_awaited_once_with(WEBDRIVER_MASK_SCRIPT)
    stack.page.fill.assert_any_await(GENERIC_PROFILE.username_field, "alice")
    stack.page.fill.assert_any_await(GENERIC_PROFILE.password_field, "pw")
    stack.page.click.assert_any_await(GENERIC_PROFILE.submit_button)


@pytest.mark.asyncio
async def test_missing_logged_in_marker_fails_and_closes_browser(
    provider: WebAutomationProvider, stack: FakeBrowserStack, web_credentials: Credentials
) -> None:
    stack.missing_selectors.add(GENERIC_PROFILE.logged_in_marker)

    with pytest.raises(ProviderConnectionError, match="Login failed"):
        await provider.connect(web_credentials)

    assert provider.is_connected is False
    stack.browser.close.assert_awaited_once()
    stack.playwright.stop.assert_awaited_once()


@pytest.mark.asyncio
async def test_place_bet_clicks_selection_and_reads_result(
    provider: WebAutomationProvider, stack: FakeBrowserStack, web_credentials: Credentials
) -> None:
    await provider.connect(web_credentials)

    result = await provider.place_bet(
        make_request(10.0, [BetSelection(SelectionType.COLOR, "red", 10.0)])
    )

    assert result.success is True
    assert result.winning_number == 32
    assert result.profit == 10.0
    stack.page.click.assert_any_await('[data-bet="color"][data-value="red"]')
    stack.element.fill.assert_any_await("10.0")


@pytest.mark.asyncio
async def test_unreadable_result_becomes_failed_bet(
    provider: WebAutomationProvider, stack: FakeBrowserStack, web_credentials: Credentials
) -> None:
    await provider.connect(web_credentials)
    stack.page.evaluate.return_value = None

    result = await provider.place_bet(make_request())

    assert result.success is False
    assert "spin result" in (result.error or "")
    assert provider.is_connected is True


@pytest.mark.asyncio
async def test_browser_disconnect_marks_connection_lost(
    provider: WebAutomationProvider, stack: FakeBrowserStack, web_credentials: Credentials
) -> None:
    events: list[str] = []
    provider.add_listener(lambda event: events.append(event.kind))
    await provider.connect(web_credentials)

    stack.handlers["disconnected"](stack.browser)

    assert provider.is_connected is False
    assert events[-2:] == ["error", "session_end"]


@pytest.mark.asyncio
async def test_disconnect_closes_every_resource(
    provider: WebAutomationProvider, stack: FakeBrowserStack, web_credentials: Credentials
) -> None:
    await provider.connect(web_credentials)
    stack.page.close.side_effect = RuntimeError("already closed")

    await provider.disconnect()

    assert provider.is_connected is False
    stack.context.close.assert_awaited_once()
    stack.browser.close.assert_awaited_once()
    stack.playwright.stop.assert_awaited_once()


def test_injected_factory_makes_backend_available(stack: FakeBrowserStack) -> None:
    assert WebAutomationProvider(playwright_factory=stack.factory).is_available() is True
