from __future__ import annotations

from collections.abc import Callable

from betting_automation.config.automation_config import AutomationConfig
from betting_automation.config.settings import AutomationSettings
from betting_automation.core.types import Credentials
from betting_automation.orchestration.automation_manager import AutomationManager
from betting_automation.orchestration.engine import ExecutionEngine
from betting_automation.orchestration.risk_gate_validator import RiskGateValidator
from betting_automation.providers.base import BaseBettingProvider
from betting_automation.providers.deterministic_table import DeterministicTable
from betting_automation.providers.messaging import MessageBus, SandboxProgram
from betting_automation.providers.sandbox_agent import SandboxAgent, TableDriver
from betting_automation.providers.sandbox_provider import SandboxProvider
from betting_automation.providers.site_profiles import SiteProfileRegistry
from betting_automation.providers.web_automation import WebAutomationProvider
from betting_automation.utilities.time_provider import TimeProvider, get_clock

TableDriverFactory = Callable[[Credentials], TableDriver]


def simulated_table_factory(seed: int = 7) -> TableDriverFactory:
    """Drive the sandbox against a seeded simulated table."""

    def build(credentials: Credentials) -> TableDriver:
        return DeterministicTable(credentials.site_url, seed=seed)

    return build


class AutomationContainer:
    """
    Composition root for the betting automation core.

    Every engine gets its own provider instances, so a throwaway engine (as
    used by ``AutomationManager.test_connection``) never shares connection
    state with the live one.

    Usage:
        container = AutomationContainer(settings)
        manager = container.manager
        manager.initialize()
        await manager.start_automation(settings.credentials())
    """

    def __init__(
        self,
        settings: AutomationSettings | None = None,
        *,
        table_driver_factory: TableDriverFactory | None = None,
        enable_web: bool = True,
        clock: TimeProvider | None = None,
    ) -> None:
        self.settings = settings or AutomationSettings()
        self.clock = clock or get_clock()
        self.table_driver_factory = table_driver_factory or simulated_table_factory()
        self.enable_web = enable_web

        self._bus: MessageBus | None = None
        self._site_profiles: SiteProfileRegistry | None = None
        self._risk_gate: RiskGateValidator | None = None
        self._manager: AutomationManager | None = None

    @property
    def config(self) -> AutomationConfig:
        return self.settings.automation_config()

    @property
    def message_bus(self) -> MessageBus:
        if self._bus is None:
            self._bus = MessageBus()
        return self._bus

    @property
    def site_profiles(self) -> SiteProfileRegistry:
        if self._site_profiles is None:
            self._site_profiles = SiteProfileRegistry()
        return self._site_profiles

    @property
    def risk_gate(self) -> RiskGateValidator:
        if self._risk_gate is None:
            self._risk_gate = RiskGateValidator()
        return self._risk_gate

    @property
    def manager(self) -> AutomationManager:
        if self._manager is None:
            self._manager = AutomationManager(
                self.create_engine,
                config=self.config,
                risk_gate=self.risk_gate,
                clock=self.clock,
            )
        return self._manager

    def sandbox_program(self, credentials: Credentials) -> SandboxProgram:
        return SandboxAgent(self.table_driver_factory(credentials)).run

    def create_providers(self) -> list[BaseBettingProvider]:
        providers: list[BaseBettingProvider] = [
            SandboxProvider(self.sandbox_program, bus=self.message_bus, clock=self.clock)
        ]
        if self.enable_web:
            providers.append(WebAutomationProvider(profiles=self.site_profiles, clock=self.clock))
        return providers

    def create_engine(self, config: AutomationConfig) -> ExecutionEngine:
        return ExecutionEngine(config, self.create_providers(), clock=self.clock)
