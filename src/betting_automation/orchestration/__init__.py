"""Orchestration: the execution engine, risk gates and the automation manager."""

from betting_automation.orchestration.automation_manager import (
    AutomationManager,
    ConnectionTestResult,
    ProviderOption,
)
from betting_automation.orchestration.engine import EngineState, ExecutionEngine
from betting_automation.orchestration.risk_gate_validator import PostExecutionReport, RiskGateValidator

__all__ = [
    "AutomationManager",
    "ConnectionTestResult",
    "EngineState",
    "ExecutionEngine",
    "PostExecutionReport",
    "ProviderOption",
    "RiskGateValidator",
]
