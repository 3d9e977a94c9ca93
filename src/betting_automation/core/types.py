"""Data contracts exchanged between providers, the engine and the manager."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import asdict, dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any

from betting_automation.errors import ValidationError
from betting_automation.utilities.datetime_helpers import parse_iso_utc, to_iso_utc, utc_now


class SelectionType(str, Enum):
    """Kind of roulette bet a selection targets."""

    NUMBER = "number"
    COLOR = "color"
    DOZEN = "dozen"
    COLUMN = "column"
    EVEN_ODD = "even_odd"
    HIGH_LOW = "high_low"


class SiteType(str, Enum):
    """Betting site variant the credentials belong to."""

    BET365 = "bet365"
    BETFAIR = "betfair"
    BETANO = "betano"
    SPORTINGBET = "sportingbet"
    OTHER = "other"


class WinningColor(str, Enum):
    RED = "red"
    BLACK = "black"
    GREEN = "green"


class SessionStatus(str, Enum):
    """Lifecycle status of a betting session."""

    ACTIVE = "active"
    PAUSED = "paused"
    STOPPED = "stopped"
    ERROR = "error"


@dataclass(frozen=True, slots=True)
class Credentials:
    """Login details supplied once at session start."""

    site_url: str
    username: str
    password: str = field(repr=False)
    site_type: SiteType = SiteType.OTHER
    additional_data: Mapping[str, Any] = field(default_factory=dict)

    def login_payload(self) -> dict[str, Any]:
        return {
            "username": self.username,
            "password": self.password,
            "siteType": self.site_type.value,
        }


@dataclass(frozen=True, slots=True)
class BetSelection:
    type: SelectionType
    value: str | int
    amount: float

    def to_payload(self) -> dict[str, Any]:
        return {"type": self.type.value, "value": self.value, "amount": self.amount}


@dataclass(frozen=True, slots=True)
class BetRequest:
    """A single wager: one or more selections on one table."""

    table_id: str
    selections: Sequence[BetSelection]
    total_amount: float
    strategy: str
    confidence: float
    max_loss: float | None = None
    stop_on_win: bool = False
    metadata: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "selections", tuple(self.selections))

    def validate(self) -> None:
        """Reject malformed requests before any backend work happens."""
        if not self.selections:
            raise ValidationError("No bet selections were provided", field="selections")
        if self.total_amount <= 0:
            raise ValidationError(
                "Bet amount must be greater than zero",
                field="total_amount",
                value=self.total_amount,
            )
        for selection in self.selections:
            if selection.amount <= 0:
                raise ValidationError(
                    "Selection amount must be greater than zero",
                    field="selections.amount",
                    value=selection.amount,
                )

    def to_payload(self) -> dict[str, Any]:
        """Serializable shape sent across the sandbox boundary."""
        return {
            "tableId": self.table_id,
            "selections": [selection.to_payload() for selection in self.selections],
            "totalAmount": self.total_amount,
            "strategy": self.strategy,
            "confidence": self.confidence,
            "maxLoss": self.max_loss,
            "stopOnWin": self.stop_on_win,
            "metadata": dict(self.metadata),
        }

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> BetRequest:
        return cls(
            table_id=str(payload.get("tableId", "")),
            selections=[
                BetSelection(
                    type=SelectionType(item["type"]),
                    value=item["value"],
                    amount=float(item["amount"]),
                )
                for item in payload.get("selections", [])
            ],
            total_amount=float(payload.get("totalAmount", 0)),
            strategy=str(payload.get("strategy", "")),
            confidence=float(payload.get("confidence", 0)),
            max_loss=payload.get("maxLoss"),
            stop_on_win=bool(payload.get("stopOnWin", False)),
            metadata=dict(payload.get("metadata") or {}),
        )


@dataclass(frozen=True, slots=True)
class BetResult:
    """Outcome of one bet execution.

    A failed result always carries ``error``; a successful one always carries
    ``payout`` and ``profit`` (profit may be negative).
    """

    success: bool
    execution_time: float
    timestamp: datetime = field(default_factory=utc_now)
    bet_id: str | None = None
    winning_number: int | None = None
    winning_color: WinningColor | None = None
    payout: float | None = None
    profit: float | None = None
    error: str | None = None

    def __post_init__(self) -> None:
        if not self.success and not self.error:
            raise ValueError("A failed BetResult must carry an error message")
        if self.success and (self.payout is None or self.profit is None):
            raise ValueError("A successful BetResult must carry payout and profit")

    @classmethod
    def failure(cls, error: str, execution_time: float = 0.0) -> BetResult:
        return cls(success=False, error=error or "Unknown error", execution_time=execution_time)

    def with_execution_time(self, execution_time: float) -> BetResult:
        return replace(self, execution_time=execution_time)

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "betId": self.bet_id,
            "winningNumber": self.winning_number,
            "winningColor": self.winning_color.value if self.winning_color else None,
            "payout": self.payout,
            "profit": self.profit,
            "error": self.error,
            "timestamp": to_iso_utc(self.timestamp),
            "executionTime": self.execution_time,
        }

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> BetResult:
        """Build a result from the sandbox ``BET_RESULT`` data shape."""
        raw_timestamp = payload.get("timestamp")
        timestamp = parse_iso_utc(raw_timestamp) if raw_timestamp else utc_now()
        raw_color = payload.get("winningColor")
        raw_number = payload.get("winningNumber")
        return cls(
            success=bool(payload.get("success")),
            bet_id=payload.get("betId"),
            winning_number=int(raw_number) if raw_number is not None else None,
            winning_color=WinningColor(raw_color) if raw_color else None,
            payout=_optional_float(payload.get("payout")),
            profit=_optional_float(payload.get("profit")),
            error=payload.get("error"),
            timestamp=timestamp,
            execution_time=float(payload.get("executionTime") or 0.0),
        )


def _optional_float(value: Any) -> float | None:
    return float(value) if value is not None else None


@dataclass(slots=True)
class BettingSession:
    """One continuous run of the engine from start to stop."""

    id: str
    start_time: datetime
    end_time: datetime | None = None
    total_bets: int = 0
    total_wagered: float = 0.0
    total_won: float = 0.0
    winning_bets: int = 0
    strategy: str = "default"
    table_id: str = "default"
    status: SessionStatus = SessionStatus.ACTIVE

    @property
    def profit(self) -> float:
        return self.total_won

    @property
    def win_rate(self) -> float:
        if self.total_bets == 0:
            return 0.0
        return self.winning_bets / self.total_bets * 100

    def to_dict(self) -> dict[str, Any]:
        payload = asdict(self)
        payload["start_time"] = to_iso_utc(self.start_time)
        payload["end_time"] = to_iso_utc(self.end_time) if self.end_time else None
        payload["status"] = self.status.value
        payload["profit"] = self.profit
        payload["win_rate"] = self.win_rate
        return payload


@dataclass(slots=True)
class AutomationMetrics:
    """Rolling counters recomputed after every completed bet."""

    sessions_today: int = 0
    total_profit: float = 0.0
    win_rate: float = 0.0
    average_bet_time: float = 0.0
    error_rate: float = 0.0
    uptime: float = 0.0
    last_update: datetime = field(default_factory=utc_now)

    def record(self, result: BetResult, execution_time: float, uptime: float, now: datetime) -> None:
        # sessions_today is the running divisor for every average below
        self.sessions_today += 1
        n = self.sessions_today
        self.total_profit += result.profit or 0.0
        self.average_bet_time = (self.average_bet_time * (n - 1) + execution_time) / n
        self.win_rate = (self.win_rate * (n - 1) + (100.0 if result.success else 0.0)) / n
        self.error_rate = (self.error_rate * (n - 1) + (0.0 if result.success else 100.0)) / n
        self.uptime = uptime
        self.last_update = now

    def to_dict(self) -> dict[str, Any]:
        payload = asdict(self)
        payload["last_update"] = to_iso_utc(self.last_update)
        return payload


@dataclass(frozen=True, slots=True)
class ProviderStatus:
    name: str
    priority: int
    available: bool
    connected: bool
    last_error: str | None = None
    response_time: float = 0.0
    success_rate: float = 0.0


__all__ = [
    "SelectionType",
    "SiteType",
    "WinningColor",
    "SessionStatus",
    "Credentials",
    "BetSelection",
    "BetRequest",
    "BetResult",
    "BettingSession",
    "AutomationMetrics",
    "ProviderStatus",
]
