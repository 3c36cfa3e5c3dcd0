from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime


@dataclass(slots=True)
class VehicleSendOutcome:
    vehicle_id: int
    plate_number: str
    status: str
    attempts: int
    error: str | None = None


@dataclass(slots=True)
class DispatchSummary:
    villa_id: str
    trigger: str
    results: list[VehicleSendOutcome] = field(default_factory=list)

    @property
    def sent(self) -> int:
        return sum(1 for item in self.results if item.status == "sent")

    @property
    def failed(self) -> int:
        return sum(1 for item in self.results if item.status == "failed")

    @property
    def total(self) -> int:
        return len(self.results)


@dataclass(slots=True)
class SmsHistoryDay:
    date: str
    successful: int = 0
    errors: int = 0


@dataclass(slots=True)
class ScheduleView:
    villa_id: str
    is_enabled: bool
    time_of_day: str
    days_of_week: list[bool]
    last_run_at: datetime | None
    next_run_at: datetime | None
