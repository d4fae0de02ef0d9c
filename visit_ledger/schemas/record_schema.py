"""Appointment record schemas for classification and aggregation."""

from datetime import date, datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class AppointmentStatus(str, Enum):
    SCHEDULED = "scheduled"
    CANCELLED = "cancelled"
    OTHER = "other"


class VisitOutcome(str, Enum):
    VISITED = "visited"
    NOT_VISITED = "not_visited"
    UNKNOWN = "unknown"


class VisitLabel(str, Enum):
    """Display bucket for a visit ordinal. Everything past two is "3+"."""

    FIRST = "first"
    SECOND = "second"
    THIRD_OR_MORE = "third_or_more"


def is_completed_visit(status: AppointmentStatus, outcome: VisitOutcome) -> bool:
    """A completed visit is a scheduled appointment the caller actually attended."""
    return status == AppointmentStatus.SCHEDULED and outcome == VisitOutcome.VISITED


def visit_label_for(ordinal: int) -> VisitLabel:
    if ordinal <= 1:
        return VisitLabel.FIRST
    if ordinal == 2:
        return VisitLabel.SECOND
    return VisitLabel.THIRD_OR_MORE


class Record(BaseModel):
    """One validated appointment entry."""

    model_config = ConfigDict(str_strip_whitespace=True)

    caller_id: str = Field(min_length=1)
    appointment_date: date
    status: AppointmentStatus
    outcome: VisitOutcome = VisitOutcome.UNKNOWN
    status_raw: str = ""
    caller_name: str = ""
    applied_at: Optional[datetime] = None
    staff_label: str = ""
    record_id: Optional[str] = None
    extra: dict[str, str] = Field(default_factory=dict)

    @property
    def month(self) -> str:
        return self.appointment_date.strftime("%Y-%m")


class ClassifiedRecord(Record):
    """A Record with the fields derived by the visit classifier."""

    completed: bool = False
    visit_ordinal: Optional[int] = None
    prior_visits: int = 0
    is_auto_assigned: bool = False
    resolved_staff: Optional[str] = None

    @property
    def visit_label(self) -> Optional[VisitLabel]:
        if self.visit_ordinal is None:
            return None
        return visit_label_for(self.visit_ordinal)

    @property
    def is_first_time(self) -> bool:
        """First visit if completed as ordinal 1, or no visits recorded before it."""
        if self.visit_ordinal is not None:
            return self.visit_ordinal == 1
        return self.prior_visits == 0
