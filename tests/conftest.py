"""Shared test fixtures and helpers."""

from datetime import date, datetime
from typing import Optional, Union

import pytest

from visit_ledger.classification.review_detector import ReviewDetector
from visit_ledger.classification.visit_classifier import VisitClassifier
from visit_ledger.history.store import InMemoryHistoryStore
from visit_ledger.schemas.record_schema import (
    AppointmentStatus,
    ClassifiedRecord,
    Record,
    VisitOutcome,
)


@pytest.fixture
def store():
    return InMemoryHistoryStore()


@pytest.fixture
def classifier(store):
    return VisitClassifier(store)


@pytest.fixture
def detector():
    return ReviewDetector()


def _as_date(value: Union[str, date]) -> date:
    return date.fromisoformat(value) if isinstance(value, str) else value


def make_record(
    caller_id: str = "F1",
    day: Union[str, date] = "2025-03-18",
    status: AppointmentStatus = AppointmentStatus.SCHEDULED,
    outcome: VisitOutcome = VisitOutcome.VISITED,
    staff_label: str = "",
    record_id: Optional[str] = None,
) -> Record:
    """Helper to create a validated Record."""
    return Record(
        caller_id=caller_id,
        appointment_date=_as_date(day),
        status=status,
        outcome=outcome,
        caller_name=f"Caller {caller_id}",
        staff_label=staff_label,
        record_id=record_id,
    )


def make_completed(caller_id: str = "F1", day: Union[str, date] = "2025-03-18", **kwargs) -> Record:
    return make_record(caller_id, day, AppointmentStatus.SCHEDULED, VisitOutcome.VISITED, **kwargs)


def make_cancelled(caller_id: str = "F1", day: Union[str, date] = "2025-03-18", **kwargs) -> Record:
    return make_record(caller_id, day, AppointmentStatus.CANCELLED, VisitOutcome.NOT_VISITED, **kwargs)


def make_classified(
    caller_id: str = "F1",
    day: Union[str, date] = "2025-03-18",
    status: AppointmentStatus = AppointmentStatus.SCHEDULED,
    outcome: VisitOutcome = VisitOutcome.VISITED,
    visit_ordinal: Optional[int] = None,
    prior_visits: int = 0,
    staff: Optional[str] = None,
    auto_assigned: bool = False,
    applied_at: Optional[datetime] = None,
) -> ClassifiedRecord:
    """Helper to create a ClassifiedRecord without going through a store."""
    completed = status == AppointmentStatus.SCHEDULED and outcome == VisitOutcome.VISITED
    if completed and visit_ordinal is None:
        visit_ordinal = prior_visits + 1
    return ClassifiedRecord(
        caller_id=caller_id,
        appointment_date=_as_date(day),
        status=status,
        outcome=outcome,
        staff_label=staff or "",
        completed=completed,
        visit_ordinal=visit_ordinal if completed else None,
        prior_visits=prior_visits,
        is_auto_assigned=auto_assigned,
        resolved_staff=None if auto_assigned else staff,
        applied_at=applied_at,
    )
