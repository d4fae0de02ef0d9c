"""
Review flag detection for classified appointment records.

Identifies 3 status/outcome patterns that need a human to look at the
record. Detection is stateless and independent of the history store;
each record gets at most one flag, first match wins.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional

from visit_ledger.history.store import HistoryStore
from visit_ledger.schemas.record_schema import (
    AppointmentStatus,
    ClassifiedRecord,
    VisitLabel,
    VisitOutcome,
    visit_label_for,
)

logger = logging.getLogger(__name__)

NO_FLAG = "none"


class ReviewPattern(str, Enum):
    """Review patterns in priority order."""

    INCONSISTENCY = "inconsistency"
    NO_SHOW = "no_show"
    PLAIN_CANCELLATION = "plain_cancellation"


# (pattern, status, outcome, reason), checked top to bottom
_RULES: tuple[tuple[ReviewPattern, AppointmentStatus, VisitOutcome, str], ...] = (
    (
        ReviewPattern.INCONSISTENCY,
        AppointmentStatus.CANCELLED,
        VisitOutcome.VISITED,
        "Status is cancelled but the visit is marked as attended; the data may be inconsistent.",
    ),
    (
        ReviewPattern.NO_SHOW,
        AppointmentStatus.SCHEDULED,
        VisitOutcome.NOT_VISITED,
        "Status is scheduled but no visit was recorded; the attendance entry may be missing.",
    ),
    (
        ReviewPattern.PLAIN_CANCELLATION,
        AppointmentStatus.CANCELLED,
        VisitOutcome.NOT_VISITED,
        "Cancelled with no visit; an ordinary cancellation.",
    ),
)

_CANCELLATION_PATTERNS = (ReviewPattern.INCONSISTENCY, ReviewPattern.PLAIN_CANCELLATION)


class CancelTiming(str, Enum):
    """How far ahead of the appointment the booking was made."""

    SAME_DAY = "same_day"
    PREVIOUS_DAY = "previous_day"
    EARLY = "early"
    NONE = "none"


def cancel_timing_for(record: ClassifiedRecord) -> CancelTiming:
    """Classify a cancelled record by appointment date minus application date.

    Non-cancelled records and records without an application time get NONE.
    """
    if record.status != AppointmentStatus.CANCELLED or record.applied_at is None:
        return CancelTiming.NONE
    days = (record.appointment_date - record.applied_at.date()).days
    if days == 0:
        return CancelTiming.SAME_DAY
    if days == 1:
        return CancelTiming.PREVIOUS_DAY
    return CancelTiming.EARLY


@dataclass
class ReviewFlag:
    """A review tag attached to one record."""

    pattern: ReviewPattern
    reason: str
    record: ClassifiedRecord


@dataclass
class CancellationEntry:
    """A cancelled record with the ordinal it would have had, for display only."""

    flag: ReviewFlag
    visit_ordinal: int

    @property
    def record(self) -> ClassifiedRecord:
        return self.flag.record

    @property
    def visit_label(self) -> VisitLabel:
        return visit_label_for(self.visit_ordinal)

    @property
    def cancel_timing(self) -> CancelTiming:
        return cancel_timing_for(self.flag.record)


class ReviewDetector:
    """Flags records whose status/outcome combination needs review."""

    def detect(self, record: ClassifiedRecord) -> Optional[ReviewFlag]:
        for pattern, status, outcome, reason in _RULES:
            if record.status == status and record.outcome == outcome:
                return ReviewFlag(pattern=pattern, reason=reason, record=record)
        return None

    def detect_all(self, records: Iterable[ClassifiedRecord]) -> list[ReviewFlag]:
        """Run detection over a batch and return the flags in input order."""
        flags = [f for f in (self.detect(r) for r in records) if f is not None]
        if flags:
            logger.info("Flagged %d record(s) for review", len(flags))
        return flags

    def partition(self, records: Iterable[ClassifiedRecord]) -> dict[str, list[ClassifiedRecord]]:
        """Split records into one bucket per pattern plus ``none``.

        Every record lands in exactly one bucket.
        """
        buckets: dict[str, list[ClassifiedRecord]] = {p.value: [] for p in ReviewPattern}
        buckets[NO_FLAG] = []
        for record in records:
            flag = self.detect(record)
            buckets[flag.pattern.value if flag else NO_FLAG].append(record)
        return buckets

    def cancellation_list(
        self, flags: Iterable[ReviewFlag], store: HistoryStore
    ) -> list[CancellationEntry]:
        """Cancelled flags with a visit ordinal read from the store.

        Call after the full classification pass. The store is only read.
        """
        entries = []
        for flag in flags:
            if flag.pattern not in _CANCELLATION_PATTERNS:
                continue
            history = store.get(flag.record.caller_id)
            prior = history.prior_visits(flag.record.appointment_date) if history else 0
            entries.append(CancellationEntry(flag=flag, visit_ordinal=prior + 1))
        return entries


def review_statistics(flags: Iterable[ReviewFlag]) -> dict[str, int]:
    """Count flags per pattern, plus ``total``."""
    counts = {p.value: 0 for p in ReviewPattern}
    for flag in flags:
        counts[flag.pattern.value] += 1
    counts["total"] = sum(counts.values())
    return counts


def cancel_timing_statistics(entries: Iterable[CancellationEntry]) -> dict[str, int]:
    """Count cancellation-list entries per timing."""
    counts = {t.value: 0 for t in CancelTiming}
    for entry in entries:
        counts[entry.cancel_timing.value] += 1
    return counts
