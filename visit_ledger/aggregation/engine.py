"""
Summary, staff, daily and monthly rollups over classified records.

Every rollup is a pure fold over the classified batch. None of them
read or write the history store, and all are recomputed from scratch
on every run.
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Iterable, Optional

from visit_ledger.config import settings
from visit_ledger.schemas.record_schema import AppointmentStatus, ClassifiedRecord, VisitLabel
from visit_ledger.utils import safe_rate

logger = logging.getLogger(__name__)


@dataclass
class Tally:
    """Counts shared by every rollup row."""

    applications: int = 0
    completions: int = 0
    cancellations: int = 0
    first_time_applications: int = 0
    first_time_completions: int = 0
    repeat_applications: int = 0
    repeat_completions: int = 0

    def add(self, record: ClassifiedRecord) -> None:
        self.applications += 1
        if record.completed:
            self.completions += 1
        if record.status == AppointmentStatus.CANCELLED:
            self.cancellations += 1
        if record.is_first_time:
            self.first_time_applications += 1
            if record.completed:
                self.first_time_completions += 1
        else:
            self.repeat_applications += 1
            if record.completed:
                self.repeat_completions += 1

    @property
    def completion_rate(self) -> float:
        return safe_rate(self.completions, self.applications)

    @property
    def first_time_application_rate(self) -> float:
        return safe_rate(self.first_time_applications, self.applications)

    @property
    def first_time_completion_rate(self) -> float:
        return safe_rate(self.first_time_completions, self.first_time_applications)

    @property
    def repeat_application_rate(self) -> float:
        return safe_rate(self.repeat_applications, self.applications)

    @property
    def repeat_completion_rate(self) -> float:
        return safe_rate(self.repeat_completions, self.repeat_applications)


@dataclass
class Summary(Tally):
    """Whole-batch totals."""


@dataclass
class StaffRollup(Tally):
    """Per-staff totals. Visit-label counts cover completed visits only."""

    staff_name: str = ""
    first_visits: int = 0
    second_visits: int = 0
    third_or_more_visits: int = 0
    callers: set[str] = field(default_factory=set, repr=False)

    def add(self, record: ClassifiedRecord) -> None:
        super().add(record)
        self.callers.add(record.caller_id)
        label = record.visit_label
        if label == VisitLabel.FIRST:
            self.first_visits += 1
        elif label == VisitLabel.SECOND:
            self.second_visits += 1
        elif label == VisitLabel.THIRD_OR_MORE:
            self.third_or_more_visits += 1

    @property
    def unique_callers(self) -> int:
        return len(self.callers)


@dataclass
class DailyRollup(Tally):
    """Per-day totals."""

    day: Optional[date] = None


@dataclass
class MonthlyRollup(Tally):
    """Per-month totals with the change in completion rate since the previous month."""

    month: str = ""
    previous_completion_rate: Optional[float] = None

    @property
    def completion_rate_change(self) -> Optional[float]:
        if self.previous_completion_rate is None:
            return None
        return self.completion_rate - self.previous_completion_rate


@dataclass
class AggregationResult:
    """All views of one batch."""

    summary: Summary
    staff: list[StaffRollup]
    auto_assigned: StaffRollup
    daily: list[DailyRollup]
    monthly: list[MonthlyRollup]

    def month(self, month: str) -> Optional[MonthlyRollup]:
        for row in self.monthly:
            if row.month == month:
                return row
        return None


class AggregationEngine:
    """Folds classified records into summary, staff, daily and monthly views."""

    def aggregate(self, records: Iterable[ClassifiedRecord]) -> AggregationResult:
        records = list(records)
        result = AggregationResult(
            summary=self.summarize(records),
            staff=self.by_staff(records),
            auto_assigned=self.auto_assigned(records),
            daily=self.by_day(records),
            monthly=self.by_month(records),
        )
        logger.info(
            "Aggregated %d record(s): %d staff, %d day(s), %d month(s)",
            result.summary.applications,
            len(result.staff),
            len(result.daily),
            len(result.monthly),
        )
        return result

    def summarize(self, records: Iterable[ClassifiedRecord]) -> Summary:
        summary = Summary()
        for record in records:
            summary.add(record)
        return summary

    def by_staff(self, records: Iterable[ClassifiedRecord]) -> list[StaffRollup]:
        """Per-staff rows, excluding auto-assigned records.

        Sorted by completions descending, then staff name ascending.
        """
        groups: dict[str, StaffRollup] = {}
        for record in records:
            if record.is_auto_assigned:
                continue
            name = record.resolved_staff or settings.staff.unassigned_label
            groups.setdefault(name, StaffRollup(staff_name=name)).add(record)
        return sorted(groups.values(), key=lambda r: (-r.completions, r.staff_name))

    def auto_assigned(self, records: Iterable[ClassifiedRecord]) -> StaffRollup:
        bucket = StaffRollup(staff_name=settings.staff.auto_assigned_label)
        for record in records:
            if record.is_auto_assigned:
                bucket.add(record)
        return bucket

    def by_day(self, records: Iterable[ClassifiedRecord]) -> list[DailyRollup]:
        groups: dict[date, DailyRollup] = {}
        for record in records:
            day = record.appointment_date
            groups.setdefault(day, DailyRollup(day=day)).add(record)
        return [groups[d] for d in sorted(groups)]

    def by_month(self, records: Iterable[ClassifiedRecord]) -> list[MonthlyRollup]:
        groups: dict[str, MonthlyRollup] = {}
        for record in records:
            groups.setdefault(record.month, MonthlyRollup(month=record.month)).add(record)

        rows = [groups[m] for m in sorted(groups)]
        for previous, current in zip(rows, rows[1:]):
            current.previous_completion_rate = previous.completion_rate
        return rows

    def format_report(self, result: AggregationResult) -> str:
        """Format an aggregation result into a human-readable report."""
        s = result.summary
        lines = [
            "=" * 60,
            "VISIT AGGREGATION REPORT",
            "=" * 60,
            "",
            "SUMMARY",
            f"  Applications:           {s.applications}",
            f"  Completed visits:       {s.completions}",
            f"  Cancellations:          {s.cancellations}",
            f"  Completion rate:        {s.completion_rate:.1%}",
            f"  First-time / repeat:    {s.first_time_applications} / {s.repeat_applications}",
            "",
            "BY STAFF",
        ]
        for row in [*result.staff, result.auto_assigned]:
            lines.append(
                f"  {row.staff_name:<22}  {row.completions:>4}/{row.applications:<4}"
                f"  {row.completion_rate:.1%}"
            )

        lines.extend(["", "BY MONTH"])
        for row in result.monthly:
            change = row.completion_rate_change
            delta = f"{change:+.1%}" if change is not None else "-"
            lines.append(
                f"  {row.month}  {row.completions:>4}/{row.applications:<4}"
                f"  {row.completion_rate:.1%}  ({delta})"
            )

        lines.extend(["", "BY DAY"])
        for row in result.daily:
            lines.append(
                f"  {row.day.isoformat()}  {row.completions:>4}/{row.applications:<4}"
                f"  {row.completion_rate:.1%}"
            )
        lines.append("=" * 60)
        return "\n".join(lines)
