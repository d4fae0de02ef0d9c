"""Per-caller visit history persisted across runs."""

from bisect import bisect_left
from datetime import date
from typing import Optional

from pydantic import BaseModel, Field


class HistoryEntry(BaseModel):
    """Completed-visit history for one caller.

    ``visit_dates`` holds each distinct completed visit date in ascending
    order; ``visit_count`` always equals its length.
    """

    caller_id: str
    visit_count: int = 0
    last_visit_date: Optional[date] = None
    visit_dates: list[date] = Field(default_factory=list)

    def has_visit(self, visit_date: date) -> bool:
        index = bisect_left(self.visit_dates, visit_date)
        return index < len(self.visit_dates) and self.visit_dates[index] == visit_date

    def prior_visits(self, before: date) -> int:
        """Number of recorded visits strictly earlier than ``before``."""
        return bisect_left(self.visit_dates, before)

    def with_visit(self, visit_date: date) -> "HistoryEntry":
        """Return a copy with ``visit_date`` recorded. Already-known dates are a no-op."""
        if self.has_visit(visit_date):
            return self
        dates = sorted([*self.visit_dates, visit_date])
        last = self.last_visit_date
        if last is None or visit_date > last:
            last = visit_date
        return HistoryEntry(
            caller_id=self.caller_id,
            visit_count=len(dates),
            last_visit_date=last,
            visit_dates=dates,
        )
