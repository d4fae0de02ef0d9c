"""
Fixed-column export rows for spreadsheet placement.

Each row carries exactly eight values in EXPORT_COLUMNS order. The
downstream sheet places them in columns AB-AE and AJ-AM, so the order
and the presence of every value must never change. A value that is
missing from the aggregation is written as "".
"""

import logging
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Optional, Sequence, Union

from visit_ledger.aggregation.engine import AggregationResult, Tally
from visit_ledger.config import settings
from visit_ledger.schemas.record_schema import ClassifiedRecord

logger = logging.getLogger(__name__)

ExportValue = Union[int, float, str]

EXPORT_COLUMNS: tuple[str, ...] = (
    "first_time_applications",
    "first_time_application_rate_pct",
    "first_time_completions",
    "first_time_completion_rate_pct",
    "repeat_applications",
    "repeat_application_rate_pct",
    "repeat_completions",
    "repeat_completion_rate_pct",
)

EMPTY: str = ""


@dataclass(frozen=True)
class ExportRow:
    """One positional export row: a label plus eight values."""

    label: str
    values: tuple[ExportValue, ...]

    def as_dict(self) -> dict[str, ExportValue]:
        return dict(zip(EXPORT_COLUMNS, self.values))


def _pct(rate: float) -> float:
    """Percentage rounded half up, so 6.25 becomes 6.3 rather than 6.2."""
    step = Decimal(1).scaleb(-settings.export.rate_decimals)
    return float(Decimal(str(rate * 100)).quantize(step, rounding=ROUND_HALF_UP))


def _project(tally: Optional[Tally]) -> tuple[ExportValue, ...]:
    if tally is None:
        return (EMPTY,) * len(EXPORT_COLUMNS)
    return (
        tally.first_time_applications,
        _pct(tally.first_time_application_rate),
        tally.first_time_completions,
        _pct(tally.first_time_completion_rate),
        tally.repeat_applications,
        _pct(tally.repeat_application_rate),
        tally.repeat_completions,
        _pct(tally.repeat_completion_rate),
    )


class ExportRecordBuilder:
    """Projects an aggregation result onto the fixed export layout."""

    def build(
        self,
        result: AggregationResult,
        records: Iterable[ClassifiedRecord],
        months: Optional[Sequence[str]] = None,
    ) -> list[ExportRow]:
        """One row per month followed by the total row.

        ``months`` pins the row set, e.g. a full fiscal year; months with
        no data still produce a row of empty values.
        """
        batch_months = {r.month for r in records}
        wanted = list(months) if months is not None else sorted(batch_months)

        rows = []
        for month in wanted:
            monthly = result.month(month) if month in batch_months else None
            if monthly is None:
                logger.debug("No data for export month %s", month)
            rows.append(ExportRow(label=month, values=_project(monthly)))

        rows.append(ExportRow(label=settings.export.total_label, values=_project(result.summary)))
        return rows
