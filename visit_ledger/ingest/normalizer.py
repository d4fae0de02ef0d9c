"""
Row normalization from raw export rows to validated Records.

Recognizes header synonyms (English and the booking system's Japanese
headers), maps status/outcome values to their enums and drops rows that
cannot be classified. Dropped rows are always reported as warnings; the
batch only fails when no usable row remains.
"""

import csv
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Mapping, Optional, Union

from pydantic import ValidationError

from visit_ledger.errors import EmptyResultFailure, ValidationFailure
from visit_ledger.schemas.record_schema import AppointmentStatus, Record, VisitOutcome
from visit_ledger.utils import parse_date, parse_datetime

logger = logging.getLogger(__name__)

HEADER_SYNONYMS: dict[str, tuple[str, ...]] = {
    "record_id": ("record_id", "reservation_id", "予約ID"),
    "caller_id": ("caller_id", "friend_id", "友だちID", "友達ID"),
    "appointment_date": ("appointment_date", "date", "予約日", "日付"),
    "status": ("status", "ステータス"),
    "outcome": ("outcome", "visit", "来店/来場"),
    "caller_name": ("caller_name", "name", "名前", "お客さま", "お客様"),
    "applied_at": ("applied_at", "application_date", "申込日時", "申し込み日時"),
    "staff_label": ("staff_label", "staff", "slot", "担当者", "予約枠", "予約枠（担当者名）"),
}

REQUIRED_FIELDS = ("caller_id", "appointment_date", "status", "outcome")

STATUS_SYNONYMS: dict[str, AppointmentStatus] = {
    "scheduled": AppointmentStatus.SCHEDULED,
    "booked": AppointmentStatus.SCHEDULED,
    "予約済み": AppointmentStatus.SCHEDULED,
    "cancelled": AppointmentStatus.CANCELLED,
    "canceled": AppointmentStatus.CANCELLED,
    "キャンセル済み": AppointmentStatus.CANCELLED,
}

OUTCOME_SYNONYMS: dict[str, VisitOutcome] = {
    "visited": VisitOutcome.VISITED,
    "yes": VisitOutcome.VISITED,
    "済み": VisitOutcome.VISITED,
    "not_visited": VisitOutcome.NOT_VISITED,
    "not visited": VisitOutcome.NOT_VISITED,
    "no": VisitOutcome.NOT_VISITED,
    "なし": VisitOutcome.NOT_VISITED,
}

CSV_ENCODINGS = ("utf-8-sig", "cp932")


@dataclass
class IngestResult:
    """Validated records plus one warning per dropped or degraded row."""

    records: list[Record]
    warnings: list[str] = field(default_factory=list)
    dropped: int = 0


def _build_header_map(headers: Iterable[str]) -> dict[str, str]:
    """Map each canonical field to the source header that carries it."""
    lookup = {}
    for canonical, names in HEADER_SYNONYMS.items():
        for name in names:
            lookup[name.casefold()] = canonical

    mapping: dict[str, str] = {}
    for header in headers:
        canonical = lookup.get(header.strip().casefold())
        if canonical and canonical not in mapping:
            mapping[canonical] = header
    return mapping


def parse_status(value: str) -> tuple[AppointmentStatus, str]:
    """Return the status enum and the raw value; unknown values map to OTHER."""
    raw = value.strip()
    status = STATUS_SYNONYMS.get(raw.casefold(), AppointmentStatus.OTHER)
    return status, raw


def parse_outcome(value: str) -> VisitOutcome:
    return OUTCOME_SYNONYMS.get(value.strip().casefold(), VisitOutcome.UNKNOWN)


def _row_to_record(
    row: Mapping[str, Optional[str]],
    header_map: dict[str, str],
    line: int,
    warnings: list[str],
) -> Optional[Record]:
    def value(name: str) -> str:
        header = header_map.get(name)
        return (row.get(header) or "").strip() if header else ""

    caller_id = value("caller_id")
    if not caller_id:
        warnings.append(f"Row {line}: missing caller id, skipped")
        return None

    raw_date = value("appointment_date")
    appointment_date = parse_date(raw_date)
    if appointment_date is None:
        warnings.append(f"Row {line}: invalid appointment date {raw_date!r}, skipped")
        return None

    status, status_raw = parse_status(value("status"))
    if status == AppointmentStatus.OTHER:
        warnings.append(f"Row {line}: unknown status {status_raw!r} kept as-is")

    known_headers = set(header_map.values())
    extra = {k: (v or "") for k, v in row.items() if k is not None and k not in known_headers}

    try:
        return Record(
            caller_id=caller_id,
            appointment_date=appointment_date,
            status=status,
            status_raw=status_raw,
            outcome=parse_outcome(value("outcome")),
            caller_name=value("caller_name"),
            applied_at=parse_datetime(value("applied_at")),
            staff_label=value("staff_label"),
            record_id=value("record_id") or f"row-{line}",
            extra=extra,
        )
    except ValidationError as e:
        warnings.append(f"Row {line}: {e.error_count()} validation error(s), skipped")
        return None


def normalize_rows(rows: Iterable[Mapping[str, Optional[str]]]) -> IngestResult:
    """Validate raw rows into Records.

    Raises:
        ValidationFailure: a required column is missing from the header.
        EmptyResultFailure: there are no rows, or every row was dropped.
    """
    rows = list(rows)
    if not rows:
        raise EmptyResultFailure("Input contains no rows")

    header_map = _build_header_map(rows[0].keys())
    missing = [name for name in REQUIRED_FIELDS if name not in header_map]
    if missing:
        raise ValidationFailure(f"Missing required column(s): {', '.join(missing)}")

    records: list[Record] = []
    warnings: list[str] = []
    # Line 1 is the header row
    for line, row in enumerate(rows, start=2):
        record = _row_to_record(row, header_map, line, warnings)
        if record is not None:
            records.append(record)

    dropped = len(rows) - len(records)
    for warning in warnings:
        logger.warning(warning)

    if not records:
        raise EmptyResultFailure(
            f"All {len(rows)} row(s) failed validation", dropped=dropped
        )
    if dropped:
        logger.warning("Dropped %d of %d row(s)", dropped, len(rows))
    return IngestResult(records=records, warnings=warnings, dropped=dropped)


def load_csv(path: Union[str, Path]) -> IngestResult:
    """Read an export CSV (UTF-8 or Shift-JIS) and normalize its rows."""
    path = Path(path)
    last_error: Optional[UnicodeDecodeError] = None
    for encoding in CSV_ENCODINGS:
        try:
            with open(path, "r", encoding=encoding, newline="") as f:
                rows = list(csv.DictReader(f))
            break
        except UnicodeDecodeError as e:
            last_error = e
            logger.debug("Could not decode %s as %s", path.name, encoding)
    else:
        raise ValidationFailure(f"Cannot decode {path.name}: {last_error}")

    logger.info("Read %d row(s) from %s", len(rows), path.name)
    return normalize_rows(rows)

