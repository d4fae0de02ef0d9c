"""
First/second/third-visit classifier.

Reads each caller's history to assign a visit ordinal and records every
completed visit back into the store. Records are processed in
(caller_id, appointment_date) order regardless of input order, so the
same batch always yields the same ordinals.

Usage:
    classifier = VisitClassifier(store)
    classified = classifier.classify(records)
"""

from typing import Iterable

from visit_ledger.classification.staff import is_auto_assigned, resolve_staff_name
from visit_ledger.history.store import HistoryStore
from visit_ledger.logging_context import get_run_logger
from visit_ledger.schemas.record_schema import ClassifiedRecord, Record, is_completed_visit

logger = get_run_logger(__name__)


def _sort_key(record: Record) -> tuple:
    return (record.caller_id, record.appointment_date)


class VisitClassifier:
    """Assigns visit ordinals against an explicitly supplied history store."""

    def __init__(self, store: HistoryStore) -> None:
        self.store = store

    def classify(self, records: Iterable[Record]) -> list[ClassifiedRecord]:
        """Classify a batch. Output has the same cardinality as the input, sorted."""
        ordered = sorted(records, key=_sort_key)
        classified = [self.classify_one(record) for record in ordered]

        completed = sum(1 for r in classified if r.completed)
        logger.info(
            "Classified %d record(s): %d completed visit(s)", len(classified), completed
        )
        return classified

    def classify_one(self, record: Record) -> ClassifiedRecord:
        """Classify a single record, writing to the store only if it is a completed visit.

        Callers classifying more than one record for the same caller must
        feed them in ascending date order; ``classify`` does this for you.
        """
        completed = is_completed_visit(record.status, record.outcome)
        entry = self.store.get(record.caller_id)
        prior = entry.prior_visits(record.appointment_date) if entry else 0

        ordinal = None
        if completed:
            ordinal = prior + 1
            self.store.upsert(record.caller_id, record.appointment_date)
            logger.debug(
                "Caller %s visit #%d on %s", record.caller_id, ordinal, record.appointment_date
            )

        return ClassifiedRecord(
            **record.model_dump(),
            completed=completed,
            visit_ordinal=ordinal,
            prior_visits=prior,
            is_auto_assigned=is_auto_assigned(record.staff_label),
            resolved_staff=resolve_staff_name(record.staff_label),
        )
