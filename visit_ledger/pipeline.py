"""
Full processing pipeline for one uploaded batch.

Orchestrates visit classification, review detection, aggregation and
export row building into a single run report. One run must finish
before the next starts; the surrounding system is responsible for that.
"""

from dataclasses import dataclass, field
from typing import Iterable, Optional, Sequence

from visit_ledger.aggregation.engine import AggregationEngine, AggregationResult
from visit_ledger.classification.review_detector import (
    CancellationEntry,
    ReviewDetector,
    ReviewFlag,
    cancel_timing_statistics,
    review_statistics,
)
from visit_ledger.classification.visit_classifier import VisitClassifier
from visit_ledger.errors import EmptyResultFailure, IOFailure
from visit_ledger.export.export_builder import ExportRecordBuilder, ExportRow
from visit_ledger.history.store import HistoryStore
from visit_ledger.logging_context import get_run_logger, new_run_id, run_scope
from visit_ledger.schemas.record_schema import ClassifiedRecord, Record

logger = get_run_logger(__name__)


@dataclass
class RunReport:
    """Everything one run produces."""

    run_id: str
    records: list[ClassifiedRecord]
    flags: list[ReviewFlag]
    cancellations: list[CancellationEntry]
    aggregation: AggregationResult
    export_rows: list[ExportRow]
    review_counts: dict[str, int] = field(default_factory=dict)
    cancel_timings: dict[str, int] = field(default_factory=dict)
    warnings: list[str] = field(default_factory=list)


class BatchPipeline:
    """Runs one batch against an explicitly supplied history store.

    History writes are not rolled back if a run is abandoned part way;
    callers needing atomicity must snapshot the store themselves.
    """

    def __init__(self, store: HistoryStore) -> None:
        self.store = store
        self._classifier = VisitClassifier(store)
        self._detector = ReviewDetector()
        self._engine = AggregationEngine()
        self._builder = ExportRecordBuilder()

    def run(
        self,
        records: Iterable[Record],
        *,
        months: Optional[Sequence[str]] = None,
        warnings: Optional[list[str]] = None,
        run_id: Optional[str] = None,
    ) -> RunReport:
        """Classify, flag, aggregate and export one batch.

        Raises:
            EmptyResultFailure: the batch has no records.
            IOFailure: the history store failed; nothing is reported.
        """
        with run_scope(run_id or new_run_id()) as run_id:
            return self._run(list(records), months, warnings, run_id)

    def _run(
        self,
        records: list[Record],
        months: Optional[Sequence[str]],
        warnings: Optional[list[str]],
        run_id: str,
    ) -> RunReport:
        if not records:
            raise EmptyResultFailure("Batch contains no usable records")
        logger.info("Run %s started with %d record(s)", run_id, len(records))

        try:
            classified = self._classifier.classify(records)
            flags = self._detector.detect_all(classified)
            cancellations = self._detector.cancellation_list(flags, self.store)
        except IOFailure:
            logger.error("Run %s aborted: history store failure", run_id)
            raise

        aggregation = self._engine.aggregate(classified)
        export_rows = self._builder.build(aggregation, classified, months=months)

        logger.info(
            "Run %s finished: %d completed, %d flagged",
            run_id,
            aggregation.summary.completions,
            len(flags),
        )
        return RunReport(
            run_id=run_id,
            records=classified,
            flags=flags,
            cancellations=cancellations,
            aggregation=aggregation,
            export_rows=export_rows,
            review_counts=review_statistics(flags),
            cancel_timings=cancel_timing_statistics(cancellations),
            warnings=list(warnings or []),
        )

    def format_report(self, report: RunReport) -> str:
        """Format a run report into a human-readable string."""
        lines = [
            self._engine.format_report(report.aggregation),
            "",
            f"RUN: {report.run_id}",
            "",
        ]

        if report.flags:
            lines.append("REVIEW FLAGS:")
            for pattern, count in report.review_counts.items():
                if pattern != "total" and count:
                    lines.append(f"  {pattern}: {count} record(s)")
            lines.append("")

        if report.cancellations:
            lines.append(f"CANCELLATIONS ({len(report.cancellations)}):")
            for timing, count in report.cancel_timings.items():
                if count:
                    lines.append(f"  {timing}: {count} record(s)")
            lines.append("")

        if report.warnings:
            lines.append(f"WARNINGS ({len(report.warnings)}):")
            for warning in report.warnings:
                lines.append(f"  {warning}")

        return "\n".join(lines)
