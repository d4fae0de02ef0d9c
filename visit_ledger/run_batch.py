"""
CLI entry point for processing one appointment export.

Usage:
    python -m visit_ledger.run_batch --input export.csv --verbose
    python -m visit_ledger.run_batch --input export.csv --db history.db --export rollup.csv
"""

import argparse
import logging
import sys
from pathlib import Path

from visit_ledger.config import settings
from visit_ledger.errors import EmptyResultFailure, IOFailure, ValidationFailure
from visit_ledger.export.csv_writer import write_export_csv
from visit_ledger.history.sqlite_store import SqliteHistoryStore
from visit_ledger.ingest.normalizer import load_csv
from visit_ledger.pipeline import BatchPipeline

logger = logging.getLogger(__name__)

EXIT_INPUT_NOT_FOUND = 1
EXIT_VALIDATION = 2
EXIT_IO = 3


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(
        description="Classify appointment records against visit history and build rollups."
    )
    parser.add_argument(
        "--input",
        type=str,
        required=True,
        help="Path to the appointment export CSV.",
    )
    parser.add_argument(
        "--db",
        type=str,
        default=settings.store.history_db_path,
        help="Path to the SQLite visit-history store.",
    )
    parser.add_argument(
        "--export",
        type=str,
        default=None,
        help="Path to write the fixed-column export CSV.",
    )
    parser.add_argument(
        "--reset-history",
        action="store_true",
        help="Clear the visit-history store before processing.",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose logging output.",
    )

    args = parser.parse_args(argv)

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    input_path = Path(args.input)
    if not input_path.exists():
        logger.error("Input file not found: %s", input_path)
        return EXIT_INPUT_NOT_FOUND

    try:
        ingest = load_csv(input_path)
    except EmptyResultFailure as e:
        logger.error("No usable records in %s: %s", input_path.name, e)
        return EXIT_VALIDATION
    except ValidationFailure as e:
        logger.error("Invalid input %s: %s", input_path.name, e)
        return EXIT_VALIDATION

    try:
        with SqliteHistoryStore(args.db) as store:
            if args.reset_history:
                logger.warning("Resetting visit history at %s", args.db)
                store.clear()
            pipeline = BatchPipeline(store)
            report = pipeline.run(ingest.records, warnings=ingest.warnings)
    except IOFailure as e:
        logger.error("History store failure, run aborted: %s", e)
        return EXIT_IO

    sys.stdout.write(pipeline.format_report(report) + "\n")

    if args.export:
        try:
            write_export_csv(report.export_rows, args.export)
        except IOFailure as e:
            logger.error("Export failed: %s", e)
            return EXIT_IO

    return 0


if __name__ == "__main__":
    sys.exit(main())
