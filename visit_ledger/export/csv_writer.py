"""CSV serialization of export rows (UTF-8 with BOM so spreadsheets open it cleanly)."""

import csv
import logging
from pathlib import Path
from typing import Iterable, Union

from visit_ledger.errors import IOFailure
from visit_ledger.export.export_builder import EXPORT_COLUMNS, ExportRow

logger = logging.getLogger(__name__)


def write_export_csv(rows: Iterable[ExportRow], path: Union[str, Path]) -> Path:
    """Write a label column followed by the eight fixed export columns."""
    path = Path(path)
    count = 0
    try:
        with open(path, "w", encoding="utf-8-sig", newline="") as f:
            writer = csv.writer(f)
            writer.writerow(["label", *EXPORT_COLUMNS])
            for row in rows:
                writer.writerow([row.label, *row.values])
                count += 1
    except OSError as e:
        raise IOFailure(f"Cannot write export to {path}: {e}") from e
    logger.info("Export written to %s (%d row(s))", path, count)
    return path
