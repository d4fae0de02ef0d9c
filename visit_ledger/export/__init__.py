from visit_ledger.export.csv_writer import write_export_csv
from visit_ledger.export.export_builder import EXPORT_COLUMNS, ExportRecordBuilder, ExportRow

__all__ = ["EXPORT_COLUMNS", "ExportRecordBuilder", "ExportRow", "write_export_csv"]
