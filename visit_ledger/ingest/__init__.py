from visit_ledger.ingest.normalizer import IngestResult, load_csv, normalize_rows

__all__ = ["IngestResult", "load_csv", "normalize_rows"]
