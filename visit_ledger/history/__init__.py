from visit_ledger.history.sqlite_store import SqliteHistoryStore
from visit_ledger.history.store import HistoryStore, InMemoryHistoryStore

__all__ = ["HistoryStore", "InMemoryHistoryStore", "SqliteHistoryStore"]
