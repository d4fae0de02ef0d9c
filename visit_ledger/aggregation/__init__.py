from visit_ledger.aggregation.engine import (
    AggregationEngine,
    AggregationResult,
    DailyRollup,
    MonthlyRollup,
    StaffRollup,
    Summary,
)

__all__ = [
    "AggregationEngine",
    "AggregationResult",
    "Summary",
    "StaffRollup",
    "DailyRollup",
    "MonthlyRollup",
]
