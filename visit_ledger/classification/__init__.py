from visit_ledger.classification.review_detector import (
    CancellationEntry,
    CancelTiming,
    ReviewDetector,
    ReviewFlag,
    ReviewPattern,
)
from visit_ledger.classification.staff import (
    AUTO_ASSIGN_MARKER,
    COMMENT_PATTERNS,
    is_auto_assigned,
    is_comment,
    resolve_staff_name,
)
from visit_ledger.classification.visit_classifier import VisitClassifier

__all__ = [
    "VisitClassifier",
    "ReviewDetector",
    "ReviewFlag",
    "ReviewPattern",
    "CancellationEntry",
    "CancelTiming",
    "AUTO_ASSIGN_MARKER",
    "COMMENT_PATTERNS",
    "is_auto_assigned",
    "is_comment",
    "resolve_staff_name",
]
