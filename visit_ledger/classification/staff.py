"""
Staff/slot label interpretation.

The slot label is free text: a staff member's name (optionally followed
by a parenthetical note), the no-preference marker that the booking form
writes when the caller lets the office pick a staff member, or a remark
about the booking that names nobody.
"""

import re
from typing import Optional

from visit_ledger.utils import normalize_label

# Written by the booking form when the caller has no staff preference.
AUTO_ASSIGN_MARKER = "おまかせ"

# Remarks written into the slot field instead of a name
COMMENT_PATTERNS: tuple[re.Pattern, ...] = (
    re.compile(r"^※"),
    re.compile(r"時間変更"),
    re.compile(r"別日調整"),
)


def is_auto_assigned(label: Optional[str]) -> bool:
    """True if the label is the no-preference marker (exact or prefix, case-sensitive)."""
    if not label:
        return False
    return label.strip().startswith(AUTO_ASSIGN_MARKER)


def is_comment(label: Optional[str]) -> bool:
    """True if the label is a booking remark rather than a staff name."""
    if not label:
        return False
    slot = label.strip()
    return any(pattern.search(slot) for pattern in COMMENT_PATTERNS)


def resolve_staff_name(label: Optional[str]) -> Optional[str]:
    """Return the staff name carried by a slot label, or None.

    Auto-assigned labels and remarks resolve to None: they do not name
    anyone, so their records land in the unassigned bucket.
    """
    if not label or is_auto_assigned(label) or is_comment(label):
        return None
    name = normalize_label(label)
    return name or None
