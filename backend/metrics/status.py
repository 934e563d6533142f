"""
Status taxonomy over the board's free-text status values.

Statuses are never validated against a closed set; the board can introduce new
ones at any time. Membership is a case-sensitive set lookup.
"""
from __future__ import annotations
from typing import Optional

COMPLETED_STATUSES = frozenset({"Done", "Completed", "Closed"})
IN_PROGRESS_STATUSES = frozenset({"In Progress", "In Review"})
TODO_STATUSES = frozenset({"Todo", "Backlog", "New"})

# substrings, matched case-insensitively
BLOCKED_MARKERS = ("blocked", "waiting")

UNKNOWN_STATUS = "Unknown"


def is_completed(status: Optional[str]) -> bool:
    return status in COMPLETED_STATUSES


def is_in_progress(status: Optional[str]) -> bool:
    return status in IN_PROGRESS_STATUSES


def is_todo(status: Optional[str]) -> bool:
    return status in TODO_STATUSES


def lifecycle_bucket(status: Optional[str]) -> Optional[str]:
    """'completed' | 'in_progress' | 'todo', or None for statuses outside the taxonomy."""
    if is_completed(status):
        return "completed"
    if is_in_progress(status):
        return "in_progress"
    if is_todo(status):
        return "todo"
    return None
