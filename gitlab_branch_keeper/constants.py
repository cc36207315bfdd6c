"""Shared constants for gitlab-branch-keeper."""

from dataclasses import dataclass
from typing import List


API_PREFIX = "/api/v4"

DEFAULT_PAGE_SIZE = 100
MAX_PAGE_SIZE = 100

DEFAULT_ARCHIVE_PREFIX = "archive/"

# Cap for parallel merge-status lookups (API rate limiting)
MAX_API_WORKERS = 10


@dataclass
class ColumnDefinition:
    """Definition of a table column."""

    key: str
    label: str
    width: int = 0  # 0 means auto-width


COLUMNS: List[ColumnDefinition] = [
    ColumnDefinition("selected", "Sel", 3),
    ColumnDefinition("branch", "Branch", 40),
    ColumnDefinition("last_commit", "Last Commit", 12),
    ColumnDefinition("sha", "SHA", 8),
    ColumnDefinition("merged", "Merged", 6),
    ColumnDefinition("into_target", "Into Target", 11),
    ColumnDefinition("protected", "Protected", 9),
    ColumnDefinition("dev_push", "Dev Push", 8),
    ColumnDefinition("dev_merge", "Dev Merge", 9),
    ColumnDefinition("can_push", "Can Push", 8),
    ColumnDefinition("default", "Default", 7),
]


# Symbol constants
SYMBOL_TRUE = "✔"
SYMBOL_FALSE = " "
SYMBOL_UNKNOWN = "?"
SYMBOL_SELECTED = "✓"
SYMBOL_UNSELECTED = " "


class BranchStyleType:
    """Style types for branches."""

    PROTECTED = "protected"
    SELECTED = "selected"
    TARGET = "target"
    ACTIVE = "active"


# CLI colors (Rich color names)
CLI_COLORS = {
    BranchStyleType.PROTECTED: "cyan",
    BranchStyleType.SELECTED: "red",  # Will be deleted or archived
    BranchStyleType.TARGET: "green",
    BranchStyleType.ACTIVE: None,  # Default color
}


LEGEND_TEXT = """
Legend:
✓ = Selected for the operation     ✔ = Flag is set     ? = Merge status unknown

Colors:
Red = Selected (will be deleted/archived)
Cyan = Protected branch
Green = Target branch
"""
