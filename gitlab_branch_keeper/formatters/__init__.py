"""Formatting utilities for gitlab-branch-keeper.

This package provides the formatting functions used by the CLI tables,
organized into logical modules:
- date: Date formatting
- branch: Branch row cells
- status: Failure reasons, confirmation lists and row styles
"""

# Date formatters
from .date import format_date

# Branch formatters
from .branch import (
    format_flag,
    format_selected,
    format_merge_state,
    format_short_sha,
    format_branch_name,
)

# Status formatters
from .status import (
    format_failure_reason,
    format_operation_verb,
    format_confirmation_items,
    get_branch_style_type,
)

__all__ = [
    # Date
    "format_date",
    # Branch
    "format_flag",
    "format_selected",
    "format_merge_state",
    "format_short_sha",
    "format_branch_name",
    # Status
    "format_failure_reason",
    "format_operation_verb",
    "format_confirmation_items",
    "get_branch_style_type",
]
