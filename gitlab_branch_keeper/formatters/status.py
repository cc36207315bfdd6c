"""Operation status and confirmation formatting utilities."""

from typing import List, Optional

from gitlab_branch_keeper.constants import BranchStyleType
from gitlab_branch_keeper.models.branch import BranchRecord
from gitlab_branch_keeper.models.operation import FailureReason, OperationMode

FAILURE_REASON_DISPLAY = {
    FailureReason.TRANSPORT: "API error",
    FailureReason.STALE_STATE: "branch changed since it was fetched",
    FailureReason.PARTIAL_FAILURE: "archive created, delete failed",
    FailureReason.CREATION_FAILURE: "archive could not be created",
}


def format_failure_reason(reason: FailureReason) -> str:
    """
    Format a failure reason as display text.

    Args:
        reason: Failure reason enum value

    Returns:
        Human readable reason
    """
    return FAILURE_REASON_DISPLAY.get(reason, reason.value)


def format_operation_verb(mode: OperationMode, past: bool = False) -> str:
    if mode is OperationMode.ARCHIVE:
        return "archived" if past else "archive"
    return "deleted" if past else "delete"


def format_confirmation_items(
    branches: List[BranchRecord],
    mode: OperationMode,
    archive_prefix: Optional[str] = None,
) -> str:
    """
    Format a list of branches for the confirmation message.

    Args:
        branches: Records about to be processed
        mode: Delete or archive
        archive_prefix: Prefix for archive names, used in archive mode

    Returns:
        One bullet line per branch. Archive mode shows the new name:
        "  • feature/old (1a2b3c4d) -> archive/feature/old"
    """
    lines = []
    for branch in branches:
        line = f"  • {branch.name} ({branch.last_commit_sha[:8]})"
        if mode is OperationMode.ARCHIVE and archive_prefix:
            line += f" -> {archive_prefix}{branch.name}"
        if branch.is_protected:
            line += " [protected]"
        lines.append(line)
    return "\n".join(lines)


def get_branch_style_type(branch: BranchRecord, target_branch: Optional[str]) -> str:
    """
    Determine the style type for a branch based on its properties.

    Args:
        branch: Branch record
        target_branch: Name of the current target branch, if any

    Returns:
        BranchStyleType constant
    """
    if target_branch is not None and branch.name == target_branch:
        return BranchStyleType.TARGET
    if branch.is_selected:
        return BranchStyleType.SELECTED
    if branch.is_protected:
        return BranchStyleType.PROTECTED
    return BranchStyleType.ACTIVE
