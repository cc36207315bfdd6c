"""Branch row formatting utilities."""

from gitlab_branch_keeper.constants import (
    SYMBOL_FALSE,
    SYMBOL_SELECTED,
    SYMBOL_TRUE,
    SYMBOL_UNKNOWN,
    SYMBOL_UNSELECTED,
)
from gitlab_branch_keeper.models.branch import MergeState


def format_flag(value: bool) -> str:
    """Render a boolean permission flag as a table cell."""
    return SYMBOL_TRUE if value else SYMBOL_FALSE


def format_selected(selected: bool) -> str:
    return SYMBOL_SELECTED if selected else SYMBOL_UNSELECTED


def format_merge_state(state: MergeState) -> str:
    """
    Format the merge state against the target branch.

    Args:
        state: Tri-state merge status

    Returns:
        Check mark when merged, blank when not merged, "?" when unknown
    """
    if state is MergeState.MERGED:
        return SYMBOL_TRUE
    if state is MergeState.NOT_MERGED:
        return SYMBOL_FALSE
    return SYMBOL_UNKNOWN


def format_short_sha(sha: str) -> str:
    return sha[:8] if sha else "-"


def format_branch_name(name: str, is_target: bool = False) -> str:
    """Branch name, marked when it is the current target."""
    return f"{name} (target)" if is_target else name
