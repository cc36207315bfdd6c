"""Data models for gitlab-branch-keeper."""

from .branch import BranchRecord, MergeState
from .operation import (
    BatchState,
    BranchFailure,
    BranchOutcome,
    FailureReason,
    OperationMode,
    OperationResult,
)
from .project import Project

__all__ = [
    "BranchRecord",
    "MergeState",
    "BatchState",
    "BranchFailure",
    "BranchOutcome",
    "FailureReason",
    "OperationMode",
    "OperationResult",
    "Project",
]
