"""Services for talking to GitLab and working on branch sets."""

from .gitlab_service import GitLabService
from .branch_classifier import BranchClassifier
from .selection_model import ChangeKind, ModelChange, SelectionModel
from .filters import CutoffFilter, DateFilter, FilterAction, PatternFilter, cutoff_candidates, parse_date
from .batch_executor import BatchOperationExecutor
from .reconciliation import reconcile

__all__ = [
    "GitLabService",
    "BranchClassifier",
    "ChangeKind",
    "ModelChange",
    "SelectionModel",
    "CutoffFilter",
    "DateFilter",
    "FilterAction",
    "PatternFilter",
    "cutoff_candidates",
    "parse_date",
    "BatchOperationExecutor",
    "reconcile",
]
