"""Batch operation models"""
from enum import Enum
from dataclasses import dataclass, field
from typing import List, Optional

from gitlab_branch_keeper.models.branch import BranchRecord


class OperationMode(Enum):
    """What a batch run does to each confirmed branch."""
    DELETE = "delete"
    ARCHIVE = "archive"


class BatchState(Enum):
    """Lifecycle of a single batch run."""
    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class FailureReason(Enum):
    """Classified cause of a per-branch failure."""
    TRANSPORT = "transport-error"
    STALE_STATE = "stale-state"
    PARTIAL_FAILURE = "partial-failure"  # archive created, delete failed
    CREATION_FAILURE = "creation-failure"  # archive not created, original untouched


@dataclass(frozen=True)
class BranchOutcome:
    """A branch the batch processed successfully."""
    name: str
    sha: str
    new_name: Optional[str] = None  # set for archive mode

    @property
    def identity(self):
        return (self.name, self.sha)


@dataclass(frozen=True)
class BranchFailure:
    """A branch the batch could not process, with enough detail to retry."""
    name: str
    sha: str
    reason: FailureReason
    message: str = ""

    @property
    def identity(self):
        return (self.name, self.sha)


@dataclass
class OperationResult:
    """Outcome of one batch run, partitioned into succeeded and failed."""
    confirmed_branches: List[BranchRecord]
    mode: OperationMode
    succeeded: List[BranchOutcome] = field(default_factory=list)
    failed: List[BranchFailure] = field(default_factory=list)
    state: BatchState = BatchState.COMPLETED

    @property
    def processed_count(self) -> int:
        return len(self.succeeded) + len(self.failed)

    @property
    def cancelled(self) -> bool:
        return self.state is BatchState.CANCELLED

    @property
    def has_failures(self) -> bool:
        return bool(self.failed)

    def summary(self) -> str:
        verb = "archived" if self.mode is OperationMode.ARCHIVE else "deleted"
        text = (
            f"{len(self.succeeded)} {verb}, {len(self.failed)} failed "
            f"of {len(self.confirmed_branches)} confirmed"
        )
        if self.cancelled:
            skipped = len(self.confirmed_branches) - self.processed_count
            text += f" (cancelled, {skipped} not processed)"
        return text
