"""Custom exceptions for gitlab-branch-keeper"""

from enum import Enum
from typing import Optional


class GitLabBranchKeeperError(Exception):
    """Base exception for all gitlab-branch-keeper errors."""
    pass


class ConfigurationError(GitLabBranchKeeperError):
    """Raised when credentials or the hosting endpoint are missing or unusable."""
    pass


class TransportError(GitLabBranchKeeperError):
    """Exception raised for network or HTTP failures against the GitLab API."""

    def __init__(
        self,
        operation: str,
        status: Optional[int] = None,
        body: Optional[str] = None,
        message: Optional[str] = None,
    ):
        self.operation = operation
        self.status = status
        self.body = body
        self.message = message

        error_msg = f"GitLab API operation '{operation}' failed"
        if status is not None:
            error_msg += f" with status {status}"
        if message:
            error_msg += f": {message}"
        elif body:
            error_msg += f": {body[:200]}"

        super().__init__(error_msg)

    @property
    def is_not_found(self) -> bool:
        return self.status == 404


class PatternErrorReason(Enum):
    """Why a filter pattern could not be compiled."""
    UNTERMINATED_GROUP = "unterminated-group"
    DANGLING_QUANTIFIER = "dangling-quantifier"
    ILLEGAL_REPETITION = "illegal-repetition"
    OTHER = "other"


class PatternSyntaxError(GitLabBranchKeeperError, ValueError):
    """Raised when a pattern filter is given a malformed regular expression."""

    def __init__(self, pattern: str, reason: PatternErrorReason, detail: str):
        self.pattern = pattern
        self.reason = reason
        self.detail = detail
        super().__init__(f"Invalid pattern '{pattern}' ({reason.value}): {detail}")


class StaleStateError(GitLabBranchKeeperError):
    """Raised when a branch moved or vanished since it was fetched."""

    def __init__(self, branch: str, expected_sha: str, actual_sha: Optional[str] = None):
        self.branch = branch
        self.expected_sha = expected_sha
        self.actual_sha = actual_sha

        if actual_sha is None:
            error_msg = f"Branch '{branch}' no longer exists on the server"
        else:
            error_msg = (
                f"Branch '{branch}' moved from {expected_sha[:8]} to {actual_sha[:8]} "
                "since it was fetched"
            )
        super().__init__(error_msg)


class PartialFailure(GitLabBranchKeeperError):
    """Archive copy was created but the original branch could not be deleted."""

    def __init__(self, branch: str, archive_name: str, cause: Optional[Exception] = None):
        self.branch = branch
        self.archive_name = archive_name
        self.cause = cause

        error_msg = f"Archive '{archive_name}' created but deleting '{branch}' failed"
        if cause:
            error_msg += f": {cause}"
        super().__init__(error_msg)


class CreationFailure(GitLabBranchKeeperError):
    """Archive copy could not be created; the original branch is untouched."""

    def __init__(self, branch: str, archive_name: str, cause: Optional[Exception] = None):
        self.branch = branch
        self.archive_name = archive_name
        self.cause = cause

        error_msg = f"Could not create archive '{archive_name}' for '{branch}'"
        if cause:
            error_msg += f": {cause}"
        super().__init__(error_msg)


class BatchInProgressError(GitLabBranchKeeperError):
    """Raised when a batch is submitted while another one is still running."""

    def __init__(self):
        super().__init__("Another batch operation is already running")
