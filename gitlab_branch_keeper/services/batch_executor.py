"""Sequential delete/archive execution with per-branch failure accounting"""

import threading
import time
from typing import Callable, Optional, Sequence, Union, TYPE_CHECKING

from gitlab_branch_keeper.exceptions import (
    BatchInProgressError,
    CreationFailure,
    PartialFailure,
    StaleStateError,
    TransportError,
)
from gitlab_branch_keeper.logging_config import get_logger
from gitlab_branch_keeper.models.branch import BranchRecord
from gitlab_branch_keeper.models.operation import (
    BatchState,
    BranchFailure,
    BranchOutcome,
    FailureReason,
    OperationMode,
    OperationResult,
)

if TYPE_CHECKING:
    from gitlab_branch_keeper.config import Config
    from gitlab_branch_keeper.services.gitlab_service import GitLabService

logger = get_logger(__name__)

PAUSE_POLL_INTERVAL = 0.1

Entry = Union[BranchOutcome, BranchFailure]
ProgressCallback = Callable[[int, int, Entry], None]


class BatchOperationExecutor:
    """Runs one confirmed batch at a time against the GitLab API.

    Branches are processed strictly in the confirmed order. A failure on one
    branch is recorded and the batch moves on.
    """

    def __init__(
        self,
        gateway: "GitLabService",
        project_id: Union[str, int],
        config: Union["Config", dict],
    ):
        self.gateway = gateway
        self.project_id = project_id
        self.archive_prefix = config.get("archive_prefix", "archive/")
        self._state = BatchState.IDLE
        self._state_lock = threading.Lock()

    @property
    def state(self) -> BatchState:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._state is BatchState.RUNNING

    def archive_name(self, branch_name: str) -> str:
        return f"{self.archive_prefix}{branch_name}"

    def run(
        self,
        confirmed: Sequence[BranchRecord],
        mode: OperationMode,
        cancel_event: Optional[threading.Event] = None,
        pause_event: Optional[threading.Event] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> OperationResult:
        """Process every confirmed branch in order and return the partitioned result.

        Cancellation is checked before each branch, so a branch already in
        flight always finishes both of its steps. Branches never reached are
        absent from the result.
        """
        with self._state_lock:
            if self._state is BatchState.RUNNING:
                raise BatchInProgressError()
            self._state = BatchState.RUNNING

        confirmed = list(confirmed)
        result = OperationResult(confirmed_branches=confirmed, mode=mode)
        total = len(confirmed)
        logger.info(f"Starting {mode.value} of {total} branches in project {self.project_id}")

        try:
            for record in confirmed:
                if self._should_stop(cancel_event, pause_event):
                    result.state = BatchState.CANCELLED
                    logger.warning(
                        f"Batch cancelled after {result.processed_count} of {total} branches"
                    )
                    break

                entry = self.process_branch(record, mode)
                if isinstance(entry, BranchFailure):
                    result.failed.append(entry)
                else:
                    result.succeeded.append(entry)

                if on_progress:
                    try:
                        on_progress(result.processed_count, total, entry)
                    except Exception as e:
                        logger.error(f"Progress callback failed after {entry.name}: {e}")
            else:
                result.state = BatchState.COMPLETED
        except BaseException:
            self._state = BatchState.IDLE
            raise

        self._state = result.state
        logger.info(f"Batch finished: {result.summary()}")
        return result

    def _should_stop(
        self, cancel_event: Optional[threading.Event], pause_event: Optional[threading.Event]
    ) -> bool:
        """Block while paused, then report whether cancellation was requested."""
        if pause_event is not None and pause_event.is_set():
            logger.info("Batch paused")
            while pause_event.is_set():
                if cancel_event is not None and cancel_event.is_set():
                    break
                time.sleep(PAUSE_POLL_INTERVAL)
            logger.info("Batch resumed")
        return cancel_event is not None and cancel_event.is_set()

    def process_branch(self, record: BranchRecord, mode: OperationMode) -> Entry:
        """Run one branch through the staleness check and the operation."""
        try:
            self.verify_current(record)
        except StaleStateError as e:
            logger.warning(str(e))
            return BranchFailure(record.name, record.last_commit_sha, FailureReason.STALE_STATE, str(e))
        except TransportError as e:
            logger.error(f"Could not verify branch {record.name}: {e}")
            return BranchFailure(record.name, record.last_commit_sha, FailureReason.TRANSPORT, str(e))

        if mode is OperationMode.ARCHIVE:
            return self._archive(record)
        return self._delete(record)

    def verify_current(self, record: BranchRecord) -> None:
        """Raise StaleStateError unless the branch still points at the fetched SHA."""
        try:
            data = self.gateway.get_branch(self.project_id, record.name)
        except TransportError as e:
            if e.is_not_found:
                raise StaleStateError(record.name, record.last_commit_sha) from e
            raise

        actual_sha = (data.get("commit") or {}).get("id")
        if actual_sha != record.last_commit_sha:
            raise StaleStateError(record.name, record.last_commit_sha, actual_sha)

    def _delete(self, record: BranchRecord) -> Entry:
        try:
            self.gateway.delete_branch_ref(self.project_id, record.name)
        except TransportError as e:
            logger.error(f"Failed to delete branch {record.name}: {e}")
            return BranchFailure(record.name, record.last_commit_sha, FailureReason.TRANSPORT, str(e))

        logger.info(f"Deleted branch {record.name} ({record.last_commit_sha[:8]})")
        return BranchOutcome(record.name, record.last_commit_sha)

    def _archive(self, record: BranchRecord) -> Entry:
        archive_name = self.archive_name(record.name)

        # The original is only deleted once its archive copy exists
        try:
            self.gateway.create_branch_ref(self.project_id, archive_name, record.last_commit_sha)
        except TransportError as e:
            error = CreationFailure(record.name, archive_name, e)
            logger.error(str(error))
            return BranchFailure(
                record.name, record.last_commit_sha, FailureReason.CREATION_FAILURE, str(error)
            )

        try:
            self.gateway.delete_branch_ref(self.project_id, record.name)
        except TransportError as e:
            error = PartialFailure(record.name, archive_name, e)
            logger.error(str(error))
            return BranchFailure(
                record.name, record.last_commit_sha, FailureReason.PARTIAL_FAILURE, str(error)
            )

        logger.info(f"Archived branch {record.name} as {archive_name}")
        return BranchOutcome(record.name, record.last_commit_sha, archive_name)
