"""Core functionality for gitlab-branch-keeper"""

import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Callable, List, Optional, Sequence, Union

from gitlab_branch_keeper.config import Config
from gitlab_branch_keeper.exceptions import BatchInProgressError, GitLabBranchKeeperError
from gitlab_branch_keeper.logging_config import get_logger
from gitlab_branch_keeper.models.branch import BranchRecord
from gitlab_branch_keeper.models.operation import OperationMode, OperationResult
from gitlab_branch_keeper.models.project import Project
from gitlab_branch_keeper.services.batch_executor import BatchOperationExecutor, ProgressCallback
from gitlab_branch_keeper.services.branch_classifier import BranchClassifier
from gitlab_branch_keeper.services.gitlab_service import GitLabService
from gitlab_branch_keeper.services.reconciliation import reconcile
from gitlab_branch_keeper.services.selection_model import SelectionModel

logger = get_logger(__name__)

CompletionCallback = Callable[[OperationResult], None]


class BranchKeeper:
    """Main class for managing the branches of one GitLab project at a time."""

    def __init__(self, config: Union[Config, dict], gateway: Optional[GitLabService] = None):
        """Initialize BranchKeeper.

        Args:
            config: Configuration dict or Config object
            gateway: Optional GitLab service (tests inject a mock)

        Raises:
            ConfigurationError: If the GitLab URL or token is missing
        """
        if isinstance(config, dict):
            config = Config.from_dict(config)
        config.require_credentials()

        self.config = config
        self.gateway = gateway if gateway is not None else GitLabService(config)
        self.project_id: Optional[Union[str, int]] = None
        self.classifier: Optional[BranchClassifier] = None
        self.executor: Optional[BatchOperationExecutor] = None
        self._model: Optional[SelectionModel] = None

        # One background worker: batches never overlap
        self._worker = ThreadPoolExecutor(max_workers=1, thread_name_prefix="branch-batch")
        self._batch_lock = threading.Lock()
        self._cancel_event = threading.Event()
        self._pause_event = threading.Event()
        self._future: Optional[Future] = None

    @property
    def model(self) -> SelectionModel:
        """The canonical selection model of the loaded project."""
        if self._model is None:
            raise GitLabBranchKeeperError("No project loaded")
        return self._model

    @property
    def busy(self) -> bool:
        return self._model is not None and self._model.busy

    def test_connection(self) -> dict:
        return self.gateway.test_connection()

    def list_projects(self) -> List[Project]:
        return self.gateway.list_projects()

    def _fetch_records(self) -> List[BranchRecord]:
        raw_entries = self.gateway.list_branches(self.project_id)
        records = self.classifier.build_records(raw_entries)
        logger.info(f"Loaded {len(records)} branches from project {self.project_id}")
        return records

    def _initial_target(self, records: Sequence[BranchRecord]) -> Optional[str]:
        target = self.config.target_branch
        if target and not any(r.name == target for r in records):
            logger.warning(f"Target branch {target} not found in project {self.project_id}")
            return None
        return target

    def load_project(self, project_id: Union[str, int]) -> SelectionModel:
        """Fetch and classify the branches of a project and make it current."""
        if self.busy:
            raise BatchInProgressError()

        self.project_id = project_id
        self.classifier = BranchClassifier(self.gateway, project_id, self.config)
        self.executor = BatchOperationExecutor(self.gateway, project_id, self.config)

        records = self._fetch_records()
        self._model = SelectionModel(records, classifier=self.classifier, project_id=project_id)
        self._model.set_target_branch(self._initial_target(records))
        return self._model

    def refresh(self) -> SelectionModel:
        """Re-fetch the current project, keeping selection of unchanged branches."""
        model = self.model
        if model.busy:
            raise BatchInProgressError()

        selected = {record.identity for record in model.selected()}
        records = self._fetch_records()
        for record in records:
            record.is_selected = record.identity in selected

        model.replace_all(records)
        target = model.target_branch
        if target and model.find(target) is None:
            logger.warning(f"Target branch {target} no longer exists")
            target = None
        model.set_target_branch(target)
        return model

    def set_target_branch(self, name: Optional[str]) -> None:
        self.model.set_target_branch(name)

    def create_snapshot(self) -> SelectionModel:
        """Independent copy of the canonical model for a confirmation step."""
        return self.model.snapshot_copy()

    def submit_batch(
        self,
        confirmed: Sequence[BranchRecord],
        mode: OperationMode,
        on_progress: Optional[ProgressCallback] = None,
        on_complete: Optional[CompletionCallback] = None,
    ) -> Future:
        """Start a batch on the background worker.

        When it finishes the result is reconciled into the canonical model
        and then passed to on_complete.

        Raises:
            BatchInProgressError: If a batch is already running
        """
        model = self.model
        with self._batch_lock:
            if model.busy:
                raise BatchInProgressError()
            model.busy = True
            self._cancel_event.clear()
            self._pause_event.clear()

        confirmed = list(confirmed)
        logger.debug(f"Submitting {mode.value} batch of {len(confirmed)} branches")
        try:
            self._future = self._worker.submit(
                self._run_and_reconcile, confirmed, mode, on_progress, on_complete
            )
        except RuntimeError:
            model.busy = False
            raise
        return self._future

    def _run_and_reconcile(
        self,
        confirmed: List[BranchRecord],
        mode: OperationMode,
        on_progress: Optional[ProgressCallback],
        on_complete: Optional[CompletionCallback],
    ) -> OperationResult:
        model = self.model
        try:
            result = self.executor.run(
                confirmed,
                mode,
                cancel_event=self._cancel_event,
                pause_event=self._pause_event,
                on_progress=on_progress,
            )
            reconcile(model, result)
        finally:
            model.busy = False

        if on_complete:
            on_complete(result)
        return result

    def run_batch(
        self,
        confirmed: Sequence[BranchRecord],
        mode: OperationMode,
        on_progress: Optional[ProgressCallback] = None,
    ) -> OperationResult:
        """Run a batch and wait for it.

        Ctrl+C requests cancellation; the branch in flight still completes.
        """
        future = self.submit_batch(confirmed, mode, on_progress)
        try:
            return future.result()
        except KeyboardInterrupt:
            logger.warning("Interrupted, finishing the current branch before stopping")
            self.cancel()
            return future.result()

    def cancel(self) -> None:
        """Request cancellation of the running batch."""
        if self.busy:
            logger.info("Cancellation requested")
        self._cancel_event.set()
        self._pause_event.clear()

    def pause(self) -> None:
        self._pause_event.set()

    def resume(self) -> None:
        self._pause_event.clear()

    @property
    def paused(self) -> bool:
        return self._pause_event.is_set()

    def close(self) -> None:
        """Clean up resources and close connections."""
        logger.debug("Closing BranchKeeper resources")
        if self.busy:
            self.cancel()
        self._worker.shutdown(wait=True)
        try:
            self.gateway.close()
        except Exception as e:
            logger.debug(f"Error during cleanup: {e}")
