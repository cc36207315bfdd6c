"""Service for classifying branches against a target branch"""

from concurrent.futures import ThreadPoolExecutor, as_completed
from fnmatch import fnmatch
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Union, TYPE_CHECKING

from gitlab_branch_keeper.constants import MAX_API_WORKERS
from gitlab_branch_keeper.exceptions import TransportError
from gitlab_branch_keeper.logging_config import get_logger
from gitlab_branch_keeper.models.branch import BranchRecord, MergeState
from gitlab_branch_keeper.utils.threading import get_optimal_worker_count

if TYPE_CHECKING:
    from gitlab_branch_keeper.config import Config
    from gitlab_branch_keeper.services.gitlab_service import GitLabService

logger = get_logger(__name__)

ProgressCallback = Callable[[int, int], None]


class BranchClassifier:
    """Determines merge status of branches and builds records from API entries."""

    def __init__(
        self,
        gateway: "GitLabService",
        project_id: Union[str, int],
        config: Union["Config", dict],
    ):
        self.gateway = gateway
        self.project_id = project_id
        self.config = config
        self.debug_mode = config.get("debug", False)
        self.sequential = config.get("sequential", False)
        self.workers = config.get("workers")

    @staticmethod
    def should_ignore_branch(branch_name: str, ignore_patterns: Sequence[str]) -> bool:
        """Check if a branch name matches any of the ignore patterns."""
        return any(fnmatch(branch_name, pattern) for pattern in ignore_patterns)

    def build_records(
        self,
        raw_entries: Iterable[Dict[str, Any]],
        ignore_patterns: Optional[Sequence[str]] = None,
    ) -> List[BranchRecord]:
        """Turn raw branch entries into records, dropping ignored branches."""
        patterns = list(ignore_patterns if ignore_patterns is not None else self.config.get("ignore_patterns", []))
        records = []
        for entry in raw_entries:
            record = BranchRecord.from_api(entry)
            if patterns and self.should_ignore_branch(record.name, patterns):
                logger.debug(f"Ignoring branch {record.name} (matches ignore pattern)")
                continue
            records.append(record)
        return records

    def reset(self, records: Iterable[BranchRecord]) -> None:
        """Clear merge flags without contacting the server."""
        for record in records:
            record.merge_state = MergeState.UNKNOWN

    def classify_record(self, record: BranchRecord, target_branch: str) -> MergeState:
        """Compute the merge state of one record against target_branch."""
        if record.name == target_branch:
            # A branch can't be merged into itself
            return MergeState.NOT_MERGED
        try:
            merged = self.gateway.is_merged_into(self.project_id, record.name, target_branch)
        except TransportError as e:
            logger.error(f"Error checking merge status for branch {record.name}: {e}")
            return MergeState.UNKNOWN
        return MergeState.MERGED if merged else MergeState.NOT_MERGED

    def classify(
        self,
        records: Sequence[BranchRecord],
        target_branch: Optional[str],
        progress: Optional[ProgressCallback] = None,
    ) -> None:
        """Set merge_state on every record relative to target_branch.

        With no target branch every flag is reset and no requests are made.
        """
        if target_branch is None:
            logger.debug("No target branch selected, resetting merge flags")
            self.reset(records)
            return

        if not records:
            return

        logger.debug(f"Checking merge status of {len(records)} branches against {target_branch}")

        if self.sequential or len(records) == 1:
            results = self._classify_sequential(records, target_branch, progress)
        else:
            results = self._classify_parallel(records, target_branch, progress)

        # Applied on the calling thread so observers never see partial writes
        for record in records:
            record.merge_state = results.get(id(record), MergeState.UNKNOWN)

        merged_count = sum(1 for r in records if r.merge_state is MergeState.MERGED)
        logger.info(f"{merged_count} of {len(records)} branches are merged into {target_branch}")

    def _classify_sequential(
        self,
        records: Sequence[BranchRecord],
        target_branch: str,
        progress: Optional[ProgressCallback],
    ) -> Dict[int, MergeState]:
        results = {}
        total = len(records)
        for index, record in enumerate(records, start=1):
            results[id(record)] = self.classify_record(record, target_branch)
            if progress:
                progress(index, total)
        return results

    def _classify_parallel(
        self,
        records: Sequence[BranchRecord],
        target_branch: str,
        progress: Optional[ProgressCallback],
    ) -> Dict[int, MergeState]:
        max_workers = get_optimal_worker_count(self.workers, cap=MAX_API_WORKERS)
        logger.debug(f"Using {max_workers} workers for merge status checks")

        results = {}
        total = len(records)
        done = 0
        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            future_to_record = {
                executor.submit(self.classify_record, record, target_branch): record
                for record in records
            }
            for future in as_completed(future_to_record):
                record = future_to_record[future]
                results[id(record)] = future.result()
                done += 1
                if progress:
                    progress(done, total)
        return results
