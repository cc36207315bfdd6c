"""Ordered, observable collection of branch records"""

import threading
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterable, Iterator, List, Optional, Tuple, Union, TYPE_CHECKING

from gitlab_branch_keeper.exceptions import BatchInProgressError
from gitlab_branch_keeper.logging_config import get_logger
from gitlab_branch_keeper.models.branch import BranchRecord, MergeState

if TYPE_CHECKING:
    from gitlab_branch_keeper.services.branch_classifier import BranchClassifier

logger = get_logger(__name__)


class ChangeKind(Enum):
    """Kinds of mutation a SelectionModel reports to subscribers."""
    SELECTION = "selection"
    TARGET_CHANGED = "target-changed"
    RECORDS_REPLACED = "records-replaced"
    RECORDS_REMOVED = "records-removed"
    RECORD_RENAMED = "record-renamed"
    BUSY = "busy"


@dataclass(frozen=True)
class ModelChange:
    """Change notification delivered to subscribers."""
    kind: ChangeKind
    names: Tuple[str, ...] = ()


Listener = Callable[[ModelChange], None]
Identity = Tuple[str, str]


def _sort_key(record: BranchRecord) -> str:
    return record.name.lower()


class SelectionModel:
    """Records of one working context, kept sorted case-insensitively by name.

    The canonical model is bound to the loaded project. A confirmation step
    works on ``snapshot_copy()``, which shares no record objects with it.
    """

    def __init__(
        self,
        records: Iterable[BranchRecord] = (),
        classifier: Optional["BranchClassifier"] = None,
        project_id: Optional[Union[str, int]] = None,
        target_branch: Optional[str] = None,
    ):
        self.classifier = classifier
        self.project_id = project_id
        self._records: List[BranchRecord] = sorted(records, key=_sort_key)
        self._target_branch = target_branch
        self._listeners: List[Listener] = []
        self._busy = False
        self._lock = threading.RLock()

    # Observation

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a change listener and return a callable that removes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _emit(self, kind: ChangeKind, names: Iterable[str] = ()) -> None:
        change = ModelChange(kind, tuple(names))
        for listener in list(self._listeners):
            try:
                listener(change)
            except Exception as e:
                logger.error(f"Change listener failed for {kind.value}: {e}")

    # Read access

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[BranchRecord]:
        return iter(list(self._records))

    @property
    def records(self) -> List[BranchRecord]:
        return list(self._records)

    def names(self) -> List[str]:
        return [record.name for record in self._records]

    def selected(self) -> List[BranchRecord]:
        return [record for record in self._records if record.is_selected]

    def find(self, name: str, sha: Optional[str] = None) -> Optional[BranchRecord]:
        """Return the record with this name (and SHA, when given)."""
        for record in self._records:
            if record.name == name and (sha is None or record.last_commit_sha == sha):
                return record
        return None

    def _find_identity(self, identity: Identity) -> Optional[BranchRecord]:
        name, sha = identity
        return self.find(name, sha)

    @property
    def target_branch(self) -> Optional[str]:
        return self._target_branch

    def is_target(self, record: BranchRecord) -> bool:
        return self._target_branch is not None and record.name == self._target_branch

    @property
    def busy(self) -> bool:
        return self._busy

    @busy.setter
    def busy(self, value: bool) -> None:
        self._busy = value
        self._emit(ChangeKind.BUSY)

    # Mutation

    def replace_all(self, records: Iterable[BranchRecord]) -> None:
        """Swap in a freshly fetched record set."""
        with self._lock:
            self._records = sorted(records, key=_sort_key)
        self._emit(ChangeKind.RECORDS_REPLACED, self.names())

    def set_target_branch(self, name: Optional[str]) -> None:
        """Change the target branch and recompute every record's merge state."""
        if self._busy:
            raise BatchInProgressError()

        name = name or None
        with self._lock:
            self._target_branch = name
            for record in self._records:
                if self.is_target(record):
                    record.is_selected = False

            if self.classifier is not None:
                self.classifier.classify(self._records, name)
            else:
                for record in self._records:
                    record.merge_state = MergeState.UNKNOWN

        logger.debug(f"Target branch set to {name}")
        self._emit(ChangeKind.TARGET_CHANGED, self.names())

    def bulk_set_selected(self, predicate: Callable[[BranchRecord], bool], value: bool) -> int:
        """Set is_selected on every matching record.

        The target branch is never selected. Returns how many records changed.
        """
        changed = []
        with self._lock:
            for record in self._records:
                if not predicate(record):
                    continue
                if value and self.is_target(record):
                    continue
                if record.is_selected != value:
                    record.is_selected = value
                    changed.append(record.name)

        if changed:
            self._emit(ChangeKind.SELECTION, changed)
        return len(changed)

    def toggle_selected(self, record: BranchRecord) -> bool:
        """Flip one record's selection and return its new value."""
        if self.is_target(record) and not record.is_selected:
            logger.warning(f"Branch {record.name} is the target branch and cannot be selected")
            return False
        with self._lock:
            record.is_selected = not record.is_selected
        self._emit(ChangeKind.SELECTION, [record.name])
        return record.is_selected

    def select_all(self) -> int:
        return self.bulk_set_selected(lambda r: not r.is_protected, True)

    def deselect_all(self) -> int:
        return self.bulk_set_selected(lambda r: True, False)

    def invert_selection(self) -> int:
        """Flip selection of every non-protected record."""
        changed = []
        with self._lock:
            for record in self._records:
                if record.is_protected:
                    continue
                if not record.is_selected and self.is_target(record):
                    continue
                record.is_selected = not record.is_selected
                changed.append(record.name)

        if changed:
            self._emit(ChangeKind.SELECTION, changed)
        return len(changed)

    def remove(self, identity: Identity) -> bool:
        """Drop the record with this (name, sha) identity."""
        with self._lock:
            record = self._find_identity(identity)
            if record is None:
                return False
            self._records.remove(record)
        self._emit(ChangeKind.RECORDS_REMOVED, [identity[0]])
        return True

    def rename(self, identity: Identity, new_name: str) -> bool:
        """Rename the record with this identity in place, keeping its flags."""
        with self._lock:
            record = self._find_identity(identity)
            if record is None:
                return False
            record.name = new_name
            self._records.sort(key=_sort_key)
        self._emit(ChangeKind.RECORD_RENAMED, [identity[0], new_name])
        return True

    def snapshot_copy(self) -> "SelectionModel":
        """Independent duplicate for a confirmation step.

        Records are copied, the target and classifier carry over, and
        listeners do not.
        """
        with self._lock:
            copies = [record.copy() for record in self._records]
        return SelectionModel(
            copies,
            classifier=self.classifier,
            project_id=self.project_id,
            target_branch=self._target_branch,
        )

    def __repr__(self) -> str:
        return (
            f"SelectionModel({len(self._records)} records, "
            f"target={self._target_branch!r}, selected={len(self.selected())})"
        )
