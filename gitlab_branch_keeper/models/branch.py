"""Branch model and related enums"""
from enum import Enum
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Any, Dict, Optional, Tuple


class MergeState(Enum):
    """Merge status of a branch against the current target branch."""
    UNKNOWN = "unknown"
    MERGED = "merged"
    NOT_MERGED = "not-merged"


@dataclass(eq=False)
class BranchRecord:
    """One remote branch as seen at classification time.

    ``last_commit_sha`` is the optimistic-concurrency token used when the
    branch is deleted or archived, so it can be set exactly once.
    """
    name: str
    last_commit_sha: str
    last_commit_timestamp: str
    is_protected: bool = False
    is_default: bool = False
    developers_can_push: bool = False
    developers_can_merge: bool = False
    can_push: bool = False
    merged: bool = False  # hosting-side flag, relative to the default branch
    merge_state: MergeState = MergeState.UNKNOWN
    is_selected: bool = False

    def __setattr__(self, key: str, value: Any) -> None:
        if key == "last_commit_sha" and "last_commit_sha" in self.__dict__:
            raise AttributeError("last_commit_sha cannot be changed after fetch")
        super().__setattr__(key, value)

    @property
    def identity(self) -> Tuple[str, str]:
        return (self.name, self.last_commit_sha)

    @property
    def is_merged_into_target(self) -> bool:
        return self.merge_state is MergeState.MERGED

    @property
    def committed_at(self) -> Optional[datetime]:
        """Parsed commit timestamp, or None when it cannot be parsed."""
        if not self.last_commit_timestamp:
            return None
        try:
            return datetime.fromisoformat(self.last_commit_timestamp.replace("Z", "+00:00"))
        except (ValueError, TypeError):
            return None

    def copy(self) -> "BranchRecord":
        """Return an independent duplicate sharing no mutable state."""
        return replace(self)

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "BranchRecord":
        """Create a record from a GitLab branch API entry."""
        commit = data.get("commit") or {}
        return cls(
            name=data["name"],
            last_commit_sha=commit.get("id", ""),
            last_commit_timestamp=commit.get("committed_date") or "",
            is_protected=bool(data.get("protected", False)),
            is_default=bool(data.get("default", False)),
            developers_can_push=bool(data.get("developers_can_push", False)),
            developers_can_merge=bool(data.get("developers_can_merge", False)),
            can_push=bool(data.get("can_push", False)),
            merged=bool(data.get("merged", False)),
        )

    def __repr__(self) -> str:
        return f"BranchRecord({self.name!r} @ {self.last_commit_sha[:8]})"
