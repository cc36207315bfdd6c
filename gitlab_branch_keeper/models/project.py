"""Project data model."""

from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass
class Project:
    """A GitLab project the token has access to."""

    id: int
    name: str
    path: str
    namespace_path: Optional[str] = None

    @property
    def path_name(self) -> str:
        """Full ``namespace/path`` of the project, or its name if no namespace is known."""
        if self.namespace_path:
            return f"{self.namespace_path}/{self.path}"
        return self.name

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "Project":
        namespace = data.get("namespace") or {}
        namespace_path = namespace.get("full_path")
        full_path = data.get("path_with_namespace") or ""
        if not namespace_path and "/" in full_path:
            # path_with_namespace already ends in the project path
            namespace_path = full_path.rsplit("/", 1)[0]
        return cls(
            id=data["id"],
            name=data.get("name", ""),
            path=data.get("path", ""),
            namespace_path=namespace_path,
        )

    def __str__(self) -> str:
        return f"{self.path_name} (#{self.id})"
