"""Configuration handling for gitlab-branch-keeper"""

import os
from dataclasses import dataclass, field
from typing import Optional, List

from gitlab_branch_keeper.constants import DEFAULT_ARCHIVE_PREFIX, DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from gitlab_branch_keeper.exceptions import ConfigurationError


@dataclass
class Config:
    """Configuration for gitlab-branch-keeper with validation."""

    # Hosting endpoint
    gitlab_url: Optional[str] = None
    api_token: Optional[str] = None
    verify_ssl: bool = True
    timeout: float = 30.0
    page_size: int = DEFAULT_PAGE_SIZE

    # Branch handling
    archive_prefix: str = DEFAULT_ARCHIVE_PREFIX
    target_branch: Optional[str] = None
    ignore_patterns: List[str] = field(default_factory=list)

    # Execution modes
    dry_run: bool = False
    force: bool = False
    verbose: bool = False
    debug: bool = False
    sequential: bool = False  # Force sequential merge checks
    workers: Optional[int] = None  # Number of parallel workers (None = auto-detect)

    def __post_init__(self):
        """Validate configuration after initialization."""
        if not self.api_token:
            self.api_token = os.environ.get("GITLAB_TOKEN")
        self._validate_gitlab_url()
        self._validate_archive_prefix()
        self._validate_page_size()
        self._validate_timeout()
        self._validate_target_branch()
        self._validate_workers()

    def _validate_gitlab_url(self):
        """Normalize gitlab_url and make sure it is an http(s) URL."""
        if self.gitlab_url is None:
            return
        url = self.gitlab_url.strip().rstrip("/")
        if not url:
            self.gitlab_url = None
            return
        if not url.startswith(("http://", "https://")):
            raise ValueError(f"gitlab_url must start with http:// or https://, got '{self.gitlab_url}'")
        self.gitlab_url = url

    def _validate_archive_prefix(self):
        """Validate archive_prefix is not empty."""
        if not self.archive_prefix or not self.archive_prefix.strip():
            raise ValueError("archive_prefix cannot be empty")
        self.archive_prefix = self.archive_prefix.strip()

    def _validate_page_size(self):
        """Validate page_size is within the range the API accepts."""
        if not 1 <= self.page_size <= MAX_PAGE_SIZE:
            raise ValueError(f"page_size must be between 1 and {MAX_PAGE_SIZE}, got {self.page_size}")

    def _validate_timeout(self):
        if self.timeout <= 0:
            raise ValueError(f"timeout must be positive, got {self.timeout}")

    def _validate_target_branch(self):
        if self.target_branch is not None:
            self.target_branch = self.target_branch.strip() or None

    def _validate_workers(self):
        if self.workers is not None and self.workers <= 0:
            raise ValueError(f"workers must be positive, got {self.workers}")

    def is_configuration_valid(self) -> bool:
        """True when both the endpoint and the credential are set."""
        return bool(self.gitlab_url and self.api_token)

    def require_credentials(self) -> None:
        """Raise ConfigurationError unless the endpoint and token are configured."""
        if not self.gitlab_url:
            raise ConfigurationError(
                "GitLab URL is not configured. Pass --url or set 'gitlab_url' in the config"
            )
        if not self.api_token:
            raise ConfigurationError(
                "GitLab API token is not configured. Set GITLAB_TOKEN or pass --token"
            )

    def to_dict(self) -> dict:
        """Convert config to dictionary."""
        return {
            "gitlab_url": self.gitlab_url,
            "api_token": self.api_token,
            "verify_ssl": self.verify_ssl,
            "timeout": self.timeout,
            "page_size": self.page_size,
            "archive_prefix": self.archive_prefix,
            "target_branch": self.target_branch,
            "ignore_patterns": self.ignore_patterns,
            "dry_run": self.dry_run,
            "force": self.force,
            "verbose": self.verbose,
            "debug": self.debug,
            "sequential": self.sequential,
            "workers": self.workers,
        }

    def get(self, key: str, default=None):
        """Get config value by key, mirroring dict access."""
        return getattr(self, key, default)

    @classmethod
    def from_dict(cls, config_dict: dict) -> "Config":
        """Create Config from dictionary, ignoring unknown keys."""
        known_fields = {
            "gitlab_url",
            "api_token",
            "verify_ssl",
            "timeout",
            "page_size",
            "archive_prefix",
            "target_branch",
            "ignore_patterns",
            "dry_run",
            "force",
            "verbose",
            "debug",
            "sequential",
            "workers",
        }

        filtered = {k: v for k, v in config_dict.items() if k in known_fields}
        return cls(**filtered)
