"""Version information for gitlab-branch-keeper."""

__version__ = "0.1.0"
