"""Core session handling for gitlab-branch-keeper."""

from .branch_keeper import BranchKeeper

__all__ = ["BranchKeeper"]
