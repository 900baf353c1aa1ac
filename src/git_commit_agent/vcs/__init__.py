"""
Version control integration.

This package contains the :class:`GitClient` used to list pending
changes, read bounded diffs, and stage and commit plan groups.
"""

from .git_client import ChangeStatus, FileChange, GitClient, GitError  # noqa: F401
