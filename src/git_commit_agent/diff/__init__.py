"""
Collection of pending changes from the working tree.

The :mod:`git_commit_agent.diff.change_collector` module enumerates
staged, unstaged and untracked files and reads a bounded excerpt for
each of them.
"""

from .change_collector import DEFAULT_MAX_LINES, collect_changes  # noqa: F401
