"""
File-type grouping of changes.

Used when the model cannot produce a usable plan and the operator asks
for a simple grouping instead. See
:mod:`git_commit_agent.grouping.change_classifier`.
"""

from .change_classifier import classify_change, group_by_file_type  # noqa: F401
