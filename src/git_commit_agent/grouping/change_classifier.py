"""
Heuristics for grouping changed files by type.

This is the deterministic fallback offered when the model's plan is
unusable. Files are bucketed by name and extension only, so it can be
unit tested without a language model. Each bucket maps to a fixed
conventional commit message.
"""

from __future__ import annotations

from pathlib import PurePosixPath
from typing import Dict, Iterable, List

from git_commit_agent.planning.plan_model import CommitGroup, CommitPlan


DOCS = "docs"
CONFIG = "config"
SCRIPTS = "scripts"
OTHER = "other"

# Bucket order is also the commit order.
GROUP_MESSAGES = {
    DOCS: "docs: update documentation",
    CONFIG: "chore: update configuration",
    SCRIPTS: "feat: enhance script functionality",
    OTHER: "chore: update miscellaneous files",
}

FALLBACK_RATIONALE = "Grouped changes by file type."

_DOC_SUFFIXES = {".md", ".txt", ".rst", ".adoc"}
_CONFIG_SUFFIXES = {".json", ".yaml", ".yml", ".toml", ".ini", ".conf"}
_CONFIG_NAMES = {"Modelfile"}
_SCRIPT_SUFFIXES = {".sh", ".py", ".js", ".ts", ".rb", ".go"}


def classify_change(file_path: str) -> str:
    """Return the bucket name for ``file_path``.

    Parameters
    ----------
    file_path : str
        Path of the changed file relative to the repository root.

    Returns
    -------
    str
        One of ``docs``, ``config``, ``scripts`` or ``other``.
    """
    path = PurePosixPath(file_path)
    suffix = path.suffix.lower()
    if suffix in _DOC_SUFFIXES:
        return DOCS
    if path.name in _CONFIG_NAMES or suffix in _CONFIG_SUFFIXES:
        return CONFIG
    if suffix in _SCRIPT_SUFFIXES:
        return SCRIPTS
    return OTHER


def group_by_file_type(paths: Iterable[str]) -> CommitPlan:
    """Build a commit plan with one group per non-empty bucket."""
    buckets: Dict[str, List[str]] = {name: [] for name in GROUP_MESSAGES}
    for path in dict.fromkeys(paths):
        buckets[classify_change(path)].append(path)
    commits = [
        CommitGroup(files=files, message=GROUP_MESSAGES[name])
        for name, files in buckets.items()
        if files
    ]
    return CommitPlan(rationale=FALLBACK_RATIONALE, commits=commits)
