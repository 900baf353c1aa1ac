"""
Change collection utilities.

This module builds the list of :class:`FileChange` objects that feed
the summarization step. The caller provides a VCS client exposing the
listing and excerpt methods of :class:`GitClient`; the collector keeps
the three file sets disjoint, drops the agent's own entry points from
the unstaged set, and caps every excerpt at a fixed number of lines.
"""

from __future__ import annotations

import fnmatch
import io
import logging
from typing import Iterable, List, Sequence

from git_commit_agent.vcs.git_client import ChangeStatus, FileChange, GitError


logger = logging.getLogger(__name__)
if not logger.handlers:
    logger.addHandler(logging.NullHandler())

DEFAULT_MAX_LINES = 200

# Entry points of this tool. Editing them in place while the agent runs
# must not end up in the user's commits.
SELF_PATTERNS = ("git-commit-agent", "git_commit_agent.py")


def _truncate(text: str, max_lines: int) -> str:
    # Lines end at "\n" only, as in GitClient.read_head_lines.
    lines = io.StringIO(text).readlines()
    return "".join(lines[:max_lines])


def is_self_path(path: str, extra_patterns: Sequence[str] = ()) -> bool:
    """Return True if ``path`` belongs to the agent itself or is excluded."""
    basename = path.rsplit("/", 1)[-1]
    if basename in SELF_PATTERNS:
        return True
    return any(
        fnmatch.fnmatch(path, pattern) or fnmatch.fnmatch(basename, pattern)
        for pattern in extra_patterns
    )


def _read_excerpt(vcs_client: any, path: str, status: ChangeStatus, max_lines: int) -> str:
    try:
        if status is ChangeStatus.STAGED:
            return _truncate(vcs_client.get_staged_diff(path), max_lines)
        if status is ChangeStatus.UNSTAGED:
            return _truncate(vcs_client.get_unstaged_diff(path), max_lines)
        return vcs_client.read_head_lines(path, max_lines)
    except (GitError, OSError) as exc:
        # An unreadable file still counts as a change; it simply yields
        # no summary further down the pipeline.
        logger.debug("Could not read excerpt for %s (%s): %s", path, status.value, exc)
        return ""


def collect_changes(
    vcs_client: any,
    max_lines: int = DEFAULT_MAX_LINES,
    exclude: Iterable[str] = (),
) -> List[FileChange]:
    """Enumerate pending changes and read a bounded excerpt for each.

    Parameters
    ----------
    vcs_client : GitClient
        Client providing ``list_staged``, ``list_unstaged``,
        ``list_untracked``, ``get_staged_diff``, ``get_unstaged_diff``
        and ``read_head_lines``.
    max_lines : int, optional
        Maximum number of lines kept per excerpt.
    exclude : Iterable[str], optional
        Additional ``fnmatch`` patterns removed from the unstaged set.

    Returns
    -------
    List[FileChange]
        Staged changes first, then unstaged, then untracked. A path
        appears at most once.
    """
    extra_patterns = tuple(exclude)
    staged = list(dict.fromkeys(vcs_client.list_staged()))
    seen = set(staged)

    unstaged = []
    for path in vcs_client.list_unstaged():
        if path in seen:
            continue
        if is_self_path(path, extra_patterns):
            logger.debug("Skipping own file %s", path)
            continue
        unstaged.append(path)
        seen.add(path)

    untracked = [path for path in vcs_client.list_untracked() if path not in seen]

    changes: List[FileChange] = []
    for status, paths in (
        (ChangeStatus.STAGED, staged),
        (ChangeStatus.UNSTAGED, unstaged),
        (ChangeStatus.UNTRACKED, untracked),
    ):
        for path in paths:
            excerpt = _read_excerpt(vcs_client, path, status, max_lines)
            changes.append(FileChange(path=path, status=status, excerpt=excerpt))
    logger.debug(
        "Collected %d staged, %d unstaged, %d untracked change(s)",
        len(staged),
        len(unstaged),
        len(untracked),
    )
    return changes
