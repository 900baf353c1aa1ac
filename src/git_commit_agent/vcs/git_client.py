"""
Git client implementation for git_commit_agent.

This module wraps the Git operations required by the commit agent:
listing staged, unstaged and untracked files, reading bounded diffs,
and the index/commit primitives used when a commit plan is executed.
All subprocess calls go through :meth:`GitClient._run` so that unit
tests can mock them easily.
"""

from __future__ import annotations

import enum
import logging
import subprocess
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import List, Optional


logger = logging.getLogger(__name__)
# Attach a null handler to avoid logging errors when the root logger is not
# configured. Logs will propagate to the root when configured by the CLI.
if not logger.handlers:
    logger.addHandler(logging.NullHandler())


class ChangeStatus(enum.Enum):
    """Where a pending change lives relative to the Git index."""

    STAGED = "STAGED"
    UNSTAGED = "UNSTAGED"
    UNTRACKED = "UNTRACKED"


@dataclass(frozen=True)
class FileChange:
    """A single pending file change and its bounded excerpt.

    ``excerpt`` holds the diff text for staged and unstaged changes and
    the head of the file for untracked ones. It may be empty when
    nothing could be read.
    """

    path: str
    status: ChangeStatus
    excerpt: str = ""

    def __post_init__(self) -> None:
        if not isinstance(self.status, ChangeStatus):
            # Accept the tag names but reject anything outside the enum.
            object.__setattr__(self, "status", ChangeStatus(self.status))


class GitError(Exception):
    """Raised when a Git command fails."""

    pass


def _split_nul(output: str) -> List[str]:
    return [entry for entry in output.split("\0") if entry]


class GitClient:
    """Client for interacting with a Git repository."""

    def __init__(self, repo_root: Path) -> None:
        self.repo_root = Path(repo_root)

    # ------------------------------------------------------------------
    # Static helpers
    # ------------------------------------------------------------------
    @staticmethod
    def find_repo_root(start: Path) -> Optional[Path]:
        """Find the root of the Git repository starting from ``start``.

        Walk upwards until a ``.git`` entry is found or the filesystem
        root is reached.
        """
        current = Path(start).resolve()
        while True:
            if (current / ".git").exists():
                return current
            if current.parent == current:
                # reached filesystem root
                return None
            current = current.parent

    # ------------------------------------------------------------------
    # Basic Git commands
    # ------------------------------------------------------------------
    def _run(self, args: List[str], check: bool = True) -> subprocess.CompletedProcess:
        """Run a Git command in the repository root.

        Raises
        ------
        GitError
            If the command exits with a non-zero status when ``check`` is
            True, or if the ``git`` executable cannot be started.
        """
        full_cmd = ["git"] + args
        logger.debug("Executing Git command: %s", " ".join(full_cmd))
        try:
            result = subprocess.run(
                full_cmd,
                cwd=self.repo_root,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                encoding="utf-8",
                errors="replace",
            )
        except OSError as exc:
            logger.error("Failed to execute git: %s", exc)
            raise GitError(f"Failed to execute git: {exc}") from exc

        if check and result.returncode != 0:
            logger.error(
                "Git command failed: %s\nSTDOUT: %s\nSTDERR: %s",
                " ".join(full_cmd),
                result.stdout,
                result.stderr,
            )
            raise GitError(result.stderr.strip() or result.stdout.strip())
        return result

    # ------------------------------------------------------------------
    # Change detection
    # ------------------------------------------------------------------
    def list_staged(self) -> List[str]:
        """Return paths with changes recorded in the index."""
        result = self._run(["diff", "--staged", "--name-only", "-z"])
        return _split_nul(result.stdout)

    def list_unstaged(self) -> List[str]:
        """Return tracked paths modified in the working tree but not indexed."""
        result = self._run(["diff", "--name-only", "-z"])
        return _split_nul(result.stdout)

    def list_untracked(self) -> List[str]:
        """Return new paths that are neither indexed nor ignored."""
        result = self._run(["ls-files", "--others", "--exclude-standard", "-z"])
        return _split_nul(result.stdout)

    def get_staged_diff(self, path: str) -> str:
        return self._run(["diff", "--staged", "--", path]).stdout

    def get_unstaged_diff(self, path: str) -> str:
        return self._run(["diff", "--", path]).stdout

    def read_head_lines(self, path: str, max_lines: int) -> str:
        """Return at most ``max_lines`` lines of a working tree file.

        Raises
        ------
        OSError
            If the file cannot be read.
        """
        lines: List[str] = []
        with open(self.repo_root / path, "r", encoding="utf-8", errors="replace") as handle:
            for line in handle:
                if len(lines) >= max_lines:
                    break
                lines.append(line)
        return "".join(lines)

    # ------------------------------------------------------------------
    # Index and commits
    # ------------------------------------------------------------------
    def has_head(self) -> bool:
        """Return True once the current branch has at least one commit."""
        result = self._run(["rev-parse", "--verify", "--quiet", "HEAD"], check=False)
        return result.returncode == 0

    def reset_index(self) -> None:
        """Unstage everything, leaving the working tree untouched."""
        if self.has_head():
            self._run(["reset", "--quiet"])
        else:
            # An unborn branch has no HEAD to reset to; empty the index instead.
            self._run(["rm", "--cached", "-r", "--quiet", "--ignore-unmatch", "--", "."])

    def is_tracked(self, path: str) -> bool:
        """Return True if ``path`` itself is a file known to the index.

        A directory also satisfies ``--error-unmatch`` and is rejected.
        """
        result = self._run(["ls-files", "--error-unmatch", "-z", "--", path], check=False)
        if result.returncode != 0:
            return False
        return PurePosixPath(path).as_posix() in _split_nul(result.stdout)

    def exists_on_disk(self, path: str) -> bool:
        """Return True if ``path`` is a regular file in the working tree."""
        return (self.repo_root / path).is_file()

    def stage_file(self, path: str) -> None:
        """Stage ``path``; deletions of tracked files are staged too."""
        self._run(["add", "-A", "--", path])

    def staged_names(self) -> List[str]:
        return self.list_staged()

    def commit(self, message: str) -> str:
        """Create a commit with the given message and return its short hash.

        Multi-line commit messages are supported. If the commit fails,
        a GitError is raised.
        """
        self._run(["commit", "-m", message])
        result = self._run(["rev-parse", "--short", "HEAD"], check=False)
        return result.stdout.strip()
