"""
Data models for commit plans.

A :class:`CommitPlan` describes how the pending changes of a working
tree are split into commits. Each :class:`CommitGroup` is one intended
commit: the files to stage and the message to commit them with. Plans
are produced from model output by :meth:`CommitPlan.from_dict`, which
is also the structural validator.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List


CONVENTIONAL_TYPES = ("feat", "fix", "docs", "style", "refactor", "test", "chore")

_CONVENTIONAL_RE = re.compile(
    r"^(?:%s)(?:\([^()\s][^()]*\))?!?: \S" % "|".join(CONVENTIONAL_TYPES)
)


class PlanError(Exception):
    """Base class for problems with a commit plan produced by the model.

    ``raw_text`` holds the model output the plan came from, when known.
    """

    def __init__(self, message: str, raw_text: str = "") -> None:
        super().__init__(message)
        self.raw_text = raw_text


class PlanParseError(PlanError):
    """Raised when the model output does not contain parseable JSON."""

    pass


class PlanValidationError(PlanError):
    """Raised when parsed JSON does not have the shape of a commit plan."""

    pass


def is_conventional(message: str) -> bool:
    """Return True if the first line of ``message`` is a conventional commit subject.

    >>> is_conventional("feat(cli): add --yes flag")
    True
    >>> is_conventional("Added stuff")
    False
    """
    subject = message.strip().splitlines()[0] if message.strip() else ""
    return bool(_CONVENTIONAL_RE.match(subject))


@dataclass
class CommitGroup:
    """Representation of one planned commit.

    Attributes
    ----------
    files : List[str]
        Paths to stage, relative to the repository root.
    message : str
        Commit message, stored verbatim.
    """

    files: List[str]
    message: str

    @property
    def is_conventional(self) -> bool:
        return is_conventional(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {"files": list(self.files), "message": self.message}


@dataclass
class CommitPlan:
    """An ordered list of commit groups plus the model's rationale."""

    rationale: str = ""
    commits: List[CommitGroup] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.commits

    @property
    def files(self) -> List[str]:
        """All files referenced by the plan, in first-seen order."""
        seen: Dict[str, None] = {}
        for group in self.commits:
            for path in group.files:
                seen.setdefault(path, None)
        return list(seen)

    def to_dict(self) -> Dict[str, Any]:
        return {"plan": self.rationale, "commits": [group.to_dict() for group in self.commits]}

    def to_json(self, indent: Any = None) -> str:
        return json.dumps(self.to_dict(), indent=indent, ensure_ascii=False)

    @classmethod
    def from_dict(cls, data: Any) -> "CommitPlan":
        """Build a plan from decoded JSON, checking its structure.

        An empty ``commits`` list is accepted here; refusing to execute
        it is the executor's job.

        Raises
        ------
        PlanValidationError
            If ``data`` is not an object with a ``commits`` list of
            ``{files: [str], message: str}`` entries, or if ``plan`` is
            present and not a string.
        """
        if not isinstance(data, dict):
            raise PlanValidationError("plan must be a JSON object")
        rationale = data.get("plan", "")
        if rationale is None:
            rationale = ""
        if not isinstance(rationale, str):
            raise PlanValidationError("'plan' must be a string")
        if "commits" not in data:
            raise PlanValidationError("plan is missing the 'commits' field")
        raw_commits = data["commits"]
        if not isinstance(raw_commits, list):
            raise PlanValidationError("'commits' must be a list")

        commits: List[CommitGroup] = []
        for index, entry in enumerate(raw_commits, start=1):
            if not isinstance(entry, dict):
                raise PlanValidationError(f"commit {index} must be an object")
            files = entry.get("files")
            message = entry.get("message")
            if not isinstance(files, list) or not all(isinstance(f, str) for f in files):
                raise PlanValidationError(f"commit {index}: 'files' must be a list of strings")
            if not isinstance(message, str) or not message.strip():
                raise PlanValidationError(f"commit {index}: 'message' must be a non-empty string")
            commits.append(CommitGroup(files=[f for f in files if f.strip()], message=message))
        return cls(rationale=rationale, commits=commits)
