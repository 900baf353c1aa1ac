"""
Execution of a commit plan against a Git repository.

Every commit group runs through the same small state machine::

    PENDING -> STAGING -> STAGED | STAGE_FAILED
    STAGED  -> COMMITTED | COMMIT_FAILED

Staging always starts from an empty index so that nothing staged by a
previous group, or before the run, leaks into the commit. The first
group that ends in a failed state aborts the rest of the plan. Commits
created before the failure are kept; the report says how far the plan
got.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from typing import List, Optional

from git_commit_agent.planning.plan_model import CommitGroup, CommitPlan
from git_commit_agent.vcs.git_client import GitError


logger = logging.getLogger(__name__)
if not logger.handlers:
    logger.addHandler(logging.NullHandler())

NO_COMMITS_MESSAGE = "No commits found in the plan."
NOTHING_STAGED_MESSAGE = "No files were staged for this commit."


class GroupState(enum.Enum):
    PENDING = "pending"
    STAGING = "staging"
    STAGED = "staged"
    STAGE_FAILED = "stage_failed"
    COMMITTED = "committed"
    COMMIT_FAILED = "commit_failed"


@dataclass
class GroupResult:
    """Outcome of executing a single commit group."""

    group: CommitGroup
    state: GroupState = GroupState.PENDING
    staged_files: List[str] = field(default_factory=list)
    skipped_files: List[str] = field(default_factory=list)
    commit_hash: Optional[str] = None
    error: Optional[str] = None

    @property
    def failed(self) -> bool:
        return self.state in (GroupState.STAGE_FAILED, GroupState.COMMIT_FAILED)


@dataclass
class ExecutionReport:
    """Outcome of executing a whole plan."""

    results: List[GroupResult] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def committed(self) -> int:
        return sum(1 for result in self.results if result.state is GroupState.COMMITTED)

    @property
    def succeeded(self) -> bool:
        return (
            self.error is None
            and bool(self.results)
            and all(result.state is GroupState.COMMITTED for result in self.results)
        )


class ExecutionReporter:
    """Progress hook called by :class:`PlanExecutor`.

    The default implementation only logs. Front ends subclass it to
    print a confirmation for every staged file and every commit.
    """

    def commit_started(self, index: int, total: int, group: CommitGroup) -> None:
        logger.info("Commit %d/%d: %s", index, total, group.message)

    def file_staged(self, path: str) -> None:
        logger.info("Staged: %s", path)

    def file_skipped(self, path: str, reason: str) -> None:
        logger.warning("Skipping %s: %s", path, reason)

    def commit_created(self, result: GroupResult) -> None:
        logger.info("Commit created: %s", result.commit_hash or "")

    def group_failed(self, result: GroupResult) -> None:
        logger.error("Commit group failed: %s", result.error)

    def plan_failed(self, message: str) -> None:
        logger.error(message)


class PlanExecutor:
    """Apply a :class:`CommitPlan` to the repository, one group at a time.

    The executor is the only writer of the index and HEAD while it
    runs and never mutates the plan it is given.
    """

    def __init__(self, vcs_client: any, reporter: Optional[ExecutionReporter] = None) -> None:
        self.vcs_client = vcs_client
        self.reporter = reporter or ExecutionReporter()

    def execute(self, plan: CommitPlan) -> ExecutionReport:
        report = ExecutionReport(results=[GroupResult(group=group) for group in plan.commits])
        if plan.is_empty:
            report.error = NO_COMMITS_MESSAGE
            self.reporter.plan_failed(NO_COMMITS_MESSAGE)
            return report

        total = len(report.results)
        for index, result in enumerate(report.results, start=1):
            self.reporter.commit_started(index, total, result.group)
            self._stage(result)
            if result.state is GroupState.STAGED:
                self._commit(result)
            if result.failed:
                report.error = f"Commit {index}/{total} failed: {result.error}"
                self.reporter.group_failed(result)
                # Remaining groups stay PENDING.
                break
            self.reporter.commit_created(result)
        return report

    def _stage(self, result: GroupResult) -> None:
        result.state = GroupState.STAGING
        client = self.vcs_client
        try:
            client.reset_index()
        except GitError as exc:
            result.state = GroupState.STAGE_FAILED
            result.error = f"Could not reset the index: {exc}"
            return

        for path in result.group.files:
            if not (client.exists_on_disk(path) or client.is_tracked(path)):
                result.skipped_files.append(path)
                self.reporter.file_skipped(path, "File not found")
                continue
            try:
                client.stage_file(path)
            except GitError as exc:
                result.skipped_files.append(path)
                self.reporter.file_skipped(path, str(exc))
                continue
            result.staged_files.append(path)
            self.reporter.file_staged(path)

        try:
            staged = client.staged_names()
        except GitError as exc:
            result.state = GroupState.STAGE_FAILED
            result.error = f"Could not inspect the index: {exc}"
            return
        if not staged:
            result.state = GroupState.STAGE_FAILED
            result.error = NOTHING_STAGED_MESSAGE
            return
        result.state = GroupState.STAGED

    def _commit(self, result: GroupResult) -> None:
        try:
            result.commit_hash = self.vcs_client.commit(result.group.message)
        except GitError as exc:
            result.state = GroupState.COMMIT_FAILED
            result.error = f"Commit failed: {exc}"
            return
        result.state = GroupState.COMMITTED
