"""
Commit planning pipeline.

The pipeline wires the stages together::

    collect_changes -> ChangeSummarizer -> PlanGenerator -> PlanExecutor

Every stage receives what it needs through :class:`PipelineContext`
and the collaborators handed to :class:`CommitPipeline`; nothing is
read from module-level state. This keeps each call pure given its
inputs, so a plan can be regenerated with a new hint as often as the
operator asks.
"""

from __future__ import annotations

import logging
import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional, Tuple

from git_commit_agent.config.loader import PipelineConfig
from git_commit_agent.diff.change_collector import collect_changes
from git_commit_agent.grouping.change_classifier import group_by_file_type
from git_commit_agent.llm.change_summarizer import ChangeSummarizer, ChangeSummary
from git_commit_agent.llm.plan_generator import PlanGenerator, parse_plan
from git_commit_agent.planning.plan_executor import (
    ExecutionReport,
    ExecutionReporter,
    PlanExecutor,
)
from git_commit_agent.planning.plan_model import CommitPlan
from git_commit_agent.vcs.git_client import FileChange


logger = logging.getLogger(__name__)
if not logger.handlers:
    logger.addHandler(logging.NullHandler())


class DependencyError(Exception):
    """Raised when a required external tool is not installed."""

    pass


class NotARepositoryError(Exception):
    """Raised when the working directory is not inside a Git repository."""

    pass


@dataclass(frozen=True)
class PipelineContext:
    """Explicit inputs of one pipeline run."""

    repo_root: Path
    config: PipelineConfig
    hint: str = ""


def check_environment(config: PipelineConfig, cwd: Path) -> Path:
    """Verify external tools and locate the repository root.

    Runs once before any pipeline work.

    Raises
    ------
    DependencyError
        If ``git`` is missing, or ``ollama`` is missing while the CLI
        backend is configured.
    NotARepositoryError
        If ``cwd`` is not inside a Git work tree.
    """
    if shutil.which("git") is None:
        raise DependencyError("git is not installed.")
    if config.backend == "cli" and shutil.which("ollama") is None:
        raise DependencyError("ollama is not installed.")
    result = subprocess.run(
        ["git", "rev-parse", "--show-toplevel"],
        cwd=cwd,
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        text=True,
    )
    if result.returncode != 0 or not result.stdout.strip():
        raise NotARepositoryError("Not in a git repository.")
    return Path(result.stdout.strip())


class CommitPipeline:
    """Run the collect / summarize / plan / execute stages.

    Parameters
    ----------
    context : PipelineContext
        Repository root and configuration for this run.
    vcs_client : GitClient
        Git collaborator; tests substitute a fake.
    model_client : OllamaClient or OllamaHTTPClient
        Text model collaborator; tests substitute a fake.
    """

    def __init__(self, context: PipelineContext, vcs_client: any, model_client: any) -> None:
        self.context = context
        self.vcs_client = vcs_client
        self.summarizer = ChangeSummarizer(model_client)
        self.generator = PlanGenerator(model_client)

    def collect(self) -> List[FileChange]:
        config = self.context.config
        return collect_changes(
            self.vcs_client,
            max_lines=config.max_excerpt_lines,
            exclude=config.exclude_paths,
        )

    def summarize(self, changes: Iterable[FileChange]) -> List[ChangeSummary]:
        return self.summarizer.summarize_all(
            changes, max_workers=self.context.config.summary_workers
        )

    def generate_plan(
        self,
        summaries: Iterable[ChangeSummary],
        hint: Optional[str] = None,
    ) -> Tuple[str, CommitPlan]:
        """Generate and parse a plan.

        ``hint`` overrides the context hint when given. Returns the raw
        model text together with the parsed plan.

        Raises
        ------
        LLMError, PlanParseError, PlanValidationError
        """
        effective_hint = self.context.hint if hint is None else hint
        raw_text = self.generator.generate_plan(summaries, effective_hint)
        return raw_text, parse_plan(raw_text)

    def fallback_plan(self, changes: Iterable[FileChange]) -> CommitPlan:
        return group_by_file_type(change.path for change in changes)

    def execute(
        self,
        plan: CommitPlan,
        reporter: Optional[ExecutionReporter] = None,
    ) -> ExecutionReport:
        return PlanExecutor(self.vcs_client, reporter).execute(plan)
