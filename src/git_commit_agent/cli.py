"""
Command line interface for the git_commit_agent tool.

This module defines the ``main`` function used as the entry point of
the ``git-commit-agent`` command. It checks the environment, collects
and summarizes the pending changes, lets the operator review the
generated commit plan, and executes the accepted plan. Exit codes are
listed below.
"""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Iterable, List, Optional

import click

from git_commit_agent import __version__
from git_commit_agent.config.loader import ConfigError, load_config
from git_commit_agent.llm.change_summarizer import ChangeSummary
from git_commit_agent.llm.ollama_client import LLMError, create_client
from git_commit_agent.pipeline import (
    CommitPipeline,
    DependencyError,
    NotARepositoryError,
    PipelineContext,
    check_environment,
)
from git_commit_agent.planning.plan_executor import (
    NO_COMMITS_MESSAGE,
    ExecutionReporter,
    GroupResult,
)
from git_commit_agent.planning.plan_model import (
    CommitGroup,
    CommitPlan,
    PlanParseError,
    PlanValidationError,
)
from git_commit_agent.vcs.git_client import FileChange, GitClient, GitError

logger = logging.getLogger(__name__)
if not logger.handlers:
    logger.addHandler(logging.NullHandler())


# ---------------------------------------------------------------------------
# Exit codes
# ---------------------------------------------------------------------------
EXIT_SUCCESS = 0
EXIT_GENERIC_ERROR = 1
EXIT_NO_REPO = 3
EXIT_NO_CHANGES = 4
EXIT_CONFIG_ERROR = 5
EXIT_EXECUTION_FAILED = 6
EXIT_LLM_FAILURE = 7
EXIT_MISSING_DEPENDENCY = 9

MAX_PLAN_ATTEMPTS = 10


# ---------------------------------------------------------------------------
# Progress and status display utilities
# ---------------------------------------------------------------------------

class StatusPrinter:
    """Glyph-prefixed status output that can be silenced.

    Errors are always written to stderr, even when ``quiet`` is set, so
    that ``--only-message`` keeps stdout clean for the plan JSON.
    """

    def __init__(self, quiet: bool = False) -> None:
        self.quiet = quiet

    def echo(self, message: str = "", nl: bool = True) -> None:
        if not self.quiet:
            click.echo(message, nl=nl)

    def step(self, step_num: int, total_steps: int, message: str) -> None:
        self.echo(f"\n{'=' * 60}")
        self.echo(f"Step {step_num}/{total_steps}: {message}")
        self.echo(f"{'=' * 60}")

    def info(self, message: str, indent: int = 0) -> None:
        self.echo(f"{'  ' * indent}ℹ {message}")

    def success(self, message: str, indent: int = 0) -> None:
        self.echo(f"{'  ' * indent}✓ {message}")

    def warning(self, message: str, indent: int = 0) -> None:
        self.echo(f"{'  ' * indent}⚠ {message}")

    def error(self, message: str, indent: int = 0) -> None:
        click.echo(f"{'  ' * indent}✗ {message}", err=True)


class ProgressIndicator:
    """Simple progress indicator for user feedback."""

    def __init__(self, printer: StatusPrinter, message: str) -> None:
        self.printer = printer
        self.message = message
        self.start_time = 0.0

    def __enter__(self) -> "ProgressIndicator":
        self.start_time = time.time()
        self.printer.echo(f"→ {self.message}...")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        if exc_type is None:
            elapsed = time.time() - self.start_time
            self.printer.echo(f"  ✓ Done ({elapsed:.1f}s)")
        return False


class ConsoleReporter(ExecutionReporter):
    """Print a confirmation for every staged file and every commit."""

    def __init__(self, printer: StatusPrinter) -> None:
        self.printer = printer

    def commit_started(self, index: int, total: int, group: CommitGroup) -> None:
        self.printer.echo(f"\n📝 Commit {index}/{total}: {group.message.splitlines()[0]}")

    def file_staged(self, path: str) -> None:
        self.printer.success(f"Staged: {path}", indent=1)

    def file_skipped(self, path: str, reason: str) -> None:
        self.printer.warning(f"{reason}, skipping: {path}", indent=1)

    def commit_created(self, result: GroupResult) -> None:
        suffix = f" ({result.commit_hash})" if result.commit_hash else ""
        self.printer.success(f"Commit created successfully{suffix}", indent=1)

    def group_failed(self, result: GroupResult) -> None:
        self.printer.error(result.error or "Commit failed", indent=1)

    def plan_failed(self, message: str) -> None:
        self.printer.error(message)


def display_summaries(printer: StatusPrinter, summaries: Iterable[ChangeSummary]) -> None:
    for summary in summaries:
        text = summary.summary or "(no analyzable change)"
        printer.info(f"{summary.change.path} [{summary.change.status.value}]: {text}", indent=1)


def display_plan(printer: StatusPrinter, plan: CommitPlan) -> None:
    """Show the rationale and every commit group of ``plan``."""
    printer.echo(f"\n{'─' * 60}")
    printer.echo("📋 Proposed commit plan")
    printer.echo(f"{'─' * 60}")
    if plan.rationale:
        printer.echo(f"\n💡 {plan.rationale}")
    for idx, group in enumerate(plan.commits, start=1):
        marker = "" if group.is_conventional else "  (not a conventional commit message)"
        printer.echo(f"\n{idx}. {group.message}{marker}")
        for path in group.files:
            printer.echo(f"   • {path}")
    if plan.is_empty:
        printer.warning("The plan contains no commits.")


def show_raw_output(raw_text: str) -> None:
    click.echo("Raw model output:", err=True)
    click.echo(raw_text or "(empty)", err=True)


def prompt_after_failure() -> str:
    """Ask what to do when the model produced no usable plan."""
    click.echo("\n   R = Retry | S = Simple grouping by file type | Q = Quit")
    return click.prompt(
        "   Choose action",
        type=click.Choice(["r", "s", "q"], case_sensitive=False),
        default="r",
        show_choices=True,
    ).lower()


def prompt_plan_action() -> str:
    click.echo("\n   A = Accept | F = Feedback and regenerate | R = Regenerate | Q = Quit")
    return click.prompt(
        "   Choose action",
        type=click.Choice(["a", "f", "r", "q"], case_sensitive=False),
        default="a",
        show_choices=True,
    ).lower()


def review_plan(
    pipeline: CommitPipeline,
    printer: StatusPrinter,
    changes: List[FileChange],
    summaries: List[ChangeSummary],
    hint: str,
    interactive: bool,
    only_message: bool = False,
) -> Optional[CommitPlan]:
    """Generate plans until one is accepted.

    Returns the accepted plan, or ``None`` when the operator quits.

    Raises
    ------
    click.exceptions.Exit
        With ``EXIT_LLM_FAILURE`` when no usable plan can be obtained
        without an operator, or the attempt limit is reached, and with
        ``EXIT_EXECUTION_FAILED`` when the model plans no commits and no
        operator can ask for another plan.
    """
    for attempt in range(1, MAX_PLAN_ATTEMPTS + 1):
        logger.debug("Plan attempt %d with hint %r", attempt, hint)
        try:
            with ProgressIndicator(printer, "Generating commit plan"):
                _, plan = pipeline.generate_plan(summaries, hint)
        except LLMError as exc:
            printer.error(f"LLM error: {exc}")
            printer.info("Make sure Ollama is installed and the model is available", indent=1)
            plan = None
        except PlanParseError as exc:
            printer.error(f"Failed to parse the commit plan: {exc}")
            show_raw_output(exc.raw_text)
            plan = None
        except PlanValidationError as exc:
            printer.error(f"Invalid commit plan: {exc}")
            show_raw_output(exc.raw_text)
            plan = None

        if plan is not None and plan.is_empty:
            printer.error(NO_COMMITS_MESSAGE)
            if not interactive:
                raise click.exceptions.Exit(EXIT_EXECUTION_FAILED)
            plan = None

        if plan is None:
            if not interactive:
                raise click.exceptions.Exit(EXIT_LLM_FAILURE)
            choice = prompt_after_failure()
            if choice == "q":
                return None
            if choice == "s":
                fallback = pipeline.fallback_plan(changes)
                display_plan(printer, fallback)
                if click.confirm("   Commit these groups?", default=True):
                    return fallback
                return None
            continue

        if only_message:
            click.echo(plan.to_json(indent=2))
            return plan

        display_plan(printer, plan)
        if not interactive:
            return plan

        choice = prompt_plan_action()
        if choice == "a":
            printer.success("Plan accepted")
            return plan
        if choice == "q":
            return None
        if choice == "f":
            hint = click.prompt("   Describe what should change", default=hint or "", show_default=False)
            printer.info("Regenerating with feedback...")
        else:
            printer.info("Regenerating plan...")

    printer.error(f"No acceptable plan after {MAX_PLAN_ATTEMPTS} attempts.")
    raise click.exceptions.Exit(EXIT_LLM_FAILURE)


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.argument("hint", nargs=-1)
@click.option("--yes", "yes", is_flag=True, help="Execute the first valid plan without prompting.")
@click.option("--only-message", is_flag=True, help="Print only the generated plan as JSON and exit.")
@click.option("--verbose", is_flag=True, help="Enable verbose (debug) output.")
@click.option("--update", is_flag=True, help="Pull the latest version of the model before running.")
@click.option("--model", default=None, help="Override the configured model name.")
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Path to a JSON configuration file.",
)
@click.version_option(version=__version__, prog_name="git-commit-agent")
def main(
    hint: tuple,
    yes: bool,
    only_message: bool,
    verbose: bool,
    update: bool,
    model: Optional[str],
    config_path: Optional[Path],
) -> None:
    """🤖 AI Git Commit Agent.

    Summarizes every pending change with a local Ollama model, drafts a
    plan of conventional commits, and creates the commits once you
    accept it. Any trailing words are passed to the model as a hint.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s: %(message)s",
        force=True,
    )
    printer = StatusPrinter(quiet=only_message)
    interactive = not (yes or only_message)
    user_hint = " ".join(hint).strip()

    printer.echo("\n" + "=" * 60)
    printer.echo("🤖 AI Git Commit Agent".center(60))
    printer.echo("=" * 60)

    ctx = click.get_current_context(silent=True)
    total_steps = 4

    try:
        # Step 1: configuration and environment
        printer.step(1, total_steps, "Checking Environment")
        try:
            config = load_config(config_path).with_model(model)
        except ConfigError as exc:
            printer.error(f"Configuration error: {exc}")
            raise click.exceptions.Exit(EXIT_CONFIG_ERROR)

        try:
            repo_root = check_environment(config, Path.cwd())
        except DependencyError as exc:
            printer.error(f"Error: {exc}")
            raise click.exceptions.Exit(EXIT_MISSING_DEPENDENCY)
        except NotARepositoryError as exc:
            printer.error(f"Error: {exc}")
            raise click.exceptions.Exit(EXIT_NO_REPO)
        printer.success(f"Git repository: {repo_root}")
        printer.info(f"Model: {config.model} ({config.backend})", indent=1)

        model_client = create_client(config)
        if update:
            try:
                with ProgressIndicator(printer, f"Updating model {config.model}"):
                    model_client.pull_model()
            except LLMError as exc:
                printer.error(f"Model update failed: {exc}")
                raise click.exceptions.Exit(EXIT_LLM_FAILURE)
            printer.success("Model updated")

        context = PipelineContext(repo_root=repo_root, config=config, hint=user_hint)
        pipeline = CommitPipeline(context, GitClient(repo_root), model_client)

        # Step 2: collect and summarize
        printer.step(2, total_steps, "Analyzing Changes")
        try:
            with ProgressIndicator(printer, "Scanning for changed files"):
                changes = pipeline.collect()
        except GitError as exc:
            printer.error(f"Git error: {exc}")
            raise click.exceptions.Exit(EXIT_GENERIC_ERROR)

        if not changes:
            printer.warning("No changes detected in this repository.")
            raise click.exceptions.Exit(EXIT_NO_CHANGES)
        printer.success(f"Found {len(changes)} changed file{'s' if len(changes) != 1 else ''}")

        with ProgressIndicator(printer, f"Summarizing {len(changes)} file(s)"):
            summaries = pipeline.summarize(changes)
        display_summaries(printer, summaries)

        if not any(summary.is_informative for summary in summaries):
            printer.warning("None of the changes could be analyzed.")
            raise click.exceptions.Exit(EXIT_NO_CHANGES)

        # Step 3: plan
        printer.step(3, total_steps, "Planning Commits")
        if user_hint:
            printer.info(f"Hint: {user_hint}", indent=1)
        plan = review_plan(
            pipeline,
            printer,
            changes,
            summaries,
            user_hint,
            interactive=interactive,
            only_message=only_message,
        )
        if plan is None:
            printer.warning("Operation cancelled; nothing was committed.")
            raise click.exceptions.Exit(EXIT_SUCCESS)
        if only_message:
            raise click.exceptions.Exit(EXIT_SUCCESS)

        # Step 4: execute
        printer.step(4, total_steps, "Executing Plan")
        printer.echo("🚀 Executing plan...")
        report = pipeline.execute(plan, ConsoleReporter(printer))
        if not report.succeeded:
            printer.error(report.error or "Plan execution failed.")
            if report.committed:
                printer.warning(
                    f"{report.committed} commit{'s were' if report.committed != 1 else ' was'} "
                    "created before the failure and kept."
                )
            raise click.exceptions.Exit(EXIT_EXECUTION_FAILED)

        printer.echo(f"\n{'=' * 60}")
        printer.success(
            f"All {report.committed} commit{'s' if report.committed != 1 else ''} completed successfully!"
        )
        raise click.exceptions.Exit(EXIT_SUCCESS)

    except click.exceptions.Exit:
        raise
    except click.exceptions.Abort:
        raise
    except Exception as exc:
        logging.exception("Unhandled error: %s", exc)
        printer.error(f"Unexpected error: {exc}")
        ctx.exit(EXIT_GENERIC_ERROR)
