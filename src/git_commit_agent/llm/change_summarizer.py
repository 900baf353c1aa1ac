"""
Per-file change summarization using an LLM.

:class:`ChangeSummarizer` asks the model for a one-line summary of a
single :class:`FileChange`. A failure to summarize one file never stops
the batch: model errors and malformed answers are turned into the
``"Could not summarize."`` fallback, and files without an excerpt are
not sent to the model at all.
"""

from __future__ import annotations

import json
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Iterable, List

from git_commit_agent.llm.json_extractor import extract_json
from git_commit_agent.llm.ollama_client import LLMError
from git_commit_agent.vcs.git_client import FileChange


logger = logging.getLogger(__name__)
if not logger.handlers:
    logger.addHandler(logging.NullHandler())

FALLBACK_SUMMARY = "Could not summarize."

SUMMARY_INSTRUCTION = (
    "You are a code analysis AI. Analyze the following change and respond with "
    "a single JSON object: {\"summary\": \"A concise, one-line summary of the change.\"}."
)


@dataclass(frozen=True)
class ChangeSummary:
    """A file change together with its one-line summary."""

    change: FileChange
    summary: str

    @property
    def is_informative(self) -> bool:
        return bool(self.summary)

    def as_line(self) -> str:
        return f"- {self.change.path} ({self.change.status.value}): {self.summary}"


class ChangeSummarizer:
    """Summarize individual file changes with a text model client."""

    def __init__(self, model_client: any) -> None:
        self.model_client = model_client

    def build_prompt(self, change: FileChange) -> str:
        return (
            f"{SUMMARY_INSTRUCTION}\n\n"
            f"File: {change.path}\n"
            f"Status: {change.status.value}\n"
            f"Diff:\n{change.excerpt}"
        )

    def analyze(self, change: FileChange) -> str:
        """Return a one-line summary of ``change``.

        Returns ``""`` when the change has no excerpt and
        :data:`FALLBACK_SUMMARY` when the model fails or its answer has
        no usable ``summary`` field.
        """
        if not change.excerpt.strip():
            return ""

        try:
            raw_response = self.model_client.generate(self.build_prompt(change))
        except LLMError as exc:
            logger.warning("Model failed to summarize %s: %s", change.path, exc)
            return FALLBACK_SUMMARY

        try:
            data = json.loads(extract_json(raw_response))
        except ValueError:
            logger.debug("No JSON in summary for %s: %r", change.path, raw_response)
            return FALLBACK_SUMMARY

        summary = data.get("summary") if isinstance(data, dict) else None
        if isinstance(summary, str) and summary.strip():
            return summary
        return FALLBACK_SUMMARY

    def summarize_all(
        self,
        changes: Iterable[FileChange],
        max_workers: int = 1,
    ) -> List[ChangeSummary]:
        """Summarize every change, preserving input order.

        With ``max_workers > 1`` the model calls run in a thread pool;
        each call only reads its own change.
        """
        changes = list(changes)
        if max_workers > 1 and len(changes) > 1:
            with ThreadPoolExecutor(max_workers=max_workers) as pool:
                summaries = list(pool.map(self.analyze, changes))
        else:
            summaries = [self.analyze(change) for change in changes]
        return [ChangeSummary(change=c, summary=s) for c, s in zip(changes, summaries)]
