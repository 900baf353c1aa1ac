"""
Commit plan generation using an LLM.

:class:`PlanGenerator` turns the per-file summaries into a single
planning prompt and returns the model's raw answer. Grouping needs to
see every change at once, so the whole plan comes from one model call.
:func:`parse_plan` is the acceptance policy applied by callers to that
raw answer.
"""

from __future__ import annotations

import json
import logging
from textwrap import dedent
from typing import Iterable, List

from git_commit_agent.llm.change_summarizer import ChangeSummary
from git_commit_agent.llm.json_extractor import extract_json
from git_commit_agent.planning.plan_model import (
    CommitPlan,
    PlanParseError,
    PlanValidationError,
)


logger = logging.getLogger(__name__)
if not logger.handlers:
    logger.addHandler(logging.NullHandler())


PLAN_PREAMBLE = dedent(
    """
    You are an expert git commit message generator. Your task is to analyze the following file change summaries and create a commit plan as a JSON object.

    INSTRUCTIONS:
    1.  Review the file summaries.
    2.  Group related changes into logical commits.
    3.  For each commit, provide files to stage and a conventional commit message.
    4.  Use one of these commit types: feat, fix, docs, style, refactor, test, chore.
    5.  Respond with ONLY a valid JSON object. Do not add any other text.
    """
).strip()

PLAN_RESPONSE_FORMAT = dedent(
    """
    REQUIRED JSON RESPONSE FORMAT:
    {
      "plan": "Brief explanation of the commit strategy.",
      "commits": [
        { "files": ["file1.js"], "message": "feat: add new feature" }
      ]
    }
    """
).strip()


class PlanGenerator:
    """Generate a commit plan from change summaries."""

    def __init__(self, model_client: any) -> None:
        self.model_client = model_client

    def build_prompt(self, summaries: Iterable[ChangeSummary], hint: str = "") -> str:
        """Construct the planning prompt.

        Only informative summaries are listed. The ``USER HINT`` line is
        present only when ``hint`` is not blank.
        """
        lines = [summary.as_line() for summary in summaries if summary.is_informative]
        parts: List[str] = [
            PLAN_PREAMBLE,
            "---FILE SUMMARIES---\n" + "\n".join(lines) + "\n---END OF SUMMARIES---",
        ]
        if hint and hint.strip():
            parts.append(f"USER HINT: {hint.strip()}")
        parts.append(PLAN_RESPONSE_FORMAT)
        return "\n\n".join(parts)

    def generate_plan(self, summaries: Iterable[ChangeSummary], hint: str = "") -> str:
        """Ask the model for a plan and return its raw answer.

        Raises
        ------
        LLMError
            If the model call fails. There is no retry here; retrying is
            the operator's decision.
        """
        prompt = self.build_prompt(summaries, hint)
        logger.debug("Requesting commit plan (%d character prompt)", len(prompt))
        return self.model_client.generate(prompt)


def parse_plan(raw_text: str) -> CommitPlan:
    """Extract, decode and validate a commit plan from model output.

    Raises
    ------
    PlanParseError
        If no JSON can be decoded from ``raw_text``. The raw text is
        kept on the exception for display.
    PlanValidationError
        If the JSON does not have the ``{plan, commits}`` shape.
    """
    candidate = extract_json(raw_text or "")
    try:
        data = json.loads(candidate)
    except ValueError as exc:
        logger.debug("Unparseable plan: %r", raw_text)
        raise PlanParseError(f"Failed to parse commit plan: {exc}", raw_text=raw_text or "") from exc
    try:
        return CommitPlan.from_dict(data)
    except PlanValidationError as exc:
        exc.raw_text = raw_text or ""
        raise
