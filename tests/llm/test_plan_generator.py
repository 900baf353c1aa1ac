"""Tests for commit plan prompting and parsing."""

import json
import unittest
from unittest.mock import Mock

from git_commit_agent.llm.change_summarizer import ChangeSummary
from git_commit_agent.llm.ollama_client import LLMError
from git_commit_agent.llm.plan_generator import PlanGenerator, parse_plan
from git_commit_agent.planning.plan_model import PlanParseError, PlanValidationError
from git_commit_agent.vcs.git_client import ChangeStatus, FileChange


def summary(path, text, status=ChangeStatus.UNSTAGED):
    return ChangeSummary(change=FileChange(path=path, status=status, excerpt="x"), summary=text)


class TestPlanPrompt(unittest.TestCase):
    def setUp(self) -> None:
        self.generator = PlanGenerator(Mock())
        self.summaries = [
            summary("src/app.py", "Add CLI entry point"),
            summary("empty.txt", ""),
            summary("README.md", "Document usage", ChangeStatus.UNTRACKED),
        ]

    def test_prompt_lists_informative_summaries(self) -> None:
        prompt = self.generator.build_prompt(self.summaries)

        self.assertIn("---FILE SUMMARIES---", prompt)
        self.assertIn("- src/app.py (UNSTAGED): Add CLI entry point", prompt)
        self.assertIn("- README.md (UNTRACKED): Document usage", prompt)
        self.assertNotIn("empty.txt", prompt)
        self.assertIn("---END OF SUMMARIES---", prompt)
        self.assertIn('"commits"', prompt)
        self.assertTrue(prompt.index("---END OF SUMMARIES---") < prompt.index("REQUIRED JSON RESPONSE FORMAT"))

    def test_hint_line_only_when_hint_given(self) -> None:
        self.assertNotIn("USER HINT", self.generator.build_prompt(self.summaries, ""))
        self.assertNotIn("USER HINT", self.generator.build_prompt(self.summaries, "   "))
        prompt = self.generator.build_prompt(self.summaries, "keep docs separate")
        self.assertIn("USER HINT: keep docs separate", prompt)

    def test_repeated_calls_do_not_leak_hints(self) -> None:
        first = self.generator.build_prompt(self.summaries, "one commit only")
        second = self.generator.build_prompt(self.summaries)
        self.assertIn("one commit only", first)
        self.assertNotIn("one commit only", second)
        self.assertEqual(second, self.generator.build_prompt(self.summaries))

    def test_generate_plan_calls_model_once_and_returns_raw_text(self) -> None:
        mock_client = Mock()
        mock_client.generate.return_value = "raw answer"

        raw = PlanGenerator(mock_client).generate_plan(self.summaries, "hint")

        self.assertEqual(raw, "raw answer")
        mock_client.generate.assert_called_once()

    def test_generate_plan_propagates_model_errors(self) -> None:
        mock_client = Mock()
        mock_client.generate.side_effect = LLMError("down")

        with self.assertRaises(LLMError):
            PlanGenerator(mock_client).generate_plan(self.summaries)


class TestParsePlan(unittest.TestCase):
    def test_parse_fenced_plan(self) -> None:
        raw = (
            "Here is the plan:\n```json\n"
            + json.dumps({"plan": "x", "commits": [{"files": ["a.txt"], "message": "feat: add a"}]})
            + "\n```"
        )
        plan = parse_plan(raw)
        self.assertEqual(plan.rationale, "x")
        self.assertEqual(len(plan.commits), 1)
        self.assertEqual(plan.commits[0].files, ["a.txt"])
        self.assertEqual(plan.commits[0].message, "feat: add a")

    def test_unparseable_output_keeps_raw_text(self) -> None:
        with self.assertRaises(PlanParseError) as ctx:
            parse_plan("I think you should commit everything.")
        self.assertEqual(ctx.exception.raw_text, "I think you should commit everything.")

    def test_empty_output_is_a_parse_error(self) -> None:
        with self.assertRaises(PlanParseError):
            parse_plan("")

    def test_missing_commits_is_a_validation_error(self) -> None:
        with self.assertRaises(PlanValidationError) as ctx:
            parse_plan('{"plan": "x"}')
        self.assertEqual(ctx.exception.raw_text, '{"plan": "x"}')

    def test_wrong_field_types_are_validation_errors(self) -> None:
        bad = [
            '{"plan": "x", "commits": {"files": []}}',
            '{"plan": "x", "commits": [{"files": "a.txt", "message": "feat: a"}]}',
            '{"plan": "x", "commits": [{"files": ["a.txt"]}]}',
            '{"plan": 3, "commits": []}',
        ]
        for raw in bad:
            with self.assertRaises(PlanValidationError, msg=raw):
                parse_plan(raw)

    def test_empty_commit_list_parses_to_empty_plan(self) -> None:
        plan = parse_plan('{"plan": "nothing to do", "commits": []}')
        self.assertTrue(plan.is_empty)

    def test_non_conventional_message_is_kept_verbatim(self) -> None:
        plan = parse_plan('{"plan": "", "commits": [{"files": ["a"], "message": "Update stuff"}]}')
        self.assertEqual(plan.commits[0].message, "Update stuff")
        self.assertFalse(plan.commits[0].is_conventional)


if __name__ == "__main__":
    unittest.main()
