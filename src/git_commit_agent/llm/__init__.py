"""
Language model integration for git_commit_agent.

This package contains the Ollama clients, the JSON extractor applied to
model output, the per-file :class:`ChangeSummarizer` and the
:class:`PlanGenerator` that drafts a commit plan from the summaries.
"""

from .ollama_client import LLMError, OllamaClient, OllamaHTTPClient, create_client  # noqa: F401
from .json_extractor import extract_json  # noqa: F401
from .change_summarizer import ChangeSummarizer, ChangeSummary  # noqa: F401
from .plan_generator import PlanGenerator, parse_plan  # noqa: F401
