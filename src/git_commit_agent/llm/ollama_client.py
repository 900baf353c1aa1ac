"""
Clients for talking to a local Ollama model.

Two backends share the same ``generate(prompt) -> str`` contract:

* :class:`OllamaClient` runs ``ollama run <model>`` as a subprocess and
  feeds the prompt on standard input.
* :class:`OllamaHTTPClient` posts to the REST ``/api/generate``
  endpoint of a running Ollama server.

Any failure (missing executable, non-zero exit, timeout, HTTP error,
empty output) is raised as :class:`LLMError`.
"""

from __future__ import annotations

import logging
import re
import subprocess
from dataclasses import dataclass
from typing import Any, Dict, Optional

import requests


logger = logging.getLogger(__name__)
# Attach a null handler to avoid errors when the root logger is missing a
# stream. Messages will still propagate to the root logger if configured.
if not logger.handlers:
    logger.addHandler(logging.NullHandler())


class LLMError(Exception):
    """Raised when communication with the language model fails."""

    pass


def strip_thinking_tags(text: str) -> str:
    """Remove thinking process tags from LLM responses.

    Reasoning models often wrap their scratch work in XML-like tags such
    as <think>, <thinking>, <thought> or <reasoning>. Those blocks may
    contain braces of their own, so they are stripped before any JSON
    extraction happens.

    Examples
    --------
    >>> strip_thinking_tags("<think>reasoning...</think>Answer")
    'Answer'
    >>> strip_thinking_tags("<thinking>{draft}</thinking>\\n\\n{\\"a\\": 1}")
    '{"a": 1}'
    """
    thinking_patterns = [
        r"<think>.*?</think>",
        r"<thinking>.*?</thinking>",
        r"<thought>.*?</thought>",
        r"<reasoning>.*?</reasoning>",
    ]

    result = text
    for pattern in thinking_patterns:
        result = re.sub(pattern, "", result, flags=re.DOTALL | re.IGNORECASE)
    return result.strip()


@dataclass
class OllamaClient:
    """Run prompts through the ``ollama`` command line tool.

    Parameters
    ----------
    model : str
        Name of the model to run, e.g. ``"git-commit-fast"``.
    request_timeout : float, optional
        Seconds to wait for the process before giving up. Expiry is
        reported exactly like a failed run.
    executable : str, optional
        Name or path of the Ollama binary.
    """

    model: str
    request_timeout: float = 120.0
    executable: str = "ollama"

    def _run(self, args: list, prompt: Optional[str] = None) -> subprocess.CompletedProcess:
        cmd = [self.executable] + args
        logger.debug("Executing model command: %s", " ".join(cmd))
        try:
            return subprocess.run(
                cmd,
                input=prompt,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                encoding="utf-8",
                errors="replace",
                timeout=self.request_timeout,
            )
        except subprocess.TimeoutExpired as exc:
            logger.error("Model command timed out after %ss", self.request_timeout)
            raise LLMError(f"'{' '.join(cmd)}' timed out after {self.request_timeout}s") from exc
        except OSError as exc:
            logger.error("Failed to start model command: %s", exc)
            raise LLMError(f"Failed to run {self.executable}: {exc}") from exc

    def generate(self, prompt: str) -> str:
        """Generate a completion for ``prompt``.

        Raises
        ------
        LLMError
            If the process fails, times out, or prints nothing.
        """
        logger.debug("Sending %d character prompt to %s", len(prompt), self.model)
        result = self._run(["run", self.model], prompt=prompt)
        if result.returncode != 0:
            logger.error("Model exited with %s: %s", result.returncode, result.stderr)
            raise LLMError(
                f"{self.executable} exited with status {result.returncode}: {result.stderr.strip()}"
            )
        text = strip_thinking_tags(result.stdout)
        if not text:
            raise LLMError("Model returned an empty response")
        logger.debug("Model response: %s", text)
        return text

    def pull_model(self) -> None:
        """Download the latest version of the configured model."""
        result = self._run(["pull", self.model])
        if result.returncode != 0:
            raise LLMError(f"Failed to pull model {self.model}: {result.stderr.strip()}")


@dataclass
class OllamaHTTPClient:
    """Client for interacting with an Ollama server over HTTP.

    Parameters
    ----------
    base_url : str
        Base URL of the Ollama server, e.g. ``"http://localhost"``.
    port : int
        Port number of the Ollama server, e.g. ``11434``.
    model : str
        Name of the model to use for generation.
    request_timeout : float, optional
        Timeout in seconds for HTTP requests.
    max_tokens : int, optional
        Maximum number of tokens to generate. If provided, passed via
        the ``options`` payload.
    """

    base_url: str
    port: int
    model: str
    request_timeout: float = 120.0
    max_tokens: Optional[int] = None

    def _endpoint(self, name: str = "generate") -> str:
        return f"{self.base_url}:{self.port}/api/{name}"

    def generate(self, prompt: str) -> str:
        """Generate a completion from the model.

        Raises
        ------
        LLMError
            If the request fails, the server returns an error, or the
            response carries no text.
        """
        payload: Dict[str, Any] = {
            "model": self.model,
            "prompt": prompt,
            "stream": False,
        }
        if self.max_tokens is not None:
            payload["options"] = {"num_predict": self.max_tokens}
        url = self._endpoint()
        logger.debug("Sending %d character prompt to %s", len(prompt), url)
        try:
            response = requests.post(url, json=payload, timeout=self.request_timeout)
        except requests.RequestException as exc:
            logger.error("Failed to connect to LLM: %s", exc)
            raise LLMError(str(exc)) from exc
        if response.status_code != 200:
            logger.error(
                "LLM returned non-200 status %s: %s", response.status_code, response.text
            )
            raise LLMError(f"LLM returned status {response.status_code}: {response.text}")
        try:
            data = response.json()
        except ValueError as exc:
            logger.error("Failed to parse LLM response: %s", exc)
            raise LLMError("Failed to parse LLM response") from exc
        if not isinstance(data, dict):
            logger.error("Unexpected LLM response body: %r", data)
            raise LLMError("Unexpected response structure from LLM")
        # /api/generate answers with 'response'; /api/chat with 'message'.
        if "response" in data:
            text = strip_thinking_tags(data.get("response") or "")
        elif isinstance(data.get("message"), dict):
            text = strip_thinking_tags(data["message"].get("content") or "")
        else:
            raise LLMError("Unexpected response structure from LLM")
        if not text:
            raise LLMError("Model returned an empty response")
        return text

    def pull_model(self) -> None:
        """Ask the server to download the latest version of the model."""
        try:
            response = requests.post(
                self._endpoint("pull"),
                json={"model": self.model, "stream": False},
                timeout=self.request_timeout,
            )
        except requests.RequestException as exc:
            raise LLMError(str(exc)) from exc
        if response.status_code != 200:
            raise LLMError(f"Failed to pull model {self.model}: {response.text}")


def create_client(config: Any) -> Any:
    """Build the model client selected by ``config.backend``."""
    if config.backend == "http":
        return OllamaHTTPClient(
            base_url=config.base_url,
            port=config.port,
            model=config.model,
            request_timeout=config.request_timeout,
            max_tokens=config.max_tokens,
        )
    return OllamaClient(model=config.model, request_timeout=config.request_timeout)
