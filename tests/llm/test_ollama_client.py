import json
import subprocess
import unittest
from types import SimpleNamespace
from unittest.mock import patch

import requests

from git_commit_agent.config.loader import PipelineConfig
from git_commit_agent.llm.ollama_client import (
    LLMError,
    OllamaClient,
    OllamaHTTPClient,
    create_client,
    strip_thinking_tags,
)


class DummyResponse(SimpleNamespace):
    def json(self):
        return json.loads(self.text)


class DummyProc(SimpleNamespace):
    returncode: int = 0
    stdout: str = ""
    stderr: str = ""


class TestOllamaCLIClient(unittest.TestCase):
    def test_generate_pipes_prompt_to_ollama_run(self) -> None:
        calls = []

        def fake_run(cmd, **kwargs):
            calls.append((cmd, kwargs))
            return DummyProc(returncode=0, stdout='{"summary": "ok"}\n', stderr="")

        with patch("subprocess.run", fake_run):
            client = OllamaClient("git-commit-fast", request_timeout=5)
            self.assertEqual(client.generate("prompt text"), '{"summary": "ok"}')

        cmd, kwargs = calls[0]
        self.assertEqual(cmd, ["ollama", "run", "git-commit-fast"])
        self.assertEqual(kwargs["input"], "prompt text")
        self.assertEqual(kwargs["timeout"], 5)

    def test_non_zero_exit_raises(self) -> None:
        with patch("subprocess.run", return_value=DummyProc(returncode=1, stdout="", stderr="model not found")):
            with self.assertRaises(LLMError) as ctx:
                OllamaClient("missing").generate("prompt")
        self.assertIn("model not found", str(ctx.exception))

    def test_empty_output_raises(self) -> None:
        with patch("subprocess.run", return_value=DummyProc(returncode=0, stdout="  \n", stderr="")):
            with self.assertRaises(LLMError):
                OllamaClient("m").generate("prompt")

    def test_timeout_is_a_failure(self) -> None:
        def fake_run(cmd, **kwargs):
            raise subprocess.TimeoutExpired(cmd, kwargs.get("timeout"))

        with patch("subprocess.run", fake_run):
            with self.assertRaises(LLMError) as ctx:
                OllamaClient("m", request_timeout=1).generate("prompt")
        self.assertIn("timed out", str(ctx.exception))

    def test_missing_executable_raises(self) -> None:
        with patch("subprocess.run", side_effect=FileNotFoundError("ollama")):
            with self.assertRaises(LLMError):
                OllamaClient("m").generate("prompt")

    def test_thinking_tags_are_removed(self) -> None:
        output = "<think>maybe {draft}</think>\n{\"summary\": \"done\"}"
        with patch("subprocess.run", return_value=DummyProc(returncode=0, stdout=output, stderr="")):
            self.assertEqual(OllamaClient("m").generate("prompt"), '{"summary": "done"}')

    def test_pull_model(self) -> None:
        calls = []

        def fake_run(cmd, **kwargs):
            calls.append(cmd)
            return DummyProc(returncode=0, stdout="success", stderr="")

        with patch("subprocess.run", fake_run):
            OllamaClient("git-commit-fast").pull_model()
        self.assertEqual(calls, [["ollama", "pull", "git-commit-fast"]])


class TestOllamaHTTPClient(unittest.TestCase):
    def test_generate_success(self) -> None:
        captured = {}

        def fake_post(url, *_args, **kwargs):
            captured["url"] = url
            captured["payload"] = kwargs.get("json")
            return DummyResponse(status_code=200, text=json.dumps({"response": "Hello"}))

        with patch("requests.post", fake_post):
            client = OllamaHTTPClient("http://localhost", 11434, "model", max_tokens=64)
            self.assertEqual(client.generate("prompt"), "Hello")
        self.assertEqual(captured["url"], "http://localhost:11434/api/generate")
        self.assertEqual(captured["payload"]["options"], {"num_predict": 64})
        self.assertFalse(captured["payload"]["stream"])

    def test_chat_style_response(self) -> None:
        body = json.dumps({"message": {"role": "assistant", "content": "<thinking>x</thinking>Hi"}})
        with patch("requests.post", lambda url, **kw: DummyResponse(status_code=200, text=body)):
            self.assertEqual(OllamaHTTPClient("http://localhost", 1, "m").generate("p"), "Hi")

    def test_generate_error_status(self) -> None:
        with patch("requests.post", lambda url, **kw: DummyResponse(status_code=500, text="Internal error")):
            with self.assertRaises(LLMError):
                OllamaHTTPClient("http://localhost", 11434, "model").generate("prompt")

    def test_generate_invalid_json(self) -> None:
        with patch("requests.post", lambda url, **kw: DummyResponse(status_code=200, text="not json")):
            with self.assertRaises(LLMError):
                OllamaHTTPClient("http://localhost", 11434, "model").generate("prompt")

    def test_connection_error(self) -> None:
        with patch("requests.post", side_effect=requests.ConnectionError("refused")):
            with self.assertRaises(LLMError):
                OllamaHTTPClient("http://localhost", 11434, "model").generate("prompt")

    def test_unexpected_structure(self) -> None:
        with patch("requests.post", lambda url, **kw: DummyResponse(status_code=200, text="{}")):
            with self.assertRaises(LLMError):
                OllamaHTTPClient("http://localhost", 11434, "model").generate("prompt")

    def test_non_object_body_raises_llm_error(self) -> None:
        for body in ("[1, 2]", "\"just text\"", "null"):
            with patch("requests.post", lambda url, **kw: DummyResponse(status_code=200, text=body)):
                with self.assertRaises(LLMError, msg=body):
                    OllamaHTTPClient("http://localhost", 11434, "model").generate("prompt")


class TestClientFactory(unittest.TestCase):
    def test_cli_backend_by_default(self) -> None:
        client = create_client(PipelineConfig(model="m", request_timeout=9))
        self.assertIsInstance(client, OllamaClient)
        self.assertEqual(client.model, "m")
        self.assertEqual(client.request_timeout, 9)

    def test_http_backend(self) -> None:
        client = create_client(PipelineConfig(backend="http", base_url="http://host", port=8080))
        self.assertIsInstance(client, OllamaHTTPClient)
        self.assertEqual(client._endpoint(), "http://host:8080/api/generate")


class TestThinkingFilter(unittest.TestCase):
    def test_strips_all_known_tags(self) -> None:
        text = "<THINK>a</THINK><thought>b</thought><reasoning>\nc\n</reasoning>answer"
        self.assertEqual(strip_thinking_tags(text), "answer")

    def test_text_without_tags_is_stripped_only(self) -> None:
        self.assertEqual(strip_thinking_tags("  plain  \n"), "plain")


if __name__ == "__main__":
    unittest.main()
