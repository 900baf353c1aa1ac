import json
import os
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

from git_commit_agent.config.loader import (
    CONFIG_ENV_VAR,
    ConfigError,
    PipelineConfig,
    load_config,
)


class TestConfigLoader(unittest.TestCase):
    """Tests for the configuration loader."""

    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.config_dir = Path(self._tmp.name)
        self.config_file = self.config_dir / "config.json"

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def write(self, data) -> Path:
        text = data if isinstance(data, str) else json.dumps(data)
        self.config_file.write_text(text, encoding="utf-8")
        return self.config_file

    def test_defaults_when_default_file_is_missing(self) -> None:
        with patch("git_commit_agent.config.loader._get_config_directory", return_value=self.config_dir):
            config = load_config()
        self.assertEqual(config, PipelineConfig())
        self.assertEqual(config.model, "git-commit-fast")
        self.assertEqual(config.backend, "cli")
        self.assertEqual(config.max_excerpt_lines, 200)

    def test_load_default_file(self) -> None:
        self.write(
            {
                "base_url": "http://ollama",
                "port": 8080,
                "model": "llama3",
                "backend": "http",
                "request_timeout": 30,
                "max_tokens": 512,
                "summary_workers": 4,
                "exclude_paths": ["*.lock"],
            }
        )
        with patch("git_commit_agent.config.loader._get_config_directory", return_value=self.config_dir):
            config = load_config()
        self.assertEqual(config.base_url, "http://ollama")
        self.assertEqual(config.port, 8080)
        self.assertEqual(config.model, "llama3")
        self.assertEqual(config.backend, "http")
        self.assertEqual(config.request_timeout, 30.0)
        self.assertIsInstance(config.request_timeout, float)
        self.assertEqual(config.max_tokens, 512)
        self.assertEqual(config.summary_workers, 4)
        self.assertEqual(config.exclude_paths, ("*.lock",))

    def test_explicit_path(self) -> None:
        path = self.write({"model": "mistral"})
        self.assertEqual(load_config(path).model, "mistral")

    def test_explicit_path_missing(self) -> None:
        with self.assertRaises(ConfigError):
            load_config(self.config_dir / "nope.json")

    def test_environment_variable(self) -> None:
        path = self.write({"model": "from-env"})
        with patch.dict(os.environ, {CONFIG_ENV_VAR: str(path)}):
            self.assertEqual(load_config().model, "from-env")

    def test_environment_variable_missing_file(self) -> None:
        with patch.dict(os.environ, {CONFIG_ENV_VAR: str(self.config_dir / "nope.json")}):
            with self.assertRaises(ConfigError):
                load_config()

    def test_invalid_json(self) -> None:
        path = self.write("{invalid}")
        with self.assertRaises(ConfigError):
            load_config(path)

    def test_invalid_values(self) -> None:
        for data in (
            [],
            {"model": 3},
            {"port": "11434"},
            {"port": True},
            {"backend": "grpc"},
            {"request_timeout": 0},
            {"request_timeout": "slow"},
            {"max_tokens": "many"},
            {"max_excerpt_lines": 0},
            {"summary_workers": 0},
            {"exclude_paths": "*.lock"},
        ):
            path = self.write(data)
            with self.assertRaises(ConfigError, msg=repr(data)):
                load_config(path)

    def test_unknown_keys_are_ignored_with_warning(self) -> None:
        path = self.write({"model": "llama3", "temperature": 0.2})
        with self.assertLogs("git_commit_agent.config.loader", level="WARNING") as logs:
            config = load_config(path)
        self.assertEqual(config.model, "llama3")
        self.assertIn("temperature", logs.output[0])

    def test_null_max_tokens(self) -> None:
        path = self.write({"max_tokens": None})
        self.assertIsNone(load_config(path).max_tokens)

    def test_with_model(self) -> None:
        config = PipelineConfig()
        self.assertIs(config.with_model(None), config)
        self.assertIs(config.with_model(""), config)
        other = config.with_model("qwen")
        self.assertEqual(other.model, "qwen")
        self.assertEqual(config.model, "git-commit-fast")


if __name__ == "__main__":
    unittest.main()
