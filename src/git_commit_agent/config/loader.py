"""
Configuration loader for git_commit_agent.

Settings live in a JSON file. The loader looks at an explicit path
first, then ``$GIT_COMMIT_AGENT_CONFIG``, then
``~/.git_commit_agent/config.json``. When the default file does not
exist the built-in defaults are used; an explicit file that is missing,
malformed or holds values of the wrong type raises
:class:`ConfigError`.
"""

from __future__ import annotations

import dataclasses
import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Tuple


logger = logging.getLogger(__name__)
if not logger.handlers:
    logger.addHandler(logging.NullHandler())

CONFIG_ENV_VAR = "GIT_COMMIT_AGENT_CONFIG"
BACKENDS = ("cli", "http")


class ConfigError(Exception):
    """Raised when the configuration file is missing or invalid."""

    pass


@dataclass(frozen=True)
class PipelineConfig:
    """Validated settings shared by every pipeline stage.

    Attributes
    ----------
    model : str
        Ollama model name.
    backend : str
        ``"cli"`` to run ``ollama run`` or ``"http"`` to call the REST API.
    base_url, port : str, int
        Ollama server address, used by the HTTP backend.
    request_timeout : float
        Seconds to wait for one model call.
    max_tokens : int, optional
        Generation limit passed to the HTTP backend.
    max_excerpt_lines : int
        Line cap for every diff or file excerpt.
    summary_workers : int
        Number of concurrent summarization calls.
    exclude_paths : Tuple[str, ...]
        Extra patterns never collected as unstaged changes.
    """

    model: str = "git-commit-fast"
    backend: str = "cli"
    base_url: str = "http://localhost"
    port: int = 11434
    request_timeout: float = 120.0
    max_tokens: Optional[int] = None
    max_excerpt_lines: int = 200
    summary_workers: int = 1
    exclude_paths: Tuple[str, ...] = field(default_factory=tuple)

    def with_model(self, model: Optional[str]) -> "PipelineConfig":
        if not model:
            return self
        return dataclasses.replace(self, model=model)


def _get_config_directory() -> Path:
    """Return the per-user configuration directory."""
    return Path.home() / ".git_commit_agent"


def _default_config_path() -> Path:
    return _get_config_directory() / "config.json"


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _validate(data: Dict[str, Any], source: Path) -> PipelineConfig:
    if not isinstance(data, dict):
        raise ConfigError(f"{source.name} must contain a JSON object")

    for key in ("model", "backend", "base_url"):
        if key in data and not isinstance(data[key], str):
            raise ConfigError(f"'{key}' must be a string")
    for key in ("port", "max_excerpt_lines", "summary_workers"):
        if key in data and not _is_int(data[key]):
            raise ConfigError(f"'{key}' must be an integer")
    if "max_tokens" in data and data["max_tokens"] is not None and not _is_int(data["max_tokens"]):
        raise ConfigError("'max_tokens' must be an integer")
    if "request_timeout" in data:
        timeout = data["request_timeout"]
        if isinstance(timeout, bool) or not isinstance(timeout, (int, float)) or timeout <= 0:
            raise ConfigError("'request_timeout' must be a positive number")
    if data.get("backend", "cli") not in BACKENDS:
        raise ConfigError(f"'backend' must be one of: {', '.join(BACKENDS)}")
    if data.get("max_excerpt_lines", 1) < 1:
        raise ConfigError("'max_excerpt_lines' must be at least 1")
    if data.get("summary_workers", 1) < 1:
        raise ConfigError("'summary_workers' must be at least 1")
    exclude = data.get("exclude_paths", [])
    if not isinstance(exclude, list) or not all(isinstance(p, str) for p in exclude):
        raise ConfigError("'exclude_paths' must be a list of strings")

    known = {f.name for f in dataclasses.fields(PipelineConfig)}
    unknown = sorted(set(data) - known)
    if unknown:
        logger.warning("Ignoring unknown configuration keys: %s", ", ".join(unknown))

    values = {key: value for key, value in data.items() if key in known}
    values["exclude_paths"] = tuple(exclude)
    if "request_timeout" in values:
        values["request_timeout"] = float(values["request_timeout"])
    return PipelineConfig(**values)


def load_config(path: Optional[Path] = None) -> PipelineConfig:
    """Load and validate the configuration.

    Args:
        path: Explicit configuration file. When omitted the environment
            variable and then the per-user default location are used.

    Returns:
        The validated :class:`PipelineConfig`.

    Raises:
        ConfigError: If an explicitly requested file is missing, or any
            file found is malformed or invalid.
    """
    explicit = path is not None or bool(os.environ.get(CONFIG_ENV_VAR))
    if path is None:
        env_path = os.environ.get(CONFIG_ENV_VAR)
        path = Path(env_path).expanduser() if env_path else _default_config_path()
    path = Path(path)

    if not path.exists():
        if explicit:
            logger.error("Configuration file '%s' does not exist", path)
            raise ConfigError(f"Missing configuration file: {path}")
        logger.debug("No configuration file at %s; using defaults", path)
        return PipelineConfig()

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        logger.error("Failed to read or parse configuration file: %s", exc)
        raise ConfigError(f"Invalid JSON in {path.name}: {exc}") from exc

    config = _validate(data, path)
    logger.debug("Loaded configuration from %s: %s", path, config)
    return config
