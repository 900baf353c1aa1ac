"""
Configuration loading for git_commit_agent.

See :mod:`git_commit_agent.config.loader` for the lookup order and the
supported keys.
"""

from .loader import ConfigError, PipelineConfig, load_config  # noqa: F401
