"""
Top-level package for git_commit_agent.

This package exposes the main CLI entry point via the
``git_commit_agent.cli`` module.
"""

__all__ = ["__version__"]

__version__ = "0.3.0"
