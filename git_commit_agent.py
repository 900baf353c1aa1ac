#!/usr/bin/env python
"""
Thin wrapper script to invoke the git_commit_agent CLI.

Running ``python git_commit_agent.py`` is equivalent to running the
``git-commit-agent`` console script installed via ``pyproject.toml``.
"""

from git_commit_agent.cli import main


if __name__ == "__main__":
    main(prog_name="git-commit-agent")
