"""
Commit plans and their execution.

See :mod:`git_commit_agent.planning.plan_model` for the data model and
:mod:`git_commit_agent.planning.plan_executor` for applying a plan to a
repository.
"""

from .plan_model import (  # noqa: F401
    CommitGroup,
    CommitPlan,
    PlanError,
    PlanParseError,
    PlanValidationError,
    is_conventional,
)
from .plan_executor import (  # noqa: F401
    ExecutionReport,
    ExecutionReporter,
    GroupResult,
    GroupState,
    PlanExecutor,
)
