"""
schemactl - Database schema version control.

Pulls a remote schema and its snapshot history into a local project.
File system changes run through an ExecutionPlan that rolls back
completed steps on failure or Ctrl+C.
"""

__version__ = "0.1.0"
__author__ = "schemactl developers"


__all__ = ["CliError", "ExecutionPlan", "Step", "Compensation"]

from .errors import CliError
from .execution import Compensation, ExecutionPlan, Step
