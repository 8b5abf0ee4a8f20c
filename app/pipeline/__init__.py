"""Authorization and ownership-enforcement pipeline."""

from app.pipeline.composer import GUARD_TABLE, RouteClass, guarded, run_guards
from app.pipeline.guards import GuardContext

__all__ = ["GUARD_TABLE", "GuardContext", "RouteClass", "guarded", "run_guards"]
