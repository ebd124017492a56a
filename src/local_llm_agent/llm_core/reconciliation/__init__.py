"""The reconciliation loop and its state/result models."""

from .engine import ReconciliationEngine
from .result import ExecuteResult
from .state import ReconciliationState

__all__ = ["ReconciliationEngine", "ExecuteResult", "ReconciliationState"]
