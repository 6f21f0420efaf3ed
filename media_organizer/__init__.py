"""
Media Organizer

Reconciles unorganized photo and video source trees against an organized
destination tree, recognizing files by content rather than by name.
"""

__version__ = "1.0.0"

from .config import Config
from .cancellation import CancellationToken
from .media import MediaKind, MediaRecord
from .scanner import MediaScanner
from .actions import Action, ActionType
from .planner import Plan, ReconciliationPlanner
from .executor import ExecutionResult, PlanExecutor
from .reporter import PlanReporter

__all__ = [
    'Config',
    'CancellationToken',
    'MediaKind',
    'MediaRecord',
    'MediaScanner',
    'Action',
    'ActionType',
    'Plan',
    'ReconciliationPlanner',
    'ExecutionResult',
    'PlanExecutor',
    'PlanReporter',
]
