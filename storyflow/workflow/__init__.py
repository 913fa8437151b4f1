"""
Workflow Orchestration
======================

Stage progression and the orchestration boundary of a production session.

Components:
- StageController: linear progression through the five stages
- ProductionSession: generation calls, result reconciliation, failure values
"""

from .stages import StageController
from .production import (
    ProductionSession,
    OperationResult,
    OperationStatus,
)

__all__ = [
    "StageController",
    "ProductionSession",
    "OperationResult",
    "OperationStatus",
]
