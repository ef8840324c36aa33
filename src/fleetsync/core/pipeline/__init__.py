# src/fleetsync/core/pipeline/__init__.py

"""
Estruturas de execução da reconciliação de settings.

Este pacote define o contexto de execução, os tipos de resultado, o
contrato de reconciliador e o registro de reconciliadores consumidos
pelo Engine.
"""

from .context import RunContext
from .reconciler import EntityReconciler
from .registry import DuplicateReconcilerIdError, ReconcilerRegistry
from .types import BatchStatus, RepoPlanResult, count_actions

__all__ = [
    "RunContext",
    "EntityReconciler",
    "DuplicateReconcilerIdError",
    "ReconcilerRegistry",
    "BatchStatus",
    "RepoPlanResult",
    "count_actions",
]
