# src/fleetsync/core/engine/__init__.py

"""
Engine de reconciliação de settings.

Executa os reconciliadores registrados sobre cada repositório resolvido,
isolando falhas por repositório.
"""

from .engine import ReconcileEngine, ReconcileOptions, RunResult, summarize
from .reconcilers import LabelReconciler, RulesetReconciler, default_registry

__all__ = [
    "ReconcileEngine",
    "ReconcileOptions",
    "RunResult",
    "summarize",
    "LabelReconciler",
    "RulesetReconciler",
    "default_registry",
]
