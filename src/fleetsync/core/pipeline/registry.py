# src/fleetsync/core/pipeline/registry.py
"""
Registro de reconciliadores de entidades.

Este módulo define o `ReconcilerRegistry`, responsável por registrar
reconciliadores e validar a unicidade de seus identificadores antes
de qualquer execução do Engine.

Invariantes:
    - Cada reconciliador registrado possui um `id` único
    - A lista reflete exatamente a ordem de registro

Limites explícitos:
    - Não executa reconciliadores
    - Não interage com RunContext
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List

from .reconciler import EntityReconciler


class DuplicateReconcilerIdError(ValueError):
    """
    Exceção levantada quando dois reconciliadores usam o mesmo `id`.

    A duplicidade é tratada como erro fatal de configuração e é
    detectada no momento do registro, antes da execução.
    """


@dataclass
class ReconcilerRegistry:
    """Registro canônico de reconciliadores, com ordem de inserção preservada."""

    _reconcilers: Dict[str, EntityReconciler] = field(default_factory=dict, init=False, repr=False)
    _order: List[str] = field(default_factory=list, init=False, repr=False)

    def add(self, reconciler: EntityReconciler) -> None:
        reconciler_id = getattr(reconciler, "id", None)
        if not isinstance(reconciler_id, str) or not reconciler_id.strip():
            raise ValueError("reconciler.id must be a non-empty string")

        if reconciler_id in self._reconcilers:
            raise DuplicateReconcilerIdError(f"Duplicate reconciler id: {reconciler_id}")

        self._reconcilers[reconciler_id] = reconciler
        self._order.append(reconciler_id)

    def get(self, reconciler_id: str) -> EntityReconciler:
        return self._reconcilers[reconciler_id]

    def ids(self) -> List[str]:
        return list(self._order)

    def list(self) -> List[EntityReconciler]:
        return [self._reconcilers[rid] for rid in self._order]
