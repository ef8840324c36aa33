# src/fleetsync/core/engine/reconcilers.py
"""
Reconciliadores embutidos: rulesets e labels.

Cada reconciliador lê sua coleção da configuração resolvida de um
repositório e delega a classificação ao adaptador correspondente em
`core.diff.settings`.
"""

from __future__ import annotations

from typing import Any, Iterable, List, Mapping, Optional, Sequence

from fleetsync.core.config.model import ResolvedRepo
from fleetsync.core.diff.keyed import KeyedChange
from fleetsync.core.diff.settings import diff_labels, diff_rulesets
from fleetsync.core.pipeline.registry import ReconcilerRegistry


class RulesetReconciler:
    id = "rulesets"

    def desired(self, repo: ResolvedRepo) -> Optional[Mapping[str, Mapping[str, Any]]]:
        return repo.settings.rulesets if repo.settings is not None else None

    def reconcile(
        self,
        repo: ResolvedRepo,
        current: Sequence[Mapping[str, Any]],
        managed: Iterable[str],
        *,
        delete_orphaned: bool,
    ) -> List[KeyedChange]:
        return diff_rulesets(
            current,
            self.desired(repo) or {},
            managed,
            delete_orphaned=delete_orphaned,
        )


class LabelReconciler:
    id = "labels"

    def desired(self, repo: ResolvedRepo) -> Optional[Mapping[str, Mapping[str, Any]]]:
        return repo.settings.labels if repo.settings is not None else None

    def reconcile(
        self,
        repo: ResolvedRepo,
        current: Sequence[Mapping[str, Any]],
        managed: Iterable[str],
        *,
        delete_orphaned: bool,
    ) -> List[KeyedChange]:
        return diff_labels(
            current,
            self.desired(repo) or {},
            managed,
            delete_orphaned=delete_orphaned,
        )


def default_registry() -> ReconcilerRegistry:
    """Registro com os reconciliadores embutidos, na ordem rulesets → labels."""
    registry = ReconcilerRegistry()
    registry.add(RulesetReconciler())
    registry.add(LabelReconciler())
    return registry
