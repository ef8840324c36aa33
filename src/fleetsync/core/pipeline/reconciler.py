# src/fleetsync/core/pipeline/reconciler.py
"""
Contrato canônico de reconciliador de entidades.

Um reconciliador compara uma coleção de entidades nomeadas de um
repositório (ex.: rulesets, labels) com o estado atual fornecido pelo
chamador e devolve a lista ordenada de mudanças.

Princípios fundamentais:
    - Reconciliadores são puros: não fazem I/O nem acessam o RunContext
    - Conformidade é garantida por duck typing (@runtime_checkable)

Limites explícitos:
    - Não busca estado atual (o Engine recebe um callable para isso)
    - Não aplica mudanças
"""

from __future__ import annotations

from typing import Any, Iterable, List, Mapping, Optional, Protocol, Sequence, runtime_checkable

from fleetsync.core.config.model import ResolvedRepo
from fleetsync.core.diff.keyed import KeyedChange


@runtime_checkable
class EntityReconciler(Protocol):
    """
    Contrato de um reconciliador de uma coleção de entidades.

    Atributos obrigatórios:
        - id: identificador único e estável (nome da coleção)

    Invariantes:
        - `desired` retorna apenas o que a configuração resolvida declara
        - `reconcile` retorna mudanças na ordem delete → update → create → unchanged
    """

    id: str

    def desired(self, repo: ResolvedRepo) -> Optional[Mapping[str, Mapping[str, Any]]]:
        """Entidades desejadas do repositório (None quando não declaradas)."""
        ...

    def reconcile(
        self,
        repo: ResolvedRepo,
        current: Sequence[Mapping[str, Any]],
        managed: Iterable[str],
        *,
        delete_orphaned: bool,
    ) -> List[KeyedChange]:
        """Classifica as entidades do repositório contra o estado atual."""
        ...
