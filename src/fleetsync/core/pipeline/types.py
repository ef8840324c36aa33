# src/fleetsync/core/pipeline/types.py
"""
Tipos canônicos da reconciliação de settings.

Componentes principais:
    - BatchStatus    → estados finais do lote de um repositório
    - RepoPlanResult → resultado imutável do lote de um repositório

Princípios fundamentais:
    - Tipos são estáveis e serializáveis
    - Nenhuma lógica de execução vive neste módulo

Limites explícitos:
    - Não executa reconciliadores
    - Não formata planos (responsabilidade externa)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from fleetsync.core.diff.keyed import KeyedAction, KeyedChange


class BatchStatus(str, Enum):
    """
    Estados finais do lote de settings de um repositório.

    Estados definidos:
        - SUCCESS: plano calculado para todas as coleções habilitadas
        - SKIPPED: nada desejado nem gerenciado no repositório
        - FAILED: o lote foi interrompido por erro (irmãos continuam)

    Invariantes:
        - O status final de um lote é exatamente um dos valores definidos
        - O valor textual do enum é estável e canônico
    """
    SUCCESS = "success"
    SKIPPED = "skipped"
    FAILED = "failed"


def count_actions(changes: List[KeyedChange]) -> Dict[str, int]:
    """Contagem de mudanças por ação, com todas as ações presentes."""
    counts = {action.value: 0 for action in KeyedAction}
    for change in changes:
        counts[change.action.value] += 1
    return counts


@dataclass(frozen=True)
class RepoPlanResult:
    """
    Resultado imutável da reconciliação de um repositório.

    Campos:
        - repo: URL git do repositório
        - status: estado final do lote
        - summary: resumo textual
        - changes: mudanças ordenadas por tipo de entidade (ex.: `rulesets`)
        - counts: contagem por ação e por tipo de entidade
        - managed: nomes a registrar como gerenciados para a próxima execução
        - warnings: avisos não fatais do repositório
        - error: payload de erro serializado, quando FAILED
    """
    repo: str
    status: BatchStatus
    summary: str
    changes: Dict[str, List[KeyedChange]] = field(default_factory=dict)
    counts: Dict[str, Dict[str, int]] = field(default_factory=dict)
    managed: Dict[str, List[str]] = field(default_factory=dict)
    warnings: List[str] = field(default_factory=list)
    error: Optional[Dict[str, Any]] = None

    def has_changes(self) -> bool:
        return any(
            change.action != KeyedAction.UNCHANGED
            for changes in self.changes.values()
            for change in changes
        )
