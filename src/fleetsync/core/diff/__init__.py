# src/fleetsync/core/diff/__init__.py

"""
Camada de diff do Fleetsync.

Compara o estado desejado resolvido com o estado atual obtido da
plataforma e produz listas de mudanças mínimas e ordenáveis.

Componentes:
    - algorithm: diff estrutural endereçado por caminho
    - keyed: reconciliação de entidades nomeadas com renomeação
    - settings: adaptadores de formato (rulesets, labels, settings do repo)

Limites explícitos:
    - Funções puras: sem I/O, sem estado compartilhado
    - Não aplica mudanças (apenas classifica e ordena)
"""

from .algorithm import DiffAction, PropertyDiff, deep_equal, diff
from .keyed import KeyedAction, KeyedChange, order_changes, reconcile_entities
from .settings import (
    camel_to_snake,
    diff_labels,
    diff_repo_settings,
    diff_rulesets,
    normalize_value,
    project_to_desired_shape,
)

__all__ = [
    "DiffAction",
    "PropertyDiff",
    "deep_equal",
    "diff",
    "KeyedAction",
    "KeyedChange",
    "order_changes",
    "reconcile_entities",
    "camel_to_snake",
    "diff_labels",
    "diff_repo_settings",
    "diff_rulesets",
    "normalize_value",
    "project_to_desired_shape",
]
