# src/fleetsync/core/diff/keyed.py
"""
Reconciliação de entidades nomeadas com suporte a renomeação.

Este módulo opera um nível acima do diff estrutural: classifica
entidades inteiras (rulesets, labels) em create / update / delete /
unchanged, preservando a identidade de uma entidade renomeada em vez
de destruí-la e recriá-la.

Regras de classificação:
    - entidades casam por nome, sem diferenciar maiúsculas/minúsculas
    - desejada ausente do estado atual        → create
    - desejada presente, sem renomeação       → unchanged (0 diffs) | update
    - desejada com alvo de renomeação         → sempre update
    - gerenciada anteriormente e não desejada → delete (ou omitida se a
      deleção estiver suprimida)

Validação de colisões (uma vez, sobre o lote inteiro, antes da
classificação):
    - dois nomes finais desejados não podem coincidir
    - um alvo de renomeação não pode coincidir com uma entidade atual
      sobrevivente (não casada por nenhuma desejada e não deletada)

Cadeias transitivas (A→B, B→C) são legais: B é liberado por ser
renomeado no mesmo lote. Ciclos (A→B, B→A) não têm ordem sequencial
válida e são rejeitados com `RenameCollision`.

Ordem de saída (aplicação sequencial segura):
    delete → update → create → unchanged

Dentro do bloco de update, a renomeação que libera um nome vem antes
da que o ocupa (A→B, B→C sai como B→C, A→B).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Set, Tuple

from fleetsync.core.exceptions import RenameCollision

from .algorithm import PropertyDiff, diff


DEFAULT_RENAME_KEY = "new_name"

CompareFn = Callable[[Dict[str, Any], Dict[str, Any]], List[PropertyDiff]]


class KeyedAction(str, Enum):
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    UNCHANGED = "unchanged"


ACTION_ORDER: Dict[KeyedAction, int] = {
    KeyedAction.DELETE: 0,
    KeyedAction.UPDATE: 1,
    KeyedAction.CREATE: 2,
    KeyedAction.UNCHANGED: 3,
}


@dataclass(frozen=True)
class KeyedChange:
    """
    Mudança classificada de uma entidade nomeada.

    - name: nome atual da entidade (nome final, para create)
    - action: create | update | delete | unchanged
    - rename_to: novo nome, quando a mudança renomeia a entidade
    - diffs: diffs de propriedades (vazio para create/delete/unchanged)
    - current / desired: snapshots usados pelo colaborador de apply
    - entity_id: identificador da entidade na plataforma, quando conhecido
    """

    name: str
    action: KeyedAction
    rename_to: Optional[str] = None
    diffs: Tuple[PropertyDiff, ...] = ()
    current: Optional[Dict[str, Any]] = None
    desired: Optional[Dict[str, Any]] = None
    entity_id: Any = None


@dataclass
class _Candidate:
    name: str
    properties: Dict[str, Any]
    rename_to: Optional[str]
    matched: Optional[str] = None
    final_name: str = field(default="")


def _order_renames(updates: List[KeyedChange]) -> List[KeyedChange]:
    freed_by = {
        change.name.lower(): index
        for index, change in enumerate(updates)
        if change.rename_to is not None
    }

    ordered: List[KeyedChange] = []
    placed: Set[int] = set()
    for index in range(len(updates)):
        path: List[int] = []
        step: Optional[int] = index
        while step is not None and step not in placed and step not in path:
            path.append(step)
            target = updates[step].rename_to
            step = freed_by.get(target.lower()) if target is not None else None
        for position in reversed(path):
            placed.add(position)
            ordered.append(updates[position])
    return ordered


def order_changes(changes: Iterable[KeyedChange]) -> List[KeyedChange]:
    """
    Ordena mudanças para aplicação sequencial segura.

    As ações seguem `ACTION_ORDER` (ordenação estável). Entre os updates,
    quem libera um nome precede quem o ocupa; updates sem dependência
    mantêm a ordem declarada.
    """
    ordered = sorted(changes, key=lambda c: ACTION_ORDER[c.action])
    rank = ACTION_ORDER[KeyedAction.UPDATE]
    updates = _order_renames([c for c in ordered if c.action == KeyedAction.UPDATE])
    return (
        [c for c in ordered if ACTION_ORDER[c.action] < rank]
        + updates
        + [c for c in ordered if ACTION_ORDER[c.action] > rank]
    )


def _split_rename(
    name: str,
    entity: Mapping[str, Any],
    rename_key: str,
) -> _Candidate:
    properties = {k: v for k, v in entity.items() if k != rename_key}
    rename_to = entity.get(rename_key)
    if rename_to is not None:
        rename_to = str(rename_to)
    return _Candidate(name=name, properties=properties, rename_to=rename_to)


def _validate_renames(
    candidates: List[_Candidate],
    current: Mapping[str, Any],
    deleted: Iterable[str],
    *,
    entity_kind: str,
) -> None:
    """
    Valida colisões de nomes finais e de alvos de renomeação.

    Raises:
        RenameCollision: Se dois nomes finais coincidirem, se um alvo
            colidir com uma entidade atual sobrevivente ou se as
            renomeações formarem um ciclo.
    """
    claimed: Dict[str, str] = {}
    for candidate in candidates:
        final = candidate.final_name.lower()
        if final in claimed:
            raise RenameCollision(
                message=(
                    f"{entity_kind}: '{candidate.name}' e '{claimed[final]}' "
                    f"resultariam no mesmo nome '{candidate.final_name}'"
                ),
                details={
                    "entity_kind": entity_kind,
                    "names": [claimed[final], candidate.name],
                    "target": candidate.final_name,
                },
                hint="Garanta que cada alvo de renomeação seja único no lote.",
            )
        claimed[final] = candidate.name

    matched = {c.matched for c in candidates if c.matched is not None}
    removed = set(deleted)
    survivors = {
        name.lower(): name
        for name in current
        if name.lower() not in matched and name.lower() not in removed
    }

    for candidate in candidates:
        if candidate.rename_to is None:
            continue
        target = candidate.rename_to.lower()
        if target in survivors:
            raise RenameCollision(
                message=(
                    f"{entity_kind}: não é possível renomear '{candidate.name}' para "
                    f"'{candidate.rename_to}' - já existe '{survivors[target]}'"
                ),
                details={
                    "entity_kind": entity_kind,
                    "names": [candidate.name, survivors[target]],
                    "target": candidate.rename_to,
                },
                hint="Remova, renomeie ou gerencie explicitamente a entidade existente.",
            )

    names = {name.lower(): name for name in current}
    moves = {
        c.matched: c.rename_to.lower()
        for c in candidates
        if c.matched is not None
        and c.rename_to is not None
        and c.rename_to.lower() != c.matched
    }
    for start in moves:
        key = moves[start]
        visited = {start}
        while key in moves and key not in visited:
            visited.add(key)
            key = moves[key]
        if key != start:
            continue

        cycle = [start]
        key = moves[start]
        while key != start:
            cycle.append(key)
            key = moves[key]
        cycle_names = [names[k] for k in cycle]
        raise RenameCollision(
            message=(
                f"{entity_kind}: renomeação circular não pode ser aplicada em sequência: "
                + " → ".join(cycle_names + [cycle_names[0]])
            ),
            details={
                "entity_kind": entity_kind,
                "names": cycle_names,
                "target": cycle_names[0],
            },
            hint="Quebre o ciclo renomeando para um nome temporário em uma execução anterior.",
        )


def reconcile_entities(
    current: Mapping[str, Dict[str, Any]],
    desired: Mapping[str, Mapping[str, Any]],
    *,
    managed: Iterable[str] = (),
    delete_orphaned: bool = True,
    rename_key: str = DEFAULT_RENAME_KEY,
    entity_kind: str = "entity",
    compare: CompareFn = diff,
) -> List[KeyedChange]:
    """
    Classifica entidades nomeadas em mudanças ordenadas.

    Args:
        current (Mapping[str, Dict[str, Any]]): Estado atual, nome → propriedades
            (já normalizadas para o formato comparável).
        desired (Mapping[str, Mapping[str, Any]]): Estado desejado, nome → propriedades;
            a chave `rename_key` carrega o alvo de renomeação.
        managed (Iterable[str]): Nomes gerenciados em execuções anteriores.
        delete_orphaned (bool): False suprime deleções (entidades são omitidas).
        rename_key (str): Chave do alvo de renomeação nas propriedades desejadas.
        entity_kind (str): Nome do tipo de entidade (mensagens de erro).
        compare (CompareFn): Função de diff entre propriedades atuais e desejadas
            (padrão: `diff`; adaptadores projetam o estado atual antes).

    Returns:
        List[KeyedChange]: Mudanças na ordem delete → update → create → unchanged.

    Raises:
        RenameCollision: Se a validação de colisões falhar.
    """
    current_by_key: Dict[str, str] = {name.lower(): name for name in current}

    candidates: List[_Candidate] = []
    for name, entity in desired.items():
        candidate = _split_rename(name, entity, rename_key)
        if name.lower() in current_by_key:
            candidate.matched = name.lower()
        elif candidate.rename_to is not None and candidate.rename_to.lower() in current_by_key:
            # Renomeação já aplicada em uma execução anterior.
            candidate.matched = candidate.rename_to.lower()
        candidate.final_name = candidate.rename_to or name
        candidates.append(candidate)

    desired_keys = {c.name.lower() for c in candidates}
    matched_keys = {c.matched for c in candidates if c.matched is not None}
    orphans: List[str] = []
    for name in managed:
        key = name.lower()
        if key in desired_keys or key in matched_keys or key not in current_by_key:
            continue
        if current_by_key[key] not in orphans:
            orphans.append(current_by_key[key])

    deleted = [n.lower() for n in orphans] if delete_orphaned else []
    _validate_renames(candidates, current, deleted, entity_kind=entity_kind)

    changes: List[KeyedChange] = []

    for name in orphans if delete_orphaned else []:
        changes.append(
            KeyedChange(name=name, action=KeyedAction.DELETE, current=dict(current[name]))
        )

    for candidate in candidates:
        if candidate.matched is None:
            changes.append(
                KeyedChange(
                    name=candidate.final_name,
                    action=KeyedAction.CREATE,
                    desired=candidate.properties,
                )
            )
            continue

        current_name = current_by_key[candidate.matched]
        current_properties = current[current_name]
        diffs = tuple(compare(current_properties, candidate.properties))
        renamed = current_name != candidate.final_name

        if renamed or diffs:
            changes.append(
                KeyedChange(
                    name=current_name,
                    action=KeyedAction.UPDATE,
                    rename_to=candidate.final_name if renamed else None,
                    diffs=diffs,
                    current=dict(current_properties),
                    desired=candidate.properties,
                )
            )
        else:
            changes.append(
                KeyedChange(
                    name=current_name,
                    action=KeyedAction.UNCHANGED,
                    current=dict(current_properties),
                    desired=candidate.properties,
                )
            )

    return order_changes(changes)
