# src/fleetsync/core/diff/algorithm.py
"""
Motor de diff estrutural do Fleetsync.

Este módulo calcula o script mínimo de edição que transforma uma árvore
aninhada `current` (estado remoto) em uma árvore `desired` (estado
resolvido), endereçado por caminho.

Algoritmo, por nível de objeto (união das chaves):
    - chave só em desired          → `add` (subárvore inteira)
    - chave só em current          → `remove` (subárvore inteira)
    - chave nos dois, igual        → nenhum diff
    - dict + dict                  → recursão
    - lista de objetos + idem      → reconciliação de arrays
    - demais casos                 → um único `change`

Reconciliação de arrays de objetos:
    - se todo elemento desejado tem o campo discriminador (padrão: `type`),
      elementos são casados pelo valor desse campo, e o caminho ganha o
      segmento sintético `[i](tipo)`
    - caso contrário, casamento posicional com segmento `[i]`

Garantias:
    - nunca dois diffs para o mesmo caminho
    - nunca levanta exceção por divergência de formato: degrada para `change`
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Tuple


DEFAULT_DISCRIMINATOR = "type"


class DiffAction(str, Enum):
    ADD = "add"
    CHANGE = "change"
    REMOVE = "remove"


@dataclass(frozen=True)
class PropertyDiff:
    """
    Diferença de uma propriedade.

    - path: segmentos ordenados a partir da raiz comparada
    - action: add | change | remove
    - old_value / new_value: valores antes e depois (quando aplicável)
    """

    path: Tuple[str, ...]
    action: DiffAction
    old_value: Any = None
    new_value: Any = None


def is_object(value: Any) -> bool:
    return isinstance(value, dict)


def is_array_of_objects(value: Any) -> bool:
    return isinstance(value, list) and len(value) > 0 and all(is_object(v) for v in value)


def deep_equal(a: Any, b: Any) -> bool:
    """
    Igualdade estrutural independente da ordem das chaves.

    Booleanos e números nunca são considerados iguais entre si
    (`True` difere de `1`), como em JSON.
    """
    if isinstance(a, bool) or isinstance(b, bool):
        return isinstance(a, bool) and isinstance(b, bool) and a is b
    if is_object(a) and is_object(b):
        if a.keys() != b.keys():
            return False
        return all(deep_equal(a[k], b[k]) for k in a)
    if isinstance(a, list) and isinstance(b, list):
        if len(a) != len(b):
            return False
        return all(deep_equal(x, y) for x, y in zip(a, b))
    if is_object(a) or is_object(b) or isinstance(a, list) or isinstance(b, list):
        return False
    return a == b


def compute_property_diffs(
    current: Dict[str, Any],
    desired: Dict[str, Any],
    parent_path: Sequence[str] = (),
    *,
    discriminator: str = DEFAULT_DISCRIMINATOR,
) -> List[PropertyDiff]:
    diffs: List[PropertyDiff] = []
    keys = list(current) + [k for k in desired if k not in current]

    for key in keys:
        path = (*parent_path, str(key))

        if key not in current:
            diffs.append(PropertyDiff(path, DiffAction.ADD, new_value=desired[key]))
            continue
        if key not in desired:
            diffs.append(PropertyDiff(path, DiffAction.REMOVE, old_value=current[key]))
            continue

        current_value = current[key]
        desired_value = desired[key]
        if deep_equal(current_value, desired_value):
            continue

        if is_object(current_value) and is_object(desired_value):
            diffs.extend(
                compute_property_diffs(
                    current_value, desired_value, path, discriminator=discriminator
                )
            )
        elif is_array_of_objects(current_value) and is_array_of_objects(desired_value):
            diffs.extend(
                diff_object_arrays(
                    current_value, desired_value, path, discriminator=discriminator
                )
            )
        else:
            diffs.append(
                PropertyDiff(
                    path, DiffAction.CHANGE, old_value=current_value, new_value=desired_value
                )
            )

    return diffs


def _discriminator_value(item: Any, discriminator: str) -> Optional[Any]:
    if not is_object(item) or discriminator not in item:
        return None
    value = item[discriminator]
    try:
        hash(value)
    except TypeError:
        return None
    return value


def _has_reliable_discriminator(
    current_items: List[Any],
    desired_items: List[Any],
    discriminator: str,
) -> bool:
    """Todo elemento desejado tem valor hashable e nenhum valor se repete em qualquer lado."""
    desired_keys = [_discriminator_value(item, discriminator) for item in desired_items]
    if any(key is None for key in desired_keys) or len(set(desired_keys)) != len(desired_keys):
        return False
    current_keys = [
        key
        for key in (_discriminator_value(item, discriminator) for item in current_items)
        if key is not None
    ]
    return len(set(current_keys)) == len(current_keys)


def _diff_item(
    current_item: Any,
    desired_item: Any,
    path: Tuple[str, ...],
    discriminator: str,
) -> List[PropertyDiff]:
    if is_object(current_item) and is_object(desired_item):
        return compute_property_diffs(
            current_item, desired_item, path, discriminator=discriminator
        )
    if deep_equal(current_item, desired_item):
        return []
    return [PropertyDiff(path, DiffAction.CHANGE, old_value=current_item, new_value=desired_item)]


def diff_object_arrays(
    current_items: List[Any],
    desired_items: List[Any],
    parent_path: Sequence[str],
    *,
    discriminator: str = DEFAULT_DISCRIMINATOR,
) -> List[PropertyDiff]:
    """
    Diff de dois arrays de objetos, casando por discriminador ou por índice.
    """
    diffs: List[PropertyDiff] = []
    parent = tuple(parent_path)

    if _has_reliable_discriminator(current_items, desired_items, discriminator):
        current_by_key: Dict[Any, int] = {}
        for index, item in enumerate(current_items):
            key = _discriminator_value(item, discriminator)
            if key is not None:
                current_by_key[key] = index

        matched: set = set()
        for index, desired_item in enumerate(desired_items):
            key = desired_item[discriminator]
            label = f"[{index}]({key})"
            current_index = current_by_key.get(key)

            if current_index is None:
                diffs.append(PropertyDiff((*parent, label), DiffAction.ADD, new_value=desired_item))
                continue

            matched.add(current_index)
            diffs.extend(
                _diff_item(current_items[current_index], desired_item, (*parent, label), discriminator)
            )

        for index, current_item in enumerate(current_items):
            if index in matched:
                continue
            key = _discriminator_value(current_item, discriminator)
            label = f"[{index}]({key})" if key is not None else f"[{index}]"
            diffs.append(PropertyDiff((*parent, label), DiffAction.REMOVE, old_value=current_item))

        return diffs

    for index in range(max(len(current_items), len(desired_items))):
        path = (*parent, f"[{index}]")
        if index >= len(current_items):
            diffs.append(PropertyDiff(path, DiffAction.ADD, new_value=desired_items[index]))
        elif index >= len(desired_items):
            diffs.append(PropertyDiff(path, DiffAction.REMOVE, old_value=current_items[index]))
        else:
            diffs.extend(_diff_item(current_items[index], desired_items[index], path, discriminator))

    return diffs


def diff(
    current: Any,
    desired: Any,
    *,
    discriminator: str = DEFAULT_DISCRIMINATOR,
) -> List[PropertyDiff]:
    """
    Calcula o script mínimo de edição de `current` para `desired`.

    Args:
        current (Any): Estado atual (tipicamente resposta de API).
        desired (Any): Estado desejado resolvido.
        discriminator (str): Campo usado para casar elementos de arrays.

    Returns:
        List[PropertyDiff]: Diffs ordenados; vazio quando as árvores são iguais.
    """
    if deep_equal(current, desired):
        return []
    if is_object(current) and is_object(desired):
        return compute_property_diffs(current, desired, discriminator=discriminator)
    if is_array_of_objects(current) and is_array_of_objects(desired):
        return diff_object_arrays(current, desired, (), discriminator=discriminator)
    return [PropertyDiff((), DiffAction.CHANGE, old_value=current, new_value=desired)]
