# src/fleetsync/core/diff/settings.py
"""
Adaptadores de formato entre a configuração e a plataforma.

A configuração é escrita em camelCase; a API da plataforma responde em
snake_case e inclui ruído (ids, URLs, metadados) que nunca aparece no
estado desejado. Este módulo traduz os dois lados para um formato
comparável antes de invocar o diff estrutural ou a reconciliação por
chave.

Responsabilidades:
    - Tradução camelCase → snake_case (chaves apenas, recursivamente)
    - Projeção do estado atual no formato do desejado
    - Defaults de rulesets (`target: branch`, `enforcement: active`)
    - Normalização de cores de labels
    - Diff de settings de repositório limitado às chaves desejadas

Limites explícitos:
    - Não realiza chamadas à plataforma (o estado atual é fornecido)
    - Não decide como as mudanças são aplicadas
"""

from __future__ import annotations

from dataclasses import replace
import re
from typing import Any, Dict, FrozenSet, Iterable, List, Mapping, Optional, Sequence, Tuple

from .algorithm import DEFAULT_DISCRIMINATOR, PropertyDiff, diff, is_object
from .keyed import DEFAULT_RENAME_KEY, KeyedChange, reconcile_entities


RULESET_COMPARABLE_FIELDS: FrozenSet[str] = frozenset(
    {"target", "enforcement", "bypass_actors", "conditions", "rules"}
)

RULESET_DEFAULTS: Dict[str, str] = {"target": "branch", "enforcement": "active"}

LABEL_COMPARABLE_FIELDS: FrozenSet[str] = frozenset({"color", "description"})

# Settings que a API expõe apenas aninhados em `security_and_analysis`.
SECURITY_ANALYSIS_SETTINGS: Tuple[str, ...] = (
    "secret_scanning",
    "secret_scanning_push_protection",
)

_CAMEL_RE = re.compile(r"([A-Z])")


def camel_to_snake(name: str) -> str:
    return _CAMEL_RE.sub(r"_\1", name).lower()


def normalize_value(value: Any) -> Any:
    """
    Converte chaves para snake_case recursivamente, descartando valores None.

    Valores escalares e listas de escalares são preservados como estão.
    """
    if isinstance(value, dict):
        return {
            camel_to_snake(str(k)): normalize_value(v)
            for k, v in value.items()
            if v is not None
        }
    if isinstance(value, list):
        return [normalize_value(v) for v in value if v is not None]
    return value


def project_to_desired_shape(current: Any, desired: Any) -> Any:
    """
    Projeta `current` no formato de `desired`.

    Mantém apenas chaves presentes em `desired`; em arrays de objetos,
    casa elementos pelo discriminador `type` quando todo elemento
    desejado o possui, senão por índice. Chaves ausentes em `current`
    são omitidas (o diff as reporta como `add`).
    """
    if desired is None or current is None:
        return current
    if is_object(desired) and is_object(current):
        return {
            key: project_to_desired_shape(current[key], desired_value)
            for key, desired_value in desired.items()
            if key in current
        }
    if isinstance(desired, list) and isinstance(current, list):
        return _project_arrays(current, desired)
    return current


def _project_arrays(current: List[Any], desired: List[Any]) -> List[Any]:
    if not desired or not is_object(desired[0]):
        return current

    if all(is_object(item) and DEFAULT_DISCRIMINATOR in item for item in desired):
        current_by_type: Dict[Any, Any] = {}
        for item in current:
            if is_object(item) and item.get(DEFAULT_DISCRIMINATOR) is not None:
                try:
                    current_by_type.setdefault(item[DEFAULT_DISCRIMINATOR], item)
                except TypeError:
                    continue
        projected: List[Any] = []
        for desired_item in desired:
            try:
                current_item = current_by_type.get(desired_item[DEFAULT_DISCRIMINATOR])
            except TypeError:
                current_item = None
            if current_item is not None:
                projected.append(project_to_desired_shape(current_item, desired_item))
        return projected

    return [project_to_desired_shape(c, d) for c, d in zip(current, desired)]


def _projected_diff(current: Dict[str, Any], desired: Dict[str, Any]) -> List[PropertyDiff]:
    return diff(project_to_desired_shape(current, desired), desired)


def _attach_ids(
    changes: List[KeyedChange],
    ids: Mapping[str, Any],
) -> List[KeyedChange]:
    return [
        replace(change, entity_id=ids.get(change.name.lower()))
        if ids.get(change.name.lower()) is not None
        else change
        for change in changes
    ]


# ---------------------------------------------------------------------------
# Rulesets
# ---------------------------------------------------------------------------

def normalize_config_ruleset(ruleset: Mapping[str, Any]) -> Dict[str, Any]:
    """Ruleset da configuração em formato comparável, com defaults aplicados."""
    normalized = normalize_value(dict(ruleset))
    for key, default in RULESET_DEFAULTS.items():
        normalized.setdefault(key, default)
    return normalized


def normalize_platform_ruleset(ruleset: Mapping[str, Any]) -> Dict[str, Any]:
    """Ruleset da plataforma reduzido aos campos comparáveis."""
    return {
        key: normalize_value(value)
        for key, value in ruleset.items()
        if key in RULESET_COMPARABLE_FIELDS and value is not None
    }


def diff_rulesets(
    current: Sequence[Mapping[str, Any]],
    desired: Mapping[str, Mapping[str, Any]],
    managed: Iterable[str] = (),
    *,
    delete_orphaned: bool = True,
) -> List[KeyedChange]:
    """
    Compara rulesets da plataforma com os rulesets desejados.

    Args:
        current (Sequence[Mapping[str, Any]]): Resposta da plataforma (cada
            item com `name` e, opcionalmente, `id`).
        desired (Mapping[str, Mapping[str, Any]]): Nome → ruleset da configuração.
        managed (Iterable[str]): Nomes gerenciados em execuções anteriores.
        delete_orphaned (bool): False suprime deleções.

    Returns:
        List[KeyedChange]: Mudanças ordenadas, com `entity_id` quando conhecido.
    """
    current_by_name = {str(r["name"]): normalize_platform_ruleset(r) for r in current}
    ids = {str(r["name"]).lower(): r.get("id") for r in current}

    changes = reconcile_entities(
        current_by_name,
        {name: normalize_config_ruleset(r) for name, r in desired.items()},
        managed=managed,
        delete_orphaned=delete_orphaned,
        rename_key=DEFAULT_RENAME_KEY,
        entity_kind="ruleset",
        compare=_projected_diff,
    )
    return _attach_ids(changes, ids)


# ---------------------------------------------------------------------------
# Labels
# ---------------------------------------------------------------------------

def normalize_color(color: Optional[str]) -> Optional[str]:
    if color is None:
        return None
    return str(color).lstrip("#").lower()


def normalize_config_label(label: Mapping[str, Any]) -> Dict[str, Any]:
    normalized = normalize_value(dict(label))
    if "color" in normalized:
        normalized["color"] = normalize_color(normalized["color"])
    return normalized


def normalize_platform_label(label: Mapping[str, Any]) -> Dict[str, Any]:
    normalized = {
        key: value
        for key, value in label.items()
        if key in LABEL_COMPARABLE_FIELDS and value is not None
    }
    if "color" in normalized:
        normalized["color"] = normalize_color(normalized["color"])
    return normalized


def diff_labels(
    current: Sequence[Mapping[str, Any]],
    desired: Mapping[str, Mapping[str, Any]],
    managed: Iterable[str] = (),
    *,
    delete_orphaned: bool = True,
) -> List[KeyedChange]:
    """
    Compara labels da plataforma com as labels desejadas.

    `newName` (ou `new_name`) em uma label desejada solicita renomeação
    preservando a identidade da label existente.
    """
    current_by_name = {str(label["name"]): normalize_platform_label(label) for label in current}
    ids = {str(label["name"]).lower(): label.get("id") for label in current}

    changes = reconcile_entities(
        current_by_name,
        {name: normalize_config_label(label) for name, label in desired.items()},
        managed=managed,
        delete_orphaned=delete_orphaned,
        rename_key=DEFAULT_RENAME_KEY,
        entity_kind="label",
        compare=_projected_diff,
    )
    return _attach_ids(changes, ids)


# ---------------------------------------------------------------------------
# Settings de repositório
# ---------------------------------------------------------------------------

def _flatten_platform_settings(current: Mapping[str, Any]) -> Dict[str, Any]:
    flat = dict(current)
    security = current.get("security_and_analysis") or {}
    for key in SECURITY_ANALYSIS_SETTINGS:
        status = (security.get(key) or {}).get("status")
        if status is not None:
            flat[key] = status == "enabled"
    return flat


def diff_repo_settings(
    current: Mapping[str, Any],
    desired: Mapping[str, Any],
) -> List[PropertyDiff]:
    """
    Compara settings do repositório apenas nas chaves declaradas.

    Settings ausentes na resposta da plataforma são reportados como `add`;
    chaves que a configuração não declara nunca geram `remove`.
    """
    normalized = normalize_value(dict(desired))
    projected = project_to_desired_shape(_flatten_platform_settings(current), normalized)
    return diff(projected, normalized)
