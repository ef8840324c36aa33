# src/fleetsync/core/config/merge.py
"""
Resolvedor canônico de merge de conteúdo.

Este módulo implementa a política oficial de merge utilizada pelo
Fleetsync para combinar o conteúdo base de um arquivo (definido na
raiz) com o overlay declarado por um repositório.

Política de merge (v1), por tipo de conteúdo:
    - texto simples      → o overlay substitui a base (estratégia ignorada)
    - lista de texto     → replace (padrão) | append | prepend
    - conteúdo estruturado:
        - dict + dict    → merge recursivo por chave
        - list           → estratégia do contexto (padrão: sobrescrita total),
                           exceto quando o overlay traz uma `MergeDirective`
        - escalar        → sobrescrita direta pelo overlay
    - texto vs estruturado → erro explícito (`ContentTypeMismatch`)

Princípios fundamentais:
    - A base é sempre aplicada antes do overlay; o overlay vence empates
    - Nenhum input é mutado: a base é copiada antes do merge, pois a
      mesma base é reutilizada por todos os repositórios de uma execução
    - Nenhuma diretiva sobrevive na saída, em qualquer profundidade

Limites explícitos:
    - Não interpola variáveis de ambiente
    - Não decide precedência entre arquivos e repositórios
"""

from __future__ import annotations

from copy import deepcopy
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from .errors import ContentTypeMismatch
from .model import ContentKind, MergeDirective, MergeStrategy


@dataclass(frozen=True)
class MergeContext:
    """
    Contexto de uma chamada de merge.

    - strategy: estratégia padrão para listas sem diretiva
    - strip_directives: remove diretivas remanescentes da saída
    """

    strategy: MergeStrategy = MergeStrategy.REPLACE
    strip_directives: bool = True


def create_merge_context(strategy: Optional[MergeStrategy] = None) -> MergeContext:
    return MergeContext(strategy=MergeStrategy.parse(strategy))


def content_kind(value: Any) -> ContentKind:
    """Classifica um valor de conteúdo em um dos tipos fechados."""
    if value is None:
        return ContentKind.NULL
    if isinstance(value, dict):
        return ContentKind.STRUCTURED
    if isinstance(value, (list, MergeDirective)):
        return ContentKind.TEXT_LIST
    return ContentKind.TEXT


def strip_directives(value: Any) -> Any:
    """
    Remove todas as diretivas de um conteúdo, em qualquer profundidade.

    Uma diretiva remanescente (sem lista base para combinar) é
    substituída pelos seus próprios valores. Retorna sempre uma nova
    estrutura para dicts e listas.
    """
    if isinstance(value, MergeDirective):
        return strip_directives(value.values)
    if isinstance(value, dict):
        return {k: strip_directives(v) for k, v in value.items()}
    if isinstance(value, list):
        return [strip_directives(v) for v in value]
    return value


def merge_lists(base: List[Any], overlay: List[Any], strategy: MergeStrategy) -> List[Any]:
    if strategy is MergeStrategy.APPEND:
        return [*deepcopy(base), *deepcopy(overlay)]
    if strategy is MergeStrategy.PREPEND:
        return [*deepcopy(overlay), *deepcopy(base)]
    return deepcopy(overlay)


def merge_text_content(base: Any, overlay: Any, strategy: MergeStrategy) -> Any:
    """
    Combina conteúdo textual.

    Texto simples em qualquer um dos lados faz o overlay vencer por
    inteiro; duas listas de linhas seguem a estratégia declarada.
    """
    if isinstance(overlay, MergeDirective):
        strategy = overlay.strategy
        overlay = strip_directives(overlay.values)
    if isinstance(base, list) and isinstance(overlay, list):
        return merge_lists(base, overlay, strategy)
    return deepcopy(overlay)


def deep_merge(
    base: Dict[str, Any],
    overlay: Dict[str, Any],
    ctx: Optional[MergeContext] = None,
) -> Dict[str, Any]:
    """
    Realiza um deep-merge determinístico entre conteúdo base e overlay.

    Regras:
        - chave apenas no overlay → adicionada
        - dict + dict             → merge recursivo
        - list + list             → `ctx.strategy` (padrão: replace)
        - overlay `MergeDirective` → estratégia da diretiva, sem o invólucro
        - demais casos            → valor do overlay

    Args:
        base (Dict[str, Any]): Conteúdo base (não é mutado).
        overlay (Dict[str, Any]): Conteúdo de overlay (não é mutado).
        ctx (Optional[MergeContext]): Contexto de merge.

    Returns:
        Dict[str, Any]: Novo dicionário resultante.
    """
    ctx = ctx or MergeContext()
    result: Dict[str, Any] = deepcopy(base)

    for key, overlay_value in overlay.items():
        base_value = result.get(key)

        if isinstance(overlay_value, MergeDirective):
            values = strip_directives(overlay_value.values)
            if isinstance(base_value, list):
                result[key] = merge_lists(base_value, values, overlay_value.strategy)
            else:
                result[key] = values
            continue

        if key not in result:
            result[key] = deepcopy(overlay_value)
            continue

        if isinstance(base_value, dict) and isinstance(overlay_value, dict):
            result[key] = deep_merge(
                base_value,
                overlay_value,
                MergeContext(strategy=ctx.strategy, strip_directives=False),
            )
            continue

        if isinstance(base_value, list) and isinstance(overlay_value, list):
            result[key] = merge_lists(base_value, overlay_value, ctx.strategy)
            continue

        result[key] = deepcopy(overlay_value)

    if ctx.strip_directives:
        return strip_directives(result)
    return result


def resolve_content(
    base: Any,
    overlay: Any,
    strategy: MergeStrategy = MergeStrategy.REPLACE,
    *,
    file_name: str = "<content>",
) -> Any:
    """
    Resolve o conteúdo de uma unidade configurável (base + overlay).

    Raises:
        ContentTypeMismatch: Se base e overlay tiverem tipos incompatíveis.
    """
    base_kind = content_kind(base)
    overlay_kind = content_kind(overlay)

    if overlay_kind is ContentKind.NULL:
        return strip_directives(deepcopy(base))
    if base_kind is ContentKind.NULL:
        return strip_directives(deepcopy(overlay))

    if base_kind.is_text != overlay_kind.is_text:
        raise ContentTypeMismatch(file_name, base_kind.value, overlay_kind.value)

    if base_kind.is_text:
        return strip_directives(merge_text_content(base, overlay, strategy))

    return deep_merge(base, overlay, MergeContext(strategy=strategy))
