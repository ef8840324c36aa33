# src/fleetsync/core/config/env.py
"""
Interpolação de variáveis de ambiente em conteúdo resolvido.

Sintaxe suportada (contrato com todos os chamadores):
    - ${NAME}            → obrigatório; ausência é erro em modo estrito
    - ${NAME:-default}   → usa `default` quando a variável está ausente ou vazia
    - ${NAME:?mensagem}  → obrigatório, com mensagem de erro customizada;
                           ausente ou vazia é erro (mesma regra do `:-`)
    - $${NAME}           → escape; produz o texto literal `${NAME}`

A interpolação percorre todas as folhas string da árvore de conteúdo,
inclusive dentro de listas e objetos. Chaves de dicionário nunca são
interpoladas.

Limites explícitos:
    - Não lê arquivos .env
    - Não avalia expressões aninhadas
"""

from __future__ import annotations

import os
import re
from typing import Any, Mapping, Optional

from .errors import MissingEnvironmentVariable


_PLACEHOLDER = re.compile(
    r"\$(\$?)\{([A-Za-z_][A-Za-z0-9_]*)(?:(:-|:\?)([^}]*))?\}"
)


def interpolate_string(
    text: str,
    *,
    strict: bool = True,
    environ: Optional[Mapping[str, str]] = None,
) -> str:
    env = os.environ if environ is None else environ

    def _replace(match: "re.Match[str]") -> str:
        escaped, name, operator, argument = match.groups()
        if escaped:
            return match.group(0)[1:]

        value = env.get(name)

        if operator == ":-":
            return value if value else argument
        if operator == ":?":
            if value:
                return value
            raise MissingEnvironmentVariable(name, argument or None)
        if value is not None:
            return value
        if strict:
            raise MissingEnvironmentVariable(name)
        return match.group(0)

    return _PLACEHOLDER.sub(_replace, text)


def interpolate_content(
    value: Any,
    *,
    strict: bool = True,
    environ: Optional[Mapping[str, str]] = None,
) -> Any:
    """
    Interpola variáveis de ambiente em toda folha string de `value`.

    Returns:
        Any: Nova árvore com placeholders resolvidos.

    Raises:
        MissingEnvironmentVariable: Se uma variável obrigatória estiver ausente.
    """
    if isinstance(value, str):
        return interpolate_string(value, strict=strict, environ=environ)
    if isinstance(value, dict):
        return {
            k: interpolate_content(v, strict=strict, environ=environ)
            for k, v in value.items()
        }
    if isinstance(value, list):
        return [interpolate_content(v, strict=strict, environ=environ) for v in value]
    return value
