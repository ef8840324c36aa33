"""
Fleetsync — Canonical Exceptions (v1)

Este módulo define exceções tipadas internas do Fleetsync para a camada
de reconciliação de settings.

Objetivo:
- Permitir que reconciliadores e Engine levantem exceções semânticas tipadas
- Facilitar o mapeamento determinístico para FleetErrorPayload
- Evitar ValueError/RuntimeError genéricos em guardrails críticos

Regras:
- Erros de autoria da configuração vivem em `core.config.errors`
  (hierarquia simples de `ConfigError`) e abortam a resolução inteira.
- Exceções deste módulo são fatais apenas para o lote do repositório
  em que ocorreram.
- Exceções devem carregar apenas dados estruturados (serializáveis).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class FleetException(Exception):
    """Base class para exceções internas do Fleetsync.

    Importante:
    - Sempre carregar dados estruturados em `details`
    - Não embedar stack trace em payloads de erro
    - Mensagem deve ser curta e humana
    """

    message: str
    details: Dict[str, Any]
    hint: Optional[str] = None

    def __str__(self) -> str:  # pragma: no cover
        return self.message


# ---------------------------------------------------------------------------
# Reconciliação de entidades
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class RenameCollision(FleetException):
    """Alvo de renomeação colide com outro nome final ou com uma entidade sobrevivente."""


# ---------------------------------------------------------------------------
# Engine / Configuração
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class EngineConfigurationError(FleetException):
    """Configuração inválida ou inconsistente para execução."""
