"""
Fleetsync — Canonical Error Structures (v1)

Este módulo define o padrão canônico de erros do Fleetsync.
Erros são considerados artefatos de domínio e fazem parte do contrato
operacional do sistema, devendo ser:

- explícitos
- serializáveis
- rastreáveis até o repositório e a entidade de origem

Nenhuma recuperação silenciosa é permitida: erros de autoria nunca
são re-tentados.
"""

from __future__ import annotations

from dataclasses import dataclass, asdict
from typing import Any, Dict, List, Optional

from .exceptions import EngineConfigurationError, FleetException, RenameCollision


# ---------------------------------------------------------------------------
# Payload canônico
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class FleetErrorPayload:
    """
    Payload canônico de erro do Fleetsync.

    Campos:
    - type: código estável do erro (não é texto livre)
    - message: mensagem curta, humana e objetiva
    - details: dados estruturados relevantes para diagnóstico
    - hint: ação sugerida ao operador (onde corrigir)
    """

    type: str
    message: str
    details: Dict[str, Any]
    hint: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Retorna representação serializável do erro."""
        return asdict(self)


# ---------------------------------------------------------------------------
# Catálogo canônico de tipos de erro (v1)
# ---------------------------------------------------------------------------

# Reconciliação
RENAME_COLLISION = "RENAME_COLLISION"
CURRENT_STATE_UNAVAILABLE = "CURRENT_STATE_UNAVAILABLE"

# Engine / Execução
RECONCILE_EXECUTION_ERROR = "RECONCILE_EXECUTION_ERROR"
ENGINE_CONFIGURATION_ERROR = "ENGINE_CONFIGURATION_ERROR"


# ---------------------------------------------------------------------------
# Helpers de fábrica
# ---------------------------------------------------------------------------

def rename_collision(
    *,
    repo: str,
    kind: str,
    names: List[str],
    target: Optional[str] = None,
    message: str = "Colisão de renomeação detectada",
    hint: str = "Ajuste os alvos de renomeação para que cada nome final seja único no repositório.",
) -> FleetErrorPayload:
    return FleetErrorPayload(
        type=RENAME_COLLISION,
        message=message,
        details={
            "repo": repo,
            "kind": kind,
            "names": names,
            "target": target,
        },
        hint=hint,
    )


def current_state_unavailable(
    *,
    repo: str,
    kind: str,
    exc_type: Optional[str] = None,
    exc_message: Optional[str] = None,
    hint: str = "Verifique credenciais e conectividade com a plataforma antes de reexecutar.",
) -> FleetErrorPayload:
    return FleetErrorPayload(
        type=CURRENT_STATE_UNAVAILABLE,
        message="Não foi possível obter o estado atual da plataforma",
        details={
            "repo": repo,
            "kind": kind,
            "exc_type": exc_type,
            "exc_message": exc_message,
        },
        hint=hint,
    )


def reconcile_execution_error(
    *,
    repo: Optional[str] = None,
    kind: Optional[str] = None,
    exc_type: Optional[str] = None,
    exc_message: Optional[str] = None,
    hint: str = "Verifique o stacktrace e o estado atual do repositório. Nenhum fallback é aplicado automaticamente.",
) -> FleetErrorPayload:
    return FleetErrorPayload(
        type=RECONCILE_EXECUTION_ERROR,
        message="Falha inesperada durante a reconciliação do repositório",
        details={
            "repo": repo,
            "kind": kind,
            "exc_type": exc_type,
            "exc_message": exc_message,
        },
        hint=hint,
    )


def engine_configuration_error(
    *,
    message: str = "Configuração inválida para execução da reconciliação",
    details: Optional[Dict[str, Any]] = None,
    hint: Optional[str] = None,
) -> FleetErrorPayload:
    return FleetErrorPayload(
        type=ENGINE_CONFIGURATION_ERROR,
        message=message,
        details=details or {},
        hint=hint or "Revise as opções do run e os reconciliadores registrados antes de reexecutar.",
    )


def payload_from_exception(
    exc: BaseException,
    *,
    repo: Optional[str] = None,
    kind: Optional[str] = None,
) -> FleetErrorPayload:
    """
    Converte uma exceção em payload canônico.

    - `RenameCollision` mantém os nomes conflitantes
    - `EngineConfigurationError` vira ENGINE_CONFIGURATION_ERROR
    - demais `FleetException` preservam message/details/hint
    - qualquer outra exceção vira RECONCILE_EXECUTION_ERROR
    """
    if isinstance(exc, RenameCollision):
        return rename_collision(
            repo=repo or "",
            kind=kind or str(exc.details.get("entity_kind", "")),
            names=list(exc.details.get("names", [])),
            target=exc.details.get("target"),
            message=exc.message,
            hint=exc.hint or "Ajuste os alvos de renomeação para que cada nome final seja único no repositório.",
        )
    if isinstance(exc, EngineConfigurationError):
        return engine_configuration_error(
            message=exc.message,
            details={"repo": repo, "kind": kind, **exc.details},
            hint=exc.hint,
        )
    if isinstance(exc, FleetException):
        return FleetErrorPayload(
            type=RECONCILE_EXECUTION_ERROR,
            message=exc.message,
            details={"repo": repo, "kind": kind, **exc.details},
            hint=exc.hint,
        )
    return reconcile_execution_error(
        repo=repo,
        kind=kind,
        exc_type=type(exc).__name__,
        exc_message=str(exc),
    )
