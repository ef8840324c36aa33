# src/fleetsync/core/engine/engine.py
"""
Engine de reconciliação de settings do Fleetsync.

O Engine percorre cada repositório de uma `ResolvedConfig` e, para cada
reconciliador habilitado, obtém o estado atual por meio de um callable
fornecido pelo chamador e classifica as entidades em mudanças ordenadas.

Política de falhas:
- Erros de autoria da configuração já abortaram a resolução antes do Engine.
- Qualquer exceção no lote de um repositório (ex.: `RenameCollision`,
  falha ao obter o estado atual) é convertida em `FleetErrorPayload` e
  registrada como FAILED apenas para aquele repositório.
- Os demais repositórios continuam, exceto com `fail_fast=True`.
- Um reconciliador que não devolve `List[KeyedChange]` falha o repositório
  com ENGINE_CONFIGURATION_ERROR.
- `enabled_kinds` com ids desconhecidos aborta a run inteira: o payload
  ENGINE_CONFIGURATION_ERROR é registrado como evento (`repo="*"`) e a
  exceção é propagada.

Rastreabilidade:
- O plano de cada repositório é armazenado no RunContext como `plan:<git>`.
- Eventos estruturados registram início, contagens, falhas e skips.
- O evento de início carrega o fingerprint do estado desejado do repo.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from fleetsync.core.config.model import ResolvedConfig, ResolvedRepo
from fleetsync.core.diff.keyed import KeyedAction, KeyedChange
from fleetsync.core.errors import (
    FleetErrorPayload,
    current_state_unavailable,
    payload_from_exception,
)
from fleetsync.core.exceptions import EngineConfigurationError
from fleetsync.core.pipeline.context import RunContext
from fleetsync.core.pipeline.reconciler import EntityReconciler
from fleetsync.core.pipeline.registry import ReconcilerRegistry
from fleetsync.core.pipeline.types import BatchStatus, RepoPlanResult, count_actions


FetchCurrent = Callable[[str, str], Sequence[Mapping[str, Any]]]
ManagedNames = Mapping[str, Mapping[str, Iterable[str]]]


@dataclass(frozen=True)
class ReconcileOptions:
    """
    Opções de execução do Engine.

    - fail_fast: interrompe a run no primeiro repositório FAILED
    - no_delete: suprime deleções globalmente, mesmo com deleteOrphaned
    - enabled_kinds: ids de reconciliadores habilitados (None = todos)
    """

    fail_fast: bool = False
    no_delete: bool = False
    enabled_kinds: Optional[Tuple[str, ...]] = None


@dataclass(frozen=True)
class RunResult:
    """Resultado agregado de uma run: URL git → RepoPlanResult."""

    repos: Dict[str, RepoPlanResult] = field(default_factory=dict)

    def failed(self) -> List[RepoPlanResult]:
        return [r for r in self.repos.values() if r.status == BatchStatus.FAILED]


class _CurrentStateError(Exception):
    def __init__(self, payload: FleetErrorPayload):
        super().__init__(payload.message)
        self.payload = payload


def summarize(counts: Mapping[str, Mapping[str, int]]) -> str:
    """Resumo textual no formato `N to create, N to update, N to delete, N unchanged`."""
    totals = {action.value: 0 for action in KeyedAction}
    for per_kind in counts.values():
        for action, n in per_kind.items():
            totals[action] += n

    parts = []
    if totals["create"]:
        parts.append(f"{totals['create']} to create")
    if totals["update"]:
        parts.append(f"{totals['update']} to update")
    if totals["delete"]:
        parts.append(f"{totals['delete']} to delete")
    if totals["unchanged"]:
        parts.append(f"{totals['unchanged']} unchanged")
    return ", ".join(parts) if parts else "no changes"


class ReconcileEngine:
    """Engine canônico de reconciliação de entidades por repositório."""

    def __init__(
        self,
        *,
        registry: ReconcilerRegistry,
        ctx: RunContext,
        options: Optional[ReconcileOptions] = None,
    ):
        self.registry = registry
        self.ctx = ctx
        self.options = options or ReconcileOptions()

    def _enabled(self) -> List[EntityReconciler]:
        kinds = self.options.enabled_kinds
        if kinds is None:
            return self.registry.list()

        unknown = [k for k in kinds if k not in self.registry.ids()]
        if unknown:
            raise EngineConfigurationError(
                message="Tipos de entidade desconhecidos em enabled_kinds",
                details={"unknown": unknown, "registered": self.registry.ids()},
                hint="Use apenas ids de reconciliadores registrados.",
            )
        return [r for r in self.registry.list() if r.id in kinds]

    def _delete_orphaned(self, repo: ResolvedRepo) -> bool:
        if self.options.no_delete:
            return False
        settings = repo.settings
        return bool(settings is not None and settings.delete_orphaned)

    def _warn_kept_orphans(
        self,
        repo: ResolvedRepo,
        kind: str,
        desired: Mapping[str, Any],
        current: Sequence[Mapping[str, Any]],
        managed: List[str],
    ) -> None:
        desired_keys = {name.lower() for name in desired}
        for entity in desired.values():
            if entity.get("newName") or entity.get("new_name"):
                desired_keys.add(str(entity.get("newName") or entity.get("new_name")).lower())
        current_keys = {str(item.get("name", "")).lower() for item in current}
        kept = [n for n in managed if n.lower() not in desired_keys and n.lower() in current_keys]
        if kept:
            self.ctx.add_warning(
                repo=repo.git,
                message=f"{kind}: {len(kept)} entidade(s) órfã(s) mantida(s) (deleção suprimida): {', '.join(kept)}",
            )

    def _fetch(self, fetch_current: FetchCurrent, repo: ResolvedRepo, kind: str) -> Sequence[Mapping[str, Any]]:
        try:
            return list(fetch_current(repo.git, kind))
        except Exception as exc:
            raise _CurrentStateError(
                current_state_unavailable(
                    repo=repo.git,
                    kind=kind,
                    exc_type=exc.__class__.__name__,
                    exc_message=str(exc),
                )
            ) from exc

    def _tracked_names(self, changes: List[KeyedChange], delete_orphaned: bool) -> List[str]:
        if not delete_orphaned:
            return []
        names = []
        for change in changes:
            if change.action == KeyedAction.DELETE:
                continue
            names.append(change.rename_to or change.name)
        return names

    def _plan_repo(
        self,
        repo: ResolvedRepo,
        reconcilers: List[EntityReconciler],
        fetch_current: FetchCurrent,
        managed_names: ManagedNames,
    ) -> RepoPlanResult:
        repo_managed = managed_names.get(repo.git, {}) or {}
        delete_orphaned = self._delete_orphaned(repo)

        work = []
        for reconciler in reconcilers:
            desired = reconciler.desired(repo) or {}
            managed = list(repo_managed.get(reconciler.id, ()) or ())
            if desired or managed:
                work.append((reconciler, desired, managed))

        if not work:
            self.ctx.log(repo=repo.git, level="info", message="batch skipped: nothing to reconcile")
            return RepoPlanResult(
                repo=repo.git,
                status=BatchStatus.SKIPPED,
                summary="nothing to reconcile",
            )

        self.ctx.log(
            repo=repo.git,
            level="info",
            message="batch started",
            kinds=[r.id for r, _, _ in work],
            desired_hash=repo.desired_hash(),
            delete_orphaned=delete_orphaned,
        )

        changes: Dict[str, List[KeyedChange]] = {}
        tracked: Dict[str, List[str]] = {}
        for reconciler, desired, managed in work:
            current = self._fetch(fetch_current, repo, reconciler.id)
            kind_changes = reconciler.reconcile(
                repo, current, managed, delete_orphaned=delete_orphaned
            )
            if not isinstance(kind_changes, list) or not all(
                isinstance(change, KeyedChange) for change in kind_changes
            ):
                raise EngineConfigurationError(
                    message="Reconciliador retornou tipo inválido",
                    details={
                        "kind": reconciler.id,
                        "expected": "List[KeyedChange]",
                        "received": type(kind_changes).__name__,
                    },
                    hint="Ajuste o reconciliador para retornar uma lista de KeyedChange.",
                )
            if not delete_orphaned and managed:
                self._warn_kept_orphans(repo, reconciler.id, desired, current, managed)

            changes[reconciler.id] = kind_changes
            tracked[reconciler.id] = self._tracked_names(kind_changes, delete_orphaned)
            self.ctx.log(
                repo=repo.git,
                level="info",
                message=f"{reconciler.id} planned",
                kind=reconciler.id,
                counts=count_actions(kind_changes),
            )

        counts = {kind: count_actions(kind_changes) for kind, kind_changes in changes.items()}
        self.ctx.set_artifact(f"plan:{repo.git}", changes)

        return RepoPlanResult(
            repo=repo.git,
            status=BatchStatus.SUCCESS,
            summary=summarize(counts),
            changes=changes,
            counts=counts,
            managed=tracked,
            warnings=self.ctx.warnings_for(repo.git),
        )

    def run(
        self,
        config: ResolvedConfig,
        fetch_current: FetchCurrent,
        managed_names: Optional[ManagedNames] = None,
    ) -> RunResult:
        """
        Executa a reconciliação de todos os repositórios.

        Args:
            config (ResolvedConfig): Configuração resolvida.
            fetch_current (FetchCurrent): `(git, kind) → lista de entidades atuais`
                no formato da plataforma.
            managed_names (Optional[ManagedNames]): `git → kind → nomes` gerenciados
                em execuções anteriores.

        Returns:
            RunResult: Resultado por repositório.

        Raises:
            EngineConfigurationError: Se `enabled_kinds` citar ids não registrados.
        """
        try:
            reconcilers = self._enabled()
        except EngineConfigurationError as exc:
            error = payload_from_exception(exc)
            self.ctx.log(repo="*", level="error", message=error.message, error=error.to_dict())
            raise
        managed_names = managed_names or {}

        self.ctx.config_id = config.id
        self.ctx.config_hash = config.config_hash()

        results: Dict[str, RepoPlanResult] = {}
        for repo in config.repos:
            try:
                results[repo.git] = self._plan_repo(repo, reconcilers, fetch_current, managed_names)
                continue
            except _CurrentStateError as exc:
                error = exc.payload
            except Exception as exc:
                error = payload_from_exception(exc, repo=repo.git)

            self.ctx.log(
                repo=repo.git,
                level="error",
                message=error.message,
                error_type=error.type,
            )
            results[repo.git] = RepoPlanResult(
                repo=repo.git,
                status=BatchStatus.FAILED,
                summary=error.message,
                warnings=self.ctx.warnings_for(repo.git),
                error=error.to_dict(),
            )

            if self.options.fail_fast:
                break

        return RunResult(repos=results)
