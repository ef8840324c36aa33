# src/fleetsync/core/config/normalizer.py
"""
Normalizador de configuração do Fleetsync.

Este módulo transforma uma `RawConfig` (raiz + overrides por repo) em
uma `ResolvedConfig`: um estado desejado completo para cada repositório.

Pipeline por repositório:
    1. Expansão de aliases (`git` com N URLs → N repos independentes)
    2. Resolução de conteúdo por arquivo (precedência estrita de regras)
    3. Interpolação estrita de variáveis de ambiente
    4. Resolução de campos escalares e cadeias de fallback
    5. Herança de entidades nomeadas (rulesets, labels) e settings do repo

Precedência de conteúdo por arquivo (a primeira regra que casar vence):
    1. overlay `false`                 → arquivo excluído
    2. overlay `override: true`        → somente o overlay (ou null)
    3. base vazia + overlay com conteúdo → overlay
    4. base vazia + overlay vazio      → null
    5. overlay sem conteúdo            → cópia da base
    6. caso geral                      → merge (ver `merge.resolve_content`)

Invariantes:
    - A RawConfig nunca é mutada; toda base é copiada antes do merge
    - Repos expandidos não compartilham estado mutável
    - A mesma entrada sempre produz a mesma saída

Limites explícitos:
    - Não valida schema estrutural (responsabilidade upstream)
    - Não realiza I/O de rede nem de repositórios
"""

from __future__ import annotations

from copy import deepcopy
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple, Union

from .env import interpolate_content
from .errors import ContentTypeMismatch, InvalidOptOut, MissingEnvironmentVariable
from .merge import MergeContext, deep_merge, resolve_content, strip_directives
from .model import (
    EntityCollection,
    FileDefinition,
    FileOverride,
    PROptions,
    RawConfig,
    RawRepoEntry,
    RawSettings,
    ResolvedConfig,
    ResolvedFileContent,
    ResolvedRepo,
    ResolvedSettings,
)


def normalize_header(header: Union[str, List[str], None]) -> Optional[List[str]]:
    if header is None:
        return None
    if isinstance(header, str):
        return [header]
    return list(header)


def _first_defined(*values: Any) -> Any:
    for value in values:
        if value is not None:
            return value
    return None


def merge_pr_options(
    root: Optional[PROptions],
    per_repo: Optional[PROptions],
) -> Optional[PROptions]:
    """Campo do repo quando definido, senão o global; None se nada estiver definido."""
    if root is None and per_repo is None:
        return None
    root = root or PROptions()
    per_repo = per_repo or PROptions()
    merged = PROptions(
        merge=_first_defined(per_repo.merge, root.merge),
        merge_strategy=_first_defined(per_repo.merge_strategy, root.merge_strategy),
        delete_branch=_first_defined(per_repo.delete_branch, root.delete_branch),
        bypass_reason=_first_defined(per_repo.bypass_reason, root.bypass_reason),
    )
    return None if merged.is_empty() else merged


def _resolve_file_content(
    file_name: str,
    definition: FileDefinition,
    override: Optional[FileOverride],
) -> Any:
    if override is not None and override.override:
        if override.content is None:
            return None
        return strip_directives(deepcopy(override.content))

    overlay = override.content if override is not None else None

    if definition.content is None:
        if overlay is None:
            return None
        return strip_directives(deepcopy(overlay))

    if overlay is None:
        return strip_directives(deepcopy(definition.content))

    return resolve_content(
        definition.content,
        overlay,
        definition.merge_strategy,
        file_name=file_name,
    )


def resolve_file(
    file_name: str,
    definition: FileDefinition,
    override: Optional[FileOverride],
    *,
    global_delete_orphaned: Optional[bool] = None,
    environ: Optional[Mapping[str, str]] = None,
    repo: Optional[str] = None,
) -> ResolvedFileContent:
    """
    Resolve um arquivo para um repositório.

    Args:
        file_name (str): Nome do arquivo (usado nas mensagens de erro).
        definition (FileDefinition): Definição base da raiz.
        override (Optional[FileOverride]): Overlay do repo, se houver.
        global_delete_orphaned (Optional[bool]): Último nível do fallback.
        environ (Optional[Mapping[str, str]]): Ambiente para interpolação.
        repo (Optional[str]): URL git do repositório (usada nas mensagens de erro).

    Returns:
        ResolvedFileContent: Conteúdo e campos resolvidos.

    Raises:
        ContentTypeMismatch: Se base e overlay tiverem tipos incompatíveis.
        MissingEnvironmentVariable: Se uma variável obrigatória estiver ausente.
    """
    try:
        content = _resolve_file_content(file_name, definition, override)
    except ContentTypeMismatch as exc:
        raise ContentTypeMismatch(
            exc.file_name, exc.base_kind, exc.overlay_kind, repo=repo
        ) from exc

    if content is not None:
        try:
            content = interpolate_content(content, strict=True, environ=environ)
        except MissingEnvironmentVariable as exc:
            raise MissingEnvironmentVariable(
                exc.name, exc.custom_message, file_name=file_name, repo=repo
            ) from exc

    ov = override or FileOverride()

    if definition.vars is not None or ov.vars is not None:
        variables: Optional[Dict[str, str]] = {**(definition.vars or {}), **(ov.vars or {})}
    else:
        variables = None

    return ResolvedFileContent(
        file_name=file_name,
        content=content,
        create_only=_first_defined(ov.create_only, definition.create_only),
        executable=_first_defined(ov.executable, definition.executable),
        header=normalize_header(_first_defined(ov.header, definition.header)),
        schema_url=_first_defined(ov.schema_url, definition.schema_url),
        template=_first_defined(ov.template, definition.template),
        vars=variables,
        delete_orphaned=_first_defined(
            ov.delete_orphaned,
            definition.delete_orphaned,
            global_delete_orphaned,
        ),
    )


def merge_entity(
    root: Optional[Dict[str, Any]],
    per_repo: Optional[Dict[str, Any]],
) -> Dict[str, Any]:
    """
    Deep-merge de uma entidade nomeada: listas são sempre sobrescritas
    por inteiro e diretivas não têm efeito nesta camada.
    """
    if root is None:
        return deepcopy(per_repo or {})
    if per_repo is None:
        return deepcopy(root)
    return deep_merge(root, per_repo, MergeContext())


def merge_entity_collection(
    collection: str,
    root: Optional[EntityCollection],
    per_repo: Optional[EntityCollection],
    *,
    context: str,
) -> Optional[Dict[str, Dict[str, Any]]]:
    """
    Resolve a herança de uma coleção de entidades por nome.

    Regras:
        - nome apenas na raiz ou apenas no repo → propagado como está
        - nome nos dois → deep-merge (listas sobrescritas por inteiro)
        - `nome: false` no repo → remove a entidade; erro se a raiz não a define
        - `inherit: false` no repo → suprime entidades da raiz não redeclaradas

    O opt-out por nome prevalece sobre `inherit`, nos dois sentidos.

    Returns:
        Optional[Dict[str, Dict[str, Any]]]: Coleção resolvida, ou None se vazia.

    Raises:
        InvalidOptOut: Se um opt-out referenciar nome inexistente na raiz.
    """
    root_entries = root.entries if root is not None else {}
    repo_entries = per_repo.entries if per_repo is not None else {}
    inherit = per_repo.inherit if per_repo is not None else True

    for name, value in repo_entries.items():
        if value is False and not isinstance(root_entries.get(name), dict):
            raise InvalidOptOut(collection, name, context)

    resolved: Dict[str, Dict[str, Any]] = {}
    names = list(root_entries) + [n for n in repo_entries if n not in root_entries]

    for name in names:
        root_value = root_entries.get(name)
        repo_value = repo_entries.get(name)

        if repo_value is False:
            continue
        if not isinstance(root_value, dict):
            root_value = None
        if not isinstance(repo_value, dict):
            repo_value = None
        if repo_value is None and (root_value is None or not inherit):
            continue

        resolved[name] = merge_entity(root_value, repo_value)

    return resolved or None


def _merge_repo_settings(
    root: Union[Dict[str, Any], bool, None],
    per_repo: Union[Dict[str, Any], bool, None],
    *,
    context: str,
) -> Optional[Dict[str, Any]]:
    root_value = root if isinstance(root, dict) else None
    if per_repo is False:
        if root_value is None:
            raise InvalidOptOut("repo", "repo", context)
        return None
    repo_value = per_repo if isinstance(per_repo, dict) else None
    if root_value is None and repo_value is None:
        return None
    return merge_entity(root_value, repo_value) or None


def merge_settings(
    root: Optional[RawSettings],
    per_repo: Optional[RawSettings],
    *,
    context: str = "settings",
) -> Optional[ResolvedSettings]:
    """
    Combina settings da raiz com os do repo.

    Returns:
        Optional[ResolvedSettings]: Settings resolvidos, ou None se nada estiver definido.
    """
    if root is None and per_repo is None:
        return None

    rulesets = merge_entity_collection(
        "rulesets",
        root.rulesets if root else None,
        per_repo.rulesets if per_repo else None,
        context=context,
    )
    labels = merge_entity_collection(
        "labels",
        root.labels if root else None,
        per_repo.labels if per_repo else None,
        context=context,
    )
    repo = _merge_repo_settings(
        root.repo if root else None,
        per_repo.repo if per_repo else None,
        context=context,
    )
    delete_orphaned = _first_defined(
        per_repo.delete_orphaned if per_repo else None,
        root.delete_orphaned if root else None,
    )

    settings = ResolvedSettings(
        rulesets=rulesets,
        labels=labels,
        repo=repo,
        delete_orphaned=delete_orphaned,
    )
    if settings == ResolvedSettings():
        return None
    return settings


def _iter_repo_files(
    raw: RawConfig,
    entry: RawRepoEntry,
) -> Iterator[Tuple[str, FileDefinition, Optional[FileOverride]]]:
    for file_name, definition in raw.files.items():
        override = entry.files.get(file_name)

        if override is False:
            continue
        if not entry.inherit_files and not isinstance(override, FileOverride):
            continue

        yield file_name, definition, override if isinstance(override, FileOverride) else None


def normalize_config(
    raw: RawConfig,
    *,
    environ: Optional[Mapping[str, str]] = None,
) -> ResolvedConfig:
    """
    Normaliza uma RawConfig em uma ResolvedConfig.

    Qualquer erro de autoria (tipo de conteúdo, variável ausente,
    opt-out inválido) aborta a resolução inteira antes de qualquer
    repositório ser entregue aos colaboradores.

    Args:
        raw (RawConfig): Configuração declarada (não é mutada).
        environ (Optional[Mapping[str, str]]): Ambiente para interpolação.

    Returns:
        ResolvedConfig: Estado desejado por repositório.
    """
    repos: List[ResolvedRepo] = []

    for entry in raw.repos:
        for git_url in entry.git:
            context = f"Repo {git_url}"
            files = [
                resolve_file(
                    file_name,
                    definition,
                    override,
                    global_delete_orphaned=raw.delete_orphaned,
                    environ=environ,
                    repo=git_url,
                )
                for file_name, definition, override in _iter_repo_files(raw, entry)
            ]
            repos.append(
                ResolvedRepo(
                    git=git_url,
                    files=files,
                    pr_options=merge_pr_options(raw.pr_options, entry.pr_options),
                    settings=merge_settings(raw.settings, entry.settings, context=context),
                )
            )

    return ResolvedConfig(
        id=raw.id,
        repos=repos,
        pr_template=raw.pr_template,
        github_hosts=list(raw.github_hosts) if raw.github_hosts is not None else None,
        delete_orphaned=raw.delete_orphaned,
    )
