# src/fleetsync/core/config/loader.py
"""
Loader canônico de configuração do Fleetsync.

Este módulo é responsável por carregar o arquivo de configuração
declarativo (YAML ou JSON), convertê-lo no modelo imutável `RawConfig`
e, opcionalmente, resolvê-lo em uma `ResolvedConfig`.

Responsabilidades do módulo:
    - Carregar arquivos de configuração em YAML ou JSON
    - Validar requisitos estruturais mínimos (tipo raiz)
    - Converter chaves de autoria (camelCase) para o modelo
    - Converter diretivas `$arrayMerge` em `MergeDirective`
    - Rejeitar o uso da chave reservada `inherit` como nome real

Princípios fundamentais:
    - A RawConfig é parseada uma única vez e nunca mutada
    - Erros estruturais são tratados como falhas fatais

Limites explícitos:
    - Não valida schema completo (assumido validado upstream)
    - Não executa merge (ver `normalizer`)
"""

from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple
import json

import yaml  # PyYAML

from .errors import (
    ConfigFileNotFoundError,
    InvalidConfigRootTypeError,
    ReservedKeyCollision,
    UnsupportedConfigFormatError,
)
from .model import (
    DIRECTIVE_KEY,
    DIRECTIVE_VALUES_KEY,
    INHERIT_KEY,
    EntityCollection,
    FileDefinition,
    FileOverride,
    MergeDirective,
    MergeStrategy,
    PROptions,
    RawConfig,
    RawRepoEntry,
    RawSettings,
    ResolvedConfig,
)
from .normalizer import normalize_config


def _load_file(path: Path) -> Dict[str, Any]:
    """
    Carrega um arquivo de configuração e valida sua estrutura básica.

    Formatos suportados (v1):
        - YAML (.yaml, .yml)
        - JSON (.json)

    Decisões arquiteturais:
        - O arquivo deve existir no momento do carregamento
        - O conteúdo raiz deve ser um dicionário (`dict`)
        - Arquivos vazios são interpretados como dicionários vazios

    Raises:
        ConfigFileNotFoundError: Se o arquivo não existir.
        UnsupportedConfigFormatError: Se o formato do arquivo não for suportado.
        InvalidConfigRootTypeError: Se o conteúdo raiz não for um dicionário.
    """
    if not path.exists():
        raise ConfigFileNotFoundError(f"Arquivo de configuração não encontrado: {path}")

    suffix = path.suffix.lower()

    if suffix in {".yaml", ".yml"}:
        with path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f)

    elif suffix == ".json":
        with path.open("r", encoding="utf-8") as f:
            data = json.load(f)

    else:
        raise UnsupportedConfigFormatError(f"Formato não suportado: {path.suffix}")

    if data is None:
        data = {}

    if not isinstance(data, dict):
        raise InvalidConfigRootTypeError(
            f"Config root deve ser dict, recebido: {type(data).__name__}"
        )

    return data


def parse_content(value: Any, *, context: str = "content") -> Any:
    """Converte recursivamente mapas `$arrayMerge` em `MergeDirective`."""
    if isinstance(value, dict):
        if DIRECTIVE_KEY in value:
            values = value.get(DIRECTIVE_VALUES_KEY, [])
            if not isinstance(values, list):
                values = [values]
            return MergeDirective(
                strategy=MergeStrategy.parse(value[DIRECTIVE_KEY], context=context),
                values=[parse_content(v, context=context) for v in values],
            )
        return {k: parse_content(v, context=f"{context}.{k}") for k, v in value.items()}
    if isinstance(value, list):
        return [parse_content(v, context=context) for v in value]
    return value


def _parse_pr_options(data: Optional[Mapping[str, Any]]) -> Optional[PROptions]:
    if not data:
        return None
    return PROptions(
        merge=data.get("merge"),
        merge_strategy=data.get("mergeStrategy"),
        delete_branch=data.get("deleteBranch"),
        bypass_reason=data.get("bypassReason"),
    )


def _parse_file_definition(name: str, data: Optional[Mapping[str, Any]]) -> FileDefinition:
    data = data or {}
    return FileDefinition(
        content=parse_content(data.get("content"), context=f"files.{name}.content"),
        merge_strategy=MergeStrategy.parse(
            data.get("mergeStrategy"), context=f"files.{name}.mergeStrategy"
        ),
        create_only=data.get("createOnly"),
        executable=data.get("executable"),
        header=data.get("header"),
        schema_url=data.get("schemaUrl"),
        template=data.get("template"),
        vars=dict(data["vars"]) if data.get("vars") is not None else None,
        delete_orphaned=data.get("deleteOrphaned"),
    )


def _parse_file_override(name: str, data: Mapping[str, Any], context: str) -> FileOverride:
    return FileOverride(
        content=parse_content(data.get("content"), context=f"{context}: files.{name}.content"),
        override=bool(data.get("override", False)),
        create_only=data.get("createOnly"),
        executable=data.get("executable"),
        header=data.get("header"),
        schema_url=data.get("schemaUrl"),
        template=data.get("template"),
        vars=dict(data["vars"]) if data.get("vars") is not None else None,
        delete_orphaned=data.get("deleteOrphaned"),
    )


def _split_inherit(
    collection: str,
    data: Optional[Mapping[str, Any]],
    *,
    context: str,
    root: bool,
) -> Tuple[Dict[str, Any], bool]:
    entries = dict(data or {})
    if INHERIT_KEY not in entries:
        return entries, True
    inherit = entries.pop(INHERIT_KEY)
    if root or not isinstance(inherit, bool):
        raise ReservedKeyCollision(collection, context)
    return entries, inherit


def _parse_entity_collection(
    collection: str,
    data: Optional[Mapping[str, Any]],
    *,
    context: str,
    root: bool,
) -> EntityCollection:
    entries, inherit = _split_inherit(collection, data, context=context, root=root)
    return EntityCollection(
        entries={
            name: (False if value is False else dict(value or {}))
            for name, value in entries.items()
        },
        inherit=inherit,
    )


def _parse_settings(
    data: Optional[Mapping[str, Any]],
    *,
    context: str,
    root: bool,
) -> Optional[RawSettings]:
    if data is None:
        return None
    repo = data.get("repo")
    return RawSettings(
        rulesets=_parse_entity_collection(
            "rulesets", data.get("rulesets"), context=context, root=root
        ),
        labels=_parse_entity_collection(
            "labels", data.get("labels"), context=context, root=root
        ),
        repo=False if repo is False else (dict(repo) if repo is not None else None),
        delete_orphaned=data.get("deleteOrphaned"),
    )


def _parse_repo_entry(index: int, data: Mapping[str, Any]) -> RawRepoEntry:
    git = data.get("git")
    urls: Tuple[str, ...] = tuple(git) if isinstance(git, list) else (git,)
    context = f"Repo at index {index}"

    files, inherit_files = _split_inherit("files", data.get("files"), context=context, root=False)
    overrides: Dict[str, Any] = {}
    for name, value in files.items():
        if value is False:
            overrides[name] = False
        else:
            overrides[name] = _parse_file_override(name, value or {}, context)

    return RawRepoEntry(
        git=urls,
        files=overrides,
        inherit_files=inherit_files,
        settings=_parse_settings(data.get("settings"), context=context, root=False),
        pr_options=_parse_pr_options(data.get("prOptions")),
    )


def parse_raw_config(data: Mapping[str, Any]) -> RawConfig:
    """
    Converte um mapa de configuração já carregado em `RawConfig`.

    Raises:
        ReservedKeyCollision: Se `inherit` for usado como nome real na raiz
            ou com valor não booleano em um repo.
        InvalidMergeStrategyError: Se uma estratégia de merge for desconhecida.
    """
    files_data = dict(data.get("files") or {})
    if INHERIT_KEY in files_data:
        raise ReservedKeyCollision("files", "Root config")

    return RawConfig(
        id=str(data.get("id", "")),
        files={name: _parse_file_definition(name, value) for name, value in files_data.items()},
        repos=tuple(
            _parse_repo_entry(i, entry) for i, entry in enumerate(data.get("repos") or [])
        ),
        settings=_parse_settings(data.get("settings"), context="Root settings", root=True),
        delete_orphaned=data.get("deleteOrphaned"),
        pr_options=_parse_pr_options(data.get("prOptions")),
        pr_template=data.get("prTemplate"),
        github_hosts=list(data["githubHosts"]) if data.get("githubHosts") else None,
    )


def load_raw_config(path: str) -> RawConfig:
    """Carrega e parseia o arquivo de configuração sem resolvê-lo."""
    return parse_raw_config(_load_file(Path(path)))


def load_config(
    path: str,
    *,
    environ: Optional[Mapping[str, str]] = None,
) -> ResolvedConfig:
    """
    Carrega e resolve a configuração de todos os repositórios.

    Args:
        path (str): Caminho para o arquivo de configuração.
        environ (Optional[Mapping[str, str]]): Ambiente para interpolação
            (padrão: `os.environ`).

    Returns:
        ResolvedConfig: Estado desejado por repositório.

    Raises:
        ConfigError: Qualquer erro de carregamento ou resolução.
    """
    return normalize_config(load_raw_config(path), environ=environ)
