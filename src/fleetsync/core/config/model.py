# src/fleetsync/core/config/model.py
"""
Modelo de dados canônico da configuração do Fleetsync.

Este módulo define as estruturas imutáveis que representam a
configuração declarada (RawConfig) e a configuração resolvida por
repositório (ResolvedConfig).

Componentes principais:
    - MergeStrategy / ContentKind → enums de estratégia e tipo de conteúdo
    - MergeDirective              → valor envolto por diretiva de merge
    - FileDefinition / FileOverride / RawRepoEntry / RawSettings / RawConfig
    - ResolvedFileContent / ResolvedSettings / ResolvedRepo / ResolvedConfig

Princípios fundamentais:
    - RawConfig é imutável e parseado uma única vez
    - Saídas resolvidas são transitórias e recalculadas a cada execução
    - Diretivas são um tipo explícito, nunca uma chave mágica no dicionário

Invariantes:
    - Os enums possuem valores textuais canônicos
    - `header` resolvido é sempre uma lista (ou None)

Limites explícitos:
    - Não carrega arquivos
    - Não executa merge nem interpolação
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Union

from .errors import InvalidMergeStrategyError
from .hashing import compute_config_hash, compute_repo_hash


# Chaves de autoria da diretiva inline de merge (YAML/JSON).
DIRECTIVE_KEY = "$arrayMerge"
DIRECTIVE_VALUES_KEY = "values"

# Chave reservada nas coleções de arquivos e entidades.
INHERIT_KEY = "inherit"


class MergeStrategy(str, Enum):
    """
    Estratégias de merge para listas.

    - REPLACE: o overlay substitui a lista inteira (padrão)
    - APPEND: base seguida do overlay
    - PREPEND: overlay seguido da base
    """

    REPLACE = "replace"
    APPEND = "append"
    PREPEND = "prepend"

    @classmethod
    def parse(cls, value: Any, *, context: str = "mergeStrategy") -> "MergeStrategy":
        if value is None:
            return cls.REPLACE
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            allowed = ", ".join(s.value for s in cls)
            raise InvalidMergeStrategyError(
                f"{context}: estratégia de merge inválida '{value}' (permitidas: {allowed})"
            ) from None


class ContentKind(str, Enum):
    """
    Tipos fechados de conteúdo de arquivo.

    - NULL: sem conteúdo
    - TEXT: texto simples (ou escalar)
    - TEXT_LIST: lista de linhas
    - STRUCTURED: objeto (JSON/YAML)
    """

    NULL = "null"
    TEXT = "text"
    TEXT_LIST = "text_list"
    STRUCTURED = "structured"

    @property
    def is_text(self) -> bool:
        return self in (ContentKind.TEXT, ContentKind.TEXT_LIST)


@dataclass(frozen=True)
class MergeDirective:
    """
    Valor envolto por uma diretiva de merge explícita.

    Aparece apenas no conteúdo de overlay, no lugar de uma lista, e
    solicita uma estratégia diferente da padrão para aquele campo.
    Nunca sobrevive em conteúdo resolvido.
    """

    strategy: MergeStrategy
    values: List[Any] = field(default_factory=list)


@dataclass(frozen=True)
class FileDefinition:
    """Definição de arquivo na raiz (base compartilhada por todos os repos)."""

    content: Any = None
    merge_strategy: MergeStrategy = MergeStrategy.REPLACE
    create_only: Optional[bool] = None
    executable: Optional[bool] = None
    header: Union[str, List[str], None] = None
    schema_url: Optional[str] = None
    template: Optional[bool] = None
    vars: Optional[Dict[str, str]] = None
    delete_orphaned: Optional[bool] = None


@dataclass(frozen=True)
class FileOverride:
    """
    Override de arquivo por repositório.

    Campos deixados como None herdam o valor da base. `override=True`
    ignora a base por completo.
    """

    content: Any = None
    override: bool = False
    create_only: Optional[bool] = None
    executable: Optional[bool] = None
    header: Union[str, List[str], None] = None
    schema_url: Optional[str] = None
    template: Optional[bool] = None
    vars: Optional[Dict[str, str]] = None
    delete_orphaned: Optional[bool] = None


@dataclass(frozen=True)
class EntityCollection:
    """
    Coleção nomeada de entidades (rulesets, labels).

    `entries` mapeia nome → definição (dict) ou `False` (opt-out).
    `inherit=False` suprime as entidades da raiz não redeclaradas.
    """

    entries: Dict[str, Union[Dict[str, Any], bool]] = field(default_factory=dict)
    inherit: bool = True


@dataclass(frozen=True)
class PROptions:
    merge: Optional[str] = None
    merge_strategy: Optional[str] = None
    delete_branch: Optional[bool] = None
    bypass_reason: Optional[str] = None

    def is_empty(self) -> bool:
        return all(
            v is None
            for v in (self.merge, self.merge_strategy, self.delete_branch, self.bypass_reason)
        )


@dataclass(frozen=True)
class RawSettings:
    """Bloco `settings` (raiz ou por repo) antes da normalização."""

    rulesets: EntityCollection = field(default_factory=EntityCollection)
    labels: EntityCollection = field(default_factory=EntityCollection)
    repo: Union[Dict[str, Any], bool, None] = None
    delete_orphaned: Optional[bool] = None


@dataclass(frozen=True)
class RawRepoEntry:
    """
    Entrada de repositório declarada.

    `git` já é sempre uma tupla; cada URL expande para um repo resolvido
    independente. Em `files`, o valor `False` exclui o arquivo.
    """

    git: Tuple[str, ...]
    files: Dict[str, Union[FileOverride, bool]] = field(default_factory=dict)
    inherit_files: bool = True
    settings: Optional[RawSettings] = None
    pr_options: Optional[PROptions] = None


@dataclass(frozen=True)
class RawConfig:
    id: str
    files: Dict[str, FileDefinition] = field(default_factory=dict)
    repos: Tuple[RawRepoEntry, ...] = ()
    settings: Optional[RawSettings] = None
    delete_orphaned: Optional[bool] = None
    pr_options: Optional[PROptions] = None
    pr_template: Optional[str] = None
    github_hosts: Optional[List[str]] = None


# ---------------------------------------------------------------------------
# Saídas resolvidas
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ResolvedFileContent:
    """
    Conteúdo de arquivo totalmente resolvido para um repositório.

    Colaboradores escrevem este conteúdo como está: nunca re-mesclam
    nem re-interpolam.
    """

    file_name: str
    content: Any
    create_only: Optional[bool] = None
    executable: Optional[bool] = None
    header: Optional[List[str]] = None
    schema_url: Optional[str] = None
    template: Optional[bool] = None
    vars: Optional[Dict[str, str]] = None
    delete_orphaned: Optional[bool] = None


@dataclass(frozen=True)
class ResolvedSettings:
    rulesets: Optional[Dict[str, Dict[str, Any]]] = None
    labels: Optional[Dict[str, Dict[str, Any]]] = None
    repo: Optional[Dict[str, Any]] = None
    delete_orphaned: Optional[bool] = None


@dataclass(frozen=True)
class ResolvedRepo:
    git: str
    files: List[ResolvedFileContent] = field(default_factory=list)
    pr_options: Optional[PROptions] = None
    settings: Optional[ResolvedSettings] = None

    def file(self, file_name: str) -> ResolvedFileContent:
        for f in self.files:
            if f.file_name == file_name:
                return f
        raise KeyError(file_name)

    def desired_hash(self) -> str:
        return compute_repo_hash(asdict(self))


@dataclass(frozen=True)
class ResolvedConfig:
    """
    Configuração resolvida: um estado desejado por repositório.

    Decisões arquiteturais:
        - `to_dict` produz uma estrutura pura (dict/list/escalares)
        - `config_hash` identifica estruturalmente a saída, permitindo
          verificar determinismo entre execuções
    """

    id: str
    repos: List[ResolvedRepo] = field(default_factory=list)
    pr_template: Optional[str] = None
    github_hosts: Optional[List[str]] = None
    delete_orphaned: Optional[bool] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def config_hash(self) -> str:
        return compute_config_hash(self.to_dict())
