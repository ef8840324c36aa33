# src/fleetsync/core/config/__init__.py

"""
Camada de configuração do Fleetsync.

Este pacote contém as estruturas e utilitários responsáveis por carregar,
mesclar, interpolar e identificar a configuração declarativa que define
o estado desejado de muitos repositórios a partir de uma única fonte.

A configuração no Fleetsync é:
    - declarativa
    - em camadas (raiz + overrides por repositório)
    - determinística
    - resolvida por completo antes de qualquer repositório ser processado

Responsabilidades do pacote:
    - Carregamento de arquivos de configuração (YAML/JSON)
    - Merge de conteúdo base + overlay com estratégias e diretivas
    - Herança de entidades nomeadas com opt-out
    - Interpolação estrita de variáveis de ambiente
    - Geração de hash canônico da configuração resolvida

Limites explícitos:
    - Não realiza I/O de rede
    - Não compara estado desejado com estado remoto (ver `core.diff`)
"""

from .errors import (
    ConfigError,
    ContentTypeMismatch,
    InvalidOptOut,
    MissingEnvironmentVariable,
    ReservedKeyCollision,
)
from .loader import load_config, load_raw_config, parse_raw_config
from .model import MergeDirective, MergeStrategy, RawConfig, ResolvedConfig
from .normalizer import normalize_config

__all__ = [
    "ConfigError",
    "ContentTypeMismatch",
    "InvalidOptOut",
    "MissingEnvironmentVariable",
    "ReservedKeyCollision",
    "load_config",
    "load_raw_config",
    "parse_raw_config",
    "MergeDirective",
    "MergeStrategy",
    "RawConfig",
    "ResolvedConfig",
    "normalize_config",
]
