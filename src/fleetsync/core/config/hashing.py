# src/fleetsync/core/config/hashing.py
"""
Fingerprints da configuração resolvida.

Dois níveis de identidade são calculados sobre a mesma serialização
canônica:

    - compute_config_hash → a configuração resolvida inteira; o Engine o
      grava em `RunContext.config_hash`
    - compute_repo_hash   → o estado desejado de um único repositório;
      o Engine o registra no evento de início de cada lote, o que permite
      comparar runs e saber quais repositórios mudaram de fato

Serialização canônica:
    - JSON com chaves ordenadas e separadores compactos
    - UTF-8 sem escape de caracteres não ASCII
    - escalares que o YAML produz e o JSON desconhece (datas) viram `str`

Limites explícitos:
    - Não persiste fingerprints entre execuções
    - Não normaliza semântica (ordem de listas é significativa)
"""


import json
import hashlib
from typing import Any, Dict


def canonical_json(value: Any) -> str:
    return json.dumps(
        value,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
        default=str,
    )


def _sha256(value: Any) -> str:
    return hashlib.sha256(canonical_json(value).encode("utf-8")).hexdigest()


def compute_config_hash(config: Dict[str, Any]) -> str:
    """
    Fingerprint SHA-256 (64 caracteres hex) de `ResolvedConfig.to_dict()`.

    Raises:
        TypeError: Se `config` não for um dicionário.
    """
    if not isinstance(config, dict):
        raise TypeError(
            f"Config para hashing deve ser dict, recebido: {type(config).__name__}"
        )
    return _sha256(config)


def compute_repo_hash(repo: Dict[str, Any]) -> str:
    """
    Fingerprint do estado desejado de um repositório.

    A URL git participa do hash: dois aliases com o mesmo conteúdo
    resolvido produzem fingerprints distintos.

    Raises:
        TypeError: Se `repo` não for um dicionário com a chave `git`.
    """
    if not isinstance(repo, dict) or "git" not in repo:
        raise TypeError("Repo para hashing deve ser dict com a chave 'git'")
    return _sha256(repo)
