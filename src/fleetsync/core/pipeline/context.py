# src/fleetsync/core/pipeline/context.py
"""
Contexto de execução de uma run de reconciliação.

Este módulo define o `RunContext`, a estrutura canônica que acompanha
uma execução do Engine sobre todos os repositórios resolvidos.

O RunContext atua como o único meio permitido de:
    - armazenamento dos planos produzidos por repositório
    - registro de logs estruturados de execução
    - coleta de warnings não fatais por repositório

Princípios fundamentais:
    - Isolamento por execução (cada run possui seu próprio contexto)
    - Ausência de logger global ou estado compartilhado
    - Estrutura simples e testável

Invariantes:
    - Artefatos são indexados por chave explícita (ex.: `plan:<git>`)
    - Logs sempre incluem `run_id` e `repo`
    - Warnings são agrupados por repositório

Limites explícitos:
    - Não executa reconciliadores
    - Não persiste dados automaticamente
    - Não escreve manifestos
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
import uuid


@dataclass
class RunContext:
    """
    Contexto de execução de uma run de reconciliação.

    Campos:
        - run_id: identificador da execução
        - created_at: instante de criação (UTC)
        - config_id: id da configuração resolvida (quando conhecido)
        - config_hash: fingerprint da configuração resolvida
        - meta: metadados livres do chamador

    Decisões arquiteturais:
        - Reconciliadores não acessam o contexto; apenas o Engine o faz
        - Logs e warnings são estruturados e rastreáveis por repositório
    """
    run_id: str
    created_at: datetime
    config_id: Optional[str] = None
    config_hash: Optional[str] = None
    meta: Dict[str, Any] = field(default_factory=dict)

    _artifacts: Dict[str, Any] = field(default_factory=dict, init=False, repr=False)
    events: List[Dict[str, Any]] = field(default_factory=list, init=False)
    warnings: Dict[str, List[str]] = field(default_factory=dict, init=False)

    @classmethod
    def create(cls, **kwargs: Any) -> "RunContext":
        """Cria um contexto com `run_id` aleatório e `created_at` em UTC."""
        return cls(run_id=uuid.uuid4().hex, created_at=datetime.now(timezone.utc), **kwargs)

    # -----------------------------
    # Artifact store
    # -----------------------------
    def set_artifact(self, key: str, value: Any) -> None:
        self._artifacts[key] = value

    def has_artifact(self, key: str) -> bool:
        return key in self._artifacts

    def get_artifact(self, key: str) -> Any:
        if key not in self._artifacts:
            raise KeyError(key)
        return self._artifacts[key]

    # -----------------------------
    # Logging & warnings
    # -----------------------------
    def log(self, *, repo: str, level: str, message: str, **extra: Any) -> None:
        event = {
            "run_id": self.run_id,
            "repo": repo,
            "level": level,
            "message": message,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        event.update(extra)
        self.events.append(event)

    def add_warning(self, *, repo: str, message: str) -> None:
        self.warnings.setdefault(repo, []).append(message)

    def warnings_for(self, repo: str) -> List[str]:
        return list(self.warnings.get(repo, []))
