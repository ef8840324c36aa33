# tests/conftest.py
"""
Fixtures compartilhados para testes do Fleetsync.

Este módulo define fixtures reutilizáveis que fornecem:
- uma configuração YAML realista (raiz + overrides por repo)
- um ambiente de variáveis controlado para interpolação
- contexto de execução controlado (RunContext)
- estado atual de plataforma (rulesets e labels) para o Engine

Decisões arquiteturais:
    - Fixtures são mantidas simples e explícitas
    - Dados retornados são determinísticos e isolados
    - O ambiente de interpolação é sempre explícito (nunca `os.environ`)

Invariantes:
    - Nenhuma fixture realiza I/O de rede
    - Escrita em disco apenas via `tmp_path`

Limites explícitos:
    - Não substituir testes de integração com a plataforma
    - Não conter lógica condicional complexa
"""

import pytest
from datetime import datetime, timezone


# =====================================================
# Config fixtures
# =====================================================

@pytest.fixture
def fleet_config_yaml() -> str:
    """
    YAML de configuração semelhante ao uso real do projeto.

    Cobre:
    - conteúdo estruturado, texto e lista de linhas
    - diretiva `$arrayMerge` em overlay
    - alias de repo com múltiplas URLs
    - opt-out de arquivo e de entidade
    - interpolação de variáveis de ambiente

    Returns:
        str: Conteúdo YAML.
    """
    return """\
id: fleet-main
deleteOrphaned: false
prOptions:
  merge: auto
  mergeStrategy: squash
files:
  .prettierrc.json:
    content:
      semi: false
      overrides:
        - files: "*.md"
  .gitignore:
    mergeStrategy: append
    content:
      - node_modules
      - dist
  CODEOWNERS:
    content: "* @${OWNER_TEAM}"
    header: managed by fleetsync
settings:
  deleteOrphaned: true
  rulesets:
    main-protection:
      target: branch
      rules:
        - type: pull_request
          parameters:
            requiredApprovingReviewCount: 1
  labels:
    bug:
      color: "#D73A4A"
      description: Something is broken
    chore:
      color: cccccc
repos:
  - git:
      - git@github.com:acme/api.git
      - git@github.com:acme/web.git
    files:
      .gitignore:
        content:
          - coverage
      .prettierrc.json:
        content:
          overrides:
            $arrayMerge: append
            values:
              - files: "*.yaml"
  - git: git@github.com:acme/legacy.git
    prOptions:
      merge: manual
    files:
      CODEOWNERS: false
    settings:
      labels:
        chore: false
        legacy:
          color: "000000"
"""


@pytest.fixture
def fleet_environ() -> dict:
    """Ambiente explícito para interpolação estrita."""
    return {"OWNER_TEAM": "acme/platform"}


@pytest.fixture
def write_config(tmp_path):
    """
    Fábrica que grava um conteúdo de configuração em `tmp_path`.

    Returns:
        Callable[[str, str], Path]: (conteúdo, nome do arquivo) → caminho.
    """

    def _write(content: str, name: str = "fleet.yaml"):
        path = tmp_path / name
        path.write_text(content, encoding="utf-8")
        return path

    return _write


# =====================================================
# Pipeline fixtures
# =====================================================

@pytest.fixture
def dummy_ctx():
    """
    RunContext determinístico para testes de pipeline e engine.

    O import é lazy para que falhas de import apareçam no teste
    correspondente, com mensagem clara.
    """
    from fleetsync.core.pipeline.context import RunContext

    return RunContext(
        run_id="test-run",
        created_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
    )


@pytest.fixture
def platform_state() -> dict:
    """
    Estado atual da plataforma por repositório e tipo de entidade.

    Formato espelha a API: chaves snake_case, ids e campos de ruído.
    """
    return {
        ("git@github.com:acme/api.git", "rulesets"): [
            {
                "id": 11,
                "name": "main-protection",
                "target": "branch",
                "enforcement": "active",
                "source": "acme/api",
                "rules": [
                    {
                        "type": "pull_request",
                        "parameters": {
                            "required_approving_review_count": 1,
                            "dismiss_stale_reviews_on_push": False,
                        },
                    }
                ],
            }
        ],
        ("git@github.com:acme/api.git", "labels"): [
            {"id": 1, "name": "bug", "color": "d73a4a", "description": "Something is broken"},
            {"id": 2, "name": "chore", "color": "cccccc", "description": None},
        ],
    }
