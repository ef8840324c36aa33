# tests/test_smoke.py
"""
Teste de sanidade estrutural (smoke test) do Fleetsync.

Garante apenas que o pacote pode ser importado e que o pytest
descobre e executa testes. Não valida comportamento de domínio.
"""


def test_smoke():
    """
    Smoke test mínimo do repositório.

    Invariantes:
        - O namespace público expõe os pontos de entrada principais
    """
    import fleetsync

    assert callable(fleetsync.load_config)
    assert callable(fleetsync.diff)
    assert callable(fleetsync.reconcile_entities)
