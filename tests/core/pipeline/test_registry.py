# tests/core/pipeline/test_registry.py
"""
Testes do ReconcilerRegistry.

Garantem unicidade de ids, preservação da ordem de registro e a
conformidade dos reconciliadores embutidos com o protocolo.
"""

import pytest

try:
    from fleetsync.core.engine.reconcilers import LabelReconciler, RulesetReconciler, default_registry
    from fleetsync.core.pipeline.reconciler import EntityReconciler
    from fleetsync.core.pipeline.registry import DuplicateReconcilerIdError, ReconcilerRegistry
except Exception as e:  # noqa: BLE001
    _IMPORT_ERR = e
else:
    _IMPORT_ERR = None


def _require_imports():
    if _IMPORT_ERR is not None:
        pytest.fail(
            "Missing registry modules. Implement:\n"
            "- src/fleetsync/core/pipeline/registry.py (ReconcilerRegistry)\n"
            "- src/fleetsync/core/pipeline/reconciler.py (EntityReconciler)\n"
            f"Import error: {_IMPORT_ERR}"
        )


def test_duplicate_id_is_rejected():
    """
    Registrar dois reconciliadores com o mesmo id é erro fatal.
    """
    _require_imports()
    registry = ReconcilerRegistry()
    registry.add(LabelReconciler())
    with pytest.raises(DuplicateReconcilerIdError):
        registry.add(LabelReconciler())


def test_invalid_id_is_rejected():
    _require_imports()

    class Nameless:
        id = "  "

    with pytest.raises(ValueError):
        ReconcilerRegistry().add(Nameless())


def test_registration_order_is_preserved():
    _require_imports()
    registry = default_registry()
    assert registry.ids() == ["rulesets", "labels"]
    assert [r.id for r in registry.list()] == ["rulesets", "labels"]
    assert isinstance(registry.get("labels"), LabelReconciler)


def test_builtin_reconcilers_satisfy_protocol():
    _require_imports()
    assert isinstance(RulesetReconciler(), EntityReconciler)
    assert isinstance(LabelReconciler(), EntityReconciler)
