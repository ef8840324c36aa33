# tests/core/diff/test_algorithm.py
"""
Testes do motor de diff estrutural.

Os testes asseguram que:
- árvores iguais nunca geram diffs
- chaves só em desired/current geram um único add/remove da subárvore
- objetos são comparados recursivamente, com caminhos estendidos
- arrays de objetos com discriminador casam por valor, não por posição
- sem discriminador confiável, o casamento é posicional
- formatos divergentes degradam para um único `change`, sem exceção
"""

import pytest

try:
    from fleetsync.core.diff.algorithm import DiffAction, PropertyDiff, deep_equal, diff
except Exception as e:  # noqa: BLE001
    _IMPORT_ERR = e
else:
    _IMPORT_ERR = None


def _require_imports():
    if _IMPORT_ERR is not None:
        pytest.fail(
            "Missing diff engine module. Implement:\n"
            "- src/fleetsync/core/diff/algorithm.py (diff, PropertyDiff, DiffAction)\n"
            f"Import error: {_IMPORT_ERR}"
        )


NESTED = {
    "name": "main",
    "enabled": True,
    "conditions": {"ref_name": {"include": ["~DEFAULT_BRANCH"], "exclude": []}},
    "rules": [{"type": "deletion"}, {"type": "pull_request", "parameters": {"count": 1}}],
}


def test_diff_of_equal_trees_is_empty():
    _require_imports()
    assert diff(NESTED, {**NESTED}) == []
    assert diff([], []) == []
    assert diff("x", "x") == []


def test_key_order_does_not_matter():
    _require_imports()
    reordered = {k: NESTED[k] for k in reversed(list(NESTED))}
    assert diff(NESTED, reordered) == []


def test_additivity_one_add_per_disjoint_key():
    """
    Para objetos com chaves disjuntas A e B, `diff(A, A∪B)` contém
    exatamente um `add` por chave de B, com a subárvore inteira.
    """
    _require_imports()
    a = {"x": 1, "y": {"z": 2}}
    b = {"p": {"deep": [1, 2]}, "q": "v"}

    diffs = diff(a, {**a, **b})

    assert diffs == [
        PropertyDiff(("p",), DiffAction.ADD, new_value={"deep": [1, 2]}),
        PropertyDiff(("q",), DiffAction.ADD, new_value="v"),
    ]


def test_key_only_in_current_is_single_remove():
    _require_imports()
    diffs = diff({"keep": 1, "gone": {"a": 1}}, {"keep": 1})
    assert diffs == [PropertyDiff(("gone",), DiffAction.REMOVE, old_value={"a": 1})]


def test_nested_objects_recurse_with_extended_path():
    _require_imports()
    diffs = diff({"a": {"b": {"c": 1, "d": 2}}}, {"a": {"b": {"c": 5, "d": 2}}})
    assert diffs == [PropertyDiff(("a", "b", "c"), DiffAction.CHANGE, old_value=1, new_value=5)]


def test_scalar_arrays_are_atomic_changes():
    _require_imports()
    diffs = diff({"tags": ["a", "b"]}, {"tags": ["a", "c"]})
    assert diffs == [
        PropertyDiff(("tags",), DiffAction.CHANGE, old_value=["a", "b"], new_value=["a", "c"])
    ]


def test_typed_array_diff_uses_discriminator_segment():
    """
    Regras tipadas casam por `type`; o caminho ganha `[i](tipo)`.

    Exatamente um diff: `rules → [0](pull_request) → count`, de 1 para 2.
    """
    _require_imports()
    current = {"rules": [{"type": "pull_request", "count": 1}, {"type": "required_signatures"}]}
    desired = {"rules": [{"type": "pull_request", "count": 2}, {"type": "required_signatures"}]}

    diffs = diff(current, desired)

    assert diffs == [
        PropertyDiff(
            ("rules", "[0](pull_request)", "count"),
            DiffAction.CHANGE,
            old_value=1,
            new_value=2,
        )
    ]


def test_typed_array_is_order_independent():
    _require_imports()
    desired = {"rules": [{"type": "a", "v": 2}, {"type": "b", "v": 1}]}
    current = {"rules": [{"type": "a", "v": 1}, {"type": "b", "v": 1}]}
    permuted = {"rules": [{"type": "b", "v": 1}, {"type": "a", "v": 1}]}

    assert diff(current, desired) == diff(permuted, desired)


def test_typed_array_unmatched_elements_are_added_and_removed():
    _require_imports()
    current = {"rules": [{"type": "deletion"}, {"type": "creation"}]}
    desired = {"rules": [{"type": "deletion"}, {"type": "update"}]}

    diffs = diff(current, desired)

    assert diffs == [
        PropertyDiff(("rules", "[1](update)"), DiffAction.ADD, new_value={"type": "update"}),
        PropertyDiff(("rules", "[1](creation)"), DiffAction.REMOVE, old_value={"type": "creation"}),
    ]


def test_positional_fallback_without_discriminator():
    _require_imports()
    current = {"actors": [{"id": 1, "mode": "always"}, {"id": 2}]}
    desired = {"actors": [{"id": 1, "mode": "pull_request"}, {"id": 2}, {"id": 3}]}

    diffs = diff(current, desired)

    assert diffs == [
        PropertyDiff(("actors", "[0]", "mode"), DiffAction.CHANGE, old_value="always", new_value="pull_request"),
        PropertyDiff(("actors", "[2]"), DiffAction.ADD, new_value={"id": 3}),
    ]


def test_duplicate_discriminators_fall_back_to_positions():
    _require_imports()
    current = {"rules": [{"type": "a", "v": 1}, {"type": "a", "v": 2}]}
    desired = {"rules": [{"type": "a", "v": 1}, {"type": "a", "v": 3}]}

    diffs = diff(current, desired)

    assert diffs == [PropertyDiff(("rules", "[1]", "v"), DiffAction.CHANGE, old_value=2, new_value=3)]


def test_shape_mismatch_degrades_to_single_change():
    """
    Formatos inesperados da API nunca levantam exceção.
    """
    _require_imports()
    assert diff({"a": {"b": 1}}, {"a": [1]}) == [
        PropertyDiff(("a",), DiffAction.CHANGE, old_value={"b": 1}, new_value=[1])
    ]
    assert diff(None, {"a": 1}) == [PropertyDiff((), DiffAction.CHANGE, old_value=None, new_value={"a": 1})]


def test_paths_are_unique():
    _require_imports()
    current = {"a": {"x": 1}, "rules": [{"type": "t", "p": {"q": 1}}, {"n": 1}], "s": 1}
    desired = {"a": {"x": 2, "y": 1}, "rules": [{"type": "t", "p": {"q": 2}}], "t": 2}

    paths = [d.path for d in diff(current, desired)]

    assert len(paths) == len(set(paths))


def test_booleans_never_equal_numbers():
    _require_imports()
    assert not deep_equal(True, 1)
    assert not deep_equal({"a": 0}, {"a": False})
    assert deep_equal({"a": [1, {"b": None}]}, {"a": [1, {"b": None}]})
    assert diff({"a": 1}, {"a": True}) == [PropertyDiff(("a",), DiffAction.CHANGE, old_value=1, new_value=True)]
