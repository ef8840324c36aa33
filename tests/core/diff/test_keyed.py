# tests/core/diff/test_keyed.py
"""
Testes da reconciliação de entidades nomeadas com renomeação.

Os testes asseguram que:
- entidades casam por nome sem diferenciar maiúsculas/minúsculas
- create / update / unchanged / delete são classificados corretamente
- renomeação é sempre `update`, preservando a identidade
- cadeias de renomeação (A→B, B→C, ...) são legais e saem em ordem aplicável
- ciclos de renomeação (A→B, B→A) levantam `RenameCollision`
- colisões de nome final ou com sobreviventes levantam `RenameCollision`
- a saída é ordenada: delete → update → create → unchanged

Decisões arquiteturais:
    - Entidades são labels simples (`color`) para isolar a classificação
    - A validação de colisões ocorre antes de qualquer classificação
"""

import pytest

try:
    from fleetsync.core.diff.algorithm import DiffAction, PropertyDiff
    from fleetsync.core.diff.keyed import KeyedAction, KeyedChange, order_changes, reconcile_entities
    from fleetsync.core.exceptions import RenameCollision
except Exception as e:  # noqa: BLE001
    _IMPORT_ERR = e
else:
    _IMPORT_ERR = None


def _require_imports():
    """
    Garante que a reconciliação por chave e suas exceções estejam disponíveis.
    """
    if _IMPORT_ERR is not None:
        pytest.fail(
            "Missing keyed reconciliation modules. Implement:\n"
            "- src/fleetsync/core/diff/keyed.py (reconcile_entities, KeyedChange)\n"
            "- src/fleetsync/core/exceptions.py (RenameCollision)\n"
            f"Import error: {_IMPORT_ERR}"
        )


def _actions(changes):
    return [(c.action.value, c.name, c.rename_to) for c in changes]


def _apply_in_order(current_names, changes):
    """
    Aplica o plano passo a passo sobre o conjunto de nomes existentes.

    Cada renomeação ou criação exige que o nome alvo esteja livre no
    momento em que é aplicada.
    """
    existing = {name.lower() for name in current_names}
    for change in changes:
        if change.action == KeyedAction.DELETE:
            existing.remove(change.name.lower())
        elif change.action == KeyedAction.UPDATE and change.rename_to is not None:
            target = change.rename_to.lower()
            assert target == change.name.lower() or target not in existing, (
                f"{change.name}->{change.rename_to} aplicado com '{change.rename_to}' ainda existente"
            )
            existing.remove(change.name.lower())
            existing.add(target)
        elif change.action == KeyedAction.CREATE:
            assert change.name.lower() not in existing, f"create de '{change.name}' sobre nome existente"
            existing.add(change.name.lower())
    return existing


def test_create_update_unchanged_classification():
    _require_imports()
    current = {"bug": {"color": "d73a4a"}, "docs": {"color": "0075ca"}}
    desired = {"bug": {"color": "ff0000"}, "docs": {"color": "0075ca"}, "new": {"color": "ffffff"}}

    changes = reconcile_entities(current, desired)

    assert _actions(changes) == [
        ("update", "bug", None),
        ("create", "new", None),
        ("unchanged", "docs", None),
    ]
    update = changes[0]
    assert update.diffs == (
        PropertyDiff(("color",), DiffAction.CHANGE, old_value="d73a4a", new_value="ff0000"),
    )
    assert changes[1].desired == {"color": "ffffff"}


def test_names_match_case_insensitively():
    _require_imports()
    changes = reconcile_entities({"Bug": {"color": "aaaaaa"}}, {"bug": {"color": "aaaaaa"}})
    assert _actions(changes) == [("unchanged", "Bug", None)]


def test_managed_orphans_are_deleted_first():
    """
    Entidades gerenciadas ausentes do desejado são deletadas, antes de tudo.

    Entidades atuais não gerenciadas nunca são tocadas.
    """
    _require_imports()
    current = {"old": {"color": "000000"}, "manual": {"color": "111111"}, "keep": {"color": "222222"}}
    desired = {"keep": {"color": "222222"}, "fresh": {"color": "333333"}}

    changes = reconcile_entities(current, desired, managed=["old", "keep", "gone"])

    assert _actions(changes) == [
        ("delete", "old", None),
        ("create", "fresh", None),
        ("unchanged", "keep", None),
    ]
    assert changes[0].current == {"color": "000000"}


def test_suppressed_deletion_omits_orphans():
    _require_imports()
    changes = reconcile_entities(
        {"old": {"color": "000000"}}, {}, managed=["old"], delete_orphaned=False
    )
    assert changes == []


def test_rename_is_always_update():
    _require_imports()
    changes = reconcile_entities(
        {"old": {"color": "aaaaaa"}},
        {"old": {"color": "aaaaaa", "new_name": "new"}},
    )
    assert _actions(changes) == [("update", "old", "new")]
    assert changes[0].diffs == ()
    assert "new_name" not in changes[0].desired


def test_rename_chain_is_legal():
    """
    Cadeia A→B, B→C: B é liberado por ser renomeado no mesmo lote.

    Resultado: dois `update`, com B→C antes de A→B.
    """
    _require_imports()
    current = {"a": {"color": "aaaaaa"}, "b": {"color": "bbbbbb"}}
    desired = {
        "a": {"color": "aaaaaa", "new_name": "b"},
        "b": {"color": "bbbbbb", "new_name": "c"},
    }

    changes = reconcile_entities(current, desired)

    assert _actions(changes) == [("update", "b", "c"), ("update", "a", "b")]
    assert _apply_in_order(current, changes) == {"b", "c"}


def test_longer_rename_chain_is_legal():
    _require_imports()
    current = {n: {"color": n * 6} for n in "abcd"}
    desired = {
        "a": {"color": "aaaaaa", "new_name": "b"},
        "b": {"color": "bbbbbb", "new_name": "c"},
        "c": {"color": "cccccc", "new_name": "d"},
        "d": {"color": "dddddd", "new_name": "e"},
    }

    changes = reconcile_entities(current, desired)

    assert [c.action for c in changes] == [KeyedAction.UPDATE] * 4
    assert [c.rename_to for c in changes] == ["e", "d", "c", "b"]
    assert _apply_in_order(current, changes) == {"b", "c", "d", "e"}


def test_rename_plan_applies_with_deletes_and_creates():
    """
    Lote misto: órfão deletado, cadeia declarada ao contrário da ordem
    aplicável e criação sobre o nome liberado pela cadeia.
    """
    _require_imports()
    current = {"a": {"color": "aaaaaa"}, "b": {"color": "bbbbbb"}, "old": {"color": "000000"}}
    desired = {
        "a": {"color": "aaaaaa", "new_name": "b"},
        "b": {"color": "bbbbbb", "new_name": "old"},
        "a-new": {"color": "ffffff"},
        "keep": {"color": "111111"},
    }

    changes = reconcile_entities(current, desired, managed=["old"])

    assert _actions(changes) == [
        ("delete", "old", None),
        ("update", "b", "old"),
        ("update", "a", "b"),
        ("create", "a-new", None),
        ("create", "keep", None),
    ]
    assert _apply_in_order(current, changes) == {"old", "b", "a-new", "keep"}


def test_rename_cycle_collides():
    """
    A→B, B→A não tem ordem sequencial aplicável e é rejeitado.
    """
    _require_imports()
    current = {"a": {"color": "aaaaaa"}, "b": {"color": "bbbbbb"}}
    desired = {
        "a": {"color": "aaaaaa", "new_name": "b"},
        "b": {"color": "bbbbbb", "new_name": "a"},
    }

    with pytest.raises(RenameCollision) as excinfo:
        reconcile_entities(current, desired, entity_kind="label")

    assert excinfo.value.details["names"] == ["a", "b"]
    assert "circular" in excinfo.value.message


def test_order_changes_puts_rename_that_frees_name_first():
    _require_imports()
    changes = [
        KeyedChange("x", KeyedAction.UPDATE, rename_to="y"),
        KeyedChange("plain", KeyedAction.UPDATE),
        KeyedChange("y", KeyedAction.UPDATE, rename_to="z"),
    ]
    assert [c.name for c in order_changes(changes)] == ["y", "x", "plain"]


def test_rename_onto_kept_entity_collides():
    """
    `old`→`new-name` enquanto `new-name` é mantido sem renomeação.
    """
    _require_imports()
    current = {"old": {"color": "aaaaaa"}, "new-name": {"color": "bbbbbb"}}
    desired = {
        "old": {"color": "aaaaaa", "new_name": "new-name"},
        "new-name": {"color": "bbbbbb"},
    }

    with pytest.raises(RenameCollision) as excinfo:
        reconcile_entities(current, desired, entity_kind="label")

    assert excinfo.value.details["target"] == "new-name"
    assert excinfo.value.details["entity_kind"] == "label"


def test_two_entities_with_same_rename_target_collide():
    _require_imports()
    with pytest.raises(RenameCollision):
        reconcile_entities(
            {"a": {}, "b": {}},
            {"a": {"new_name": "x"}, "b": {"new_name": "X"}},
        )


def test_rename_onto_unmanaged_survivor_collides():
    _require_imports()
    with pytest.raises(RenameCollision) as excinfo:
        reconcile_entities({"a": {}, "taken": {}}, {"a": {"new_name": "taken"}})
    assert set(excinfo.value.details["names"]) == {"a", "taken"}


def test_rename_onto_deleted_orphan_is_allowed():
    _require_imports()
    changes = reconcile_entities(
        {"a": {}, "taken": {}},
        {"a": {"new_name": "taken"}},
        managed=["taken"],
    )
    assert _actions(changes) == [("delete", "taken", None), ("update", "a", "taken")]


def test_suppressed_deletion_still_blocks_rename():
    _require_imports()
    with pytest.raises(RenameCollision):
        reconcile_entities(
            {"a": {}, "taken": {}},
            {"a": {"new_name": "taken"}},
            managed=["taken"],
            delete_orphaned=False,
        )


def test_already_renamed_entity_is_matched_by_target():
    """
    Reexecução após a renomeação: `old` não existe mais, `new` sim.

    A entidade é comparada com o alvo e não gera nova renomeação.
    """
    _require_imports()
    changes = reconcile_entities(
        {"new": {"color": "aaaaaa"}},
        {"old": {"color": "aaaaaa", "new_name": "new"}},
        managed=["new"],
    )
    assert _actions(changes) == [("unchanged", "new", None)]


def test_rename_with_property_changes_carries_diffs():
    _require_imports()
    changes = reconcile_entities(
        {"a": {"color": "aaaaaa"}},
        {"a": {"color": "bbbbbb", "new_name": "b"}},
    )
    assert changes[0].rename_to == "b"
    assert [d.path for d in changes[0].diffs] == [("color",)]


def test_order_changes_is_stable():
    _require_imports()
    changes = [
        KeyedChange("c1", KeyedAction.CREATE),
        KeyedChange("u1", KeyedAction.UNCHANGED),
        KeyedChange("d1", KeyedAction.DELETE),
        KeyedChange("c2", KeyedAction.CREATE),
        KeyedChange("up", KeyedAction.UPDATE),
    ]
    assert [c.name for c in order_changes(changes)] == ["d1", "up", "c1", "c2", "u1"]
