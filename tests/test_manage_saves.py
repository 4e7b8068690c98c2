import json

import pytest

from app.access import AccessGate
from app.cli.manage_saves import delete_save, list_saves, set_access_code, show_save
from app.form_state import FormState, PainState
from app.persistence import SAVE_KEY_PREFIX, InMemoryKeyValueStore, PersistenceManager, SavedBundle


@pytest.fixture()
def manager() -> PersistenceManager:
    store = InMemoryKeyValueStore()
    manager = PersistenceManager(store)
    manager.save("b", SavedBundle(form_state=FormState(pain=PainState(s="3/10")), narrative="Note B"))
    store.set(f"{SAVE_KEY_PREFIX}a", json.dumps({"particulars": "Ancienne note"}))
    return manager


def test_list_saves_prints_sorted_names(manager, capsys):
    list_saves(manager)
    assert capsys.readouterr().out.splitlines() == ["a", "b"]


def test_list_saves_when_empty(capsys):
    list_saves(PersistenceManager(InMemoryKeyValueStore()))
    assert capsys.readouterr().out.strip() == "No saved notes"


def test_show_save_prints_report_and_narrative(manager, capsys):
    show_save(manager, "b")
    out = capsys.readouterr().out
    assert "  - S – Sévérité / Intensité : 3/10" in out
    assert out.rstrip().endswith("Note B")


def test_show_missing_save_exits(manager):
    with pytest.raises(SystemExit):
        show_save(manager, "zzz")


def test_delete_save(manager):
    delete_save(manager, "a")
    manager.hydrate()
    assert manager.list_names() == {"b"}


def test_set_access_code(capsys):
    store = InMemoryKeyValueStore()
    gate = AccessGate(store, default_code="1234")

    with pytest.raises(SystemExit):
        set_access_code(gate, "0000", "abcd")

    set_access_code(gate, "1234", "abcd")
    assert gate.check("abcd")
    assert not gate.check("1234")
