import pytest

from fortrust.database import Database, StorageError
from fortrust.settings import SETTINGS_TABLE, SettingsDatabase, SettingsStore


@pytest.fixture
def db():
    database = Database.open(":memory:")
    yield database
    database.close()


def test_store_set_get_and_overwrite():
    store = SettingsStore()
    store.set("theme", "dark")
    store.set("theme", "light")
    assert store.get("theme") == "light"
    assert len(store) == 1


def test_store_missing_key_is_none():
    assert SettingsStore().get("absent") is None


def test_store_remove_and_contains():
    store = SettingsStore()
    store.set("zoom", 110)
    assert "zoom" in store
    store.remove("zoom")
    assert "zoom" not in store
    store.remove("zoom")
    assert len(store) == 0


def test_store_all_and_clear():
    store = SettingsStore()
    store.set("a", True)
    store.set("b", 2)
    assert sorted(store.all()) == [("a", True), ("b", 2)]
    store.clear()
    assert store.all() == []


def test_empty_database_keeps_values_in_memory():
    settings = SettingsDatabase.empty()
    settings.store("homepage", "about:blank")
    assert settings.load("homepage") == "about:blank"
    assert settings.count() == 1
    settings.delete("homepage")
    assert settings.load("homepage") is None
    assert settings.count() == 0


@pytest.mark.parametrize(
    "value",
    [True, False, 42, -7, 1.5, "text", {"nested": [1, 2, {"x": None}]}, [1, "two"]],
)
def test_values_survive_reload(db, value):
    SettingsDatabase(db).store("key", value)
    reloaded = SettingsDatabase(db)
    assert reloaded.load("key") == value
    assert type(reloaded.load("key")) is type(value)


def test_delete_removes_from_database(db):
    settings = SettingsDatabase(db)
    settings.store("a", 1)
    settings.store("b", 2)
    settings.delete("a")
    reloaded = SettingsDatabase(db)
    assert reloaded.all() == [("b", 2)]
    assert len(reloaded) == 1


def test_unserializable_value_raises(db):
    settings = SettingsDatabase(db)
    with pytest.raises(StorageError) as info:
        settings.store("bad", object())
    assert info.value.kind == "serialization"
    assert settings.load("bad") is None


def test_corrupt_entries_are_skipped_on_load(db):
    db.put(SETTINGS_TABLE, "broken", b"\xff\xfe not json")
    db.put(SETTINGS_TABLE, "good", b"true")
    settings = SettingsDatabase(db)
    assert settings.all() == [("good", True)]