import json
import logging

import pytest

from sheetconfig.records import RecordTypes, encode_record
from sheetconfig.registry import ConfigRegistry, DirectoryResources, TextAsset, type_key_for

from helpers import FlagsConfig, ItemsConfig, StatsConfig


GROUP = "JsonConfigs"


def write_payload(root, name, records):
    directory = root / GROUP
    directory.mkdir(parents=True, exist_ok=True)
    data = {k: (encode_record(v) if not isinstance(v, (dict, str, list)) else v) for k, v in records.items()}
    (directory / f"{name}.json").write_text(json.dumps(data), encoding="utf-8")


@pytest.fixture
def registry(tmp_path, record_types):
    write_payload(
        tmp_path,
        "ItemsConfig_Weapons",
        {
            "r1": ItemsConfig(id="r1", name="Sword", tags=["fire", "ice"]),
            " r2 ": ItemsConfig(id="r2", name="Bow"),
        },
    )
    write_payload(tmp_path, "FlagsConfig_Sheet", {"f1": FlagsConfig(id="f1", enabled=True)})
    reg = ConfigRegistry(DirectoryResources(tmp_path), record_types)
    reg.load_group(GROUP)
    return reg


def test_type_key_for():
    assert type_key_for("ItemsConfig_Weapons") == "ItemsConfig"
    assert type_key_for("ItemsConfig_Level_1") == "ItemsConfig"
    assert type_key_for("ItemsConfig") == "ItemsConfig"


def test_typed_and_untyped_get(registry):
    sword = registry.get(ItemsConfig, "r1")

    assert isinstance(sword, ItemsConfig)
    assert sword.tags == ["fire", "ice"]
    assert registry.get("ItemsConfig", "r1") is sword
    assert registry.type_names() == ["FlagsConfig", "ItemsConfig"]


def test_payload_ids_are_stored_trimmed(registry):
    assert registry.has(ItemsConfig, "r2")


def test_id_normalization_logs_once(registry, caplog):
    with caplog.at_level(logging.WARNING):
        plain = registry.get(ItemsConfig, "r1")
        for _ in range(3):
            assert registry.get(ItemsConfig, "  r1 ") is plain
        registry.has(ItemsConfig, " r1")

    trimmed = [r for r in caplog.records if "Trimmed" in r.getMessage()]
    assert len(trimmed) == 1


def test_missing_record_warns_and_returns_none(registry, caplog):
    with caplog.at_level(logging.WARNING):
        assert registry.get(ItemsConfig, "nope") is None
        assert registry.get(StatsConfig, "s1") is None
        assert registry.get(ItemsConfig, "") is None
    assert len(caplog.records) == 3


def test_has_never_logs_on_miss(registry, caplog):
    with caplog.at_level(logging.DEBUG):
        assert not registry.has(ItemsConfig, "nope")
        assert not registry.has(StatsConfig, "s1")
        assert not registry.has(ItemsConfig, None)
    assert caplog.records == []


def test_class_mismatch_is_a_miss(tmp_path):
    write_payload(tmp_path, "ItemsConfig_Weapons", {"r1": {"id": "r1"}})
    types = RecordTypes()
    types.register(ItemsConfig, decoder=lambda data: FlagsConfig(id=data["id"]))
    reg = ConfigRegistry(DirectoryResources(tmp_path), types)
    reg.load_all(GROUP)

    assert reg.get(ItemsConfig, "r1") is None
    assert not reg.has(ItemsConfig, "r1")
    assert reg.get_all(ItemsConfig) == []
    assert isinstance(reg.get("ItemsConfig", "r1"), FlagsConfig)


def test_non_config_types_fail_fast(registry):
    with pytest.raises(TypeError):
        registry.get(dict, "r1")
    with pytest.raises(TypeError):
        registry.has(None, "r1")
    with pytest.raises(TypeError):
        registry.get_all(int)


def test_get_all(registry, caplog):
    assert sorted(r.id for r in registry.get_all(ItemsConfig)) == ["r1", "r2"]
    with caplog.at_level(logging.WARNING):
        assert registry.get_all(StatsConfig) == []
    assert "StatsConfig" in caplog.text


def test_remove_single_and_bucket(registry):
    registry.remove(ItemsConfig, " r1 ")
    assert not registry.has(ItemsConfig, "r1")
    assert registry.has(ItemsConfig, "r2")

    registry.remove(ItemsConfig)
    assert "ItemsConfig" not in registry.type_names()

    # unknown type/id: no-op
    registry.remove(StatsConfig)
    registry.remove(FlagsConfig, "missing")
    assert registry.has(FlagsConfig, "f1")


def test_load_is_idempotent(tmp_path, record_types, monkeypatch):
    write_payload(tmp_path, "ItemsConfig_Weapons", {"r1": ItemsConfig(id="r1")})
    resources = DirectoryResources(tmp_path)
    calls = []
    original = resources.load_all
    monkeypatch.setattr(resources, "load_all", lambda group: calls.append(group) or original(group))
    reg = ConfigRegistry(resources, record_types)

    reg.ensure_loaded(GROUP)
    snapshot = {name: list(reg.get_all(name)) for name in reg.type_names()}
    reg.ensure_loaded(GROUP)

    assert calls == [GROUP]
    assert {name: list(reg.get_all(name)) for name in reg.type_names()} == snapshot
    assert reg.loaded_groups == {GROUP}


def test_bad_record_is_isolated(tmp_path, record_types, caplog):
    records = {f"s{i}": StatsConfig(id=f"s{i}", hp=i) for i in range(9)}
    records["bad"] = "not a record"
    write_payload(tmp_path, "StatsConfig_Sheet", records)
    reg = ConfigRegistry(DirectoryResources(tmp_path), record_types)

    with caplog.at_level(logging.WARNING):
        reg.load_all(GROUP)

    assert len(reg.get_all(StatsConfig)) == 9
    assert len([r for r in caplog.records if r.levelno == logging.WARNING]) == 1


def test_bad_file_does_not_stop_others(tmp_path, record_types, caplog):
    write_payload(tmp_path, "ItemsConfig_Weapons", {"r1": ItemsConfig(id="r1")})
    (tmp_path / GROUP / "FlagsConfig_Sheet.json").write_text("{not json", encoding="utf-8")
    write_payload(tmp_path, "UnknownConfig_Sheet", {"u1": {"id": "u1"}})
    reg = ConfigRegistry(DirectoryResources(tmp_path), record_types)

    with caplog.at_level(logging.ERROR):
        reg.load_all(GROUP)

    assert reg.type_names() == ["ItemsConfig"]
    assert "FlagsConfig_Sheet" in caplog.text
    assert "UnknownConfig" in caplog.text


def test_sheets_of_one_type_merge(tmp_path, record_types):
    write_payload(tmp_path, "ItemsConfig_Weapons", {"r1": ItemsConfig(id="r1")})
    write_payload(tmp_path, "ItemsConfig_Armor", {"a1": ItemsConfig(id="a1")})
    reg = ConfigRegistry(DirectoryResources(tmp_path), record_types)
    reg.load_all(GROUP)

    assert sorted(r.id for r in reg.get_all(ItemsConfig)) == ["a1", "r1"]


def test_read_payload_does_not_store(registry):
    asset = TextAsset("StatsConfig_Sheet", json.dumps({"s1": {"$type": "StatsConfig", "id": "s1", "hp": "3"}}))
    records = registry.read_payload(asset)

    assert records["s1"].hp == 3
    assert "StatsConfig" not in registry.type_names()


def test_clear(registry):
    registry.clear()
    assert registry.type_names() == []
    assert registry.loaded_groups == set()


def test_missing_group_and_empty_name(tmp_path, record_types, caplog):
    reg = ConfigRegistry(DirectoryResources(tmp_path), record_types)
    with caplog.at_level(logging.WARNING):
        reg.load_all("")
        reg.load_all("Nowhere")
    assert reg.loaded_groups == {"Nowhere"}
    assert "Nowhere" in caplog.text
