import logging
from pathlib import Path

import pytest

from sheetconfig.codegen import ConfigGenerator, generate_config_module, render_config_module
from sheetconfig.errors import HeaderFormatError
from sheetconfig.records import load_config_modules
from sheetconfig.workbook import ColumnDescriptor, read_table

from helpers import ITEM_HEADER, build_sheet


COLUMNS = [
    ColumnDescriptor("id", "string", "Row id"),
    ColumnDescriptor("name", "string", "Display name"),
    ColumnDescriptor("tags", "string[]", ""),
    ColumnDescriptor("price", "int", "Cost\nin gold"),
]


def test_render_config_module():
    source = render_config_module("ItemsConfig", COLUMNS, "Items.xlsx")

    assert "class ItemsConfig(BaseConfig):" in source
    assert "from typing import List" in source
    assert "    #: Display name\n    name: str = config_field(\"string\")" in source
    assert "    tags: List[str] = config_field(\"string[]\")" in source
    assert "    #: Cost\n    #: in gold\n    price: int = config_field(\"int\")" in source
    # id comes from BaseConfig
    assert "    id:" not in source
    compile(source, "ItemsConfig.py", "exec")


def test_render_config_module_with_only_id():
    source = render_config_module("EmptyConfig", [ColumnDescriptor("id", "string")])
    assert source.rstrip().endswith("pass")
    assert "typing" not in source


def test_generated_module_is_loadable(tmp_path):
    path = generate_config_module(COLUMNS, tmp_path, "ItemsConfig", source_name="Items.xlsx")

    assert path == tmp_path / "ItemsConfig.py"
    assert not path.read_bytes().startswith(b"\xef\xbb\xbf")
    cls = load_config_modules(tmp_path).get("ItemsConfig")
    record = cls(id="r1", name="Sword", tags=["fire"], price=3)
    assert record.price == 3


def test_existing_module_is_never_overwritten(tmp_path, caplog):
    target = tmp_path / "ItemsConfig.py"
    target.write_text("# hand edited\n", encoding="utf-8")

    with caplog.at_level(logging.WARNING):
        assert generate_config_module(COLUMNS, tmp_path, "ItemsConfig") is None

    assert target.read_text(encoding="utf-8") == "# hand edited\n"
    assert "already exists" in caplog.text


def test_output_directory_is_created(tmp_path):
    out = tmp_path / "a" / "b"
    generate_config_module(COLUMNS, out, "ItemsConfig")
    assert (out / "ItemsConfig.py").is_file()


def test_first_column_must_be_id(tmp_path):
    with pytest.raises(HeaderFormatError):
        generate_config_module(COLUMNS[1:], tmp_path, "ItemsConfig", source_name="Items.xlsx", sheet_name="Weapons")


def test_generator_emits_once_per_workbook(tmp_path, settings):
    generator = ConfigGenerator(tmp_path / "Configs")
    first = read_table(build_sheet(ITEM_HEADER, title="Weapons"), Path("Items.xlsx"), settings)
    second = read_table(build_sheet(ITEM_HEADER, title="Armor"), Path("Items.xlsx"), settings)

    assert generator.generate(first) == tmp_path / "Configs" / "ItemsConfig.py"
    assert generator.generate(second) is None
    assert generator.written == [tmp_path / "Configs" / "ItemsConfig.py"]
