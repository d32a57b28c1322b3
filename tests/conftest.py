import pytest

from sheetconfig.records import RecordTypes
from sheetconfig.settings import ExportSettings

from helpers import FlagsConfig, ItemsConfig, StatsConfig


@pytest.fixture
def settings(tmp_path) -> ExportSettings:
    return ExportSettings(
        excel_dir=tmp_path / "ExcelConfigs",
        class_output_dir=tmp_path / "Configs",
        json_output_dir=tmp_path / "Resources" / "JsonConfigs",
    )


@pytest.fixture
def record_types() -> RecordTypes:
    return RecordTypes([ItemsConfig, FlagsConfig, StatsConfig])
