"""Export settings.

Defaults mirror the project layout the exporter was written for:

  ExcelConfigs/          source workbooks
  Configs/               generated record-type modules (<FileName>Config.py)
  JsonConfigs/           generated payloads (<FileName>Config_<Sheet>.json)
"""

from __future__ import annotations

import argparse
from dataclasses import dataclass
from pathlib import Path
from typing import Tuple


DEFAULT_EXCEL_DIR = "ExcelConfigs"
DEFAULT_CLASS_OUTPUT_DIR = "Configs"
DEFAULT_JSON_OUTPUT_DIR = "JsonConfigs"


@dataclass
class ExportSettings:
    excel_dir: Path = Path(DEFAULT_EXCEL_DIR)
    class_output_dir: Path = Path(DEFAULT_CLASS_OUTPUT_DIR)
    json_output_dir: Path = Path(DEFAULT_JSON_OUTPUT_DIR)
    extensions: Tuple[str, ...] = (".xlsx", ".xlsm")
    # Office lock files ("~$Items.xlsx") sit next to open workbooks.
    temp_prefix: str = "~$"
    # Header layout, 0-based sheet rows.
    comment_row: int = 0
    field_row: int = 1
    type_row: int = 2
    first_data_row: int = 3

    def __post_init__(self) -> None:
        self.excel_dir = Path(self.excel_dir)
        self.class_output_dir = Path(self.class_output_dir)
        self.json_output_dir = Path(self.json_output_dir)

    @classmethod
    def from_args(cls, args: argparse.Namespace) -> "ExportSettings":
        return cls(
            excel_dir=Path(args.excel_dir),
            class_output_dir=Path(args.class_out),
            json_output_dir=Path(args.json_out),
        )
