"""Workbook builders and hand-written record types shared by the tests."""

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Sequence

import openpyxl

from sheetconfig.records import BaseConfig, config_field


ITEM_HEADER = [
    ["Row id", "Display name", "Tags"],
    ["id", "name", "tags"],
    ["string", "string", "string[]"],
]


@dataclass
class ItemsConfig(BaseConfig):
    name: str = config_field("string")
    tags: List[str] = config_field("string[]")


@dataclass
class FlagsConfig(BaseConfig):
    enabled: bool = config_field("bool")
    note: str = config_field("string")


@dataclass
class StatsConfig(BaseConfig):
    hp: int = config_field("int")
    speed: float = config_field("float")
    levels: List[int] = config_field("int[]")


def build_sheet(rows: Sequence[Sequence[Any]], title: str = "Sheet1"):
    wb = openpyxl.Workbook()
    ws = wb.active
    ws.title = title
    for row in rows:
        ws.append(list(row))
    return ws


def write_workbook(path: Path, sheets: Dict[str, Sequence[Sequence[Any]]]) -> Path:
    wb = openpyxl.Workbook()
    wb.remove(wb.active)
    for title, rows in sheets.items():
        ws = wb.create_sheet(title)
        for row in rows:
            ws.append(list(row))
    path.parent.mkdir(parents=True, exist_ok=True)
    wb.save(path)
    return path


