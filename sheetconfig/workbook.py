"""Workbook discovery and header reading (openpyxl).

Sheet layout, 0-based rows:

  0  comment     Display name | Tags
  1  field name  id | name | tags
  2  type token  string | string | string[]
  3+ data        r1 | Sword | "fire,ice"
"""

from __future__ import annotations

import datetime
import keyword
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterator, List, Optional, Sequence, Tuple

from .errors import HeaderFormatError
from .settings import ExportSettings


logger = logging.getLogger(__name__)

ID_FIELD = "id"
CONFIG_SUFFIX = "Config"
DEFAULT_SHEET_NAME = "Sheet"

# Names the generated record module resolves inside its class body.
RESERVED_FIELD_NAMES = frozenset(
    {"dataclass", "BaseConfig", "config_field", "List", "Any", "str", "int", "float", "bool"}
)


@dataclass
class ColumnDescriptor:
    name: str
    declared_type: str
    comment: str = ""


@dataclass
class TableDescriptor:
    record_type_name: str
    payload_name: str
    columns: List[ColumnDescriptor]
    sheet: Any = field(repr=False)
    source_name: str = ""
    sheet_name: str = ""


def list_workbooks(directory: Path, extensions: Sequence[str] = (".xlsx", ".xlsm"), temp_prefix: str = "~$") -> List[Path]:
    exts = {e.lower() for e in extensions}
    out: List[Path] = []
    for p in sorted(Path(directory).iterdir()):
        if not p.is_file():
            continue
        if p.name.startswith(temp_prefix):
            continue
        if p.suffix.lower() not in exts:
            continue
        out.append(p)
    return out


def sanitize_sheet_name(sheet_name: Optional[str]) -> str:
    """Turn a sheet title into an identifier-safe payload suffix ("Level 1!!" -> "Level_1")."""
    if not sheet_name:
        return DEFAULT_SHEET_NAME

    first = sheet_name[0]
    chars = [first if (first.isalpha() or first == "_") else "_"]
    for c in sheet_name[1:]:
        chars.append(c if (c.isalnum() or c == "_") else "_")

    result = re.sub(r"_{2,}", "_", "".join(chars)).rstrip("_")
    return result or DEFAULT_SHEET_NAME


def cell_text(value: Any) -> str:
    """Render a cell value the way it reads in the spreadsheet."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, float):
        if value.is_integer():
            return str(int(value))
        return repr(value)
    if isinstance(value, (datetime.datetime, datetime.date, datetime.time)):
        return value.isoformat()
    return str(value)


def trim_row(values: Sequence[Any]) -> Tuple[Any, ...]:
    """Drop trailing empty cells so len() is the row's own cell count."""
    end = len(values)
    while end > 0 and (values[end - 1] is None or values[end - 1] == ""):
        end -= 1
    return tuple(values[:end])


def _header_row(ws, index: int) -> Tuple[Any, ...]:
    rows = ws.iter_rows(min_row=index + 1, max_row=index + 1, values_only=True)
    return next(rows, ())


def read_columns(ws, source_name: str, settings: ExportSettings) -> List[ColumnDescriptor]:
    comments = _header_row(ws, settings.comment_row)
    names = _header_row(ws, settings.field_row)
    types = _header_row(ws, settings.type_row)

    first = cell_text(names[0]).strip() if names else ""
    if first != ID_FIELD:
        raise HeaderFormatError(source_name, ws.title, f"first column must be '{ID_FIELD}', found '{first}'")

    columns: List[ColumnDescriptor] = []
    for i in range(len(names)):
        name = cell_text(names[i]).strip()
        declared = cell_text(types[i]).strip() if i < len(types) else ""
        comment = cell_text(comments[i]).strip() if i < len(comments) else ""
        if not name or not declared:
            break
        if not name.isidentifier() or keyword.iskeyword(name):
            raise HeaderFormatError(source_name, ws.title, f"column {i + 1} field name '{name}' is not a valid identifier")
        if name in RESERVED_FIELD_NAMES:
            raise HeaderFormatError(source_name, ws.title, f"column {i + 1} field name '{name}' is reserved in generated modules")
        columns.append(ColumnDescriptor(name=name, declared_type=declared, comment=comment))
    return columns


def record_type_name_for(source: Path) -> str:
    return f"{Path(source).stem}{CONFIG_SUFFIX}"


def read_table(ws, source: Path, settings: ExportSettings) -> TableDescriptor:
    source = Path(source)
    type_name = record_type_name_for(source)
    if not type_name.isidentifier():
        raise HeaderFormatError(source.name, ws.title, f"'{type_name}' is not a valid type name; rename the workbook")
    if "_" in source.stem:
        # Payload names are split on the first "_" when loaded.
        logger.warning("Workbook name %s contains '_'; its payloads will load under '%s'", source.name, source.stem.split("_")[0])

    columns = read_columns(ws, source.name, settings)
    return TableDescriptor(
        record_type_name=type_name,
        payload_name=f"{type_name}_{sanitize_sheet_name(ws.title)}",
        columns=columns,
        sheet=ws,
        source_name=source.name,
        sheet_name=ws.title,
    )


def iter_data_rows(table: TableDescriptor, settings: ExportSettings) -> Iterator[Tuple[int, Tuple[Any, ...]]]:
    """Yield (0-based sheet row index, trimmed values) for every data row."""
    rows = table.sheet.iter_rows(min_row=settings.first_data_row + 1, values_only=True)
    for offset, values in enumerate(rows):
        yield settings.first_data_row + offset, trim_row(values)
