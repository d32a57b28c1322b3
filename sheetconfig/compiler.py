"""Row-to-payload compiler.

Each sheet becomes one payload, keyed by row id:

  JsonConfigs/ItemsConfig_Weapons.json
    {"r1": {"$type": "ItemsConfig", "id": "r1", "name": "Sword", "tags": ["fire", "ice"]}}

Non-destructive per row: a bad row is reported and skipped, its siblings are
still written.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from .csv_array import parse_csv_style_array
from .errors import SheetConfigError
from .records import STRING_TOKENS, BaseConfig, RecordTypes, encode_record, is_array_token
from .settings import ExportSettings
from .workbook import TableDescriptor, cell_text, iter_data_rows


logger = logging.getLogger(__name__)


@dataclass
class ExportReport:
    warnings: List[Dict[str, Any]] = field(default_factory=list)
    errors: List[Dict[str, Any]] = field(default_factory=list)
    payloads: Dict[str, int] = field(default_factory=dict)
    generated_types: List[str] = field(default_factory=list)

    def warn(self, code: str, message: str, **context: Any) -> None:
        logger.warning(message)
        self.warnings.append({"code": code, "message": message, **context})

    def error(self, code: str, message: str, **context: Any) -> None:
        logger.error(message)
        self.errors.append({"code": code, "message": message, **context})

    def codes(self) -> List[str]:
        return [w["code"] for w in self.warnings] + [e["code"] for e in self.errors]

    @property
    def ok(self) -> bool:
        return not self.errors

    def to_dict(self) -> Dict[str, Any]:
        return {
            "schemaVersion": 1,
            "generatedTypes": list(self.generated_types),
            "payloads": dict(sorted(self.payloads.items())),
            "warnings": self.warnings,
            "errors": self.errors,
        }

    def write(self, path: Path) -> None:
        write_json(path, self.to_dict())


def write_json(path: Path, data: Any) -> None:
    os.makedirs(os.path.dirname(os.path.abspath(path)), exist_ok=True)
    # Plain utf-8 never writes a BOM.
    with open(path, "w", encoding="utf-8", newline="\n") as f:
        json.dump(data, f, indent=2, ensure_ascii=False)
        f.write("\n")


def escape_backslashes(text: str) -> str:
    return text.replace("\\", "\\\\")


def coerce_bool_text(value: str) -> str:
    lowered = value.lower()
    if lowered in ("true", "false"):
        return lowered
    return "false" if value == "0" else "true"


def _quote(text: str) -> str:
    return '"' + text.replace('"', '\\"') + '"'


def encode_cell(value: str, declared_type: str) -> str:
    """JSON fragment for one cell; `value` is already backslash-escaped."""
    if declared_type == "bool":
        value = coerce_bool_text(value)

    if is_array_token(declared_type):
        if declared_type == "string[]":
            return "[" + ",".join(_quote(item) for item in parse_csv_style_array(value)) + "]"
        # Numeric arrays are authored as "1,2,3" and trusted verbatim.
        return f"[{value}]"

    return _quote(value)


def compile_table(
    table: TableDescriptor,
    record_types: RecordTypes,
    output_dir: Path,
    report: ExportReport,
    settings: Optional[ExportSettings] = None,
) -> bool:
    settings = settings or ExportSettings()
    decoder = record_types.decoder(table.record_type_name)
    if decoder is None:
        report.error(
            "TYPE_NOT_FOUND",
            f"Record type {table.record_type_name} not found for {table.payload_name}; "
            "did you regenerate and reload the generated modules?",
            payload=table.payload_name,
        )
        return False

    records: Dict[str, BaseConfig] = {}
    column_count = len(table.columns)

    for row_index, values in iter_data_rows(table, settings):
        if not values:
            continue
        row_no = row_index + 1
        row_id = cell_text(values[0])
        if not row_id.strip():
            report.warn(
                "EMPTY_ID",
                f"{table.payload_name}: row {row_no} of sheet '{table.sheet_name}' has an empty id, skipped",
                payload=table.payload_name,
                row=row_no,
            )
            continue

        parts: List[str] = []
        for j in range(min(len(values), column_count)):
            column = table.columns[j]
            text = escape_backslashes(cell_text(values[j]))
            if not text:
                if column.declared_type not in STRING_TOKENS:
                    text = "0"
                report.warn(
                    "EMPTY_CELL",
                    f"{table.payload_name}: empty value at row {row_no}, column {j + 1} (field {column.name})",
                    payload=table.payload_name,
                    row=row_no,
                    column=j + 1,
                    field=column.name,
                )
            parts.append(f'"{column.name}":{encode_cell(text, column.declared_type)}')

        json_text = "{" + ",".join(parts) + "}"
        try:
            # strict=False lets multi-line cell text through.
            record = decoder(json.loads(json_text, strict=False))
        except (ValueError, TypeError, SheetConfigError) as exc:
            report.warn(
                "ROW_DECODE_FAILED",
                f"{table.payload_name}: cannot decode row {row_no}, id {row_id}: {exc}",
                payload=table.payload_name,
                row=row_no,
                id=row_id,
            )
            continue

        if not (record.id or "").strip():
            report.warn(
                "EMPTY_ID",
                f"{table.payload_name}: row {row_no} decoded without an id, skipped",
                payload=table.payload_name,
                row=row_no,
            )
            continue

        if row_id in records:
            report.warn(
                "DUPLICATE_ID",
                f"{table.payload_name}: duplicate id {row_id} at row {row_no} overwrites the earlier row",
                payload=table.payload_name,
                row=row_no,
                id=row_id,
            )
        records[row_id] = record

    path = Path(output_dir) / f"{table.payload_name}.json"
    write_json(path, {k: encode_record(v) for k, v in records.items()})
    report.payloads[table.payload_name] = len(records)
    logger.info("Wrote %s (%d rows)", path, len(records))
    return True
