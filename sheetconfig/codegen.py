"""Record-type module generator.

One module per workbook, written to the class output directory:

  Configs/ItemsConfig.py

Existing modules are never overwritten so hand edits survive regeneration.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import List, Optional, Sequence, Set

from .errors import HeaderFormatError
from .records import python_annotation
from .workbook import ID_FIELD, ColumnDescriptor, TableDescriptor


logger = logging.getLogger(__name__)


def render_config_module(type_name: str, columns: Sequence[ColumnDescriptor], source_name: str = "") -> str:
    annotations = [python_annotation(c.declared_type) for c in columns if c.name != ID_FIELD]
    typing_names = sorted({n for n in ("Any", "List") if any(n in a for a in annotations)})

    lines: List[str] = []
    if source_name:
        lines.append(f'"""Record type generated from {source_name}."""')
        lines.append("")
    lines.append("from dataclasses import dataclass")
    if typing_names:
        lines.append(f"from typing import {', '.join(typing_names)}")
    lines.append("")
    lines.append("from sheetconfig.records import BaseConfig, config_field")
    lines.append("")
    lines.append("")
    lines.append("@dataclass")
    lines.append(f"class {type_name}(BaseConfig):")

    body: List[str] = []
    for column in columns:
        if column.name == ID_FIELD:
            continue
        for comment_line in column.comment.splitlines():
            body.append(f"    #: {comment_line.strip()}".rstrip())
        body.append(f"    {column.name}: {python_annotation(column.declared_type)} = config_field({json.dumps(column.declared_type)})")
    lines.extend(body or ["    pass"])
    return "\n".join(lines) + "\n"


def generate_config_module(
    columns: Sequence[ColumnDescriptor],
    output_dir: Path,
    type_name: str,
    source_name: str = "",
    sheet_name: str = "",
) -> Optional[Path]:
    if not columns or columns[0].name != ID_FIELD:
        raise HeaderFormatError(source_name or type_name, sheet_name or "?", f"first column must be '{ID_FIELD}'")

    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    path = output_dir / f"{type_name}.py"
    if path.exists():
        logger.warning("Config type already exists, keeping it: %s", path)
        return None

    # newline="\n" keeps generated files identical across platforms.
    with open(path, "w", encoding="utf-8", newline="\n") as f:
        f.write(render_config_module(type_name, columns, source_name))
    logger.info("Generated config type %s", path)
    return path


class ConfigGenerator:
    """Emits each workbook's record type at most once per run (keyed by file stem)."""

    def __init__(self, output_dir: Path) -> None:
        self.output_dir = Path(output_dir)
        self._generated: Set[str] = set()
        self.written: List[Path] = []

    def generate(self, table: TableDescriptor) -> Optional[Path]:
        if table.record_type_name in self._generated:
            return None
        path = generate_config_module(
            table.columns,
            self.output_dir,
            table.record_type_name,
            source_name=table.source_name,
            sheet_name=table.sheet_name,
        )
        self._generated.add(table.record_type_name)
        if path is not None:
            self.written.append(path)
        return path
