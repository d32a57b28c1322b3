"""Full export cycle: generate record types, reload them, compile payloads.

    report = generate_configs(ExportSettings(excel_dir=..., ...))

The two phases are joined by `after_generate`, a continuation returning the
RecordTypes to compile against. The default imports the generated modules
from the class output directory.
"""

from __future__ import annotations

import logging
import shutil
import zipfile
from typing import Callable, List, Optional

import openpyxl
from openpyxl.utils.exceptions import InvalidFileException

from .codegen import ConfigGenerator
from .compiler import ExportReport, compile_table
from .errors import HeaderFormatError
from .records import RecordTypes, load_config_modules
from .settings import ExportSettings
from .workbook import TableDescriptor, list_workbooks, read_table


logger = logging.getLogger(__name__)

AfterGenerate = Callable[[], RecordTypes]


def reset_output_dir(settings: ExportSettings) -> None:
    """Delete stale payloads. Record-type modules are left alone."""
    if settings.json_output_dir.exists():
        shutil.rmtree(settings.json_output_dir)
    settings.json_output_dir.mkdir(parents=True, exist_ok=True)


def read_tables(settings: ExportSettings, generator: ConfigGenerator, report: ExportReport) -> List[TableDescriptor]:
    tables: List[TableDescriptor] = []
    for path in list_workbooks(settings.excel_dir, settings.extensions, settings.temp_prefix):
        try:
            # data_only: formula cells read as their cached result.
            wb = openpyxl.load_workbook(path, data_only=True)
        except (OSError, zipfile.BadZipFile, InvalidFileException) as exc:
            report.error("WORKBOOK_UNREADABLE", f"Cannot open {path.name}: {exc}", source=path.name)
            continue
        for ws in wb.worksheets:
            try:
                table = read_table(ws, path, settings)
                written = generator.generate(table)
            except HeaderFormatError as exc:
                report.error("HEADER_FORMAT", f"Export failed: {exc}", source=path.name, sheet=ws.title)
                continue
            if written is not None:
                report.generated_types.append(table.record_type_name)
            tables.append(table)
    return tables


def compile_tables(
    tables: List[TableDescriptor],
    record_types: RecordTypes,
    settings: ExportSettings,
    report: ExportReport,
) -> int:
    success = 0
    for table in tables:
        if compile_table(table, record_types, settings.json_output_dir, report, settings):
            success += 1
    logger.info("Payload export finished: %d of %d tables written", success, len(tables))
    return success


def generate_configs(settings: ExportSettings, after_generate: Optional[AfterGenerate] = None) -> ExportReport:
    report = ExportReport()
    reset_output_dir(settings)

    settings.excel_dir.mkdir(parents=True, exist_ok=True)
    if not list_workbooks(settings.excel_dir, settings.extensions, settings.temp_prefix):
        report.error("NO_WORKBOOKS", f"No workbooks found in {settings.excel_dir}")
        return report

    generator = ConfigGenerator(settings.class_output_dir)
    tables = read_tables(settings, generator, report)

    if after_generate is None:
        def after_generate() -> RecordTypes:
            return load_config_modules(settings.class_output_dir)

    record_types = after_generate()
    compile_tables(tables, record_types, settings, report)
    return report
