"""sheetconfig command line.

    sheetconfig --excel-dir ExcelConfigs --class-out Configs --json-out JsonConfigs

Runs one full export: generate missing record-type modules, import them,
compile every sheet into a payload. With --optional a missing workbook
directory is not an error, so builds stay green when payloads already exist.
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from typing import List, Optional

from .pipeline import generate_configs
from .settings import DEFAULT_CLASS_OUTPUT_DIR, DEFAULT_EXCEL_DIR, DEFAULT_JSON_OUTPUT_DIR, ExportSettings


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="sheetconfig", description="Export spreadsheet tables to typed JSON configs.")
    ap.add_argument("--excel-dir", default=DEFAULT_EXCEL_DIR)
    ap.add_argument("--class-out", default=DEFAULT_CLASS_OUTPUT_DIR)
    ap.add_argument("--json-out", default=DEFAULT_JSON_OUTPUT_DIR)
    ap.add_argument("--report", help="write the export report (warnings/errors) as JSON")
    ap.add_argument("--optional", action="store_true", help="exit 0 when the workbook directory is missing")
    ap.add_argument("-v", "--verbose", action="store_true")
    return ap


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.optional and not os.path.isdir(args.excel_dir):
        print(f"Workbook directory {args.excel_dir} not found; skipping export.")
        return 0

    settings = ExportSettings.from_args(args)
    report = generate_configs(settings)
    if args.report:
        report.write(args.report)

    print(
        f"Exported {len(report.payloads)} payloads "
        f"({len(report.generated_types)} new types, {len(report.warnings)} warnings, {len(report.errors)} errors)"
    )
    if not report.ok:
        for err in report.errors:
            print(f"ERROR: {err['message']}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
