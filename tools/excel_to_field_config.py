"""Convert a field configuration worksheet into the directory configuration JSON."""

from __future__ import annotations

import argparse
import math
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple

try:
    from openpyxl import load_workbook
    from openpyxl.worksheet.worksheet import Worksheet
except ModuleNotFoundError as exc:  # pragma: no cover - skipped in tests
    raise ModuleNotFoundError(
        "The Excel import needs 'openpyxl'. Install it with `pip install openpyxl`."
    ) from exc

from civicrm_directory.field_config import (
    OTHER_CATEGORIES,
    ConfigurationError,
    FieldConfigStore,
    FieldConfiguration,
)
from civicrm_directory.models import coerce_id

_REQUIRED_COLUMNS = ("directory", "groupid", "contacttype", "section")
_OPTIONAL_COLUMNS = ("title", "location", "field")
_SECTIONS = ("core", "custom") + OTHER_CATEGORIES


def normalize_key(value: str) -> str:
    """Normalize a column header for comparisons."""

    return re.sub(r"[^0-9a-z]", "", value.lower())


def is_empty(value: Any) -> bool:
    """Check whether a cell is empty or whitespace only."""

    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    if isinstance(value, float):
        return not math.isfinite(value)
    return False


def format_cell(value: Any) -> str | None:
    """Return a cell as trimmed text; whole floats lose their ``.0``."""

    if is_empty(value):
        return None
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip() or None


@dataclass
class DirectorySettings:
    group_id: int
    title: Optional[str] = None
    contact_fields: Dict[str, FieldConfiguration] = field(default_factory=dict)


def load_rows(sheet: Worksheet) -> Tuple[List[str], List[List[Any]]]:
    """Read the header and data rows from a worksheet."""

    rows = list(sheet.iter_rows(values_only=True))
    if not rows:
        return [], []

    headers = [str(cell).strip() if cell is not None else "" for cell in rows[0]]
    data_rows = [list(row) for row in rows[1:]]
    return headers, data_rows


def resolve_columns(headers: Sequence[str]) -> Dict[str, int]:
    """Map the known column names to their position in the sheet."""

    columns: Dict[str, int] = {}
    for index, header in enumerate(headers):
        key = normalize_key(header)
        if key in _REQUIRED_COLUMNS + _OPTIONAL_COLUMNS and key not in columns:
            columns[key] = index
    missing = [name for name in _REQUIRED_COLUMNS if name not in columns]
    if missing:
        raise ValueError(f"Required columns are missing: {', '.join(missing)}")
    return columns


def _cell(row: Sequence[Any], columns: Dict[str, int], name: str) -> str | None:
    index = columns.get(name)
    if index is None or index >= len(row):
        return None
    return format_cell(row[index])


def _required(row: Sequence[Any], columns: Dict[str, int], name: str) -> str:
    value = _cell(row, columns, name)
    if not value:
        raise ValueError(f"Column '{name}' is empty.")
    return value


def _required_id(row: Sequence[Any], columns: Dict[str, int], name: str) -> int:
    value = _required(row, columns, name)
    coerced = coerce_id(value)
    if coerced is None:
        raise ValueError(f"Column '{name}' must be numeric, got {value!r}.")
    return coerced


def _append(values: List[Any], value: Any) -> None:
    if value not in values:
        values.append(value)


def apply_row(
    directories: Dict[str, Dict[str, Any]], columns: Dict[str, int], row: Sequence[Any]
) -> str | None:
    """Add one row to the raw directory payloads; return a warning if any."""

    directory_id = _required(row, columns, "directory")
    group_id = _required_id(row, columns, "groupid")
    contact_type = _required(row, columns, "contacttype")
    section = _required(row, columns, "section").lower()
    title = _cell(row, columns, "title")

    directory = directories.setdefault(
        directory_id, {"title": title, "groupId": group_id, "contactFields": {}}
    )
    warning = None
    if directory["groupId"] != group_id:
        warning = (
            f"Group ID {group_id} differs from {directory['groupId']} for directory "
            f"{directory_id}; the first value is kept."
        )
    if title and not directory["title"]:
        directory["title"] = title

    if section not in _SECTIONS:
        return f"Unknown section '{section}' was ignored."

    payload = directory["contactFields"].setdefault(
        contact_type, {"core": [], "custom": [], "other": []}
    )
    if section == "core":
        _append(payload["core"], _required(row, columns, "field"))
        return warning
    if section == "custom":
        _append(payload["custom"], _required_id(row, columns, "field"))
        return warning

    _append(payload["other"], section)
    block = payload.setdefault(section, {"enabled": []})
    location_id = _required_id(row, columns, "location")
    _append(block["enabled"], location_id)
    if section == "phone":
        selection = block.setdefault(str(location_id), [])
        if _cell(row, columns, "field"):
            _append(selection, _required_id(row, columns, "field"))
    elif section == "address":
        selection = block.setdefault(str(location_id), [])
        _append(selection, _required(row, columns, "field"))
    return warning


def convert_excel_to_field_config(
    excel_path: Path, *, sheet_name: str | None = None
) -> Tuple[Dict[str, DirectorySettings], List[str]]:
    """Convert an Excel file into validated directory settings."""

    workbook = load_workbook(excel_path, data_only=True)
    if sheet_name:
        if sheet_name not in workbook.sheetnames:
            raise ValueError(
                f"Worksheet '{sheet_name}' does not exist. Available sheets: {', '.join(workbook.sheetnames)}"
            )
        worksheet = workbook[sheet_name]
    else:
        worksheet = workbook.active

    headers, rows = load_rows(worksheet)
    columns = resolve_columns(headers)
    raw_directories: Dict[str, Dict[str, Any]] = {}
    warnings: List[str] = []

    for offset, row in enumerate(rows, start=2):
        if all(is_empty(value) for value in row):
            continue
        try:
            warning = apply_row(raw_directories, columns, row)
        except ValueError as exc:
            raise ValueError(f"Row {offset}: {exc}") from exc
        if warning:
            warnings.append(f"Row {offset}: {warning}")

    directories: Dict[str, DirectorySettings] = {}
    for directory_id, raw in raw_directories.items():
        settings = DirectorySettings(group_id=raw["groupId"], title=raw["title"])
        for contact_type, payload in raw["contactFields"].items():
            try:
                settings.contact_fields[contact_type] = FieldConfiguration.from_dict(
                    contact_type, payload
                )
            except ConfigurationError as exc:
                raise ValueError(f"Directory {directory_id}: {exc}") from exc
        directories[directory_id] = settings
    return directories, warnings


def write_field_config(directories: Dict[str, DirectorySettings], output_path: Path) -> None:
    """Store the directories in ``output_path``, keeping directories already there."""

    store = FieldConfigStore(output_path)
    for directory_id, settings in directories.items():
        store.save_directory(
            directory_id,
            group_id=settings.group_id,
            contact_fields=settings.contact_fields,
            title=settings.title,
        )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Convert an Excel sheet into the directory field configuration JSON",
    )
    parser.add_argument("excel_path", type=Path, help="Path to the Excel file (.xlsx)")
    parser.add_argument(
        "output_path",
        type=Path,
        nargs="?",
        help="Target JSON file (default: same path with .json)",
    )
    parser.add_argument(
        "--sheet",
        dest="sheet_name",
        help="Name of the worksheet to convert (default: first sheet)",
    )
    parser.add_argument(
        "--fail-on-warning",
        action="store_true",
        help="Exit with an error if any row produced a warning",
    )
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    excel_path: Path = args.excel_path
    if not excel_path.exists():
        parser.error(f"File '{excel_path}' was not found.")

    output_path: Path = args.output_path or excel_path.with_suffix(".json")

    try:
        directories, warnings = convert_excel_to_field_config(excel_path, sheet_name=args.sheet_name)
    except ValueError as exc:
        parser.error(str(exc))
        return 2

    warning_block = "\n".join(f"⚠️  {warning}" for warning in warnings)
    if warnings and args.fail_on_warning:
        parser.error(f"Some rows produced warnings:\n{warning_block}")

    try:
        write_field_config(directories, output_path)
    except ConfigurationError as exc:
        parser.error(str(exc))
        return 2

    message_lines = [f"✅ {len(directories)} directories written to '{output_path}'."]
    if warnings:
        message_lines.append("Warnings:")
        message_lines.append(warning_block)
    print("\n".join(message_lines))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
