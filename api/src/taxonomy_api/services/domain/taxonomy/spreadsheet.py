#!/usr/bin/env python3
"""Spreadsheet-shaped input: cell matrices, header/row records and framework import.

Binary parsing stays with the caller's spreadsheet library; this module starts
from the matrix of cells it produces.
"""

import logging
import re
from dataclasses import dataclass
from pathlib import PurePath
from typing import Any, Mapping, Optional, Sequence

from .column_mapper import (
    FIELD_SYNONYMS,
    HeaderMatchResult,
    level_fields,
    map_columns,
    merge_column_overrides,
)
from .labeled import RequirementExtractor, build_labeled_tree
from .tree import BuildResult, BuildWarning, HierarchyInputError, WarningCode

logger = logging.getLogger(__name__)

SPREADSHEET_SUFFIXES = (".xlsx", ".xls", ".csv")
MAX_CODE_LENGTH = 20

_LEADING_ALNUM = re.compile(r"^([A-Za-z0-9]+)")
_NON_ALNUM_UPPER = re.compile(r"[^A-Z0-9]")


@dataclass(frozen=True)
class Sheet:
    headers: list[str]
    rows: list[list[str]]


@dataclass(frozen=True)
class FrameworkIdentity:
    code: str
    name: str


@dataclass
class SheetBuild:
    """Labeled build of a sheet together with the column mapping it used."""
    result: BuildResult
    column_mapping: HeaderMatchResult


def _cell_text(value: Any) -> str:
    return "" if value is None else str(value).strip()


def tabulate_sheet(matrix: Sequence[Sequence[Any]]) -> Sheet:
    """Split a cell matrix into headers and string rows.

    Cells are stringified and trimmed, rows are padded or truncated to the
    header width and rows with only empty cells are dropped.
    """
    if not isinstance(matrix, (list, tuple)) or not matrix:
        raise HierarchyInputError("Spreadsheet is empty: a header row is required")

    header_row = matrix[0]
    if not isinstance(header_row, (list, tuple)):
        raise HierarchyInputError("Spreadsheet header row must be a list of cells")
    headers = [_cell_text(cell) for cell in header_row]
    width = len(headers)

    rows: list[list[str]] = []
    for line, raw in enumerate(matrix[1:], start=2):
        if not isinstance(raw, (list, tuple)):
            raise HierarchyInputError(f"Spreadsheet line {line} must be a list of cells")
        cells = [_cell_text(cell) for cell in raw[:width]]
        cells.extend([""] * (width - len(cells)))
        if any(cells):
            rows.append(cells)

    return Sheet(headers=headers, rows=rows)


def derive_framework_identity(filename: str) -> FrameworkIdentity:
    """Default framework code and name from an uploaded file name.

    "ISO27001_2022.xlsx" -> code "ISO27001", name "ISO27001_2022".
    """
    name = PurePath(filename or "").name
    lowered = name.lower()
    for suffix in SPREADSHEET_SUFFIXES:
        if lowered.endswith(suffix):
            name = name[: -len(suffix)]
            break

    leading = _LEADING_ALNUM.match(name)
    if leading:
        code = leading.group(1).upper()
    else:
        code = _NON_ALNUM_UPPER.sub("", name.upper())[:MAX_CODE_LENGTH]
    return FrameworkIdentity(code=code, name=name)


def rows_to_records(headers: Sequence[str], rows: Sequence[Sequence[str]]) -> tuple[list[dict[str, str]], list[BuildWarning]]:
    """Key each row by header. A repeated header keeps its first column."""
    if not isinstance(headers, (list, tuple)):
        raise HierarchyInputError(f"headers must be a list, got {type(headers).__name__}")
    if not isinstance(rows, (list, tuple)):
        raise HierarchyInputError(f"rows must be a list, got {type(rows).__name__}")

    warnings: list[BuildWarning] = []
    columns: dict[str, int] = {}
    for position, header in enumerate(headers):
        if header in columns:
            warnings.append(BuildWarning(
                code=WarningCode.DUPLICATE_HEADER,
                message=f"Header {header!r} appears more than once, using column {columns[header] + 1}",
                ref=header,
            ))
            continue
        columns[header] = position

    records = []
    for number, row in enumerate(rows, start=1):
        if not isinstance(row, (list, tuple)):
            raise HierarchyInputError(f"row {number} must be a list of cells, got {type(row).__name__}")
        records.append({
            header: _cell_text(row[position]) if position < len(row) else ""
            for header, position in columns.items()
        })
    return records, warnings


def build_from_sheet(
    headers: Sequence[str],
    rows: Sequence[Sequence[str]],
    overrides: Optional[Mapping[str, Optional[str]]] = None,
) -> SheetBuild:
    """Detect columns, apply user overrides and build the labeled tree.

    Args:
        headers: Header row
        rows: Data rows (blank rows already removed)
        overrides: Optional semantic field -> header corrections

    Returns:
        SheetBuild with the tree and the effective mapping
    """
    records, header_warnings = rows_to_records(headers, rows)
    for warning in header_warnings:
        logger.warning(warning.message, extra={"build_mode": "labeled"})

    mapping = merge_column_overrides(map_columns(list(headers), FIELD_SYNONYMS), overrides, headers)
    result = build_labeled_tree(records, level_fields(mapping), RequirementExtractor(mapping))
    result.warnings[:0] = header_warnings
    return SheetBuild(result=result, column_mapping=mapping)
