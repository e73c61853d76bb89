from __future__ import annotations

import io
import logging
import zipfile
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Iterator, Sequence

from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException

__all__ = [
    "InsuranceColumns",
    "InsuranceRow",
    "SheetNotFoundError",
    "SurgeryColumns",
    "SurgeryImportError",
    "SurgeryRow",
    "WorkbookReadError",
    "insurance_rows",
    "read_sheet",
    "surgery_rows",
]

logger = logging.getLogger(__name__)

CellValue = object
SheetRows = list[tuple[CellValue, ...]]

# Rows shorter than this (after trailing blanks are dropped) are structural, not data.
MIN_ROW_CELLS = 4
HEADER_ROWS = 1


class SurgeryColumns:
    DATE = 0
    PATIENT_INFO = 1
    TOOTH_RANGE = 2
    SURGICAL_NOTE = 3


class InsuranceColumns:
    PATIENT_INFO = 0
    TOOTH = 1
    STAGE1_DATE = 2
    STAGE2_DATE = 3
    STAGE3_DATE = 4


class SurgeryImportError(Exception):
    pass


class SheetNotFoundError(SurgeryImportError):
    def __init__(self, sheet_name: str) -> None:
        super().__init__(f"Sheet '{sheet_name}' not found in workbook.")
        self.sheet_name = sheet_name


class WorkbookReadError(SurgeryImportError):
    pass


@dataclass(frozen=True)
class SurgeryRow:
    row_number: int
    date: object
    patient_info: object
    tooth_range: object
    surgical_note: object
    is_short: bool = False


@dataclass(frozen=True)
class InsuranceRow:
    row_number: int
    patient_info: object
    tooth: object
    stage1_date: object
    stage2_date: object
    stage3_date: object
    is_short: bool = False


def read_sheet(source: bytes | Path, sheet_name: str) -> SheetRows:
    """Load every row of ``sheet_name`` as a tuple of cell values."""
    handle = io.BytesIO(source) if isinstance(source, (bytes, bytearray)) else source
    try:
        workbook = load_workbook(handle, read_only=True, data_only=True)
    except (InvalidFileException, zipfile.BadZipFile, OSError, KeyError) as exc:
        raise WorkbookReadError(f"Unable to read workbook: {exc}") from exc
    try:
        if sheet_name not in workbook.sheetnames:
            raise SheetNotFoundError(sheet_name)
        rows = [tuple(row) for row in workbook[sheet_name].iter_rows(values_only=True)]
    finally:
        workbook.close()
    logger.debug("Read %s rows from sheet %s", len(rows), sheet_name)
    return rows


def _trim_trailing_blanks(row: Sequence[CellValue]) -> list[CellValue]:
    cells = list(row)
    while cells and cells[-1] is None:
        cells.pop()
    return cells


def _cell(cells: Sequence[CellValue], index: int) -> CellValue:
    return cells[index] if index < len(cells) else None


def surgery_rows(rows: Iterable[Sequence[CellValue]]) -> Iterator[SurgeryRow]:
    for row_number, row in enumerate(rows, start=1):
        if row_number <= HEADER_ROWS:
            continue
        cells = _trim_trailing_blanks(row or ())
        yield SurgeryRow(
            row_number=row_number,
            date=_cell(cells, SurgeryColumns.DATE),
            patient_info=_cell(cells, SurgeryColumns.PATIENT_INFO),
            tooth_range=_cell(cells, SurgeryColumns.TOOTH_RANGE),
            surgical_note=_cell(cells, SurgeryColumns.SURGICAL_NOTE),
            is_short=len(cells) < MIN_ROW_CELLS,
        )


def insurance_rows(rows: Iterable[Sequence[CellValue]]) -> Iterator[InsuranceRow]:
    for row_number, row in enumerate(rows, start=1):
        if row_number <= HEADER_ROWS:
            continue
        cells = _trim_trailing_blanks(row or ())
        yield InsuranceRow(
            row_number=row_number,
            patient_info=_cell(cells, InsuranceColumns.PATIENT_INFO),
            tooth=_cell(cells, InsuranceColumns.TOOTH),
            stage1_date=_cell(cells, InsuranceColumns.STAGE1_DATE),
            stage2_date=_cell(cells, InsuranceColumns.STAGE2_DATE),
            stage3_date=_cell(cells, InsuranceColumns.STAGE3_DATE),
            is_short=len(cells) < MIN_ROW_CELLS,
        )
