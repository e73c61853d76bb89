from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Iterable, Iterator, Sequence, Union

from app.services.surgery_import.bone_graft import extract_bone_graft_products
from app.services.surgery_import.insurance import InsuranceIndex, is_insured
from app.services.surgery_import.patient import PatientIdentity, split_patient_info
from app.services.surgery_import.sheet import SurgeryRow
from app.services.surgery_import.suppliers import (
    DEFAULT_VENDOR_ALIASES,
    VendorAlias,
    classify_supplier,
)
from app.services.surgery_import.teeth import ToothSet, expand_teeth
from app.services.surgery_import.text import cell_text, format_sheet_date, normalize

__all__ = [
    "OUTCOME_EMITTED",
    "OUTCOME_SKIPPED",
    "SKIP_GBR_ONLY",
    "SKIP_MISSING_PATIENT_INFO",
    "SKIP_NO_BONE_GRAFT_MARKER",
    "SKIP_SHORT_ROW",
    "BoneGraftRecord",
    "ImplantRecord",
    "RowOutcome",
    "SurgeryImportReportBuilder",
    "assemble_bone_graft_rows",
    "assemble_implant_rows",
    "parse_surgery_bone_grafts",
    "parse_surgery_implants",
]

logger = logging.getLogger(__name__)

OUTCOME_EMITTED = "emitted"
OUTCOME_SKIPPED = "skipped"

SKIP_SHORT_ROW = "short_row"
SKIP_MISSING_PATIENT_INFO = "missing_patient_info"
SKIP_GBR_ONLY = "gbr_only"
SKIP_NO_BONE_GRAFT_MARKER = "no_bone_graft_marker"


@dataclass(frozen=True)
class ImplantRecord:
    date: str
    patient_name: str
    chart_number: str
    teeth: ToothSet
    supplier: str
    product_name: str
    is_insurance: bool

    @property
    def quantity(self) -> int:
        return len(self.teeth)


@dataclass(frozen=True)
class BoneGraftRecord:
    date: str
    patient_name: str
    chart_number: str
    teeth: ToothSet
    products: dict[str, int]


SurgeryRecord = Union[ImplantRecord, BoneGraftRecord]


@dataclass(frozen=True)
class RowOutcome:
    row_number: int
    status: str
    reason: str | None = None
    record: SurgeryRecord | None = None

    @property
    def emitted(self) -> bool:
        return self.status == OUTCOME_EMITTED


def _skipped(row: SurgeryRow, reason: str) -> RowOutcome:
    logger.debug("Surgery row %s skipped: %s", row.row_number, reason)
    return RowOutcome(row_number=row.row_number, status=OUTCOME_SKIPPED, reason=reason)


def _structural_skip(row: SurgeryRow) -> RowOutcome | None:
    if row.is_short:
        return _skipped(row, SKIP_SHORT_ROW)
    if not cell_text(row.patient_info):
        return _skipped(row, SKIP_MISSING_PATIENT_INFO)
    return None


def _identity_and_teeth(row: SurgeryRow) -> tuple[PatientIdentity, ToothSet, str]:
    identity = split_patient_info(cell_text(row.patient_info))
    teeth = expand_teeth(cell_text(row.tooth_range))
    return identity, teeth, format_sheet_date(row.date)


def assemble_implant_rows(
    rows: Iterable[SurgeryRow],
    insurance_index: InsuranceIndex,
    aliases: Sequence[VendorAlias] = DEFAULT_VENDOR_ALIASES,
) -> Iterator[RowOutcome]:
    for row in rows:
        skipped = _structural_skip(row)
        if skipped is not None:
            yield skipped
            continue
        identity, teeth, date_text = _identity_and_teeth(row)
        note = normalize(cell_text(row.surgical_note))
        insured = is_insured(insurance_index, date_text, identity.chart_number, teeth)
        classification = classify_supplier(note, is_insurance=insured, aliases=aliases)
        if classification.is_gbr_only:
            yield _skipped(row, SKIP_GBR_ONLY)
            continue
        record = ImplantRecord(
            date=date_text,
            patient_name=identity.name,
            chart_number=identity.chart_number,
            teeth=teeth,
            supplier=classification.supplier,
            product_name=classification.product_name,
            is_insurance=insured,
        )
        yield RowOutcome(row_number=row.row_number, status=OUTCOME_EMITTED, record=record)


def assemble_bone_graft_rows(rows: Iterable[SurgeryRow]) -> Iterator[RowOutcome]:
    for row in rows:
        skipped = _structural_skip(row)
        if skipped is not None:
            yield skipped
            continue
        products = extract_bone_graft_products(cell_text(row.surgical_note))
        if not products:
            yield _skipped(row, SKIP_NO_BONE_GRAFT_MARKER)
            continue
        identity, teeth, date_text = _identity_and_teeth(row)
        record = BoneGraftRecord(
            date=date_text,
            patient_name=identity.name,
            chart_number=identity.chart_number,
            teeth=teeth,
            products=products,
        )
        yield RowOutcome(row_number=row.row_number, status=OUTCOME_EMITTED, record=record)


def parse_surgery_implants(
    rows: Iterable[SurgeryRow],
    insurance_index: InsuranceIndex,
    aliases: Sequence[VendorAlias] = DEFAULT_VENDOR_ALIASES,
) -> list[ImplantRecord]:
    return [
        outcome.record
        for outcome in assemble_implant_rows(rows, insurance_index, aliases)
        if outcome.emitted
    ]


def parse_surgery_bone_grafts(rows: Iterable[SurgeryRow]) -> list[BoneGraftRecord]:
    return [outcome.record for outcome in assemble_bone_graft_rows(rows) if outcome.emitted]


@dataclass
class SurgeryImportReportBuilder:
    sample_limit: int = 10
    rows_total: int = 0
    rows_emitted: int = 0
    rows_skipped: int = 0
    skip_reasons: Counter[str] = field(default_factory=Counter)
    _skipped_sample: list[dict[str, object]] = field(default_factory=list)

    def ingest(self, outcome: RowOutcome) -> RowOutcome:
        self.rows_total += 1
        if outcome.emitted:
            self.rows_emitted += 1
            return outcome
        self.rows_skipped += 1
        self.skip_reasons[outcome.reason or "unknown"] += 1
        if len(self._skipped_sample) < self.sample_limit:
            self._skipped_sample.append({"row": outcome.row_number, "reason": outcome.reason})
        return outcome

    def finalize(self) -> dict[str, object]:
        return {
            "rows_total": self.rows_total,
            "rows_emitted": self.rows_emitted,
            "rows_skipped": self.rows_skipped,
            "skip_reasons": dict(self.skip_reasons),
            "skipped_rows_sample": list(self._skipped_sample),
        }
