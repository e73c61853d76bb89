from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Iterable, Sequence

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.models.treatment_record import BoneGraft, Implant, TreatmentRecord
from app.services.surgery_import.assembler import (
    BoneGraftRecord,
    ImplantRecord,
    SurgeryImportReportBuilder,
    assemble_bone_graft_rows,
    assemble_implant_rows,
)
from app.services.surgery_import.insurance import InsuranceIndex, build_insurance_index
from app.services.surgery_import.sheet import (
    SurgeryImportError,
    insurance_rows,
    read_sheet,
    surgery_rows,
)
from app.services.surgery_import.suppliers import (
    DEFAULT_VENDOR_ALIASES,
    VendorAlias,
    bone_graft_supplier,
)

logger = logging.getLogger(__name__)

WorkbookSource = bytes | Path
RecordKey = tuple[str, str, str]


@dataclass
class SurgeryImportStats:
    treatment_records_created: int = 0
    treatment_records_reused: int = 0
    implants_created: int = 0
    bone_grafts_created: int = 0

    def as_dict(self) -> dict[str, int]:
        return asdict(self)


@dataclass
class SurgeryUploadResult:
    branch_name: str
    dry_run: bool = False
    records_processed: int = 0
    insurance_keys: int = 0
    errors: list[str] = field(default_factory=list)
    stats: SurgeryImportStats = field(default_factory=SurgeryImportStats)
    implant_report: dict[str, object] | None = None
    bone_graft_report: dict[str, object] | None = None

    @property
    def ok(self) -> bool:
        return not self.errors

    def as_dict(self) -> dict[str, object]:
        return {
            "branch_name": self.branch_name,
            "dry_run": self.dry_run,
            "records_processed": self.records_processed,
            "insurance_keys": self.insurance_keys,
            "errors": list(self.errors),
            "stats": self.stats.as_dict(),
            "implant_report": self.implant_report,
            "bone_graft_report": self.bone_graft_report,
        }


def _find_or_create_treatment_record(
    session: Session,
    branch_name: str,
    patient_name: str,
    chart_number: str,
    tooth_number: str,
    cache: dict[RecordKey, TreatmentRecord],
    stats: SurgeryImportStats,
) -> TreatmentRecord:
    key = (branch_name, chart_number, tooth_number)
    cached = cache.get(key)
    if cached is not None:
        return cached
    existing = session.scalar(
        select(TreatmentRecord).where(
            TreatmentRecord.branch_name == branch_name,
            TreatmentRecord.chart_number == chart_number,
            TreatmentRecord.tooth_number == tooth_number,
        )
    )
    if existing is not None:
        stats.treatment_records_reused += 1
        cache[key] = existing
        return existing
    row = TreatmentRecord(
        branch_name=branch_name,
        patient_name=patient_name,
        chart_number=chart_number,
        tooth_number=tooth_number,
    )
    session.add(row)
    stats.treatment_records_created += 1
    cache[key] = row
    return row


def save_implant_records(
    session: Session,
    branch_name: str,
    records: Iterable[ImplantRecord],
    stats: SurgeryImportStats | None = None,
    cache: dict[RecordKey, TreatmentRecord] | None = None,
) -> int:
    """Write one ``implant`` row per tooth, each with quantity 1."""
    stats = stats if stats is not None else SurgeryImportStats()
    cache = cache if cache is not None else {}
    count = 0
    for record in records:
        for tooth in record.teeth:
            treatment = _find_or_create_treatment_record(
                session,
                branch_name,
                record.patient_name,
                record.chart_number,
                tooth,
                cache,
                stats,
            )
            treatment.implants.append(
                Implant(
                    date=record.date,
                    product_name=record.product_name,
                    quantity=1,
                    amount=0,
                    supplier=record.supplier,
                    is_insurance=record.is_insurance,
                )
            )
            stats.implants_created += 1
            count += 1
    return count


def save_bone_graft_records(
    session: Session,
    branch_name: str,
    records: Iterable[BoneGraftRecord],
    aliases: Sequence[VendorAlias] = DEFAULT_VENDOR_ALIASES,
    stats: SurgeryImportStats | None = None,
    cache: dict[RecordKey, TreatmentRecord] | None = None,
) -> int:
    """Write one ``bone_graft`` row per (tooth, product); quantity is the product's count."""
    stats = stats if stats is not None else SurgeryImportStats()
    cache = cache if cache is not None else {}
    count = 0
    for record in records:
        for tooth in record.teeth:
            treatment = _find_or_create_treatment_record(
                session,
                branch_name,
                record.patient_name,
                record.chart_number,
                tooth,
                cache,
                stats,
            )
            for product_name, quantity in record.products.items():
                treatment.bone_grafts.append(
                    BoneGraft(
                        date=record.date,
                        product_name=product_name,
                        quantity=quantity,
                        amount=0,
                        supplier=bone_graft_supplier(product_name, aliases),
                    )
                )
                stats.bone_grafts_created += 1
                count += 1
    return count


def _planned_rows(implants: list[ImplantRecord], bone_grafts: list[BoneGraftRecord]) -> int:
    implant_rows = sum(len(record.teeth) for record in implants)
    bone_rows = sum(len(record.teeth) * len(record.products) for record in bone_grafts)
    return implant_rows + bone_rows


def _load_insurance_index(
    source: WorkbookSource, sheet_name: str, result: SurgeryUploadResult
) -> InsuranceIndex:
    try:
        raw_rows = read_sheet(source, sheet_name)
    except SurgeryImportError as exc:
        logger.warning("Insurance workbook rejected: %s", exc)
        result.errors.append(str(exc))
        return {}
    index = build_insurance_index(insurance_rows(raw_rows))
    result.insurance_keys = len(index)
    return index


def import_surgery_upload(
    session: Session,
    branch_name: str,
    *,
    surgery_workbook: WorkbookSource | None,
    insurance_workbook: WorkbookSource | None = None,
    surgery_sheet_name: str,
    insurance_sheet_name: str,
    aliases: Sequence[VendorAlias] = DEFAULT_VENDOR_ALIASES,
    dry_run: bool = False,
) -> SurgeryUploadResult:
    """Run both halves of an upload and stage the resulting rows on ``session``.

    A missing or unreadable workbook/sheet is recorded in ``errors`` and only
    stops its own half. Nothing is committed here.
    """
    result = SurgeryUploadResult(branch_name=branch_name, dry_run=dry_run)

    insurance_index: InsuranceIndex = {}
    if insurance_workbook is not None:
        insurance_index = _load_insurance_index(insurance_workbook, insurance_sheet_name, result)

    if surgery_workbook is None:
        return result

    try:
        raw_rows = read_sheet(surgery_workbook, surgery_sheet_name)
    except SurgeryImportError as exc:
        logger.warning("Surgery workbook rejected: %s", exc)
        result.errors.append(str(exc))
        return result

    rows = list(surgery_rows(raw_rows))

    implant_report = SurgeryImportReportBuilder()
    implants = [
        outcome.record
        for outcome in map(implant_report.ingest, assemble_implant_rows(rows, insurance_index, aliases))
        if outcome.emitted
    ]
    bone_report = SurgeryImportReportBuilder()
    bone_grafts = [
        outcome.record
        for outcome in map(bone_report.ingest, assemble_bone_graft_rows(rows))
        if outcome.emitted
    ]
    result.implant_report = implant_report.finalize()
    result.bone_graft_report = bone_report.finalize()

    if dry_run:
        result.records_processed = _planned_rows(implants, bone_grafts)
    else:
        cache: dict[RecordKey, TreatmentRecord] = {}
        result.records_processed += save_implant_records(
            session, branch_name, implants, result.stats, cache
        )
        result.records_processed += save_bone_graft_records(
            session, branch_name, bone_grafts, aliases, result.stats, cache
        )

    logger.info(
        "Surgery upload for %s: %s rows %s (%s implant records, %s bone-graft records)",
        branch_name,
        result.records_processed,
        "planned" if dry_run else "staged",
        len(implants),
        len(bone_grafts),
    )
    return result
