from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy import and_, delete, or_, select
from sqlalchemy.orm import Session

from app.models.treatment_record import BoneGraft, Implant, TreatmentRecord


@dataclass(frozen=True)
class TreatmentRecordFilters:
    branch_name: str | None = None
    patient_name: str | None = None
    chart_number: str | None = None
    start_date: str | None = None
    end_date: str | None = None
    supplier: str | None = None
    product_name: str | None = None


def _contains(value: str) -> str:
    return f"%{value}%"


def query_treatment_records(
    session: Session, filters: TreatmentRecordFilters | None = None
) -> list[TreatmentRecord]:
    """Treatment records matching every filter, with bone grafts and implants loaded.

    Date, supplier and product filters match when either the bone-graft or
    the implant side of the same joined pair satisfies them.
    """
    filters = filters or TreatmentRecordFilters()
    stmt = (
        select(TreatmentRecord)
        .outerjoin(BoneGraft, BoneGraft.treatment_record_id == TreatmentRecord.id)
        .outerjoin(Implant, Implant.treatment_record_id == TreatmentRecord.id)
    )
    conditions = []
    if filters.branch_name:
        conditions.append(TreatmentRecord.branch_name == filters.branch_name)
    if filters.patient_name:
        conditions.append(TreatmentRecord.patient_name.ilike(_contains(filters.patient_name)))
    if filters.chart_number:
        conditions.append(TreatmentRecord.chart_number == filters.chart_number)
    if filters.start_date:
        conditions.append(
            or_(BoneGraft.date >= filters.start_date, Implant.date >= filters.start_date)
        )
    if filters.end_date:
        conditions.append(or_(BoneGraft.date <= filters.end_date, Implant.date <= filters.end_date))
    if filters.supplier:
        pattern = _contains(filters.supplier)
        conditions.append(or_(BoneGraft.supplier.ilike(pattern), Implant.supplier.ilike(pattern)))
    if filters.product_name:
        pattern = _contains(filters.product_name)
        conditions.append(
            or_(BoneGraft.product_name.ilike(pattern), Implant.product_name.ilike(pattern))
        )
    if conditions:
        stmt = stmt.where(and_(*conditions))
    stmt = stmt.distinct().order_by(
        TreatmentRecord.created_at.desc(),
        TreatmentRecord.patient_name,
        TreatmentRecord.chart_number,
        TreatmentRecord.tooth_number,
    )
    return list(session.scalars(stmt))


def list_branches(session: Session) -> list[str]:
    stmt = select(TreatmentRecord.branch_name).distinct().order_by(TreatmentRecord.branch_name)
    return list(session.scalars(stmt))


def delete_treatment_record(session: Session, record_id: int) -> bool:
    record = session.get(TreatmentRecord, record_id)
    if record is None:
        return False
    session.delete(record)
    return True


def delete_treatment_records(session: Session, record_ids: list[int]) -> tuple[int, int]:
    deleted = 0
    failed = 0
    for record_id in dict.fromkeys(record_ids):
        if delete_treatment_record(session, record_id):
            deleted += 1
        else:
            failed += 1
    return deleted, failed


def _apply_updates(model, updates: dict) -> bool:
    changed = False
    for field, value in updates.items():
        if getattr(model, field) != value:
            setattr(model, field, value)
            changed = True
    return changed


def update_bone_graft(session: Session, bone_graft_id: int, updates: dict) -> BoneGraft | None:
    row = session.get(BoneGraft, bone_graft_id)
    if row is None:
        return None
    _apply_updates(row, updates)
    return row


def update_implant(session: Session, implant_id: int, updates: dict) -> Implant | None:
    row = session.get(Implant, implant_id)
    if row is None:
        return None
    _apply_updates(row, updates)
    return row


def reset_treatment_data(session: Session) -> None:
    session.execute(delete(BoneGraft))
    session.execute(delete(Implant))
    session.execute(delete(TreatmentRecord))
