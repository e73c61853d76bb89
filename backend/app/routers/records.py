from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from app.core.settings import is_production, settings
from app.db.session import get_db
from app.schemas.treatment_record import (
    BatchDeleteIn,
    BatchDeleteOut,
    BoneGraftOut,
    BoneGraftUpdate,
    ImplantOut,
    ImplantUpdate,
    TreatmentRecordListOut,
    UploadResultOut,
)
from app.services import treatment_records
from app.services.surgery_import.importer import import_surgery_upload
from app.services.surgery_import.suppliers import load_vendor_aliases

router = APIRouter(prefix="/api", tags=["records"])
logger = logging.getLogger(__name__)


def _read_upload(upload: UploadFile | None) -> bytes | None:
    if upload is None or not upload.filename:
        return None
    data = upload.file.read(settings.max_upload_bytes + 1)
    if len(data) > settings.max_upload_bytes:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"{upload.filename} exceeds max upload size",
        )
    return data


@router.post("/upload", response_model=UploadResultOut)
def upload_workbooks(
    branch_name: str = Form(default=""),
    surgery_file: UploadFile | None = File(default=None),
    insurance_file: UploadFile | None = File(default=None),
    db: Session = Depends(get_db),
):
    branch_name = branch_name.strip()
    if not branch_name:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="branch_name is required")

    result = import_surgery_upload(
        db,
        branch_name,
        surgery_workbook=_read_upload(surgery_file),
        insurance_workbook=_read_upload(insurance_file),
        surgery_sheet_name=settings.surgery_sheet_name,
        insurance_sheet_name=settings.insurance_sheet_name,
        aliases=load_vendor_aliases(settings.vendor_aliases_path),
    )
    db.commit()

    report = {
        "implants": result.implant_report,
        "bone_grafts": result.bone_graft_report,
        "insurance_keys": result.insurance_keys,
    }
    if not result.ok:
        payload = UploadResultOut(
            success=False,
            message="Some data could not be processed.",
            records_processed=result.records_processed,
            errors=result.errors,
            report=report,
        )
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=payload.model_dump(mode="json"))
    return UploadResultOut(
        success=True,
        message=f"{result.records_processed} records processed.",
        records_processed=result.records_processed,
        report=report,
    )


@router.get("/records", response_model=TreatmentRecordListOut)
def list_records(
    branch_name: str | None = Query(default=None),
    patient_name: str | None = Query(default=None),
    chart_number: str | None = Query(default=None),
    start_date: str | None = Query(default=None),
    end_date: str | None = Query(default=None),
    supplier: str | None = Query(default=None),
    product_name: str | None = Query(default=None),
    db: Session = Depends(get_db),
):
    filters = treatment_records.TreatmentRecordFilters(
        branch_name=branch_name,
        patient_name=patient_name,
        chart_number=chart_number,
        start_date=start_date,
        end_date=end_date,
        supplier=supplier,
        product_name=product_name,
    )
    items = treatment_records.query_treatment_records(db, filters)
    return TreatmentRecordListOut(count=len(items), items=items)


@router.delete("/records/{record_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_record(record_id: int, db: Session = Depends(get_db)):
    if not treatment_records.delete_treatment_record(db, record_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Record not found")
    db.commit()


@router.post("/records/batch-delete", response_model=BatchDeleteOut)
def batch_delete_records(payload: BatchDeleteIn, db: Session = Depends(get_db)):
    deleted, failed = treatment_records.delete_treatment_records(db, payload.record_ids)
    db.commit()
    return BatchDeleteOut(deleted=deleted, failed=failed)


@router.patch("/bone-grafts/{bone_graft_id}", response_model=BoneGraftOut)
def update_bone_graft(bone_graft_id: int, payload: BoneGraftUpdate, db: Session = Depends(get_db)):
    row = treatment_records.update_bone_graft(
        db, bone_graft_id, payload.model_dump(exclude_unset=True)
    )
    if row is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Bone graft not found")
    db.commit()
    db.refresh(row)
    return row


@router.patch("/implants/{implant_id}", response_model=ImplantOut)
def update_implant(implant_id: int, payload: ImplantUpdate, db: Session = Depends(get_db)):
    row = treatment_records.update_implant(db, implant_id, payload.model_dump(exclude_unset=True))
    if row is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Implant not found")
    db.commit()
    db.refresh(row)
    return row


@router.get("/branches", response_model=list[str])
def list_branches(db: Session = Depends(get_db)):
    return treatment_records.list_branches(db)


@router.delete("/reset", status_code=status.HTTP_204_NO_CONTENT)
def reset_records(db: Session = Depends(get_db)):
    if is_production(settings.app_env):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Reset is disabled in production")
    treatment_records.reset_treatment_data(db)
    db.commit()
    logger.warning("All treatment data deleted via reset endpoint.")
