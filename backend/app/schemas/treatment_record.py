from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class BoneGraftOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    treatment_record_id: int
    date: str
    product_name: Optional[str] = None
    quantity: int
    amount: Decimal
    supplier: Optional[str] = None


class ImplantOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    treatment_record_id: int
    date: str
    product_name: Optional[str] = None
    quantity: int
    amount: Decimal
    supplier: Optional[str] = None
    is_insurance: bool


class TreatmentRecordOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    branch_name: str
    patient_name: str
    chart_number: str
    tooth_number: str
    bone_grafts: list[BoneGraftOut] = Field(default_factory=list)
    implants: list[ImplantOut] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime


class TreatmentRecordListOut(BaseModel):
    count: int
    items: list[TreatmentRecordOut]


class _MaterialUpdate(BaseModel):
    date: Optional[str] = Field(default=None, min_length=1)
    product_name: Optional[str] = None
    quantity: Optional[int] = Field(default=None, ge=0)
    amount: Optional[Decimal] = Field(default=None, ge=0)
    supplier: Optional[str] = None

    @field_validator("date", "quantity", "amount", mode="before")
    @classmethod
    def _reject_null(cls, value, info):
        if value is None:
            raise ValueError(f"{info.field_name} cannot be null")
        return value


class BoneGraftUpdate(_MaterialUpdate):
    pass


class ImplantUpdate(_MaterialUpdate):
    is_insurance: Optional[bool] = None

    @field_validator("is_insurance", mode="before")
    @classmethod
    def _reject_null_insurance(cls, value):
        if value is None:
            raise ValueError("is_insurance cannot be null")
        return value


class BatchDeleteIn(BaseModel):
    record_ids: list[int] = Field(min_length=1)


class BatchDeleteOut(BaseModel):
    deleted: int
    failed: int


class UploadResultOut(BaseModel):
    success: bool
    message: str
    records_processed: int = 0
    errors: list[str] = Field(default_factory=list)
    report: Optional[dict] = None
