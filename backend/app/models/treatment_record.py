from __future__ import annotations

from decimal import Decimal

from sqlalchemy import Boolean, ForeignKey, Index, Integer, Numeric, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base, TimestampMixin


class TreatmentRecord(Base, TimestampMixin):
    __tablename__ = "treatment_records"
    __table_args__ = (
        UniqueConstraint(
            "branch_name",
            "chart_number",
            "tooth_number",
            name="uq_treatment_records_branch_chart_tooth",
        ),
        Index("ix_treatment_records_branch_name", "branch_name"),
        Index("ix_treatment_records_patient_name", "patient_name"),
        Index("ix_treatment_records_chart_number", "chart_number"),
        Index("ix_treatment_records_tooth_number", "tooth_number"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    branch_name: Mapped[str] = mapped_column(Text, nullable=False)
    patient_name: Mapped[str] = mapped_column(Text, nullable=False)
    chart_number: Mapped[str] = mapped_column(Text, nullable=False)
    tooth_number: Mapped[str] = mapped_column(Text, nullable=False)

    bone_grafts: Mapped[list["BoneGraft"]] = relationship(
        back_populates="treatment_record",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="BoneGraft.date.desc()",
    )
    implants: Mapped[list["Implant"]] = relationship(
        back_populates="treatment_record",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="Implant.date.desc()",
    )


class BoneGraft(Base):
    __tablename__ = "bone_graft"
    __table_args__ = (Index("ix_bone_graft_treatment_record_id", "treatment_record_id"),)

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    treatment_record_id: Mapped[int] = mapped_column(
        ForeignKey("treatment_records.id", ondelete="CASCADE"), nullable=False
    )
    date: Mapped[str] = mapped_column(Text, nullable=False)
    product_name: Mapped[str | None] = mapped_column(Text, nullable=True)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=0)
    supplier: Mapped[str | None] = mapped_column(Text, nullable=True)

    treatment_record: Mapped[TreatmentRecord] = relationship(back_populates="bone_grafts")


class Implant(Base):
    __tablename__ = "implant"
    __table_args__ = (Index("ix_implant_treatment_record_id", "treatment_record_id"),)

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    treatment_record_id: Mapped[int] = mapped_column(
        ForeignKey("treatment_records.id", ondelete="CASCADE"), nullable=False
    )
    date: Mapped[str] = mapped_column(Text, nullable=False)
    product_name: Mapped[str | None] = mapped_column(Text, nullable=True)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=0)
    supplier: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_insurance: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    treatment_record: Mapped[TreatmentRecord] = relationship(back_populates="implants")
