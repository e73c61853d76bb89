"""initial schema

Revision ID: 0001_initial
Revises: 
Create Date: 2026-10-12 10:00:00.000000
"""

from alembic import op
import sqlalchemy as sa


revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "treatment_records",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("branch_name", sa.Text(), nullable=False),
        sa.Column("patient_name", sa.Text(), nullable=False),
        sa.Column("chart_number", sa.Text(), nullable=False),
        sa.Column("tooth_number", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.UniqueConstraint(
            "branch_name",
            "chart_number",
            "tooth_number",
            name="uq_treatment_records_branch_chart_tooth",
        ),
    )
    op.create_index("ix_treatment_records_branch_name", "treatment_records", ["branch_name"])
    op.create_index("ix_treatment_records_patient_name", "treatment_records", ["patient_name"])
    op.create_index("ix_treatment_records_chart_number", "treatment_records", ["chart_number"])
    op.create_index("ix_treatment_records_tooth_number", "treatment_records", ["tooth_number"])

    op.create_table(
        "bone_graft",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "treatment_record_id",
            sa.Integer(),
            sa.ForeignKey("treatment_records.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("date", sa.Text(), nullable=False),
        sa.Column("product_name", sa.Text(), nullable=True),
        sa.Column("quantity", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("supplier", sa.Text(), nullable=True),
    )
    op.create_index("ix_bone_graft_treatment_record_id", "bone_graft", ["treatment_record_id"])

    op.create_table(
        "implant",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "treatment_record_id",
            sa.Integer(),
            sa.ForeignKey("treatment_records.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("date", sa.Text(), nullable=False),
        sa.Column("product_name", sa.Text(), nullable=True),
        sa.Column("quantity", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("supplier", sa.Text(), nullable=True),
        sa.Column("is_insurance", sa.Boolean(), nullable=False, server_default=sa.false()),
    )
    op.create_index("ix_implant_treatment_record_id", "implant", ["treatment_record_id"])


def downgrade() -> None:
    op.drop_index("ix_implant_treatment_record_id", table_name="implant")
    op.drop_table("implant")
    op.drop_index("ix_bone_graft_treatment_record_id", table_name="bone_graft")
    op.drop_table("bone_graft")
    op.drop_index("ix_treatment_records_tooth_number", table_name="treatment_records")
    op.drop_index("ix_treatment_records_chart_number", table_name="treatment_records")
    op.drop_index("ix_treatment_records_patient_name", table_name="treatment_records")
    op.drop_index("ix_treatment_records_branch_name", table_name="treatment_records")
    op.drop_table("treatment_records")
