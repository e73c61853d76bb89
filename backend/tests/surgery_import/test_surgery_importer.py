from dataclasses import replace
from datetime import datetime

from sqlalchemy import Text, func, select

from app.models.treatment_record import BoneGraft, Implant, TreatmentRecord
from app.services.surgery_import.assembler import BoneGraftRecord, ImplantRecord
from app.services.surgery_import.importer import (
    SurgeryImportStats,
    import_surgery_upload,
    save_bone_graft_records,
    save_implant_records,
)
from app.services.surgery_import.suppliers import BONE_GRAFT_UNASSIGNED_SUPPLIER, INSURANCE_SUPPLIER

SURGERY_SHEET = "수술기록지"
INSURANCE_SHEET = "급여 임플란트"
SURGERY_HEADER = ["날짜", "환자정보", "치식", "수술기록"]
INSURANCE_HEADER = ["환자정보", "치식", "1단계", "2단계", "3단계"]


def _count(session, model) -> int:
    return session.scalar(select(func.count()).select_from(model))


def _record(session, chart_number, tooth_number) -> TreatmentRecord:
    return session.scalar(
        select(TreatmentRecord).where(
            TreatmentRecord.chart_number == chart_number,
            TreatmentRecord.tooth_number == tooth_number,
        )
    )


def test_save_bone_grafts_one_row_per_tooth_and_product(db_session):
    record = BoneGraftRecord(
        date="2024-03-05",
        patient_name="홍길동",
        chart_number="12345",
        teeth=("36", "35"),
        products={"BoneX": 2, "Allobone": 1},
    )
    stats = SurgeryImportStats()
    written = save_bone_graft_records(db_session, "강남점", [record], stats=stats)
    db_session.commit()

    assert written == 4
    assert stats.treatment_records_created == 2
    assert stats.bone_grafts_created == 4
    rows = db_session.scalars(select(BoneGraft).order_by(BoneGraft.id)).all()
    assert {(row.product_name, row.quantity) for row in rows} == {("BoneX", 2), ("Allobone", 1)}
    suppliers = {row.product_name: row.supplier for row in rows}
    assert suppliers == {"BoneX": BONE_GRAFT_UNASSIGNED_SUPPLIER, "Allobone": "씨지바이오"}


def test_save_implants_one_row_per_tooth_with_quantity_one(db_session):
    record = ImplantRecord(
        date="2024-03-05",
        patient_name="홍길동",
        chart_number="12345",
        teeth=("37", "36", "35"),
        supplier=INSURANCE_SUPPLIER,
        product_name="TSIII 4510",
        is_insurance=True,
    )
    assert save_implant_records(db_session, "강남점", [record]) == 3
    db_session.commit()

    implants = db_session.scalars(select(Implant)).all()
    assert len(implants) == 3
    assert {implant.quantity for implant in implants} == {1}
    assert all(implant.is_insurance for implant in implants)
    assert {implant.treatment_record.tooth_number for implant in implants} == {"35", "36", "37"}


def test_treatment_records_are_reused_across_runs(db_session):
    record = ImplantRecord(
        date="2024-03-05",
        patient_name="홍길동",
        chart_number="12345",
        teeth=("36",),
        supplier="IZEN",
        product_name="IZENOSS 5010",
        is_insurance=False,
    )
    save_implant_records(db_session, "강남점", [record])
    db_session.commit()

    stats = SurgeryImportStats()
    renamed = replace(record, patient_name="홍길동2", date="2024-04-01")
    save_implant_records(db_session, "강남점", [renamed], stats=stats)
    db_session.commit()

    assert stats.treatment_records_reused == 1
    assert stats.treatment_records_created == 0
    assert _count(db_session, TreatmentRecord) == 1
    treatment = _record(db_session, "12345", "36")
    assert treatment.patient_name == "홍길동"
    assert [implant.date for implant in treatment.implants] == ["2024-04-01", "2024-03-05"]


def test_same_tooth_in_other_branch_gets_its_own_record(db_session):
    record = BoneGraftRecord(
        date="2024-03-05",
        patient_name="홍길동",
        chart_number="12345",
        teeth=("36",),
        products={"BoneX": 1},
    )
    save_bone_graft_records(db_session, "강남점", [record])
    save_bone_graft_records(db_session, "분당점", [record])
    db_session.commit()
    assert _count(db_session, TreatmentRecord) == 2


def test_import_upload_end_to_end(db_session, build_workbook):
    surgery = build_workbook(
        {
            SURGERY_SHEET: [
                SURGERY_HEADER,
                [datetime(2024, 3, 5), "홍길동(12345)", "#35~36", "OSSTEM - TSIII Φ4.5×10 / (동) BoneX, (동) BoneX"],
                [datetime(2024, 3, 5), "김철수(777)", "#11", "[GBR Only] (동) Allobone"],
                [datetime(2024, 3, 6), "이영희 888", "#46", "IZEN - IZENOSS Φ5.0×10"],
                [datetime(2024, 3, 6), "빈칸"],
            ]
        }
    )
    insurance = build_workbook(
        {
            INSURANCE_SHEET: [
                INSURANCE_HEADER,
                ["홍길동(12345)", "#36", datetime(2024, 1, 2), datetime(2024, 3, 5), None],
            ]
        }
    )

    result = import_surgery_upload(
        db_session,
        "강남점",
        surgery_workbook=surgery,
        insurance_workbook=insurance,
        surgery_sheet_name=SURGERY_SHEET,
        insurance_sheet_name=INSURANCE_SHEET,
    )
    db_session.commit()

    assert result.ok
    assert result.insurance_keys == 1
    # 2 + 1 implants, 2 teeth x BoneX + 1 tooth x Allobone
    assert result.records_processed == 6
    assert result.implant_report["skip_reasons"] == {"gbr_only": 1, "short_row": 1}
    assert result.bone_graft_report["skip_reasons"] == {"no_bone_graft_marker": 1, "short_row": 1}

    treatment = _record(db_session, "12345", "36")
    (implant,) = treatment.implants
    assert implant.supplier == INSURANCE_SUPPLIER
    assert implant.product_name == "TSIII 4510"
    (bone,) = treatment.bone_grafts
    assert (bone.product_name, bone.quantity) == ("BoneX", 2)

    gbr_only = _record(db_session, "777", "11")
    assert gbr_only.implants == []
    assert [graft.product_name for graft in gbr_only.bone_grafts] == ["Allobone"]

    izen = _record(db_session, "888", "46")
    assert izen.implants[0].supplier == "IZEN"
    assert izen.implants[0].is_insurance is False


def test_dry_run_plans_without_staging(db_session, build_workbook):
    surgery = build_workbook(
        {
            SURGERY_SHEET: [
                SURGERY_HEADER,
                [datetime(2024, 3, 5), "홍길동(12345)", "#35~36", "OSSTEM - TSIII / (동) BoneX"],
            ]
        }
    )
    result = import_surgery_upload(
        db_session,
        "강남점",
        surgery_workbook=surgery,
        surgery_sheet_name=SURGERY_SHEET,
        insurance_sheet_name=INSURANCE_SHEET,
        dry_run=True,
    )
    assert result.dry_run is True
    assert result.records_processed == 4
    assert result.stats.as_dict() == SurgeryImportStats().as_dict()
    assert not db_session.new


def test_missing_insurance_sheet_still_imports_surgery(db_session, build_workbook):
    surgery = build_workbook(
        {
            SURGERY_SHEET: [
                SURGERY_HEADER,
                [datetime(2024, 3, 5), "홍길동(12345)", "#36", "OSSTEM - TSIII"],
            ]
        }
    )
    insurance = build_workbook({"Sheet1": [INSURANCE_HEADER]})
    result = import_surgery_upload(
        db_session,
        "강남점",
        surgery_workbook=surgery,
        insurance_workbook=insurance,
        surgery_sheet_name=SURGERY_SHEET,
        insurance_sheet_name=INSURANCE_SHEET,
    )
    db_session.commit()

    assert not result.ok
    assert result.errors == [f"Sheet '{INSURANCE_SHEET}' not found in workbook."]
    assert result.records_processed == 1
    assert _count(db_session, Implant) == 1


def test_missing_surgery_sheet_is_reported(db_session, build_workbook):
    result = import_surgery_upload(
        db_session,
        "강남점",
        surgery_workbook=build_workbook({"Sheet1": [SURGERY_HEADER]}),
        surgery_sheet_name=SURGERY_SHEET,
        insurance_sheet_name=INSURANCE_SHEET,
    )
    assert result.errors == [f"Sheet '{SURGERY_SHEET}' not found in workbook."]
    assert result.records_processed == 0
    assert result.implant_report is None


def test_text_columns_are_unbounded():
    for column in (
        TreatmentRecord.__table__.c.branch_name,
        TreatmentRecord.__table__.c.patient_name,
        TreatmentRecord.__table__.c.chart_number,
        TreatmentRecord.__table__.c.tooth_number,
        Implant.__table__.c.date,
        Implant.__table__.c.product_name,
        Implant.__table__.c.supplier,
        BoneGraft.__table__.c.date,
        BoneGraft.__table__.c.product_name,
        BoneGraft.__table__.c.supplier,
    ):
        assert isinstance(column.type, Text), column.name


def test_long_free_text_cells_are_stored_intact(db_session, build_workbook):
    long_note = "Custom fixture " + "x" * 400
    long_tooth = "#" + "9" * 60
    long_date = ("2024년 3월 5일 오전 진료 " * 5).strip()
    surgery = build_workbook(
        {
            SURGERY_SHEET: [
                SURGERY_HEADER,
                [long_date, "홍길동(12345)", long_tooth, long_note],
            ]
        }
    )
    result = import_surgery_upload(
        db_session,
        "강남점",
        surgery_workbook=surgery,
        surgery_sheet_name=SURGERY_SHEET,
        insurance_sheet_name=INSURANCE_SHEET,
    )
    db_session.commit()

    assert result.ok
    assert result.records_processed == 1
    implant = db_session.scalar(select(Implant))
    assert implant.product_name == long_note
    assert implant.supplier == long_note
    assert implant.date == long_date
    assert implant.treatment_record.tooth_number == "9" * 60
