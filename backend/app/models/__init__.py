from app.models.base import Base
from app.models.treatment_record import BoneGraft, Implant, TreatmentRecord

__all__ = [
    "Base",
    "TreatmentRecord",
    "BoneGraft",
    "Implant",
]
