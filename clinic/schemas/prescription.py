from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional

class PrescriptionCreate(BaseModel):
    patient_name: str = Field(..., min_length=3, max_length=100)
    appointment_id: int = Field(..., gt=0)
    medication: str = Field(..., min_length=3, max_length=100)
    dosage: str = Field(..., min_length=3, max_length=20)
    doctor_notes: Optional[str] = Field(None, max_length=200)

class PrescriptionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    appointment_id: int
    patient_name: str
    medication: str
    dosage: str
    doctor_notes: Optional[str] = None
    created_at: Optional[datetime] = None

class PrescriptionList(BaseModel):
    prescriptions: List[PrescriptionResponse]
    message: Optional[str] = None
