from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from typing import List, Optional

from ..services.availability_service import normalize_slots

class DoctorBase(BaseModel):
    name: str = Field(..., min_length=3, max_length=100)
    specialty: str = Field(..., min_length=3, max_length=100)
    email: EmailStr
    phone: Optional[str] = Field(None, max_length=20)
    available_times: List[str] = Field(default_factory=list)

    @field_validator("available_times")
    @classmethod
    def canonical_slots(cls, value: List[str]) -> List[str]:
        return normalize_slots(value)

class DoctorCreate(DoctorBase):
    password: str = Field(..., min_length=6, max_length=72)

class DoctorUpdate(DoctorBase):
    password: Optional[str] = Field(None, min_length=6, max_length=72)

class DoctorResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    specialty: str
    email: str
    phone: Optional[str] = None
    available_times: List[str]
