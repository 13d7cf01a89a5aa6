from pydantic import BaseModel, ConfigDict
from typing import Optional

class PatientResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: str
    phone: Optional[str] = None
    address: Optional[str] = None
