from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict

from ..models.caregiver import CaregiverRequestStatus


class CaregiverRequestCreate(BaseModel):
    caregiver_id: int


class CaregiverDecision(BaseModel):
    accept: bool


class CaregiverRequestResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    patient_id: int
    caregiver_id: int
    status: CaregiverRequestStatus
    created_at: Optional[datetime] = None
    decided_at: Optional[datetime] = None
    patient_name: Optional[str] = None
    patient_email: Optional[str] = None


class UserLite(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    full_name: Optional[str] = None
    phone: Optional[str] = None
