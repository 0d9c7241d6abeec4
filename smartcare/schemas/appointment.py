from datetime import datetime
from typing import List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from ..models.appointment import AppointmentStatus


class AppointmentCreate(BaseModel):
    doctor_id: int
    date: datetime
    reason: str = Field(..., max_length=2000)

    @field_validator("reason")
    @classmethod
    def reason_not_blank(cls, v):
        if not v.strip():
            raise ValueError("Reason is required")
        return v.strip()


class AppointmentCancel(BaseModel):
    reason: Optional[str] = Field(default=None, max_length=255)


class Attachment(BaseModel):
    file_name: str
    file_url: str
    storage_path: Optional[str] = None
    uploaded_at: int


class AttachmentDelete(BaseModel):
    file_url: str
    storage_path: Optional[str] = None


class AppointmentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    patient_id: int
    doctor_id: int
    date: datetime = Field(validation_alias=AliasChoices("appointment_date", "date"))
    reason: str
    status: AppointmentStatus
    notes: Optional[str] = None
    attachments: List[Attachment] = []
    cancelled_reason: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class AppointmentWithNames(AppointmentResponse):
    doctor_name: Optional[str] = None
    patient_name: Optional[str] = None
