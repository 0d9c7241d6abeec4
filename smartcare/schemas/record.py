from typing import List, Optional

from pydantic import BaseModel, ConfigDict


class RecordResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    patient_id: int
    file_name: str
    file_url: str
    storage_path: Optional[str] = None
    uploaded_at: int


class DoctorAttachment(BaseModel):
    appointment_id: int
    doctor_id: int
    doctor_name: Optional[str] = None
    file_name: str
    file_url: str
    storage_path: Optional[str] = None
    uploaded_at: int


class RecordsOverview(BaseModel):
    records: List[RecordResponse]
    doctor_attachments: List[DoctorAttachment]
