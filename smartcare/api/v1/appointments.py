from fastapi import APIRouter, Depends, File, Form, UploadFile
from sqlalchemy.orm import Session
from typing import List, Optional

from ...core.database import get_db
from ...core.security import UserRole
from ...core.storage import FileStorage, get_storage
from ...api.deps import get_patient_user, get_doctor_user, get_member_user, get_participant_user
from ...models.user import User
from ...models.appointment import AppointmentStatus
from ...schemas.appointment import (
    AppointmentCreate, AppointmentCancel, AppointmentResponse,
    AppointmentWithNames, AttachmentDelete
)
from ...services.appointment_service import AppointmentService
from ...services.attachment_service import IncomingFile

router = APIRouter(prefix="/appointments", tags=["Appointments"])

async def read_uploads(files: Optional[List[UploadFile]]) -> List[IncomingFile]:
    """Read multipart uploads into memory, skipping empty file fields."""
    uploads = []
    for f in files or []:
        if not f.filename:
            continue
        uploads.append(IncomingFile(
            filename=f.filename,
            content=await f.read(),
            content_type=f.content_type,
        ))
    return uploads

@router.post("", response_model=AppointmentResponse, status_code=201)
async def create_appointment(
    data: AppointmentCreate,
    current_user: User = Depends(get_patient_user),
    db: Session = Depends(get_db)
):
    """Request an appointment with an approved doctor."""
    return AppointmentService(db).create_appointment(current_user, data)

@router.get("/mine", response_model=List[AppointmentWithNames])
async def my_appointments(
    status: Optional[AppointmentStatus] = None,
    current_user: User = Depends(get_participant_user),
    db: Session = Depends(get_db)
):
    """Appointments where the caller is the patient or the doctor, or of a caregiver's linked patients."""
    service = AppointmentService(db)
    if current_user.role == UserRole.DOCTOR:
        appointments = service.list_for_doctor(current_user.id, status)
    elif current_user.role == UserRole.CAREGIVER:
        appointments = service.list_for_caregiver(current_user.id, status)
    else:
        appointments = service.list_for_patient(current_user.id, status)
    return service.with_names(appointments)

@router.get("/{appointment_id}", response_model=AppointmentWithNames)
async def get_appointment(
    appointment_id: int,
    current_user: User = Depends(get_member_user),
    db: Session = Depends(get_db)
):
    service = AppointmentService(db)
    appointment = service.get_visible_appointment(appointment_id, current_user)
    return service.with_names([appointment])[0]

@router.post("/{appointment_id}/approve", response_model=AppointmentResponse)
async def approve_appointment(
    appointment_id: int,
    current_user: User = Depends(get_doctor_user),
    db: Session = Depends(get_db)
):
    return AppointmentService(db).approve_appointment(appointment_id, current_user)

@router.post("/{appointment_id}/decline", response_model=AppointmentResponse)
async def decline_appointment(
    appointment_id: int,
    current_user: User = Depends(get_doctor_user),
    db: Session = Depends(get_db)
):
    return AppointmentService(db).decline_appointment(appointment_id, current_user)

@router.post("/{appointment_id}/complete", response_model=AppointmentResponse)
async def complete_appointment(
    appointment_id: int,
    notes: str = Form(""),
    files: Optional[List[UploadFile]] = File(None),
    current_user: User = Depends(get_doctor_user),
    db: Session = Depends(get_db),
    storage: FileStorage = Depends(get_storage)
):
    """Mark an approved appointment completed with visit notes and optional files."""
    uploads = await read_uploads(files)
    service = AppointmentService(db, storage)
    return service.complete_appointment(appointment_id, current_user, notes, uploads)

@router.post("/{appointment_id}/cancel", response_model=AppointmentResponse)
async def cancel_appointment(
    appointment_id: int,
    data: Optional[AppointmentCancel] = None,
    current_user: User = Depends(get_patient_user),
    db: Session = Depends(get_db)
):
    """Patient withdraws a pending request."""
    reason = data.reason if data else None
    return AppointmentService(db).cancel_appointment(appointment_id, current_user, reason)

@router.post("/{appointment_id}/attachments", response_model=AppointmentResponse)
async def add_attachments(
    appointment_id: int,
    files: List[UploadFile] = File(...),
    current_user: User = Depends(get_doctor_user),
    db: Session = Depends(get_db),
    storage: FileStorage = Depends(get_storage)
):
    uploads = await read_uploads(files)
    service = AppointmentService(db, storage)
    return service.add_attachments(appointment_id, current_user, uploads)

@router.delete("/{appointment_id}/attachments", response_model=AppointmentResponse)
async def remove_attachment(
    appointment_id: int,
    data: AttachmentDelete,
    current_user: User = Depends(get_member_user),
    db: Session = Depends(get_db),
    storage: FileStorage = Depends(get_storage)
):
    """Remove one attachment, matched by file URL and optionally storage path."""
    service = AppointmentService(db, storage)
    return service.remove_attachment(
        appointment_id, current_user, data.file_url, data.storage_path
    )
