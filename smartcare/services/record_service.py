from sqlalchemy.orm import Session
from fastapi import HTTPException, status
from typing import List
import logging

from ..core.storage import FileStorage
from ..models.user import User
from ..models.record import Record
from ..models.appointment import Appointment
from ..schemas.record import DoctorAttachment, RecordResponse, RecordsOverview
from .attachment_service import IncomingFile, store_file

logger = logging.getLogger(__name__)

class RecordService:
    """Patient-uploaded health records, plus the files doctors attached to visits."""

    def __init__(self, db: Session, storage: FileStorage):
        self.db = db
        self.storage = storage

    def upload(self, patient: User, upload: IncomingFile) -> Record:
        meta = store_file(self.storage, "records", patient.id, upload)
        record = Record(patient_id=patient.id, **meta)

        self.db.add(record)
        self.db.commit()
        self.db.refresh(record)

        logger.info(f"Patient {patient.id} uploaded record {record.id}")
        return record

    def overview(self, patient: User) -> RecordsOverview:
        records = self.db.query(Record).filter(
            Record.patient_id == patient.id
        ).all()
        records.sort(key=lambda r: r.uploaded_at, reverse=True)

        appointments = self.db.query(Appointment).filter(
            Appointment.patient_id == patient.id
        ).all()

        doctor_files: List[DoctorAttachment] = []
        for appointment in appointments:
            doctor = appointment.doctor
            doctor_name = (doctor.full_name or doctor.email) if doctor else str(appointment.doctor_id)
            for item in appointment.attachments or []:
                doctor_files.append(DoctorAttachment(
                    appointment_id=appointment.id,
                    doctor_id=appointment.doctor_id,
                    doctor_name=doctor_name,
                    file_name=item.get("file_name") or "Attachment",
                    file_url=item["file_url"],
                    storage_path=item.get("storage_path"),
                    uploaded_at=item.get("uploaded_at") or 0,
                ))
        doctor_files.sort(key=lambda a: a.uploaded_at, reverse=True)

        return RecordsOverview(
            records=[RecordResponse.model_validate(r) for r in records],
            doctor_attachments=doctor_files,
        )

    def delete(self, patient: User, record_id: int) -> None:
        record = self.db.query(Record).filter(
            Record.id == record_id,
            Record.patient_id == patient.id
        ).first()
        if not record:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Record not found"
            )

        if record.storage_path:
            self.storage.delete(record.storage_path)

        self.db.delete(record)
        self.db.commit()
        logger.info(f"Patient {patient.id} deleted record {record_id}")
