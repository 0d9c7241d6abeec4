from sqlalchemy.orm import Session
from fastapi import HTTPException, status
from typing import List, Optional
import logging

from ..core.security import UserRole
from ..core.storage import FileStorage
from ..models.user import User
from ..models.appointment import Appointment, AppointmentStatus
from ..models.caregiver import CaregiverLink
from ..schemas.appointment import AppointmentCreate, AppointmentWithNames
from .attachment_service import AttachmentService, IncomingFile
from .caregiver_service import is_linked

logger = logging.getLogger(__name__)

class AppointmentService:
    """Appointment lifecycle: pending -> approved|declined, approved -> completed."""

    def __init__(self, db: Session, storage: Optional[FileStorage] = None):
        self.db = db
        self.storage = storage

    @property
    def attachments(self) -> AttachmentService:
        return AttachmentService(self.db, self.storage)

    # Queries

    def get_appointment(self, appointment_id: int) -> Appointment:
        appointment = self.db.query(Appointment).filter(
            Appointment.id == appointment_id
        ).first()
        if not appointment:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Appointment not found"
            )
        return appointment

    def get_visible_appointment(self, appointment_id: int, user: User) -> Appointment:
        """Appointment detail for participants, linked caregivers and admins."""
        appointment = self.get_appointment(appointment_id)

        if user.role == UserRole.ADMIN or user.id in (appointment.patient_id, appointment.doctor_id):
            return appointment
        if user.role == UserRole.CAREGIVER and is_linked(self.db, user.id, appointment.patient_id):
            return appointment

        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not allowed to view this appointment"
        )

    def list_for_patient(self, patient_id: int, status_filter: Optional[AppointmentStatus] = None) -> List[Appointment]:
        query = self.db.query(Appointment).filter(Appointment.patient_id == patient_id)
        if status_filter:
            query = query.filter(Appointment.status == status_filter)
        return query.order_by(Appointment.appointment_date.asc(), Appointment.id.asc()).all()

    def list_for_doctor(self, doctor_id: int, status_filter: Optional[AppointmentStatus] = None) -> List[Appointment]:
        query = self.db.query(Appointment).filter(Appointment.doctor_id == doctor_id)
        if status_filter:
            query = query.filter(Appointment.status == status_filter)
        return query.order_by(Appointment.appointment_date.asc(), Appointment.id.asc()).all()

    def list_for_caregiver(self, caregiver_id: int, status_filter: Optional[AppointmentStatus] = None) -> List[Appointment]:
        """Appointments of every patient linked to the caregiver."""
        patient_ids = [
            link.patient_id for link in self.db.query(CaregiverLink).filter(
                CaregiverLink.caregiver_id == caregiver_id
            )
        ]
        if not patient_ids:
            return []
        query = self.db.query(Appointment).filter(Appointment.patient_id.in_(patient_ids))
        if status_filter:
            query = query.filter(Appointment.status == status_filter)
        return query.order_by(Appointment.appointment_date.asc(), Appointment.id.asc()).all()

    def with_names(self, appointments: List[Appointment]) -> List[AppointmentWithNames]:
        """Attach doctor and patient display names, falling back to the ids."""
        result = []
        for appointment in appointments:
            item = AppointmentWithNames.model_validate(appointment)
            result.append(item.model_copy(update={
                "doctor_name": _display_name(appointment.doctor, appointment.doctor_id),
                "patient_name": _display_name(appointment.patient, appointment.patient_id),
            }))
        return result

    # Lifecycle

    def create_appointment(self, patient: User, data: AppointmentCreate) -> Appointment:
        """Book an appointment; it starts out pending."""
        doctor = self.db.query(User).filter(
            User.id == data.doctor_id,
            User.role == UserRole.DOCTOR
        ).first()

        if not doctor or not doctor.approved or doctor.blocked:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Doctor is not available for booking"
            )

        appointment = Appointment(
            patient_id=patient.id,
            doctor_id=doctor.id,
            appointment_date=data.date,
            reason=data.reason,
            status=AppointmentStatus.PENDING,
            attachments=[],
        )

        self.db.add(appointment)
        self.db.commit()
        self.db.refresh(appointment)

        logger.info(f"Appointment {appointment.id} requested by patient {patient.id} with doctor {doctor.id}")
        return appointment

    def approve_appointment(self, appointment_id: int, actor: User) -> Appointment:
        appointment = self._get_for_doctor(appointment_id, actor)
        self._transition(appointment, AppointmentStatus.APPROVED)
        return self._save(appointment)

    def decline_appointment(self, appointment_id: int, actor: User) -> Appointment:
        appointment = self._get_for_doctor(appointment_id, actor)
        self._transition(appointment, AppointmentStatus.DECLINED)
        return self._save(appointment)

    def complete_appointment(
        self,
        appointment_id: int,
        actor: User,
        notes: str,
        files: Optional[List[IncomingFile]] = None
    ) -> Appointment:
        """Complete an approved appointment with visit notes and optional files."""
        if not notes or not notes.strip():
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Notes are required to complete an appointment"
            )

        appointment = self._get_for_doctor(appointment_id, actor)
        self._check_transition(appointment, AppointmentStatus.COMPLETED)

        uploaded = self.attachments.upload(appointment, files or [])
        self.attachments.append(appointment, uploaded)

        appointment.status = AppointmentStatus.COMPLETED
        appointment.notes = notes
        return self._save(appointment)

    def cancel_appointment(self, appointment_id: int, patient: User, reason: Optional[str] = None) -> Appointment:
        """Patient withdraws a pending request."""
        appointment = self.get_appointment(appointment_id)
        if appointment.patient_id != patient.id:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Only the patient who booked can cancel this appointment"
            )

        self._transition(appointment, AppointmentStatus.DECLINED)
        appointment.cancelled_reason = reason or "Cancelled by patient"
        return self._save(appointment)

    # Attachments

    def add_attachments(self, appointment_id: int, actor: User, files: List[IncomingFile]) -> Appointment:
        """Attach more files to a completed appointment."""
        appointment = self._get_for_doctor(appointment_id, actor)
        if appointment.status != AppointmentStatus.COMPLETED:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Attachments can only be added to completed appointments"
            )
        if not files:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="No files provided"
            )

        uploaded = self.attachments.upload(appointment, files)
        self.attachments.append(appointment, uploaded)
        return self._save(appointment)

    def remove_attachment(
        self,
        appointment_id: int,
        actor: User,
        file_url: str,
        storage_path: Optional[str] = None
    ) -> Appointment:
        appointment = self.get_appointment(appointment_id)
        if actor.role != UserRole.ADMIN and actor.id not in (appointment.patient_id, appointment.doctor_id):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Not allowed to modify this appointment"
            )

        self.attachments.remove(appointment, file_url, storage_path)
        return appointment

    # Helpers

    def _get_for_doctor(self, appointment_id: int, actor: User) -> Appointment:
        appointment = self.get_appointment(appointment_id)
        if actor.role != UserRole.ADMIN and appointment.doctor_id != actor.id:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Only the assigned doctor can manage this appointment"
            )
        return appointment

    def _check_transition(self, appointment: Appointment, target: AppointmentStatus) -> None:
        if not appointment.can_transition_to(target):
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=f"Cannot move appointment from {appointment.status.value} to {target.value}"
            )

    def _transition(self, appointment: Appointment, target: AppointmentStatus) -> None:
        self._check_transition(appointment, target)
        appointment.status = target

    def _save(self, appointment: Appointment) -> Appointment:
        self.db.commit()
        self.db.refresh(appointment)
        logger.info(f"Appointment {appointment.id} is now {appointment.status.value}")
        return appointment


def _display_name(user: Optional[User], fallback_id: int) -> str:
    if user is None:
        return str(fallback_id)
    return user.full_name or user.email or str(fallback_id)
