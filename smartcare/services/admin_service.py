from sqlalchemy.orm import Session
from sqlalchemy import func, or_
from fastapi import HTTPException, status
from typing import List, Optional
import logging

from ..core.security import UserRole
from ..models.user import User, RefreshToken
from ..models.appointment import Appointment, AppointmentStatus
from ..models.caregiver import CaregiverLink, CaregiverRequest
from ..models.daily_measure import DailyMeasure
from ..models.record import Record
from ..schemas.admin import AdminStats

logger = logging.getLogger(__name__)

class AdminService:
    def __init__(self, db: Session):
        self.db = db

    def stats(self) -> AdminStats:
        role_counts = dict(
            self.db.query(User.role, func.count(User.id)).group_by(User.role).all()
        )
        approved_doctors = self.db.query(User).filter(
            User.role == UserRole.DOCTOR,
            User.approved == True  # noqa: E712
        ).count()
        status_counts = dict(
            self.db.query(Appointment.status, func.count(Appointment.id)).group_by(Appointment.status).all()
        )

        total_doctors = role_counts.get(UserRole.DOCTOR, 0)
        return AdminStats(
            total_patients=role_counts.get(UserRole.PATIENT, 0),
            total_doctors=total_doctors,
            total_caregivers=role_counts.get(UserRole.CAREGIVER, 0),
            approved_doctors=approved_doctors,
            pending_doctors=total_doctors - approved_doctors,
            pending_appointments=status_counts.get(AppointmentStatus.PENDING, 0),
            approved_appointments=status_counts.get(AppointmentStatus.APPROVED, 0),
            completed_appointments=status_counts.get(AppointmentStatus.COMPLETED, 0),
        )

    def pending_doctors(self) -> List[User]:
        return self.db.query(User).filter(
            User.role == UserRole.DOCTOR,
            User.approved == False  # noqa: E712
        ).order_by(User.created_at.desc(), User.id.desc()).all()

    def set_doctor_approval(self, doctor_id: int, approved: bool) -> User:
        doctor = self.db.query(User).filter(
            User.id == doctor_id,
            User.role == UserRole.DOCTOR
        ).first()
        if not doctor:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Doctor not found"
            )

        doctor.approved = approved
        self.db.commit()
        self.db.refresh(doctor)

        logger.info(f"Doctor {doctor.id} {'approved' if approved else 'unapproved'}")
        return doctor

    def list_users(self, role: Optional[UserRole] = None, skip: int = 0, limit: int = 200) -> List[User]:
        query = self.db.query(User)
        if role:
            query = query.filter(User.role == role)
        return query.order_by(User.created_at.desc(), User.id.desc()).offset(skip).limit(limit).all()

    def blocked_users(self, limit: int = 200) -> List[User]:
        return self.db.query(User).filter(
            User.blocked == True  # noqa: E712
        ).order_by(User.created_at.desc(), User.id.desc()).limit(limit).all()

    def set_blocked(self, user_id: int, blocked: bool, actor: User) -> User:
        user = self._get_user(user_id)
        if user.id == actor.id:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Admins cannot block themselves"
            )

        user.blocked = blocked
        if blocked:
            self.db.query(RefreshToken).filter(
                RefreshToken.user_id == user.id
            ).update({"is_revoked": True})

        self.db.commit()
        self.db.refresh(user)

        logger.info(f"User {user.id} {'blocked' if blocked else 'unblocked'} by admin {actor.id}")
        return user

    def remove_user(self, user_id: int, actor: User) -> None:
        """Delete a user together with everything that belongs to them."""
        user = self._get_user(user_id)
        if user.id == actor.id:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Admins cannot remove themselves"
            )

        self.db.query(Appointment).filter(
            or_(Appointment.patient_id == user.id, Appointment.doctor_id == user.id)
        ).delete(synchronize_session=False)
        self.db.query(CaregiverLink).filter(
            or_(CaregiverLink.patient_id == user.id, CaregiverLink.caregiver_id == user.id)
        ).delete(synchronize_session=False)
        self.db.query(CaregiverRequest).filter(
            or_(CaregiverRequest.patient_id == user.id, CaregiverRequest.caregiver_id == user.id)
        ).delete(synchronize_session=False)
        self.db.query(DailyMeasure).filter(DailyMeasure.patient_id == user.id).delete(synchronize_session=False)
        self.db.query(Record).filter(Record.patient_id == user.id).delete(synchronize_session=False)
        self.db.query(RefreshToken).filter(RefreshToken.user_id == user.id).delete(synchronize_session=False)

        self.db.delete(user)
        self.db.commit()

        logger.info(f"User {user_id} removed by admin {actor.id}")

    def _get_user(self, user_id: int) -> User:
        user = self.db.query(User).filter(User.id == user_id).first()
        if not user:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="User not found"
            )
        return user
