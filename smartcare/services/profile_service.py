from sqlalchemy.orm import Session
from fastapi import HTTPException, status
from typing import List
import logging

from ..core.security import UserRole
from ..models.user import User
from ..models.patient import Patient
from ..models.doctor import Doctor
from ..models.caregiver import Caregiver
from ..models.appointment import Appointment
from ..schemas.auth import UserResponse
from ..schemas.profile import (
    ProfileUpdate, ProfileResponse, PatientProfileData, DoctorProfileData,
    CaregiverProfileData, DoctorSummary, PatientSummary
)
from .caregiver_service import is_linked

logger = logging.getLogger(__name__)

# Role -> (profile model, payload attribute on ProfileUpdate)
PROFILE_MODELS = {
    UserRole.PATIENT: (Patient, "patient"),
    UserRole.DOCTOR: (Doctor, "doctor"),
    UserRole.CAREGIVER: (Caregiver, "caregiver"),
}

class ProfileService:
    def __init__(self, db: Session):
        self.db = db

    def get_profile(self, user: User) -> ProfileResponse:
        response = ProfileResponse(user=UserResponse.model_validate(user))
        if user.patient:
            response.patient = PatientProfileData.model_validate(user.patient)
        if user.doctor:
            response.doctor = DoctorProfileData.model_validate(user.doctor)
        if user.caregiver:
            response.caregiver = CaregiverProfileData.model_validate(user.caregiver)
        return response

    def setup_profile(self, user: User, data: ProfileUpdate) -> ProfileResponse:
        """Onboarding form; marks the profile as completed."""
        self._apply(user, data)
        user.profile_completed = True

        self.db.commit()
        self.db.refresh(user)

        logger.info(f"User {user.id} completed {user.role.value} profile setup")
        return self.get_profile(user)

    def update_profile(self, user: User, data: ProfileUpdate) -> ProfileResponse:
        self._apply(user, data)

        self.db.commit()
        self.db.refresh(user)
        return self.get_profile(user)

    def _apply(self, user: User, data: ProfileUpdate) -> None:
        if data.full_name is not None:
            user.full_name = data.full_name
        if data.phone is not None:
            user.phone = data.phone

        if user.role not in PROFILE_MODELS:
            return

        model, attr = PROFILE_MODELS[user.role]
        payload = getattr(data, attr)

        profile = user.profile
        if profile is None:
            profile = model(user_id=user.id)
            self.db.add(profile)
            setattr(user, attr, profile)

        if payload is None:
            return

        for key, value in payload.model_dump(exclude_unset=True).items():
            setattr(profile, key, value)

    # Directory lookups

    def approved_doctors(self) -> List[DoctorSummary]:
        doctors = self.db.query(User).filter(
            User.role == UserRole.DOCTOR,
            User.approved == True,  # noqa: E712
            User.blocked == False  # noqa: E712
        ).order_by(User.full_name.asc(), User.id.asc()).all()
        return [doctor_summary(d) for d in doctors]

    def get_doctor(self, doctor_id: int) -> DoctorSummary:
        doctor = self.db.query(User).filter(
            User.id == doctor_id,
            User.role == UserRole.DOCTOR
        ).first()
        if not doctor:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Doctor not found"
            )
        return doctor_summary(doctor)

    def get_patient(self, patient_id: int, viewer: User) -> PatientSummary:
        """Patient info for the patient, their doctors, linked caregivers and admins."""
        patient = self.db.query(User).filter(
            User.id == patient_id,
            User.role == UserRole.PATIENT
        ).first()
        if not patient:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Patient not found"
            )

        if not self._can_view_patient(viewer, patient_id):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Not allowed to view this patient"
            )
        return patient_summary(patient)

    def patients_of_doctor(self, doctor: User) -> List[PatientSummary]:
        patient_ids = {
            row[0] for row in self.db.query(Appointment.patient_id).filter(
                Appointment.doctor_id == doctor.id
            ).all()
        }
        if not patient_ids:
            return []

        patients = self.db.query(User).filter(User.id.in_(patient_ids)).all()
        patients.sort(key=lambda u: ((u.full_name or "").lower(), u.email.lower()))
        return [patient_summary(p) for p in patients]

    def _can_view_patient(self, viewer: User, patient_id: int) -> bool:
        if viewer.role == UserRole.ADMIN or viewer.id == patient_id:
            return True
        if viewer.role == UserRole.DOCTOR:
            return self.db.query(Appointment).filter(
                Appointment.doctor_id == viewer.id,
                Appointment.patient_id == patient_id
            ).first() is not None
        if viewer.role == UserRole.CAREGIVER:
            return is_linked(self.db, viewer.id, patient_id)
        return False


def doctor_summary(user: User) -> DoctorSummary:
    profile = user.doctor
    return DoctorSummary(
        id=user.id,
        full_name=user.full_name,
        email=user.email,
        phone=user.phone,
        approved=bool(user.approved),
        specialty=(profile.specialty if profile else None) or "General",
        qualification=profile.qualification if profile else None,
        experience_years=profile.experience_years if profile else None,
        license_number=profile.license_number if profile else None,
        clinic_address=profile.clinic_address if profile else None,
        consultation_fee=profile.consultation_fee if profile else None,
        photo_url=profile.photo_url if profile else None,
    )


def patient_summary(user: User) -> PatientSummary:
    profile = user.patient
    return PatientSummary(
        id=user.id,
        full_name=user.full_name,
        email=user.email,
        phone=user.phone,
        gender=profile.gender if profile else None,
        dob=profile.dob if profile else None,
        blood_group=profile.blood_group if profile else None,
        allergies=profile.allergies if profile else None,
        medications=profile.medications if profile else None,
    )
