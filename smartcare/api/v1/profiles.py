from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List

from ...core.database import get_db
from ...api.deps import get_current_user, get_member_user, get_doctor_user
from ...models.user import User
from ...schemas.profile import (
    ProfileSetup, ProfileUpdate, ProfileResponse, DoctorSummary, PatientSummary
)
from ...services.profile_service import ProfileService

router = APIRouter(tags=["Profiles"])

@router.get("/profile/me", response_model=ProfileResponse)
async def get_my_profile(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return ProfileService(db).get_profile(current_user)

@router.post("/profile/setup", response_model=ProfileResponse)
async def setup_profile(
    data: ProfileSetup,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Onboarding; open to authenticated users whose profile is not complete yet."""
    return ProfileService(db).setup_profile(current_user, data)

@router.put("/profile/me", response_model=ProfileResponse)
async def update_my_profile(
    data: ProfileUpdate,
    current_user: User = Depends(get_member_user),
    db: Session = Depends(get_db)
):
    return ProfileService(db).update_profile(current_user, data)

@router.get("/doctors", response_model=List[DoctorSummary])
async def list_doctors(
    current_user: User = Depends(get_member_user),
    db: Session = Depends(get_db)
):
    """Approved doctors available for booking."""
    return ProfileService(db).approved_doctors()

@router.get("/doctors/me/patients", response_model=List[PatientSummary])
async def my_patients(
    current_user: User = Depends(get_doctor_user),
    db: Session = Depends(get_db)
):
    """Distinct patients who booked with the calling doctor."""
    return ProfileService(db).patients_of_doctor(current_user)

@router.get("/doctors/{doctor_id}", response_model=DoctorSummary)
async def get_doctor(
    doctor_id: int,
    current_user: User = Depends(get_member_user),
    db: Session = Depends(get_db)
):
    return ProfileService(db).get_doctor(doctor_id)

@router.get("/patients/{patient_id}", response_model=PatientSummary)
async def get_patient(
    patient_id: int,
    current_user: User = Depends(get_member_user),
    db: Session = Depends(get_db)
):
    return ProfileService(db).get_patient(patient_id, current_user)
