from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List

from ...core.database import get_db
from ...api.deps import get_patient_user, get_caregiver_user
from ...models.user import User
from ...schemas.caregiver import (
    CaregiverRequestCreate, CaregiverDecision, CaregiverRequestResponse, UserLite
)
from ...services.caregiver_service import CaregiverService

router = APIRouter(prefix="/caregivers", tags=["Caregivers"])

@router.get("/search", response_model=List[UserLite])
async def search_caregivers(
    email: str = Query(..., min_length=1),
    current_user: User = Depends(get_patient_user),
    db: Session = Depends(get_db)
):
    """Find caregivers whose email starts with the given prefix."""
    return CaregiverService(db).search_by_email_prefix(email)

@router.post("/requests", response_model=CaregiverRequestResponse, status_code=201)
async def send_request(
    data: CaregiverRequestCreate,
    current_user: User = Depends(get_patient_user),
    db: Session = Depends(get_db)
):
    return CaregiverService(db).send_request(current_user, data.caregiver_id)

@router.get("/requests/incoming", response_model=List[CaregiverRequestResponse])
async def incoming_requests(
    current_user: User = Depends(get_caregiver_user),
    db: Session = Depends(get_db)
):
    return CaregiverService(db).incoming_requests(current_user)

@router.post("/requests/{request_id}/decision", response_model=CaregiverRequestResponse)
async def decide_request(
    request_id: int,
    data: CaregiverDecision,
    current_user: User = Depends(get_caregiver_user),
    db: Session = Depends(get_db)
):
    return CaregiverService(db).decide_request(request_id, current_user, data.accept)

@router.get("/patients", response_model=List[UserLite])
async def my_patients(
    current_user: User = Depends(get_caregiver_user),
    db: Session = Depends(get_db)
):
    return CaregiverService(db).patients_of(current_user)

@router.get("/mine", response_model=List[UserLite])
async def my_caregivers(
    current_user: User = Depends(get_patient_user),
    db: Session = Depends(get_db)
):
    return CaregiverService(db).caregivers_of(current_user)

@router.delete("/mine/{caregiver_id}")
async def revoke_caregiver(
    caregiver_id: int,
    current_user: User = Depends(get_patient_user),
    db: Session = Depends(get_db)
):
    CaregiverService(db).revoke(current_user, caregiver_id)
    return {"message": "Access revoked"}
