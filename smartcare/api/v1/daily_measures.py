from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List

from ...core.database import get_db
from ...api.deps import get_member_user
from ...models.user import User
from ...schemas.daily_measure import DailyMeasureData, DailyMeasureResponse
from ...services.daily_measure_service import DailyMeasureService

router = APIRouter(prefix="/patients/{patient_id}/daily-measures", tags=["Daily Measures"])

@router.put("/{day}", response_model=DailyMeasureResponse)
async def upsert_daily_measure(
    patient_id: int,
    day: str,
    data: DailyMeasureData,
    current_user: User = Depends(get_member_user),
    db: Session = Depends(get_db)
):
    """Record vitals for a day; fields left out keep their stored values."""
    return DailyMeasureService(db).upsert(current_user, patient_id, day, data)

@router.get("", response_model=List[DailyMeasureResponse])
async def list_daily_measures(
    patient_id: int,
    limit: int = Query(30, ge=1, le=365),
    current_user: User = Depends(get_member_user),
    db: Session = Depends(get_db)
):
    return DailyMeasureService(db).list_measures(current_user, patient_id, limit)
