from sqlalchemy.orm import Session
from fastapi import HTTPException, status
from datetime import date as date_type
from typing import List
import logging

from ..core.security import UserRole
from ..models.user import User
from ..models.daily_measure import DailyMeasure, MEASURE_FIELDS
from ..schemas.daily_measure import DailyMeasureData
from .caregiver_service import is_linked

logger = logging.getLogger(__name__)

class DailyMeasureService:
    def __init__(self, db: Session):
        self.db = db

    def check_access(self, actor: User, patient_id: int, write: bool = False) -> None:
        """Patients see their own measures; linked caregivers may read and write them."""
        if actor.role == UserRole.PATIENT and actor.id == patient_id:
            return
        if actor.role == UserRole.CAREGIVER and is_linked(self.db, actor.id, patient_id):
            return
        if not write and actor.role == UserRole.ADMIN:
            return

        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not allowed to access this patient's measures"
        )

    def upsert(self, actor: User, patient_id: int, day: str, data: DailyMeasureData) -> DailyMeasure:
        """Merge the given vitals into the patient's entry for ``day``."""
        try:
            if len(day) != 10:
                raise ValueError(day)
            date_type.fromisoformat(day)
        except ValueError:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Date must be YYYY-MM-DD"
            )

        self.check_access(actor, patient_id, write=True)

        measure = self.db.query(DailyMeasure).filter(
            DailyMeasure.patient_id == patient_id,
            DailyMeasure.date == day
        ).first()

        if measure is None:
            measure = DailyMeasure(patient_id=patient_id, date=day)
            self.db.add(measure)

        # Only fields present in the payload overwrite stored values
        for field in MEASURE_FIELDS:
            value = getattr(data, field)
            if value is not None:
                setattr(measure, field, value)

        if actor.role == UserRole.CAREGIVER:
            measure.added_by = "caregiver"
            measure.caregiver_id = actor.id
            measure.caregiver_name = actor.full_name or actor.email
        else:
            measure.added_by = "patient"
            measure.caregiver_id = None
            measure.caregiver_name = None

        self.db.commit()
        self.db.refresh(measure)

        logger.info(f"Daily measure {day} for patient {patient_id} saved by {measure.added_by} {actor.id}")
        return measure

    def list_measures(self, actor: User, patient_id: int, limit: int = 30) -> List[DailyMeasure]:
        """Most recent entries first."""
        self.check_access(actor, patient_id)
        return self.db.query(DailyMeasure).filter(
            DailyMeasure.patient_id == patient_id
        ).order_by(DailyMeasure.date.desc()).limit(limit).all()
