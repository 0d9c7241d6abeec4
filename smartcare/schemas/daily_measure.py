from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class DailyMeasureData(BaseModel):
    systolic: Optional[float] = Field(default=None, ge=0)
    diastolic: Optional[float] = Field(default=None, ge=0)
    sugar_mg_dl: Optional[float] = Field(default=None, ge=0)
    sugar_post_mg_dl: Optional[float] = Field(default=None, ge=0)
    cholesterol_total: Optional[float] = Field(default=None, ge=0)
    spo2_pct: Optional[float] = Field(default=None, ge=0, le=100)
    exercise_mins: Optional[float] = Field(default=None, ge=0)
    temperature_c: Optional[float] = None
    weight_kg: Optional[float] = Field(default=None, gt=0)
    height_cm: Optional[float] = Field(default=None, gt=0)
    water_intake_l: Optional[float] = Field(default=None, ge=0)


class DailyMeasureResponse(DailyMeasureData):
    model_config = ConfigDict(from_attributes=True)

    patient_id: int
    date: str
    added_by: str
    caregiver_id: Optional[int] = None
    caregiver_name: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
