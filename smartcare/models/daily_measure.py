from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, Float, UniqueConstraint
from sqlalchemy.sql import func

from ..core.database import Base

# Vital fields merged on every write
MEASURE_FIELDS = (
    "systolic",
    "diastolic",
    "sugar_mg_dl",
    "sugar_post_mg_dl",
    "cholesterol_total",
    "spo2_pct",
    "exercise_mins",
    "temperature_c",
    "weight_kg",
    "height_cm",
    "water_intake_l",
)

class DailyMeasure(Base):
    __tablename__ = "daily_measures"
    __table_args__ = (UniqueConstraint("patient_id", "date", name="uq_measure_patient_date"),)

    id = Column(Integer, primary_key=True, index=True)
    patient_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    date = Column(String(10), nullable=False, index=True)  # YYYY-MM-DD

    systolic = Column(Float, nullable=True)
    diastolic = Column(Float, nullable=True)
    sugar_mg_dl = Column(Float, nullable=True)
    sugar_post_mg_dl = Column(Float, nullable=True)
    cholesterol_total = Column(Float, nullable=True)
    spo2_pct = Column(Float, nullable=True)
    exercise_mins = Column(Float, nullable=True)
    temperature_c = Column(Float, nullable=True)
    weight_kg = Column(Float, nullable=True)
    height_cm = Column(Float, nullable=True)
    water_intake_l = Column(Float, nullable=True)

    # Provenance
    added_by = Column(String(20), nullable=False)  # "patient" or "caregiver"
    caregiver_id = Column(Integer, nullable=True)
    caregiver_name = Column(String(200), nullable=True)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    def __repr__(self):
        return f"<DailyMeasure(patient_id={self.patient_id}, date='{self.date}')>"
