from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, UniqueConstraint, Enum as SQLEnum
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
import enum

from ..core.database import Base

class CaregiverRequestStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"

class Caregiver(Base):
    __tablename__ = "caregivers"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)

    relationship_to_patient = Column(String(100), nullable=True)
    address = Column(String(255), nullable=True)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    user = relationship("User", back_populates="caregiver")

    def __repr__(self):
        return f"<Caregiver(id={self.id}, user_id={self.user_id})>"

class CaregiverRequest(Base):
    __tablename__ = "caregiver_requests"

    id = Column(Integer, primary_key=True, index=True)
    patient_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    caregiver_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    status = Column(SQLEnum(CaregiverRequestStatus), default=CaregiverRequestStatus.PENDING, nullable=False)

    created_at = Column(DateTime, server_default=func.now())
    decided_at = Column(DateTime, nullable=True)

    patient = relationship("User", foreign_keys=[patient_id])

    def __repr__(self):
        return f"<CaregiverRequest(id={self.id}, patient_id={self.patient_id}, caregiver_id={self.caregiver_id}, status='{self.status}')>"

class CaregiverLink(Base):
    """An approved caregiver/patient relationship."""
    __tablename__ = "caregiver_links"
    __table_args__ = (UniqueConstraint("caregiver_id", "patient_id", name="uq_caregiver_patient"),)

    id = Column(Integer, primary_key=True, index=True)
    caregiver_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    patient_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime, server_default=func.now())

    caregiver = relationship("User", foreign_keys=[caregiver_id])
    patient = relationship("User", foreign_keys=[patient_id])

    def __repr__(self):
        return f"<CaregiverLink(caregiver_id={self.caregiver_id}, patient_id={self.patient_id})>"
