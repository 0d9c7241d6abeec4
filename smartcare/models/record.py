from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, BigInteger
from sqlalchemy.sql import func

from ..core.database import Base

class Record(Base):
    """A file uploaded by the patient to their own health records."""
    __tablename__ = "records"

    id = Column(Integer, primary_key=True, index=True)
    patient_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    file_name = Column(String(255), nullable=False)
    file_url = Column(String(1000), nullable=False)
    storage_path = Column(String(500), nullable=True)
    uploaded_at = Column(BigInteger, nullable=False)  # epoch milliseconds
    created_at = Column(DateTime, server_default=func.now())

    def __repr__(self):
        return f"<Record(id={self.id}, patient_id={self.patient_id}, file_name='{self.file_name}')>"
