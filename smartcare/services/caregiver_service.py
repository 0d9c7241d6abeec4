from sqlalchemy.orm import Session
from fastapi import HTTPException, status
from datetime import datetime
from typing import List
import logging

from ..core.security import UserRole
from ..models.user import User
from ..models.caregiver import CaregiverRequest, CaregiverRequestStatus, CaregiverLink
from ..schemas.caregiver import CaregiverRequestResponse

logger = logging.getLogger(__name__)


def is_linked(db: Session, caregiver_id: int, patient_id: int) -> bool:
    """Whether the caregiver has approved access to the patient."""
    return db.query(CaregiverLink).filter(
        CaregiverLink.caregiver_id == caregiver_id,
        CaregiverLink.patient_id == patient_id
    ).first() is not None


class CaregiverService:
    def __init__(self, db: Session):
        self.db = db

    def search_by_email_prefix(self, prefix: str, limit: int = 20) -> List[User]:
        prefix = prefix.strip().lower()
        if not prefix:
            return []

        caregivers = self.db.query(User).filter(
            User.role == UserRole.CAREGIVER,
            User.blocked == False  # noqa: E712
        ).order_by(User.email.asc()).all()

        return [u for u in caregivers if (u.email or "").lower().startswith(prefix)][:limit]

    def send_request(self, patient: User, caregiver_id: int) -> CaregiverRequest:
        """Patient asks a caregiver for access."""
        caregiver = self.db.query(User).filter(
            User.id == caregiver_id,
            User.role == UserRole.CAREGIVER
        ).first()
        if not caregiver:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Caregiver not found"
            )

        if is_linked(self.db, caregiver_id, patient.id):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Caregiver already has access"
            )

        pending = self.db.query(CaregiverRequest).filter(
            CaregiverRequest.patient_id == patient.id,
            CaregiverRequest.caregiver_id == caregiver_id,
            CaregiverRequest.status == CaregiverRequestStatus.PENDING
        ).first()
        if pending:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="A request to this caregiver is already pending"
            )

        request = CaregiverRequest(
            patient_id=patient.id,
            caregiver_id=caregiver_id,
            status=CaregiverRequestStatus.PENDING,
        )
        self.db.add(request)
        self.db.commit()
        self.db.refresh(request)

        logger.info(f"Patient {patient.id} requested caregiver {caregiver_id}")
        return request

    def incoming_requests(self, caregiver: User) -> List[CaregiverRequestResponse]:
        requests = self.db.query(CaregiverRequest).filter(
            CaregiverRequest.caregiver_id == caregiver.id,
            CaregiverRequest.status == CaregiverRequestStatus.PENDING
        ).order_by(CaregiverRequest.created_at.desc(), CaregiverRequest.id.desc()).all()

        return [
            CaregiverRequestResponse.model_validate(r).model_copy(update={
                "patient_name": r.patient.full_name if r.patient else None,
                "patient_email": r.patient.email if r.patient else None,
            })
            for r in requests
        ]

    def decide_request(self, request_id: int, caregiver: User, accept: bool) -> CaregiverRequest:
        """Caregiver accepts or rejects a pending request addressed to them."""
        request = self.db.query(CaregiverRequest).filter(
            CaregiverRequest.id == request_id,
            CaregiverRequest.caregiver_id == caregiver.id
        ).first()
        if not request:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Request not found"
            )

        if request.status != CaregiverRequestStatus.PENDING:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=f"Request was already {request.status.value}"
            )

        request.status = CaregiverRequestStatus.APPROVED if accept else CaregiverRequestStatus.REJECTED
        request.decided_at = datetime.utcnow()

        if accept and not is_linked(self.db, caregiver.id, request.patient_id):
            self.db.add(CaregiverLink(caregiver_id=caregiver.id, patient_id=request.patient_id))

        self.db.commit()
        self.db.refresh(request)

        logger.info(f"Caregiver {caregiver.id} {request.status.value} request {request.id}")
        return request

    def patients_of(self, caregiver: User) -> List[User]:
        links = self.db.query(CaregiverLink).filter(
            CaregiverLink.caregiver_id == caregiver.id
        ).all()
        return _sorted_by_name([link.patient for link in links if link.patient])

    def caregivers_of(self, patient: User) -> List[User]:
        links = self.db.query(CaregiverLink).filter(
            CaregiverLink.patient_id == patient.id
        ).all()
        return _sorted_by_name([link.caregiver for link in links if link.caregiver])

    def revoke(self, patient: User, caregiver_id: int) -> None:
        """Patient removes a caregiver's access, along with any requests between them."""
        removed = self.db.query(CaregiverLink).filter(
            CaregiverLink.caregiver_id == caregiver_id,
            CaregiverLink.patient_id == patient.id
        ).delete()

        if not removed:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Caregiver is not linked to this patient"
            )

        self.db.query(CaregiverRequest).filter(
            CaregiverRequest.caregiver_id == caregiver_id,
            CaregiverRequest.patient_id == patient.id
        ).delete()

        self.db.commit()
        logger.info(f"Patient {patient.id} revoked caregiver {caregiver_id}")


def _sorted_by_name(users: List[User]) -> List[User]:
    return sorted(users, key=lambda u: ((u.full_name or "").lower(), (u.email or "").lower()))
