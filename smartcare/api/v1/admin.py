from fastapi import APIRouter, BackgroundTasks, Depends
from sqlalchemy.orm import Session
from typing import List, Optional

from ...core.database import get_db
from ...core.security import UserRole
from ...api.deps import get_admin_user
from ...models.user import User
from ...schemas.admin import AdminStats, BlockedUpdate
from ...schemas.auth import UserResponse
from ...services.admin_service import AdminService
from ...services.notification_service import send_doctor_approved_email

router = APIRouter(prefix="/admin", tags=["Admin"])

@router.get("/stats", response_model=AdminStats)
async def stats(
    current_user: User = Depends(get_admin_user),
    db: Session = Depends(get_db)
):
    return AdminService(db).stats()

@router.get("/doctors/pending", response_model=List[UserResponse])
async def pending_doctors(
    current_user: User = Depends(get_admin_user),
    db: Session = Depends(get_db)
):
    return AdminService(db).pending_doctors()

@router.post("/doctors/{doctor_id}/approve", response_model=UserResponse)
async def approve_doctor(
    doctor_id: int,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(get_admin_user),
    db: Session = Depends(get_db)
):
    """Approve a doctor and email them once the response is sent."""
    doctor = AdminService(db).set_doctor_approval(doctor_id, True)
    background_tasks.add_task(send_doctor_approved_email, doctor.email, doctor.full_name)
    return doctor

@router.post("/doctors/{doctor_id}/reject", response_model=UserResponse)
async def reject_doctor(
    doctor_id: int,
    current_user: User = Depends(get_admin_user),
    db: Session = Depends(get_db)
):
    return AdminService(db).set_doctor_approval(doctor_id, False)

@router.get("/users", response_model=List[UserResponse])
async def list_users(
    role: Optional[UserRole] = None,
    skip: int = 0,
    limit: int = 200,
    current_user: User = Depends(get_admin_user),
    db: Session = Depends(get_db)
):
    return AdminService(db).list_users(role, skip, limit)

@router.get("/users/blocked", response_model=List[UserResponse])
async def blocked_users(
    current_user: User = Depends(get_admin_user),
    db: Session = Depends(get_db)
):
    return AdminService(db).blocked_users()

@router.patch("/users/{user_id}/blocked", response_model=UserResponse)
async def set_blocked(
    user_id: int,
    data: BlockedUpdate,
    current_user: User = Depends(get_admin_user),
    db: Session = Depends(get_db)
):
    return AdminService(db).set_blocked(user_id, data.blocked, current_user)

@router.delete("/users/{user_id}")
async def remove_user(
    user_id: int,
    current_user: User = Depends(get_admin_user),
    db: Session = Depends(get_db)
):
    AdminService(db).remove_user(user_id, current_user)
    return {"message": "User removed"}
