from pydantic import BaseModel


class AdminStats(BaseModel):
    total_patients: int
    total_doctors: int
    total_caregivers: int
    approved_doctors: int
    pending_doctors: int
    pending_appointments: int
    approved_appointments: int
    completed_appointments: int


class BlockedUpdate(BaseModel):
    blocked: bool
