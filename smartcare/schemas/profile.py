from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .auth import UserResponse


class PatientProfileData(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    gender: Optional[str] = Field(default=None, max_length=20)
    dob: Optional[str] = Field(default=None, pattern=r"^\d{4}-\d{2}-\d{2}$")
    height_cm: Optional[float] = Field(default=None, gt=0)
    weight_kg: Optional[float] = Field(default=None, gt=0)
    blood_group: Optional[str] = Field(default=None, max_length=10)
    allergies: Optional[str] = None
    medications: Optional[str] = None
    emergency_contact: Optional[str] = Field(default=None, max_length=255)


class DoctorProfileData(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    specialty: Optional[str] = Field(default=None, max_length=100)
    qualification: Optional[str] = Field(default=None, max_length=255)
    experience_years: Optional[int] = Field(default=None, ge=0)
    license_number: Optional[str] = Field(default=None, max_length=50)
    clinic_address: Optional[str] = Field(default=None, max_length=255)
    consultation_fee: Optional[str] = Field(default=None, max_length=50)
    photo_url: Optional[str] = Field(default=None, max_length=500)


class CaregiverProfileData(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    relationship_to_patient: Optional[str] = Field(default=None, max_length=100)
    address: Optional[str] = Field(default=None, max_length=255)


class ProfileUpdate(BaseModel):
    """
    Profile form payload. Common fields live on the user; the nested block
    matching the caller's role is written to the role-specific profile.
    """
    full_name: Optional[str] = Field(default=None, max_length=200)
    phone: Optional[str] = Field(default=None, max_length=20)
    patient: Optional[PatientProfileData] = None
    doctor: Optional[DoctorProfileData] = None
    caregiver: Optional[CaregiverProfileData] = None


class ProfileSetup(ProfileUpdate):
    full_name: str = Field(..., max_length=200)

    @field_validator("full_name")
    @classmethod
    def full_name_not_blank(cls, v):
        if not v.strip():
            raise ValueError("Full name is required")
        return v.strip()


class ProfileResponse(BaseModel):
    user: UserResponse
    patient: Optional[PatientProfileData] = None
    doctor: Optional[DoctorProfileData] = None
    caregiver: Optional[CaregiverProfileData] = None


class DoctorSummary(BaseModel):
    id: int
    full_name: Optional[str] = None
    email: str
    phone: Optional[str] = None
    approved: bool
    specialty: Optional[str] = None
    qualification: Optional[str] = None
    experience_years: Optional[int] = None
    license_number: Optional[str] = None
    clinic_address: Optional[str] = None
    consultation_fee: Optional[str] = None
    photo_url: Optional[str] = None


class PatientSummary(BaseModel):
    id: int
    full_name: Optional[str] = None
    email: str
    phone: Optional[str] = None
    gender: Optional[str] = None
    dob: Optional[str] = None
    blood_group: Optional[str] = None
    allergies: Optional[str] = None
    medications: Optional[str] = None
