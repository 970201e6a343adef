from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Optional
from datetime import date
import re

from patient_registry.core.time_utils import to_offset_date_string
from patient_registry.domain.patients.models import Gender

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


class PatientCreate(BaseModel):
    """Schema for registering a new patient"""
    first_name: str
    last_name: str
    date_of_birth: str = Field(..., description="ISO date, e.g. 1990-05-01")
    gender: Gender
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None

    @field_validator('first_name')
    @classmethod
    def validate_first_name(cls, v):
        if not v.strip():
            raise ValueError('First name is required')
        return v

    @field_validator('last_name')
    @classmethod
    def validate_last_name(cls, v):
        if not v.strip():
            raise ValueError('Last name is required')
        return v

    @field_validator('date_of_birth')
    @classmethod
    def validate_date_of_birth(cls, v):
        if not v.strip():
            raise ValueError('Date of birth is required')
        try:
            to_offset_date_string(v)
        except ValueError:
            raise ValueError('Invalid date of birth')
        return v.strip()

    @field_validator('email')
    @classmethod
    def validate_email(cls, v):
        if v and not EMAIL_PATTERN.match(v):
            raise ValueError('Invalid email format')
        return v


class PatientCreatedResponse(BaseModel):
    id: int


class PatientResponse(BaseModel):
    """Schema for a stored patient"""
    id: int
    first_name: str
    last_name: str
    date_of_birth: str
    gender: str
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    created_at: Optional[date] = None

    model_config = ConfigDict(from_attributes=True)
