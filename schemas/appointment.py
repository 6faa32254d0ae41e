"""
Appointment and Care Circle Schemas
"""

from datetime import datetime
from pydantic import BaseModel, Field, field_validator, model_validator

from config import reminder_config
from models import CareRelationship


class AppointmentCreate(BaseModel):
    """Schema for creating an appointment"""
    title: str = Field(default="", max_length=255)
    doctor_name: str = Field(default="", max_length=255)
    date_time: datetime
    location: str = Field(default="", max_length=255)
    notes: str = ""
    prep_reminder: bool = False
    prep_reminder_minutes: int = reminder_config.APPOINTMENT_PREP_DEFAULT_MINUTES

    @field_validator("prep_reminder_minutes")
    @classmethod
    def known_lead(cls, v: int) -> int:
        if v not in reminder_config.APPOINTMENT_PREP_LEAD_OPTIONS:
            raise ValueError(
                f"Prep reminder lead must be one of {reminder_config.APPOINTMENT_PREP_LEAD_OPTIONS}"
            )
        return v

    @model_validator(mode="after")
    def has_title_or_doctor(self) -> "AppointmentCreate":
        if not self.title.strip() and not self.doctor_name.strip():
            raise ValueError("Appointment needs a title or a doctor name")
        return self


class CareCircleMemberCreate(BaseModel):
    """Schema for adding someone to the care circle"""
    name: str = Field(..., min_length=1, max_length=255)
    relationship: CareRelationship = CareRelationship.OTHER
    phone_number: str = Field(default="", max_length=30)
    is_emergency_contact: bool = False
    notify_on_missed_dose: bool = True
