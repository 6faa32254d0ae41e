"""
Medication Schemas
Pydantic models for medication input and output
"""

from typing import Optional, List
from datetime import datetime
from pydantic import BaseModel, Field, ConfigDict, field_validator

from tools.schedule_time import ScheduleTime


def _normalize_times(values: List[str]) -> List[str]:
    return [str(ScheduleTime.parse(v)) for v in values]


# ==================== REQUEST SCHEMAS ====================

class MedicationCreate(BaseModel):
    """Schema for creating a new medication"""
    name: str = Field(..., min_length=1, max_length=255)
    dosage: str = Field(default="", max_length=100)
    notes: str = ""
    schedule_times: List[str] = Field(default_factory=list)
    is_critical: bool = False

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Medication name cannot be blank")
        return v

    @field_validator("dosage", "notes")
    @classmethod
    def strip_text(cls, v: str) -> str:
        return v.strip()

    @field_validator("schedule_times")
    @classmethod
    def valid_times(cls, v: List[str]) -> List[str]:
        return _normalize_times(v)


class MedicationUpdate(BaseModel):
    """Schema for editing a medication; unset fields are left alone"""
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    dosage: Optional[str] = Field(None, max_length=100)
    notes: Optional[str] = None
    schedule_times: Optional[List[str]] = None
    is_critical: Optional[bool] = None

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("Medication name cannot be blank")
        return v

    @field_validator("schedule_times")
    @classmethod
    def valid_times(cls, v: Optional[List[str]]) -> Optional[List[str]]:
        if v is None:
            return v
        return _normalize_times(v)


# ==================== RESPONSE SCHEMAS ====================

class MedicationResponse(BaseModel):
    """Schema for medication output"""
    id: int
    name: str
    dosage: str
    notes: str
    schedule_times: List[str]
    is_critical: bool
    is_active: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
