"""
Adherence Schemas
Pydantic models for log instances and adherence summaries
"""

from typing import Optional, List
from datetime import datetime
from pydantic import BaseModel, Field, ConfigDict

from models import LogStatus


class MedicationLogResponse(BaseModel):
    """Schema for a dated log instance"""
    id: int
    medication_id: int
    scheduled_time: datetime
    status: LogStatus
    action_time: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class AdherenceSummary(BaseModel):
    """Counts and taken rate over a window"""
    window_start: datetime
    window_end: datetime
    total: int = 0
    taken: int = 0
    skipped: int = 0
    pending_count: int = 0
    rate: float = Field(default=0.0, ge=0.0, le=1.0)

    @property
    def rate_percent(self) -> int:
        return int(self.rate * 100)


class MedicationAdherence(BaseModel):
    """Per-medication slice of a report"""
    medication_id: int
    name: str
    dosage: str = ""
    schedule_times: List[str] = Field(default_factory=list)
    summary: AdherenceSummary


class AdherenceReport(BaseModel):
    """Adherence over the last N days, for export and caregiver sharing"""
    days: int
    generated_at: datetime
    overall: AdherenceSummary
    medications: List[MedicationAdherence] = Field(default_factory=list)


class NextDose(BaseModel):
    """The next dose still waiting for action today"""
    log_id: int
    medication_id: int
    medication_name: str
    dosage: str = ""
    scheduled_time: datetime


class TodaySnapshot(BaseModel):
    """Today's progress plus the next dose, for summary banners and shared displays"""
    summary: AdherenceSummary
    next_dose: Optional[NextDose] = None
