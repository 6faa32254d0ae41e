"""
Schemas Module
Pydantic models validating service input and shaping summaries
"""

from schemas.medication import MedicationCreate, MedicationUpdate, MedicationResponse
from schemas.adherence import (
    MedicationLogResponse,
    AdherenceSummary,
    MedicationAdherence,
    AdherenceReport,
    NextDose,
    TodaySnapshot,
)
from schemas.appointment import AppointmentCreate, CareCircleMemberCreate


__all__ = [
    "MedicationCreate",
    "MedicationUpdate",
    "MedicationResponse",
    "MedicationLogResponse",
    "AdherenceSummary",
    "MedicationAdherence",
    "AdherenceReport",
    "NextDose",
    "TodaySnapshot",
    "AppointmentCreate",
    "CareCircleMemberCreate",
]
