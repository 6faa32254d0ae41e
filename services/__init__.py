"""
Services Module
Business logic layer for the DoseKeeper application
"""

from services.daily_log_service import DailyLogService, daily_log_service
from services.adherence_service import (
    AdherenceService,
    adherence_service,
    aggregate,
    transition,
    mark_taken,
    mark_skipped,
)
from services.reminder_service import ReminderService, reminder_service
from services.medication_service import MedicationService, medication_service
from services.appointment_service import AppointmentService, appointment_service
from services.care_circle_service import CareCircleService, care_circle_service


__all__ = [
    # Service classes
    "DailyLogService",
    "AdherenceService",
    "ReminderService",
    "MedicationService",
    "AppointmentService",
    "CareCircleService",
    # State machine and aggregation
    "aggregate",
    "transition",
    "mark_taken",
    "mark_skipped",
    # Singleton instances
    "daily_log_service",
    "adherence_service",
    "reminder_service",
    "medication_service",
    "appointment_service",
    "care_circle_service",
]
