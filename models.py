"""
Database Models
SQLAlchemy ORM models for DoseKeeper
"""

from sqlalchemy import Column, Integer, String, Boolean, DateTime, Text, Enum, Index, UniqueConstraint, JSON
from datetime import datetime
from enum import Enum as PyEnum
from typing import List

from database import Base
from config import TableNames, reminder_config
from tools.schedule_time import ScheduleTime, parse_schedule


# ==================== ENUMS ====================

class LogStatus(str, PyEnum):
    """Adherence status of a dated medication log"""
    UPCOMING = "upcoming"
    TAKEN = "taken"
    SKIPPED = "skipped"


class CareRelationship(str, PyEnum):
    """How a care circle member relates to the user"""
    SPOUSE = "Spouse"
    SON = "Son"
    DAUGHTER = "Daughter"
    SIBLING = "Sibling"
    FRIEND = "Friend"
    CAREGIVER = "Caregiver"
    NURSE = "Nurse"
    DOCTOR = "Doctor"
    OTHER = "Other"


# ==================== MODELS ====================

class Medication(Base):
    """Medication with its recurring daily schedule"""
    __tablename__ = TableNames.MEDICATIONS

    id = Column(Integer, primary_key=True, index=True)

    name = Column(String(255), nullable=False)
    dosage = Column(String(100), default="")
    notes = Column(Text, default="")

    # Recurring schedule template (ordered list of HH:MM strings)
    schedule_times = Column(JSON, default=list)

    # Critical medications get stronger reminders and caregiver alerting
    is_critical = Column(Boolean, default=False)

    # Soft delete marker; medications are never hard-deleted
    is_active = Column(Boolean, default=True)

    created_at = Column(DateTime, default=datetime.now)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now)

    __table_args__ = (
        Index("ix_medications_active", "is_active"),
    )

    @property
    def schedule(self) -> List[ScheduleTime]:
        return parse_schedule(self.schedule_times or [])

    @schedule.setter
    def schedule(self, values) -> None:
        self.schedule_times = [str(t) for t in parse_schedule(values)]

    def __repr__(self) -> str:
        return f"<Medication {self.id} {self.name!r} at {self.schedule_times}>"


class MedicationLog(Base):
    """
    One dated occurrence of a schedule time, carrying adherence status.

    `medication_id` is a weak reference: there is no foreign key, so a log
    outlives a purged medication and is then treated as orphaned.
    """
    __tablename__ = TableNames.MEDICATION_LOGS

    id = Column(Integer, primary_key=True, index=True)
    medication_id = Column(Integer, nullable=False, index=True)

    scheduled_time = Column(DateTime, nullable=False)
    status = Column(Enum(LogStatus), nullable=False, default=LogStatus.UPCOMING)
    action_time = Column(DateTime)

    created_at = Column(DateTime, default=datetime.now)

    __table_args__ = (
        UniqueConstraint("medication_id", "scheduled_time", name="uq_log_medication_time"),
        Index("ix_medication_logs_scheduled", "scheduled_time"),
    )

    def __repr__(self) -> str:
        return f"<MedicationLog {self.id} med={self.medication_id} at {self.scheduled_time} {self.status}>"


class Appointment(Base):
    """Doctor appointment with one-shot reminders"""
    __tablename__ = TableNames.APPOINTMENTS

    id = Column(Integer, primary_key=True, index=True)

    title = Column(String(255), default="")
    doctor_name = Column(String(255), default="")
    date_time = Column(DateTime, nullable=False)
    location = Column(String(255), default="")
    notes = Column(Text, default="")

    # Optional second reminder, lead time in minutes
    prep_reminder = Column(Boolean, default=False)
    prep_reminder_minutes = Column(Integer, default=reminder_config.APPOINTMENT_PREP_DEFAULT_MINUTES)

    is_completed = Column(Boolean, default=False)
    created_at = Column(DateTime, default=datetime.now)

    __table_args__ = (
        Index("ix_appointments_date", "date_time"),
    )

    @property
    def display_title(self) -> str:
        return self.title or self.doctor_name


class CareCircleMember(Base):
    """Family member or caregiver who can be alerted about missed doses"""
    __tablename__ = TableNames.CARE_CIRCLE_MEMBERS

    id = Column(Integer, primary_key=True, index=True)

    name = Column(String(255), nullable=False)
    relationship = Column(Enum(CareRelationship), default=CareRelationship.OTHER)
    phone_number = Column(String(30), default="")

    is_emergency_contact = Column(Boolean, default=False)
    notify_on_missed_dose = Column(Boolean, default=True)

    created_at = Column(DateTime, default=datetime.now)
