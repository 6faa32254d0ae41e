"""
Pytest Configuration and Shared Fixtures
========================================

This module provides shared fixtures for all DoseKeeper tests.
Fixtures include database sessions, a local notification center,
service instances wired to it, and sample data.
"""

import os
import sys
from datetime import datetime, date, time, timedelta
from typing import Generator, Dict, Any

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from database import Base
from models import Medication, MedicationLog, LogStatus
from tools.notification_service import LocalNotificationCenter
from services.daily_log_service import DailyLogService
from services.adherence_service import AdherenceService
from services.reminder_service import ReminderService
from services.medication_service import MedicationService
from services.appointment_service import AppointmentService
from services.care_circle_service import CareCircleService


TEST_DAY = date(2026, 3, 10)


# ==================== DATABASE FIXTURES ====================

@pytest.fixture(scope="function")
def test_engine():
    """Create a test database engine with in-memory SQLite"""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False
    )

    # Create all tables
    Base.metadata.create_all(bind=engine)

    yield engine

    # Cleanup
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def db_session(test_engine) -> Generator[Session, None, None]:
    """Create a test database session"""
    TestingSessionLocal = sessionmaker(
        autocommit=False,
        autoflush=False,
        bind=test_engine
    )

    session = TestingSessionLocal()

    try:
        yield session
    finally:
        session.rollback()
        session.close()


# ==================== SERVICE FIXTURES ====================

@pytest.fixture
def notification_center() -> LocalNotificationCenter:
    """Authorized in-memory notification center"""
    return LocalNotificationCenter()


@pytest.fixture
def reminder_service(notification_center) -> ReminderService:
    return ReminderService(notification_center)


@pytest.fixture
def daily_log_service() -> DailyLogService:
    return DailyLogService()


@pytest.fixture
def adherence_service() -> AdherenceService:
    return AdherenceService()


@pytest.fixture
def medication_service(reminder_service, daily_log_service) -> MedicationService:
    return MedicationService(reminders=reminder_service, daily_logs=daily_log_service)


@pytest.fixture
def appointment_service(reminder_service) -> AppointmentService:
    return AppointmentService(reminders=reminder_service)


@pytest.fixture
def care_circle_service() -> CareCircleService:
    return CareCircleService()


# ==================== SAMPLE DATA FIXTURES ====================

@pytest.fixture
def test_day() -> date:
    return TEST_DAY


@pytest.fixture
def sample_medication_data() -> Dict[str, Any]:
    """Sample medication data for creating test medications"""
    return {
        "name": "Lisinopril",
        "dosage": "10mg tablet",
        "notes": "Take with water",
        "schedule_times": ["08:00"],
        "is_critical": False,
    }


def add_medication(session: Session, **fields) -> Medication:
    """Insert a medication directly, bypassing the service layer"""
    fields.setdefault("dosage", "")
    fields.setdefault("notes", "")
    fields.setdefault("is_active", True)
    medication = Medication(**fields)
    session.add(medication)
    session.commit()
    session.refresh(medication)
    return medication


def add_log(
    session: Session,
    medication_id: int,
    scheduled_time: datetime,
    status: LogStatus = LogStatus.UPCOMING,
    action_time: datetime = None
) -> MedicationLog:
    log = MedicationLog(
        medication_id=medication_id,
        scheduled_time=scheduled_time,
        status=status,
        action_time=action_time
    )
    session.add(log)
    session.commit()
    session.refresh(log)
    return log


@pytest.fixture
def test_medication(db_session: Session, sample_medication_data: Dict) -> Medication:
    """Create and return a test medication taken at 08:00"""
    return add_medication(db_session, **sample_medication_data)


@pytest.fixture
def twice_daily_medication(db_session: Session) -> Medication:
    return add_medication(
        db_session,
        name="Metformin",
        dosage="500mg",
        schedule_times=["08:00", "20:00"]
    )


@pytest.fixture
def inactive_medication(db_session: Session) -> Medication:
    return add_medication(
        db_session,
        name="Atorvastatin",
        dosage="20mg",
        schedule_times=["21:00"],
        is_active=False
    )


@pytest.fixture
def test_appointment_data(test_day) -> Dict[str, Any]:
    return {
        "title": "Cardiology follow-up",
        "doctor_name": "Dr. Patel",
        "date_time": datetime.combine(test_day + timedelta(days=2), time(14, 30)),
        "location": "Clinic B",
        "notes": "Bring blood pressure log",
        "prep_reminder": True,
        "prep_reminder_minutes": 1440,
    }
