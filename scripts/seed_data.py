#!/usr/bin/env python
"""
Seed Data
Script to seed the database with demo medications, dose history,
an appointment and a care circle for development
"""

import sys
import os
import asyncio
import argparse
import logging
import random
from datetime import datetime, timedelta, date, time
from typing import List, Optional

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from database import SessionLocal, init_db, reset_db
from models import Medication, MedicationLog, Appointment, CareCircleMember, LogStatus
from services.medication_service import medication_service
from services.appointment_service import appointment_service
from services.care_circle_service import care_circle_service
from services.adherence_service import adherence_service


logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


MEDICATIONS = [
    {"name": "Metformin", "dosage": "1000mg tablet", "schedule_times": ["08:00", "18:00"],
     "notes": "Take with meals"},
    {"name": "Lisinopril", "dosage": "10mg tablet", "schedule_times": ["08:00"]},
    {"name": "Atorvastatin", "dosage": "20mg tablet", "schedule_times": ["21:00"]},
    {"name": "Warfarin", "dosage": "5mg tablet", "schedule_times": ["18:00"], "is_critical": True},
]

# Chance a past dose was taken rather than skipped
TAKE_RATES = {
    "Metformin": 0.88,
    "Lisinopril": 0.92,
    "Atorvastatin": 0.80,  # Evening doses often missed
    "Warfarin": 0.95,
}

CARE_CIRCLE = [
    {"name": "Maria Doe", "relationship": "Spouse", "phone_number": "+15551234568",
     "is_emergency_contact": True},
    {"name": "Alex Doe", "relationship": "Son", "phone_number": "+15551234569",
     "notify_on_missed_dose": False},
]


async def seed_medications(db) -> List[Medication]:
    """Add demo medications not already present; their reminders and today's logs come with them"""
    logger.info("Adding medications...")

    existing = {name for (name,) in db.query(Medication.name).all()}
    medications = []
    for data in MEDICATIONS:
        if data["name"] in existing:
            logger.info(f"Medication {data['name']} already exists")
            continue
        medications.append(await medication_service.create_medication(data, db=db))

    logger.info(f"Created {len(medications)} medications")
    return medications


def seed_history(db, medications: List[Medication], days: int = 30):
    """Resolved logs for the days before today, for newly added medications only"""
    logger.info(f"Seeding {days} days of dose history...")

    random.seed(42)  # For reproducibility
    today = date.today()
    records_created = 0

    for medication in medications:
        base_rate = TAKE_RATES.get(medication.name, 0.85)

        for day_offset in range(1, days + 1):  # Skip today
            day = today - timedelta(days=day_offset)
            # Weekend adherence slightly lower
            rate = base_rate - 0.05 if day.weekday() >= 5 else base_rate

            for slot in medication.schedule:
                scheduled = slot.on(day)
                taken = random.random() < rate
                db.add(MedicationLog(
                    medication_id=medication.id,
                    scheduled_time=scheduled,
                    status=LogStatus.TAKEN if taken else LogStatus.SKIPPED,
                    action_time=scheduled + timedelta(minutes=random.randint(-10, 45))
                ))
                records_created += 1

    db.commit()
    logger.info(f"Created {records_created} log records")


async def seed_appointment(db) -> Optional[Appointment]:
    logger.info("Adding appointment...")
    if db.query(Appointment).filter(Appointment.title == "Cardiology follow-up").first():
        logger.info("Demo appointment already exists")
        return None
    return await appointment_service.create_appointment({
        "title": "Cardiology follow-up",
        "doctor_name": "Dr. Patel",
        "date_time": datetime.combine(date.today() + timedelta(days=3), time(14, 30)),
        "location": "Riverside Clinic, Suite 210",
        "notes": "Bring blood pressure log",
        "prep_reminder": True,
        "prep_reminder_minutes": 1440,
    }, db=db)


async def seed_care_circle(db):
    logger.info("Adding care circle...")
    existing = {name for (name,) in db.query(CareCircleMember.name).all()}
    for data in CARE_CIRCLE:
        if data["name"] in existing:
            logger.info(f"Care circle member {data['name']} already exists")
            continue
        await care_circle_service.add_member(data, db=db)


async def seed_all(clear_existing: bool = False, days: int = 30):
    """Run all seed operations"""

    print("\n" + "=" * 60)
    print("Database Seeding")
    print("=" * 60)

    if clear_existing:
        logger.info("Clearing existing data...")
        reset_db()
    else:
        init_db()

    db = SessionLocal()

    try:
        medications = await seed_medications(db)
        seed_history(db, medications, days=days)
        await seed_appointment(db)
        await seed_care_circle(db)

        report = await adherence_service.get_report_summary(days=days, db=db)

        print("\n" + "=" * 60)
        print("Seeding Complete!")
        print("=" * 60)
        print(f"\nDatabase Statistics:")
        print(f"  Medications: {db.query(Medication).count()}")
        print(f"  Logs: {db.query(MedicationLog).count()}")
        print(f"  Appointments: {db.query(Appointment).count()}")
        print(f"  Care circle: {db.query(CareCircleMember).count()}")
        print(f"\nAdherence over {report.days} days: {report.overall.rate_percent}%")
        for item in report.medications:
            print(f"  {item.name}: {item.summary.rate_percent}% ({item.summary.taken}/{item.summary.total})")

    except Exception as e:
        db.rollback()
        logger.error(f"Error during seeding: {e}")
        raise
    finally:
        db.close()


def main():
    parser = argparse.ArgumentParser(
        description="Seed the database with demo data"
    )
    parser.add_argument(
        "--clear",
        action="store_true",
        help="Clear existing data before seeding"
    )
    parser.add_argument(
        "--days",
        type=int,
        default=30,
        help="Days of dose history to generate"
    )

    args = parser.parse_args()

    asyncio.run(seed_all(clear_existing=args.clear, days=args.days))


if __name__ == "__main__":
    main()
