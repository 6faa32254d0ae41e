"""
Medication Service
Business logic for medication management
"""

import logging
from typing import Any, Dict, List, Optional, Union
from datetime import datetime, date
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError

from database import get_db_context
from exceptions import PersistenceFailure
import models
from schemas.medication import MedicationCreate, MedicationUpdate
from services.daily_log_service import DailyLogService, daily_log_service
from services.reminder_service import ReminderService, reminder_service


logger = logging.getLogger(__name__)


class MedicationService:
    """
    Service for medication CRUD operations

    Medications are never deleted: deactivation keeps their logs for history
    and reports. Reminder triggers are kept in step with every change.
    """

    def __init__(
        self,
        reminders: Optional[ReminderService] = None,
        daily_logs: Optional[DailyLogService] = None
    ):
        self.reminders = reminders or reminder_service
        self.daily_logs = daily_logs or daily_log_service

    async def create_medication(
        self,
        data: Union[MedicationCreate, Dict[str, Any]],
        today: Optional[date] = None,
        db: Optional[Session] = None
    ) -> models.Medication:
        """
        Create a medication, its logs for today and its reminders

        Args:
            data: Medication fields
            today: Day to create the first logs for (defaults to today)
            db: Database session

        Returns:
            Created Medication object
        """
        if not isinstance(data, MedicationCreate):
            data = MedicationCreate(**data)

        def _create(session: Session) -> models.Medication:
            medication = models.Medication(
                name=data.name,
                dosage=data.dosage,
                notes=data.notes,
                schedule_times=list(data.schedule_times),
                is_critical=data.is_critical,
                is_active=True
            )

            # Medication and today's logs are committed together
            try:
                session.add(medication)
                session.flush()
                logs = self.daily_logs.add_logs_for_new_medication(session, medication, today)
                session.commit()
                session.refresh(medication)
            except SQLAlchemyError as e:
                session.rollback()
                logger.error(f"Failed to create medication {data.name!r}", exc_info=True)
                raise PersistenceFailure("creating medication", e) from e

            logger.info(
                f"Created medication {medication.id} ({medication.name}) with {len(logs)} log(s) for today"
            )

            self.reminders.schedule_reminders(medication)
            return medication

        if db:
            return _create(db)

        with get_db_context() as session:
            return _create(session)

    async def get_medication(
        self,
        medication_id: int,
        db: Optional[Session] = None
    ) -> Optional[models.Medication]:
        """Get medication by ID"""
        def _get(session: Session) -> Optional[models.Medication]:
            return session.query(models.Medication).filter(
                models.Medication.id == medication_id
            ).first()

        if db:
            return _get(db)

        with get_db_context() as session:
            return _get(session)

    async def get_active_medications(
        self,
        db: Optional[Session] = None
    ) -> List[models.Medication]:
        """Get all active medications, by name"""
        def _get(session: Session) -> List[models.Medication]:
            try:
                return session.query(models.Medication).filter(
                    models.Medication.is_active == True
                ).order_by(models.Medication.name).all()
            except SQLAlchemyError as e:
                session.rollback()
                raise PersistenceFailure("reading active medications", e) from e

        if db:
            return _get(db)

        with get_db_context() as session:
            return _get(session)

    async def update_medication(
        self,
        medication_id: int,
        updates: Union[MedicationUpdate, Dict[str, Any]],
        db: Optional[Session] = None
    ) -> Optional[models.Medication]:
        """
        Edit a medication and re-register its reminders

        The schedule as it was before the edit is captured first, and
        cancellation runs against that snapshot. Today's logs are not touched.
        """
        if not isinstance(updates, MedicationUpdate):
            updates = MedicationUpdate(**updates)
        changes = updates.model_dump(exclude_unset=True, exclude_none=True)

        def _update(session: Session) -> Optional[models.Medication]:
            medication = session.query(models.Medication).filter(
                models.Medication.id == medication_id
            ).first()

            if not medication:
                return None

            previous_times = list(medication.schedule_times or [])

            for field, value in changes.items():
                setattr(medication, field, value)
            medication.updated_at = datetime.now()

            try:
                session.commit()
                session.refresh(medication)
            except SQLAlchemyError as e:
                session.rollback()
                logger.error(f"Failed to update medication {medication_id}", exc_info=True)
                raise PersistenceFailure(f"updating medication {medication_id}", e) from e

            logger.info(f"Updated medication {medication_id}: {sorted(changes)}")

            self.reminders.reschedule_reminders(medication, previous_times)
            return medication

        if db:
            return _update(db)

        with get_db_context() as session:
            return _update(session)

    async def deactivate_medication(
        self,
        medication_id: int,
        db: Optional[Session] = None
    ) -> Optional[models.Medication]:
        """Soft-delete a medication and cancel its reminders"""
        def _deactivate(session: Session) -> Optional[models.Medication]:
            medication = session.query(models.Medication).filter(
                models.Medication.id == medication_id
            ).first()

            if not medication:
                return None

            medication.is_active = False
            medication.updated_at = datetime.now()

            try:
                session.commit()
            except SQLAlchemyError as e:
                session.rollback()
                raise PersistenceFailure(f"deactivating medication {medication_id}", e) from e

            self.reminders.cancel_reminders(medication)
            logger.info(f"Deactivated medication {medication_id}")
            return medication

        if db:
            return _deactivate(db)

        with get_db_context() as session:
            return _deactivate(session)


# Singleton instance
medication_service = MedicationService()
