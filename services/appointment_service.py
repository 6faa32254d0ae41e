"""
Appointment Service
Business logic for appointments and their one-shot reminders
"""

import logging
from typing import Any, Dict, List, Optional, Union
from datetime import datetime, time
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy import and_

from database import get_db_context
from exceptions import PersistenceFailure
import models
from schemas.appointment import AppointmentCreate
from services.reminder_service import ReminderService, reminder_service


logger = logging.getLogger(__name__)


class AppointmentService:
    """
    Service for appointment management
    """

    def __init__(self, reminders: Optional[ReminderService] = None):
        self.reminders = reminders or reminder_service

    async def create_appointment(
        self,
        data: Union[AppointmentCreate, Dict[str, Any]],
        now: Optional[datetime] = None,
        db: Optional[Session] = None
    ) -> models.Appointment:
        """Create an appointment and schedule its reminders"""
        if not isinstance(data, AppointmentCreate):
            data = AppointmentCreate(**data)

        def _create(session: Session) -> models.Appointment:
            appointment = models.Appointment(**data.model_dump())

            try:
                session.add(appointment)
                session.commit()
                session.refresh(appointment)
            except SQLAlchemyError as e:
                session.rollback()
                raise PersistenceFailure("creating appointment", e) from e

            logger.info(f"Created appointment {appointment.id} at {appointment.date_time}")
            self.reminders.schedule_appointment_reminders(appointment, now)
            return appointment

        if db:
            return _create(db)

        with get_db_context() as session:
            return _create(session)

    async def get_appointment(
        self,
        appointment_id: int,
        db: Optional[Session] = None
    ) -> Optional[models.Appointment]:
        """Get appointment by ID"""
        def _get(session: Session) -> Optional[models.Appointment]:
            return session.query(models.Appointment).filter(
                models.Appointment.id == appointment_id
            ).first()

        if db:
            return _get(db)

        with get_db_context() as session:
            return _get(session)

    async def get_upcoming_appointments(
        self,
        now: Optional[datetime] = None,
        db: Optional[Session] = None
    ) -> List[models.Appointment]:
        """Appointments not completed and not before today, soonest first"""
        now = now or datetime.now()
        day_start = datetime.combine(now.date(), time.min)

        def _get(session: Session) -> List[models.Appointment]:
            return session.query(models.Appointment).filter(
                and_(
                    models.Appointment.is_completed == False,
                    models.Appointment.date_time >= day_start
                )
            ).order_by(models.Appointment.date_time).all()

        if db:
            return _get(db)

        with get_db_context() as session:
            return _get(session)

    async def complete_appointment(
        self,
        appointment_id: int,
        db: Optional[Session] = None
    ) -> Optional[models.Appointment]:
        """Mark an appointment done and cancel its reminders"""
        def _complete(session: Session) -> Optional[models.Appointment]:
            appointment = session.query(models.Appointment).filter(
                models.Appointment.id == appointment_id
            ).first()

            if not appointment:
                return None

            appointment.is_completed = True
            try:
                session.commit()
            except SQLAlchemyError as e:
                session.rollback()
                raise PersistenceFailure(f"completing appointment {appointment_id}", e) from e

            self.reminders.cancel_appointment_reminders(appointment)
            logger.info(f"Completed appointment {appointment_id}")
            return appointment

        if db:
            return _complete(db)

        with get_db_context() as session:
            return _complete(session)

    async def delete_appointment(
        self,
        appointment_id: int,
        db: Optional[Session] = None
    ) -> bool:
        """Delete an appointment and cancel its reminders"""
        def _delete(session: Session) -> bool:
            appointment = session.query(models.Appointment).filter(
                models.Appointment.id == appointment_id
            ).first()

            if not appointment:
                return False

            try:
                session.delete(appointment)
                session.commit()
            except SQLAlchemyError as e:
                session.rollback()
                raise PersistenceFailure(f"deleting appointment {appointment_id}", e) from e

            self.reminders.cancel_appointment_reminders(appointment)
            logger.info(f"Deleted appointment {appointment_id}")
            return True

        if db:
            return _delete(db)

        with get_db_context() as session:
            return _delete(session)


# Singleton instance
appointment_service = AppointmentService()
