"""
Daily Log Service
Materializes medication schedules into dated log instances, once per medication per day
"""

import logging
import threading
from typing import Dict, List, Optional, Set, Union
from datetime import datetime, date
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy import and_

from database import get_db_context
from exceptions import PersistenceFailure
import models
from models import LogStatus
from tools.schedule_time import DateWindow


logger = logging.getLogger(__name__)


def _as_day(day: Optional[Union[date, datetime]]) -> date:
    if day is None:
        return date.today()
    if isinstance(day, datetime):
        return day.date()
    return day


class DailyLogService:
    """
    Service that creates each day's `upcoming` medication logs.

    A medication that already has any log on a given day is skipped entirely
    for that day, so re-running is a no-op and a schedule edited mid-day only
    takes effect from the next day. Runs for the same date are serialized.
    """

    def __init__(self):
        self._day_locks: Dict[date, threading.Lock] = {}
        self._registry_lock = threading.Lock()

    def _lock_for(self, day: date) -> threading.Lock:
        """Lock guarding the read-then-write for one calendar day"""
        with self._registry_lock:
            lock = self._day_locks.get(day)
            if lock is None:
                # Drop idle locks of earlier days so the registry stays small
                for stale in [d for d, l in self._day_locks.items() if d < day and not l.locked()]:
                    del self._day_locks[stale]
                lock = threading.Lock()
                self._day_locks[day] = lock
            return lock

    @staticmethod
    def _represented_medication_ids(session: Session, window: DateWindow) -> Set[int]:
        rows = session.query(models.MedicationLog.medication_id).filter(
            and_(
                models.MedicationLog.scheduled_time >= window.start,
                models.MedicationLog.scheduled_time < window.end
            )
        ).distinct().all()
        return {row[0] for row in rows}

    @staticmethod
    def _build_logs(medication: models.Medication, day: date) -> List[models.MedicationLog]:
        try:
            schedule = medication.schedule
        except (TypeError, ValueError) as e:
            logger.error(f"Skipping medication {medication.id}: unreadable schedule ({e})")
            return []

        logs = []
        seen = set()
        for at in schedule:
            scheduled = at.on(day)
            if scheduled in seen:
                continue
            seen.add(scheduled)
            logs.append(models.MedicationLog(
                medication_id=medication.id,
                scheduled_time=scheduled,
                status=LogStatus.UPCOMING
            ))
        return logs

    def _materialize(
        self,
        session: Session,
        day: date,
        medication_id: Optional[int] = None
    ) -> List[models.MedicationLog]:
        window = DateWindow.for_day(day)

        with self._lock_for(day):
            try:
                represented = self._represented_medication_ids(session, window)

                query = session.query(models.Medication).filter(
                    models.Medication.is_active == True
                )
                if medication_id is not None:
                    query = query.filter(models.Medication.id == medication_id)
                medications = query.order_by(models.Medication.id).all()

                created: List[models.MedicationLog] = []
                for medication in medications:
                    if medication.id in represented:
                        continue
                    logs = self._build_logs(medication, day)
                    session.add_all(logs)
                    created.extend(logs)

                if not created:
                    logger.debug(f"No new medication logs needed for {day}")
                    return []

                session.commit()
            except SQLAlchemyError as e:
                session.rollback()
                logger.error(f"Failed to create medication logs for {day}", exc_info=True)
                raise PersistenceFailure(f"log creation for {day}", e) from e

        logger.info(
            f"Created {len(created)} medication log(s) for {day} "
            f"across {len({log.medication_id for log in created})} medication(s)"
        )
        return created

    async def create_day_logs(
        self,
        day: Optional[Union[date, datetime]] = None,
        db: Optional[Session] = None
    ) -> List[models.MedicationLog]:
        """
        Create the day's logs for every active medication not yet represented

        Args:
            day: Calendar day in the user's local clock (defaults to today)
            db: Database session

        Returns:
            Logs created by this run (empty when the day was already materialized)

        Raises:
            PersistenceFailure: if the store could not be read or written;
                nothing from this run is committed
        """
        target = _as_day(day)

        if db:
            return self._materialize(db, target)

        with get_db_context() as session:
            return self._materialize(session, target)

    def add_logs_for_new_medication(
        self,
        session: Session,
        medication: models.Medication,
        day: Optional[Union[date, datetime]] = None
    ) -> List[models.MedicationLog]:
        """
        Stage a just-flushed medication's logs for the day on the session.

        Nothing is committed here; the caller commits the medication and its
        logs together.
        """
        logs = self._build_logs(medication, _as_day(day))
        session.add_all(logs)
        return logs

    async def create_logs_for_medication(
        self,
        medication_id: int,
        day: Optional[Union[date, datetime]] = None,
        db: Optional[Session] = None
    ) -> List[models.MedicationLog]:
        """Same as create_day_logs, restricted to one medication"""
        target = _as_day(day)

        if db:
            return self._materialize(db, target, medication_id=medication_id)

        with get_db_context() as session:
            return self._materialize(session, target, medication_id=medication_id)


# Singleton instance
daily_log_service = DailyLogService()
