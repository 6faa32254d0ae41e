"""
Adherence Service
Log status transitions and adherence aggregation
"""

import logging
from typing import Dict, Iterable, List, Optional, Set, Union
from datetime import datetime, date
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy import and_

from config import settings
from database import get_db_context
from exceptions import InvalidTransition, PersistenceFailure
import models
from models import LogStatus
from schemas.adherence import (
    AdherenceSummary,
    AdherenceReport,
    MedicationAdherence,
    NextDose,
    TodaySnapshot,
)
from tools.schedule_time import DateWindow, start_of_day


logger = logging.getLogger(__name__)


# upcoming is the only state with outgoing transitions
ALLOWED_TRANSITIONS: Dict[LogStatus, Set[LogStatus]] = {
    LogStatus.UPCOMING: {LogStatus.TAKEN, LogStatus.SKIPPED},
    LogStatus.TAKEN: set(),
    LogStatus.SKIPPED: set(),
}


# ==================== STATE MACHINE ====================

def can_transition(current: Union[LogStatus, str, None], new_status: Union[LogStatus, str]) -> bool:
    current = LogStatus(current) if current is not None else LogStatus.UPCOMING
    return LogStatus(new_status) in ALLOWED_TRANSITIONS[current]


def transition(
    log: models.MedicationLog,
    new_status: Union[LogStatus, str],
    now: Optional[datetime] = None
) -> models.MedicationLog:
    """
    Move a log out of `upcoming` and stamp the action time.

    `taken` and `skipped` are terminal; any other move raises
    InvalidTransition and leaves the log untouched.
    """
    new_status = LogStatus(new_status)
    current = LogStatus(log.status) if log.status is not None else LogStatus.UPCOMING

    if not can_transition(current, new_status):
        raise InvalidTransition(current.value, new_status.value, log.id)

    now = now or datetime.now()
    if now < start_of_day(log.scheduled_time):
        raise ValueError(
            f"Cannot act on log {log.id} before its day starts "
            f"({log.scheduled_time.date()})"
        )

    log.status = new_status
    log.action_time = now
    return log


def mark_taken(log: models.MedicationLog, now: Optional[datetime] = None) -> models.MedicationLog:
    return transition(log, LogStatus.TAKEN, now)


def mark_skipped(log: models.MedicationLog, now: Optional[datetime] = None) -> models.MedicationLog:
    return transition(log, LogStatus.SKIPPED, now)


# ==================== AGGREGATION ====================

def aggregate(
    instances: Iterable[models.MedicationLog],
    window: DateWindow,
    medication_ids: Optional[Set[int]] = None
) -> AdherenceSummary:
    """
    Reduce log instances to counts and a taken rate.

    Only instances scheduled in [window.start, window.end) count. When
    `medication_ids` is given, instances pointing at any other medication
    are orphans and are left out.
    """
    total = taken = skipped = pending = 0

    for log in instances:
        if not window.contains(log.scheduled_time):
            continue
        if medication_ids is not None and log.medication_id not in medication_ids:
            continue

        total += 1
        status = LogStatus(log.status) if log.status is not None else LogStatus.UPCOMING
        if status == LogStatus.TAKEN:
            taken += 1
        elif status == LogStatus.SKIPPED:
            skipped += 1
        else:
            pending += 1

    return AdherenceSummary(
        window_start=window.start,
        window_end=window.end,
        total=total,
        taken=taken,
        skipped=skipped,
        pending_count=pending,
        rate=(taken / total) if total > 0 else 0.0
    )


class AdherenceService:
    """
    Service for recording dose actions and summarizing adherence
    """

    @staticmethod
    def _logs_in_window(session: Session, window: DateWindow) -> List[models.MedicationLog]:
        return session.query(models.MedicationLog).filter(
            and_(
                models.MedicationLog.scheduled_time >= window.start,
                models.MedicationLog.scheduled_time < window.end
            )
        ).order_by(models.MedicationLog.scheduled_time, models.MedicationLog.id).all()

    @staticmethod
    def _medications_by_id(session: Session) -> Dict[int, models.Medication]:
        return {m.id: m for m in session.query(models.Medication).all()}

    async def _record(
        self,
        log_id: int,
        new_status: LogStatus,
        now: Optional[datetime],
        db: Optional[Session]
    ) -> models.MedicationLog:
        def _update(session: Session) -> models.MedicationLog:
            try:
                log = session.query(models.MedicationLog).filter(
                    models.MedicationLog.id == log_id
                ).first()
            except SQLAlchemyError as e:
                session.rollback()
                raise PersistenceFailure(f"loading log {log_id}", e) from e

            if not log:
                raise ValueError(f"Medication log {log_id} not found")

            transition(log, new_status, now)

            try:
                session.commit()
            except SQLAlchemyError as e:
                session.rollback()
                logger.error(f"Failed to save status of log {log_id}", exc_info=True)
                raise PersistenceFailure(f"saving log {log_id}", e) from e

            logger.info(
                f"Log {log_id} for medication {log.medication_id} marked {new_status.value}"
            )
            return log

        if db:
            return _update(db)

        with get_db_context() as session:
            return _update(session)

    async def log_taken(
        self,
        log_id: int,
        now: Optional[datetime] = None,
        db: Optional[Session] = None
    ) -> models.MedicationLog:
        """Mark an upcoming dose as taken"""
        return await self._record(log_id, LogStatus.TAKEN, now, db)

    async def log_skipped(
        self,
        log_id: int,
        now: Optional[datetime] = None,
        db: Optional[Session] = None
    ) -> models.MedicationLog:
        """Mark an upcoming dose as skipped"""
        return await self._record(log_id, LogStatus.SKIPPED, now, db)

    async def get_day_logs(
        self,
        day: Optional[Union[date, datetime]] = None,
        db: Optional[Session] = None
    ) -> List[models.MedicationLog]:
        """Logs scheduled on one calendar day, earliest first"""
        window = DateWindow.for_day(day or date.today())

        def _get(session: Session) -> List[models.MedicationLog]:
            try:
                return self._logs_in_window(session, window)
            except SQLAlchemyError as e:
                session.rollback()
                raise PersistenceFailure("reading day logs", e) from e

        if db:
            return _get(db)

        with get_db_context() as session:
            return _get(session)

    async def get_today_summary(
        self,
        day: Optional[Union[date, datetime]] = None,
        db: Optional[Session] = None
    ) -> AdherenceSummary:
        """Single-day summary feeding the home banner"""
        window = DateWindow.for_day(day or date.today())

        def _summarize(session: Session) -> AdherenceSummary:
            try:
                logs = self._logs_in_window(session, window)
                known = set(self._medications_by_id(session))
            except SQLAlchemyError as e:
                session.rollback()
                raise PersistenceFailure("summarizing today", e) from e
            return aggregate(logs, window, known)

        if db:
            return _summarize(db)

        with get_db_context() as session:
            return _summarize(session)

    async def get_today_snapshot(
        self,
        now: Optional[datetime] = None,
        db: Optional[Session] = None
    ) -> TodaySnapshot:
        """
        Today's summary plus the next dose still waiting for action

        The next dose is the earliest upcoming log of today, even if its
        time has already passed.
        """
        now = now or datetime.now()
        window = DateWindow.for_day(now)

        def _snapshot(session: Session) -> TodaySnapshot:
            try:
                logs = self._logs_in_window(session, window)
                medications = self._medications_by_id(session)
            except SQLAlchemyError as e:
                session.rollback()
                raise PersistenceFailure("building today snapshot", e) from e

            summary = aggregate(logs, window, set(medications))

            next_dose = None
            for log in logs:
                medication = medications.get(log.medication_id)
                if medication is None or log.status != LogStatus.UPCOMING:
                    continue
                next_dose = NextDose(
                    log_id=log.id,
                    medication_id=medication.id,
                    medication_name=medication.name,
                    dosage=medication.dosage or "",
                    scheduled_time=log.scheduled_time
                )
                break

            return TodaySnapshot(summary=summary, next_dose=next_dose)

        if db:
            return _snapshot(db)

        with get_db_context() as session:
            return _snapshot(session)

    async def get_report_summary(
        self,
        days: Optional[int] = None,
        today: Optional[Union[date, datetime]] = None,
        db: Optional[Session] = None
    ) -> AdherenceReport:
        """
        Adherence over the last N calendar days, including today

        Args:
            days: Number of days to cover (defaults to DEFAULT_REPORT_DAYS)
            today: Last day of the report (defaults to today)
            db: Database session

        Returns:
            Overall summary and a per-medication breakdown
        """
        if days is None:
            days = settings.DEFAULT_REPORT_DAYS
        window = DateWindow.last_days(days, today or date.today())

        def _report(session: Session) -> AdherenceReport:
            try:
                logs = self._logs_in_window(session, window)
                medications = self._medications_by_id(session)
            except SQLAlchemyError as e:
                session.rollback()
                raise PersistenceFailure("building adherence report", e) from e

            by_medication: Dict[int, List[models.MedicationLog]] = {}
            for log in logs:
                by_medication.setdefault(log.medication_id, []).append(log)

            breakdown = []
            for medication in sorted(medications.values(), key=lambda m: (m.name.lower(), m.id)):
                med_logs = by_medication.get(medication.id, [])
                if not med_logs and not medication.is_active:
                    continue
                breakdown.append(MedicationAdherence(
                    medication_id=medication.id,
                    name=medication.name,
                    dosage=medication.dosage or "",
                    schedule_times=list(medication.schedule_times or []),
                    summary=aggregate(med_logs, window)
                ))

            return AdherenceReport(
                days=days,
                generated_at=datetime.now(),
                overall=aggregate(logs, window, set(medications)),
                medications=breakdown
            )

        if db:
            return _report(db)

        with get_db_context() as session:
            return _report(session)

    async def get_medication_history(
        self,
        medication_id: int,
        limit: Optional[int] = None,
        db: Optional[Session] = None
    ) -> List[models.MedicationLog]:
        """Logs for one medication, most recent first"""
        def _get(session: Session) -> List[models.MedicationLog]:
            query = session.query(models.MedicationLog).filter(
                models.MedicationLog.medication_id == medication_id
            ).order_by(models.MedicationLog.scheduled_time.desc())

            if limit:
                query = query.limit(limit)

            try:
                return query.all()
            except SQLAlchemyError as e:
                session.rollback()
                raise PersistenceFailure(f"reading history of medication {medication_id}", e) from e

        if db:
            return _get(db)

        with get_db_context() as session:
            return _get(session)


# Singleton instance
adherence_service = AdherenceService()
