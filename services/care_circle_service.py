"""
Care Circle Service
Family members and caregivers who are alerted about critical medications
"""

import logging
from typing import Any, Dict, List, Optional, Union
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError

from database import get_db_context
from exceptions import PersistenceFailure
import models
from schemas.appointment import CareCircleMemberCreate


logger = logging.getLogger(__name__)


class CareCircleService:
    """Service for the user's care circle"""

    async def add_member(
        self,
        data: Union[CareCircleMemberCreate, Dict[str, Any]],
        db: Optional[Session] = None
    ) -> models.CareCircleMember:
        if not isinstance(data, CareCircleMemberCreate):
            data = CareCircleMemberCreate(**data)

        def _add(session: Session) -> models.CareCircleMember:
            member = models.CareCircleMember(**data.model_dump())
            try:
                session.add(member)
                session.commit()
                session.refresh(member)
            except SQLAlchemyError as e:
                session.rollback()
                raise PersistenceFailure("adding care circle member", e) from e

            logger.info(f"Added care circle member {member.id} ({member.relationship.value})")
            return member

        if db:
            return _add(db)

        with get_db_context() as session:
            return _add(session)

    async def remove_member(self, member_id: int, db: Optional[Session] = None) -> bool:
        def _remove(session: Session) -> bool:
            member = session.query(models.CareCircleMember).filter(
                models.CareCircleMember.id == member_id
            ).first()
            if not member:
                return False
            try:
                session.delete(member)
                session.commit()
            except SQLAlchemyError as e:
                session.rollback()
                raise PersistenceFailure(f"removing care circle member {member_id}", e) from e
            return True

        if db:
            return _remove(db)

        with get_db_context() as session:
            return _remove(session)

    async def get_members(self, db: Optional[Session] = None) -> List[models.CareCircleMember]:
        """Emergency contacts first, then by name"""
        def _get(session: Session) -> List[models.CareCircleMember]:
            return session.query(models.CareCircleMember).order_by(
                models.CareCircleMember.is_emergency_contact.desc(),
                models.CareCircleMember.name
            ).all()

        if db:
            return _get(db)

        with get_db_context() as session:
            return _get(session)

    async def get_missed_dose_contacts(
        self,
        db: Optional[Session] = None
    ) -> List[models.CareCircleMember]:
        members = await self.get_members(db)
        return [m for m in members if m.notify_on_missed_dose]

    async def get_alert_recipients(
        self,
        medication: models.Medication,
        db: Optional[Session] = None
    ) -> List[models.CareCircleMember]:
        """Who to alert about this medication; only critical medications alert anyone"""
        if not medication.is_critical:
            return []
        return await self.get_missed_dose_contacts(db)


# Singleton instance
care_circle_service = CareCircleService()
