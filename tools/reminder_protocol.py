"""
Reminder Protocol Tool
Deterministic trigger identifiers and trigger specs for medication and appointment reminders
"""

import logging
from typing import Dict, List, Optional, Any, Sequence
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum

from config import settings, reminder_config
from tools.schedule_time import ScheduleTime


logger = logging.getLogger(__name__)


class InterruptionLevel(str, Enum):
    """How insistently a delivered notification interrupts the user"""
    ACTIVE = "active"
    TIME_SENSITIVE = "time_sensitive"
    CRITICAL = "critical"


@dataclass(frozen=True)
class TriggerSpec:
    """
    When a trigger fires.

    Either a daily repeating wall-clock time (hour, minute, repeats=True)
    or a one-shot absolute datetime (at, repeats=False).
    """
    repeats: bool
    hour: Optional[int] = None
    minute: Optional[int] = None
    at: Optional[datetime] = None

    def __post_init__(self):
        if self.repeats:
            if self.hour is None or self.minute is None or self.at is not None:
                raise ValueError("Repeating triggers need hour and minute only")
        elif self.at is None or self.hour is not None or self.minute is not None:
            raise ValueError("One-shot triggers need an absolute datetime only")

    @classmethod
    def daily(cls, at: ScheduleTime) -> "TriggerSpec":
        return cls(repeats=True, hour=at.hour, minute=at.minute)

    @classmethod
    def once(cls, at: datetime) -> "TriggerSpec":
        # Calendar triggers match to the minute
        return cls(repeats=False, at=at.replace(second=0, microsecond=0))

    def to_dict(self) -> Dict[str, Any]:
        if self.repeats:
            return {"hour": self.hour, "minute": self.minute, "repeats": True}
        return {"absolute_date_time": self.at.isoformat(), "repeats": False}


@dataclass(frozen=True)
class NotificationContent:
    """What a delivered notification shows"""
    title: str
    body: str
    category: Optional[str] = None
    interruption_level: InterruptionLevel = InterruptionLevel.ACTIVE
    data: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ReminderSpec:
    """Primary and follow-up trigger pair for one schedule slot of a medication"""
    medication_id: int
    index: int
    time: ScheduleTime

    @property
    def primary_id(self) -> str:
        return medication_trigger_id(self.medication_id, self.index)

    @property
    def follow_up_id(self) -> str:
        return follow_up_trigger_id(self.medication_id, self.index)

    @property
    def follow_up_time(self) -> ScheduleTime:
        return self.time.shifted(settings.FOLLOW_UP_DELAY_MINUTES)

    @property
    def identifiers(self) -> List[str]:
        return [self.primary_id, self.follow_up_id]


# ==================== IDENTIFIERS ====================

def medication_trigger_id(medication_id: int, index: int) -> str:
    return f"{reminder_config.MEDICATION_PREFIX}:{medication_id}:{index}"


def follow_up_trigger_id(medication_id: int, index: int) -> str:
    return f"{reminder_config.MEDICATION_FOLLOW_UP_PREFIX}:{medication_id}:{index}"


def appointment_trigger_id(appointment_id: int) -> str:
    return f"{reminder_config.APPOINTMENT_PREFIX}:{appointment_id}"


def appointment_prep_trigger_id(appointment_id: int) -> str:
    return f"{reminder_config.APPOINTMENT_PREP_PREFIX}:{appointment_id}"


def reminder_specs(medication_id: int, schedule: Sequence[ScheduleTime]) -> List[ReminderSpec]:
    """One spec per schedule slot, indexed by position in the schedule"""
    return [
        ReminderSpec(medication_id=medication_id, index=index, time=at)
        for index, at in enumerate(schedule)
    ]


def medication_trigger_ids(medication_id: int, schedule: Sequence[ScheduleTime]) -> List[str]:
    """All primary and follow-up identifiers for a schedule snapshot"""
    identifiers: List[str] = []
    for spec in reminder_specs(medication_id, schedule):
        identifiers.extend(spec.identifiers)
    return identifiers


def appointment_trigger_ids(appointment_id: int) -> List[str]:
    return [
        appointment_trigger_id(appointment_id),
        appointment_prep_trigger_id(appointment_id),
    ]


# ==================== CONTENT ====================

def primary_content(name: str, dosage: str = "", is_critical: bool = False) -> NotificationContent:
    body = f"It's time to take your {name}."
    if dosage:
        body += f" ({dosage})"
    return NotificationContent(
        title="Time for your medication",
        body=body,
        category=reminder_config.MEDICATION_CATEGORY,
        interruption_level=(
            InterruptionLevel.CRITICAL if is_critical else InterruptionLevel.TIME_SENSITIVE
        ),
        data={"actions": list(reminder_config.MEDICATION_ACTIONS)},
    )


def follow_up_content(name: str) -> NotificationContent:
    return NotificationContent(
        title="Friendly reminder",
        body=f"You haven't marked {name} as taken yet.",
        category=reminder_config.MEDICATION_CATEGORY,
        interruption_level=InterruptionLevel.TIME_SENSITIVE,
        data={"actions": list(reminder_config.MEDICATION_ACTIONS)},
    )


def appointment_content(title: str, location: str = "") -> NotificationContent:
    body = f"{title} today."
    if location:
        body += f" at {location}"
    return NotificationContent(
        title="Upcoming Appointment",
        body=body,
        category=reminder_config.APPOINTMENT_CATEGORY,
        interruption_level=InterruptionLevel.TIME_SENSITIVE,
    )


def appointment_prep_content(title: str, notes: str = "") -> NotificationContent:
    body = f"Don't forget: {title} is coming up."
    if notes:
        body += f" Note: {notes}"
    return NotificationContent(
        title="Appointment Reminder",
        body=body,
        category=reminder_config.APPOINTMENT_CATEGORY,
    )


def appointment_reminder_time(date_time: datetime) -> datetime:
    return date_time - timedelta(minutes=settings.APPOINTMENT_REMINDER_LEAD_MINUTES)


def appointment_prep_time(date_time: datetime, lead_minutes: int) -> datetime:
    if lead_minutes not in reminder_config.APPOINTMENT_PREP_LEAD_OPTIONS:
        raise ValueError(
            f"Prep reminder lead must be one of "
            f"{reminder_config.APPOINTMENT_PREP_LEAD_OPTIONS}, got {lead_minutes}"
        )
    return date_time - timedelta(minutes=lead_minutes)
