"""
Tools Package
Utility tools for the DoseKeeper system
"""

from .schedule_time import (
    ScheduleTime,
    DateWindow,
    parse_schedule,
    start_of_day,
    MINUTES_PER_DAY
)

from .reminder_protocol import (
    TriggerSpec,
    NotificationContent,
    InterruptionLevel,
    ReminderSpec,
    reminder_specs,
    medication_trigger_id,
    follow_up_trigger_id,
    medication_trigger_ids,
    appointment_trigger_id,
    appointment_prep_trigger_id,
    appointment_trigger_ids
)

from .notification_service import (
    NotificationCenter,
    LocalNotificationCenter,
    PendingTrigger,
    notification_center
)

__all__ = [
    # Schedule Time
    "ScheduleTime",
    "DateWindow",
    "parse_schedule",
    "start_of_day",
    "MINUTES_PER_DAY",

    # Reminder Protocol
    "TriggerSpec",
    "NotificationContent",
    "InterruptionLevel",
    "ReminderSpec",
    "reminder_specs",
    "medication_trigger_id",
    "follow_up_trigger_id",
    "medication_trigger_ids",
    "appointment_trigger_id",
    "appointment_prep_trigger_id",
    "appointment_trigger_ids",

    # Notification Center
    "NotificationCenter",
    "LocalNotificationCenter",
    "PendingTrigger",
    "notification_center"
]
