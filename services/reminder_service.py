"""
Reminder Service
Schedules and cancels medication and appointment reminder triggers
"""

import logging
from typing import List, Optional, Sequence, Union
from datetime import datetime, time

import models
from exceptions import SchedulingUnavailable
from tools.notification_service import NotificationCenter, notification_center
from tools.reminder_protocol import (
    NotificationContent,
    TriggerSpec,
    appointment_content,
    appointment_prep_content,
    appointment_prep_time,
    appointment_prep_trigger_id,
    appointment_reminder_time,
    appointment_trigger_id,
    appointment_trigger_ids,
    follow_up_content,
    medication_trigger_ids,
    primary_content,
    reminder_specs,
)
from tools.schedule_time import ScheduleTime, parse_schedule


logger = logging.getLogger(__name__)


class ReminderService:
    """
    Service that turns medications and appointments into notification triggers

    Every schedule slot gets a daily primary trigger and a daily follow-up
    trigger, identified by (medication id, slot index). Triggers are not tied
    to log instances and fire whether or not the dose was already recorded.
    A notification center that refuses requests never fails the caller.
    """

    def __init__(self, center: Optional[NotificationCenter] = None):
        self.center = center or notification_center

    def _request(
        self,
        identifier: str,
        trigger: TriggerSpec,
        content: Optional[NotificationContent] = None
    ) -> bool:
        try:
            self.center.schedule(identifier, trigger, content)
        except SchedulingUnavailable as e:
            logger.warning(f"Reminder {identifier} not scheduled: {e}")
            return False
        return True

    def _cancel(self, identifiers: List[str]) -> List[str]:
        if not identifiers:
            return []
        try:
            self.center.cancel(identifiers)
        except SchedulingUnavailable as e:
            logger.warning(f"Could not cancel {len(identifiers)} reminder(s): {e}")
            return []
        return identifiers

    # ==================== MEDICATIONS ====================

    def schedule_reminders(self, medication: models.Medication) -> bool:
        """
        Register primary and follow-up triggers for every schedule slot

        Returns:
            True if every trigger was accepted
        """
        all_accepted = True
        for spec in reminder_specs(medication.id, medication.schedule):
            # Both requests are attempted even if the first is refused
            primary_ok = self._request(
                spec.primary_id,
                TriggerSpec.daily(spec.time),
                primary_content(medication.name, medication.dosage or "", bool(medication.is_critical))
            )
            follow_up_ok = self._request(
                spec.follow_up_id,
                TriggerSpec.daily(spec.follow_up_time),
                follow_up_content(medication.name)
            )
            all_accepted = all_accepted and primary_ok and follow_up_ok

        logger.info(
            f"Scheduled reminders for medication {medication.id} "
            f"at {[str(t) for t in medication.schedule]}"
        )
        return all_accepted

    def cancel_reminders(
        self,
        medication: models.Medication,
        schedule_times: Optional[Sequence[Union[ScheduleTime, time, str]]] = None
    ) -> List[str]:
        """
        Cancel the triggers registered for a schedule

        Args:
            medication: Medication whose triggers to cancel
            schedule_times: Schedule the triggers were created from; pass the
                pre-edit snapshot when the schedule has been changed since.
                Defaults to the medication's current schedule.

        Returns:
            Identifiers passed to the notification center
        """
        snapshot = parse_schedule(schedule_times) if schedule_times is not None else medication.schedule
        cancelled = self._cancel(medication_trigger_ids(medication.id, snapshot))
        logger.debug(f"Cancelled {len(cancelled)} trigger(s) for medication {medication.id}")
        return cancelled

    def reschedule_reminders(
        self,
        medication: models.Medication,
        previous_times: Sequence[Union[ScheduleTime, time, str]]
    ) -> bool:
        """Cancel triggers of the pre-edit schedule, then schedule from the current one"""
        self.cancel_reminders(medication, previous_times)
        if not medication.is_active:
            return True
        return self.schedule_reminders(medication)

    # ==================== APPOINTMENTS ====================

    def schedule_appointment_reminders(
        self,
        appointment: models.Appointment,
        now: Optional[datetime] = None
    ) -> bool:
        """
        Register the one-shot reminder an hour before, plus the prep reminder if enabled

        Triggers whose time has already passed are not registered.
        """
        now = now or datetime.now()
        title = appointment.display_title
        all_accepted = True

        main_at = appointment_reminder_time(appointment.date_time)
        if main_at > now:
            all_accepted = self._request(
                appointment_trigger_id(appointment.id),
                TriggerSpec.once(main_at),
                appointment_content(title, appointment.location or "")
            )
        else:
            logger.debug(f"Appointment {appointment.id} reminder time {main_at} already passed")

        if appointment.prep_reminder:
            prep_at = appointment_prep_time(appointment.date_time, appointment.prep_reminder_minutes)
            if prep_at > now:
                prep_ok = self._request(
                    appointment_prep_trigger_id(appointment.id),
                    TriggerSpec.once(prep_at),
                    appointment_prep_content(title, appointment.notes or "")
                )
                all_accepted = all_accepted and prep_ok
            else:
                logger.debug(f"Appointment {appointment.id} prep time {prep_at} already passed")

        return all_accepted

    def cancel_appointment_reminders(self, appointment: models.Appointment) -> List[str]:
        """Cancel both appointment triggers; unknown identifiers are ignored"""
        return self._cancel(appointment_trigger_ids(appointment.id))


# Singleton instance
reminder_service = ReminderService()
