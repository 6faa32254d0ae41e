"""
Notification Service Tool
Registers and cancels local reminder triggers by identifier
"""

import logging
import threading
from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Iterable
from dataclasses import dataclass, field
from datetime import datetime

from exceptions import SchedulingUnavailable
from tools.reminder_protocol import TriggerSpec, NotificationContent


logger = logging.getLogger(__name__)


@dataclass
class PendingTrigger:
    """A trigger the notification center will fire"""
    identifier: str
    trigger: TriggerSpec
    content: Optional[NotificationContent] = None
    registered_at: datetime = field(default_factory=datetime.now)


class NotificationCenter(ABC):
    """
    Delivery collaborator for reminders.

    Implementations must treat `schedule` on an existing identifier as a
    replacement, and `cancel` of unknown identifiers as a no-op.
    """

    @abstractmethod
    def schedule(
        self,
        identifier: str,
        trigger: TriggerSpec,
        content: Optional[NotificationContent] = None
    ) -> None:
        """Register (or replace) a trigger; raises SchedulingUnavailable if refused"""

    @abstractmethod
    def cancel(self, identifiers: Iterable[str]) -> None:
        """Remove pending triggers by identifier"""


class LocalNotificationCenter(NotificationCenter):
    """
    In-process notification center.

    Keeps pending triggers keyed by identifier, the way a device's local
    notification scheduler does, and refuses requests while authorization
    is denied.
    """

    def __init__(self, authorized: bool = True):
        self._authorized = authorized
        self._pending: Dict[str, PendingTrigger] = {}
        self._lock = threading.Lock()

    @property
    def authorized(self) -> bool:
        return self._authorized

    def set_authorization(self, granted: bool) -> None:
        """Record the user's answer to the notification permission prompt"""
        self._authorized = granted
        logger.info(f"Notification authorization {'granted' if granted else 'denied'}")

    def schedule(
        self,
        identifier: str,
        trigger: TriggerSpec,
        content: Optional[NotificationContent] = None
    ) -> None:
        if not self._authorized:
            raise SchedulingUnavailable(
                f"Notifications are not authorized; cannot schedule {identifier}"
            )

        with self._lock:
            replaced = identifier in self._pending
            self._pending[identifier] = PendingTrigger(
                identifier=identifier,
                trigger=trigger,
                content=content
            )

        logger.debug(
            f"{'Replaced' if replaced else 'Scheduled'} trigger {identifier}: {trigger.to_dict()}"
        )

    def cancel(self, identifiers: Iterable[str]) -> None:
        removed = 0
        with self._lock:
            for identifier in identifiers:
                if self._pending.pop(identifier, None) is not None:
                    removed += 1
        logger.debug(f"Cancelled {removed} pending trigger(s)")

    def pending(self) -> Dict[str, PendingTrigger]:
        """Snapshot of pending triggers keyed by identifier"""
        with self._lock:
            return dict(self._pending)

    def pending_identifiers(self) -> List[str]:
        with self._lock:
            return sorted(self._pending)

    def get(self, identifier: str) -> Optional[PendingTrigger]:
        with self._lock:
            return self._pending.get(identifier)

    def clear(self) -> None:
        with self._lock:
            self._pending.clear()


# Singleton instance
notification_center = LocalNotificationCenter()
