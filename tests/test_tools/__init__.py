"""
Test Tools Package
Tests for the tools module (schedule time, reminder protocol, notification center)
"""

__all__ = [
    "test_schedule_time",
    "test_reminder_protocol",
    "test_notification_service",
]
