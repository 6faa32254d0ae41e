"""
Configuration management for DoseKeeper
"""

from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # Application
    APP_NAME: str = "DoseKeeper"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    ENV: str = "development"

    # Database
    DATABASE_URL: str = "sqlite:///./dosekeeper.db"
    DATABASE_ECHO: bool = False

    # Reminders
    FOLLOW_UP_DELAY_MINUTES: int = 45
    APPOINTMENT_REMINDER_LEAD_MINUTES: int = 60

    # Reports
    DEFAULT_REPORT_DAYS: int = 30

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


class ReminderConfig:
    """Constants for the reminder protocol that are not environment driven"""

    # Trigger identifier prefixes
    MEDICATION_PREFIX: str = "med"
    MEDICATION_FOLLOW_UP_PREFIX: str = "med-followup"
    APPOINTMENT_PREFIX: str = "apt"
    APPOINTMENT_PREP_PREFIX: str = "apt-prep"

    # Allowed appointment prep leads, in minutes
    APPOINTMENT_PREP_LEAD_OPTIONS: list[int] = [15, 30, 60, 120, 1440]
    APPOINTMENT_PREP_DEFAULT_MINUTES: int = 60

    # Notification categories and actions
    MEDICATION_CATEGORY: str = "MEDICATION_REMINDER"
    APPOINTMENT_CATEGORY: str = "APPOINTMENT_REMINDER"
    MEDICATION_ACTIONS: list[str] = ["TAKEN", "SKIP", "REMIND_LATER"]


# Database table names
class TableNames:
    MEDICATIONS = "medications"
    MEDICATION_LOGS = "medication_logs"
    APPOINTMENTS = "appointments"
    CARE_CIRCLE_MEMBERS = "care_circle_members"


settings = get_settings()
reminder_config = ReminderConfig()
