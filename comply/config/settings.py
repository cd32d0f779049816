# comply/config/settings.py
# Runtime configuration for the compliance scheduler

import os
from typing import List

from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ('1', 'true', 'yes', 'on')


def _env_int_list(name: str, default: str) -> List[int]:
    raw = os.getenv(name, default)
    return [int(part) for part in raw.split(',') if part.strip()]


def _env_reminder_days(name: str, default: str) -> List[int]:
    """Comma separated day offsets; each must be at least 1"""
    days = _env_int_list(name, default)
    invalid = [day for day in days if day < 1]
    if invalid:
        raise ValueError(f"{name} entries must be at least 1 day, got {invalid}")
    return days


class AppConfig:
    """Application configuration read from the environment (.env supported)"""

    DATABASE = {
        'url': os.getenv('DATABASE_URL', 'sqlite:///./comply.db'),
        # Only applied to PostgreSQL URLs (e.g. "require" on Render)
        'sslmode': os.getenv('DATABASE_SSLMODE', ''),
    }

    # Canonical zone for every date-only comparison (status, reminders, stats)
    TIMEZONE = os.getenv('TIMEZONE', 'UTC')

    EMAIL = {
        'enabled': _env_bool('EMAIL_NOTIFICATIONS_ENABLED', 'true'),
        'smtp_host': os.getenv('SMTP_HOST', ''),
        'smtp_port': int(os.getenv('SMTP_PORT', 587)),
        'smtp_user': os.getenv('SMTP_USER', ''),
        'smtp_password': os.getenv('SMTP_PASSWORD', ''),
        'use_tls': _env_bool('SMTP_USE_TLS', 'true'),
        'timeout': float(os.getenv('SMTP_TIMEOUT', 10)),
        'from_address': os.getenv('EMAIL_FROM', os.getenv('SMTP_USER', 'noreply@comply.local')),
        'max_attempts': int(os.getenv('EMAIL_MAX_ATTEMPTS', 3)),
        'retry_delay': float(os.getenv('EMAIL_RETRY_DELAY', 2)),
    }

    SCHEDULER = {
        'sweep_hour': int(os.getenv('SWEEP_HOUR', 9)),
        'sweep_minute': int(os.getenv('SWEEP_MINUTE', 0)),
        'reminder_catch_up': _env_bool('REMINDER_CATCH_UP', 'true'),
        'log_retention_days': int(os.getenv('NOTIFICATION_LOG_RETENTION_DAYS', 90)),
    }

    TASKS = {
        'default_reminder_days': _env_reminder_days('DEFAULT_REMINDER_DAYS', '7,1'),
        'upcoming_window_days': int(os.getenv('UPCOMING_WINDOW_DAYS', 7)),
    }

    CLIENT = {
        'api_base_url': os.getenv('API_BASE_URL', 'http://localhost:8000'),
        'sync_seconds': int(os.getenv('CLIENT_SYNC_SECONDS', 60)),
        'request_timeout': float(os.getenv('CLIENT_REQUEST_TIMEOUT', 10)),
    }

    SERVER = {
        'host': os.getenv('HOST', '0.0.0.0'),
        'port': int(os.getenv('PORT', '8000')),
        'reload': _env_bool('RELOAD', 'false'),
        'log_level': os.getenv('LOG_LEVEL', 'INFO').upper(),
        'cors_origins': [
            origin.strip()
            for origin in os.getenv(
                'CORS_ORIGINS',
                'http://localhost:3000,http://localhost:5173,http://127.0.0.1:3000',
            ).split(',')
            if origin.strip()
        ],
    }

    @classmethod
    def smtp_configured(cls) -> bool:
        """True when enough SMTP settings are present to actually send mail"""
        return bool(cls.EMAIL['smtp_host'])
