"""
ManuVest Configuration

Environment variables and settings for the application.
"""

import os
from dataclasses import dataclass
from typing import Optional


@dataclass
class AppConfig:
    """Application configuration settings."""

    # Security
    SECRET_KEY: Optional[str] = None
    DEBUG: bool = False

    # Logging
    LOG_LEVEL: str = 'INFO'
    JSON_LOGS: Optional[bool] = None      # None = auto-detect

    # Data
    SEED_MOCK_DATA: bool = True           # Load the demo users/plans/PRs at startup

    # Reports
    DASHBOARD_TOP_PROJECTS: int = 5
    CATEGORY_ATTRIBUTION: str = 'request'  # 'request' or 'plan'

    # Login throttling
    LOGIN_MAX_ATTEMPTS: int = 10
    LOGIN_WINDOW_SECONDS: int = 60

    @classmethod
    def from_env(cls) -> 'AppConfig':
        """Load configuration from environment variables."""
        json_logs = os.environ.get('MANUVEST_JSON_LOGS')
        return cls(
            SECRET_KEY=os.environ.get('MANUVEST_SECRET_KEY', os.environ.get('SECRET_KEY')),
            DEBUG=os.environ.get('FLASK_DEBUG', 'false').lower() == 'true',
            LOG_LEVEL=os.environ.get('LOG_LEVEL', 'INFO'),
            JSON_LOGS=None if json_logs is None else json_logs.lower() == 'true',
            SEED_MOCK_DATA=os.environ.get(
                'MANUVEST_SEED_MOCK_DATA', 'true'
            ).lower() == 'true',
            DASHBOARD_TOP_PROJECTS=int(os.environ.get(
                'MANUVEST_DASHBOARD_TOP_PROJECTS', '5'
            )),
            CATEGORY_ATTRIBUTION=os.environ.get(
                'MANUVEST_CATEGORY_ATTRIBUTION', 'request'
            ).lower(),
            LOGIN_MAX_ATTEMPTS=int(os.environ.get('MANUVEST_LOGIN_MAX_ATTEMPTS', '10')),
            LOGIN_WINDOW_SECONDS=int(os.environ.get('MANUVEST_LOGIN_WINDOW_SECONDS', '60')),
        )

    def validate(self):
        """Raise ValueError for settings the app cannot start with."""
        if self.CATEGORY_ATTRIBUTION not in ('request', 'plan'):
            raise ValueError(
                f"CATEGORY_ATTRIBUTION must be 'request' or 'plan', got {self.CATEGORY_ATTRIBUTION!r}")
        if self.DASHBOARD_TOP_PROJECTS < 1:
            raise ValueError('DASHBOARD_TOP_PROJECTS must be at least 1')
