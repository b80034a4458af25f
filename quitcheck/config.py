#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
QuitCheck v1.0 - Configuration
Centralized configuration read from the environment, with validation

Version: 1.0.0
Date: 2026-10-19
"""

import os
import sys
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, InvalidOperation
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

import pytz

from quitcheck.core.models import (
    DEFAULT_CIGARETTES_PER_DAY,
    DEFAULT_CIGARETTES_PER_PACK,
    DEFAULT_CURRENCY,
    DEFAULT_GOAL,
    DEFAULT_PRICE_PER_PACK,
    TrackerSettings,
)
from quitcheck.utils.datetime_utils import DEFAULT_TIMEZONE, get_timezone


class Environment(Enum):
    """Runtime environments"""
    DEVELOPMENT = "development"
    TESTING = "testing"
    PRODUCTION = "production"


class LogLevel(Enum):
    """Logging levels"""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


@dataclass
class StorageConfig:
    """Where the record store and preferences live"""
    data_dir: Path
    store_file: Path
    preferences_file: Path


@dataclass
class SchedulerConfig:
    """Recompute timer and reminders"""
    recompute_interval_seconds: int = 60
    notifications_enabled: bool = True


@dataclass
class DefaultsConfig:
    """Settings offered on first launch"""
    cigarettes_per_day: int = DEFAULT_CIGARETTES_PER_DAY
    price_per_pack: Decimal = DEFAULT_PRICE_PER_PACK
    cigarettes_per_pack: int = DEFAULT_CIGARETTES_PER_PACK
    currency: str = DEFAULT_CURRENCY
    goal: str = DEFAULT_GOAL

    def to_settings(self, now: datetime) -> TrackerSettings:
        return TrackerSettings.defaults(
            now,
            cigarettes_per_day=self.cigarettes_per_day,
            price_per_pack=self.price_per_pack,
            cigarettes_per_pack=self.cigarettes_per_pack,
            currency=self.currency,
            goal=self.goal
        )


def _env_bool(key: str, default: str) -> bool:
    return os.getenv(key, default).lower() == 'true'


class TrackerConfig:
    """Main configuration object"""

    def __init__(self):
        self._errors: List[str] = []
        self.environment = self._parse_enum(Environment, 'QUITCHECK_ENV', 'development')
        self._load_config()
        self._validate_config()
        self._ensure_directories()

    def _parse_enum(self, enum_class, key: str, default: str):
        raw = os.getenv(key, default)
        try:
            return enum_class(raw)
        except ValueError:
            self._errors.append(f"{key} has unsupported value '{raw}'")
            return enum_class(default)

    def _parse_int(self, key: str, default: int) -> int:
        raw = os.getenv(key)
        if raw is None:
            return default
        try:
            return int(raw)
        except ValueError:
            self._errors.append(f"{key} must be an integer, got '{raw}'")
            return default

    def _parse_decimal(self, key: str, default: Decimal) -> Decimal:
        raw = os.getenv(key)
        if raw is None:
            return default
        try:
            return Decimal(raw)
        except InvalidOperation:
            self._errors.append(f"{key} must be a number, got '{raw}'")
            return default

    def _load_config(self):
        """Read configuration from environment variables"""

        # Directories
        self.data_dir = Path(os.getenv('DATA_DIR', 'data'))
        self.log_dir = Path(os.getenv('LOG_DIR', 'logs'))

        self.storage = StorageConfig(
            data_dir=self.data_dir,
            store_file=self.data_dir / os.getenv('STORE_FILE', 'quitcheck.json'),
            preferences_file=self.data_dir / os.getenv('PREFERENCES_FILE', 'preferences.json')
        )

        self.scheduler = SchedulerConfig(
            recompute_interval_seconds=self._parse_int('RECOMPUTE_INTERVAL_SECONDS', 60),
            notifications_enabled=_env_bool('NOTIFICATIONS_ENABLED', 'true')
        )

        self.defaults = DefaultsConfig(
            cigarettes_per_day=self._parse_int('DEFAULT_CIGARETTES_PER_DAY', DEFAULT_CIGARETTES_PER_DAY),
            price_per_pack=self._parse_decimal('DEFAULT_PRICE_PER_PACK', DEFAULT_PRICE_PER_PACK),
            cigarettes_per_pack=self._parse_int('DEFAULT_CIGARETTES_PER_PACK', DEFAULT_CIGARETTES_PER_PACK),
            currency=os.getenv('DEFAULT_CURRENCY', DEFAULT_CURRENCY),
            goal=os.getenv('DEFAULT_GOAL', DEFAULT_GOAL)
        )

        # Time zone
        self.timezone_name = os.getenv('TIMEZONE', DEFAULT_TIMEZONE)

        # Logging
        self.log_level = self._parse_enum(LogLevel, 'LOG_LEVEL', 'INFO')
        self.log_to_file = _env_bool('LOG_TO_FILE', 'true')
        self.log_format = os.getenv(
            'LOG_FORMAT',
            '%(asctime)s [%(levelname)s] %(name)s: %(message)s'
        )

    def _validate_config(self):
        """Collect every problem and fail once"""
        errors = list(self._errors)

        if self.scheduler.recompute_interval_seconds < 1:
            errors.append("RECOMPUTE_INTERVAL_SECONDS must be at least 1")

        if self.defaults.cigarettes_per_day < 1:
            errors.append("DEFAULT_CIGARETTES_PER_DAY must be at least 1")

        if self.defaults.cigarettes_per_pack < 1:
            errors.append("DEFAULT_CIGARETTES_PER_PACK must be at least 1")

        if not self.defaults.price_per_pack.is_finite() or self.defaults.price_per_pack <= 0:
            errors.append("DEFAULT_PRICE_PER_PACK must be positive")

        if not self.defaults.currency.strip():
            errors.append("DEFAULT_CURRENCY must not be empty")

        try:
            get_timezone(self.timezone_name)
        except pytz.UnknownTimeZoneError:
            errors.append(f"TIMEZONE '{self.timezone_name}' is unknown")

        if errors:
            raise ValueError("Configuration errors:\n" + "\n".join(f"• {error}" for error in errors))

    def _ensure_directories(self):
        """Create working directories"""
        directories = [self.data_dir]
        if self.log_to_file:
            directories.append(self.log_dir)

        for directory in directories:
            directory.mkdir(parents=True, exist_ok=True)

    @property
    def timezone(self):
        return get_timezone(self.timezone_name)

    @property
    def log_file(self) -> Path:
        return self.log_dir / f"quitcheck_{self.environment.value}.log"

    def get_logging_config(self) -> Dict[str, Any]:
        """dictConfig for the logging module"""
        handlers = ['console']
        if self.log_to_file:
            handlers.append('file')

        logging_config: Dict[str, Any] = {
            'version': 1,
            'disable_existing_loggers': False,
            'formatters': {
                'default': {
                    'format': self.log_format,
                    'datefmt': '%Y-%m-%d %H:%M:%S'
                }
            },
            'handlers': {
                'console': {
                    'class': 'logging.StreamHandler',
                    'level': self.log_level.value,
                    'formatter': 'default',
                    'stream': sys.stdout
                }
            },
            'loggers': {
                '': {
                    'level': self.log_level.value,
                    'handlers': handlers,
                    'propagate': False
                },
                'apscheduler': {
                    'level': 'WARNING',
                    'handlers': handlers,
                    'propagate': False
                }
            }
        }

        if self.log_to_file:
            logging_config['handlers']['file'] = {
                'class': 'logging.handlers.RotatingFileHandler',
                'level': self.log_level.value,
                'formatter': 'default',
                'filename': str(self.log_file),
                'maxBytes': 10485760,  # 10MB
                'backupCount': 5,
                'encoding': 'utf-8'
            }

        return logging_config

    def is_development(self) -> bool:
        return self.environment == Environment.DEVELOPMENT

    def is_production(self) -> bool:
        return self.environment == Environment.PRODUCTION

    def to_dict(self) -> Dict[str, Any]:
        return {
            'environment': self.environment.value,
            'store_file': str(self.storage.store_file),
            'preferences_file': str(self.storage.preferences_file),
            'timezone': self.timezone_name,
            'recompute_interval_seconds': self.scheduler.recompute_interval_seconds,
            'notifications_enabled': self.scheduler.notifications_enabled,
            'log_level': self.log_level.value,
            'log_to_file': self.log_to_file
        }


# Global configuration, built on first use
_config: Optional[TrackerConfig] = None


def get_config() -> TrackerConfig:
    global _config
    if _config is None:
        _config = TrackerConfig()
    return _config


def reload_config() -> TrackerConfig:
    global _config
    _config = TrackerConfig()
    return _config


__all__ = [
    'get_config',
    'reload_config',
    'TrackerConfig',
    'Environment',
    'LogLevel',
    'StorageConfig',
    'SchedulerConfig',
    'DefaultsConfig'
]
