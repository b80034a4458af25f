#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
QuitCheck v1.0 - Core Data Models
Quit record, achievements and editable settings

Version: 1.0.0
Date: 2026-10-19
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Dict, Optional, Union
import logging

from quitcheck.utils.datetime_utils import now_local, parse_datetime

logger = logging.getLogger(__name__)

# ===== DEFAULTS =====

DEFAULT_CIGARETTES_PER_DAY = 20
DEFAULT_PRICE_PER_PACK = Decimal("500")
DEFAULT_CIGARETTES_PER_PACK = 20
DEFAULT_CURRENCY = "¥"
DEFAULT_GOAL = "健康的な生活を取り戻す"

# ===== EXCEPTIONS =====

class QuitCheckError(Exception):
    """Base error of the tracker"""
    pass

class ValidationError(QuitCheckError):
    """User input was rejected"""
    pass

class InvalidStartDate(ValidationError):
    """Quit start lies in the future"""
    pass

class InvalidSettings(ValidationError):
    """Price, pack size or daily count is not positive"""
    pass

# ===== ENUMS =====

class AchievementType(Enum):
    """Milestone ladders"""
    TIME = "time"
    MONEY = "money"
    CIGARETTES = "cigarettes"

class TrackerState(Enum):
    """Lifecycle of the active record"""
    UNINITIALIZED = "uninitialized"
    ACTIVE = "active"

# ===== HELPERS =====

def to_decimal(value: Union[Decimal, int, float, str], field_name: str = "value") -> Decimal:
    """Convert user input to Decimal; floats go through str to keep 500.0 as 500"""
    if isinstance(value, bool):
        raise InvalidSettings(f"{field_name} must be a number")
    try:
        result = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        raise InvalidSettings(f"{field_name} must be a number, got {value!r}")
    if not result.is_finite():
        raise InvalidSettings(f"{field_name} must be finite")
    return result

# ===== CORE MODELS =====

@dataclass
class TrackerSettings:
    """User-editable part of a quit record"""
    start_date: datetime
    cigarettes_per_day: int = DEFAULT_CIGARETTES_PER_DAY
    price_per_pack: Decimal = DEFAULT_PRICE_PER_PACK
    cigarettes_per_pack: int = DEFAULT_CIGARETTES_PER_PACK
    currency: str = DEFAULT_CURRENCY
    goal: str = DEFAULT_GOAL

    @classmethod
    def defaults(cls, now: Optional[datetime] = None, **overrides) -> "TrackerSettings":
        """Settings shown on first launch: quitting right now"""
        values: Dict[str, Any] = {'start_date': now or now_local()}
        values.update(overrides)
        return cls(**values)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'start_date': self.start_date.isoformat(),
            'cigarettes_per_day': self.cigarettes_per_day,
            'price_per_pack': str(self.price_per_pack),
            'cigarettes_per_pack': self.cigarettes_per_pack,
            'currency': self.currency,
            'goal': self.goal
        }


@dataclass
class QuitRecord:
    """The single active quit record"""
    record_id: str
    start_date: datetime
    cigarettes_per_day: int
    price_per_pack: Decimal
    cigarettes_per_pack: int
    currency: str
    goal: str
    created_at: datetime = field(default_factory=now_local)
    updated_at: datetime = field(default_factory=now_local)

    @property
    def price_per_cigarette(self) -> Decimal:
        return self.price_per_pack / Decimal(self.cigarettes_per_pack)

    @property
    def settings(self) -> TrackerSettings:
        return TrackerSettings(
            start_date=self.start_date,
            cigarettes_per_day=self.cigarettes_per_day,
            price_per_pack=self.price_per_pack,
            cigarettes_per_pack=self.cigarettes_per_pack,
            currency=self.currency,
            goal=self.goal
        )

    def touch(self, now: datetime) -> None:
        """Advance updated_at; never moves it backwards"""
        self.updated_at = max(now, self.updated_at)

    def apply_settings(self, settings: TrackerSettings, now: datetime) -> None:
        self.start_date = settings.start_date
        self.cigarettes_per_day = settings.cigarettes_per_day
        self.price_per_pack = settings.price_per_pack
        self.cigarettes_per_pack = settings.cigarettes_per_pack
        self.currency = settings.currency
        self.goal = settings.goal
        self.touch(now)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'record_id': self.record_id,
            'start_date': self.start_date.isoformat(),
            'cigarettes_per_day': self.cigarettes_per_day,
            'price_per_pack': str(self.price_per_pack),
            'cigarettes_per_pack': self.cigarettes_per_pack,
            'currency': self.currency,
            'goal': self.goal,
            'created_at': self.created_at.isoformat(),
            'updated_at': self.updated_at.isoformat()
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "QuitRecord":
        return cls(
            record_id=data['record_id'],
            start_date=parse_datetime(data['start_date']),
            cigarettes_per_day=int(data['cigarettes_per_day']),
            price_per_pack=to_decimal(data['price_per_pack'], 'price_per_pack'),
            cigarettes_per_pack=int(data['cigarettes_per_pack']),
            currency=data.get('currency', DEFAULT_CURRENCY),
            goal=data.get('goal', DEFAULT_GOAL),
            created_at=parse_datetime(data['created_at']),
            updated_at=parse_datetime(data['updated_at'])
        )

    @classmethod
    def create(cls, settings: TrackerSettings, now: Optional[datetime] = None) -> "QuitRecord":
        """Create a new record from validated settings"""
        now = now or now_local()
        return cls(
            record_id=str(uuid.uuid4()),
            start_date=settings.start_date,
            cigarettes_per_day=settings.cigarettes_per_day,
            price_per_pack=settings.price_per_pack,
            cigarettes_per_pack=settings.cigarettes_per_pack,
            currency=settings.currency,
            goal=settings.goal,
            created_at=now,
            updated_at=now
        )


@dataclass(frozen=True)
class Achievement:
    """Milestone reached at a point in time; never changes once created"""
    achievement_id: str
    achievement_type: AchievementType
    title: str
    detail: str
    icon_name: str
    achieved_date: datetime

    def to_dict(self) -> Dict[str, Any]:
        return {
            'achievement_id': self.achievement_id,
            'achievement_type': self.achievement_type.value,
            'title': self.title,
            'detail': self.detail,
            'icon_name': self.icon_name,
            'achieved_date': self.achieved_date.isoformat()
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Achievement":
        return cls(
            achievement_id=data['achievement_id'],
            achievement_type=AchievementType(data['achievement_type']),
            title=data['title'],
            detail=data.get('detail', ''),
            icon_name=data.get('icon_name', ''),
            achieved_date=parse_datetime(data['achieved_date'])
        )

    @classmethod
    def create(cls, achievement_type: AchievementType, title: str, detail: str,
               icon_name: str, achieved_date: Optional[datetime] = None) -> "Achievement":
        return cls(
            achievement_id=str(uuid.uuid4()),
            achievement_type=achievement_type,
            title=title,
            detail=detail,
            icon_name=icon_name,
            achieved_date=achieved_date or now_local()
        )
