#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
QuitCheck v1.0 - Statistics Engine
Elapsed time, cigarettes avoided, money saved and the health recovery timeline.

Everything in this module is pure: the caller passes in the current time and
settings, nothing is read from the clock or storage here.

Version: 1.0.0
Date: 2026-10-19
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import List, Sequence, Union

from quitcheck.core.models import InvalidSettings, to_decimal
from quitcheck.utils.datetime_utils import ensure_aware

SECONDS_PER_MINUTE = 60
SECONDS_PER_HOUR = 3600
SECONDS_PER_DAY = 86400

# ===== ELAPSED TIME =====

@dataclass(frozen=True)
class ElapsedTime:
    """Whole units since the quit start.

    ``hours`` and ``minutes`` are totals, not remainders: two days after
    quitting ``hours`` is 48 and ``minutes`` is 2880.
    """
    days: int = 0
    hours: int = 0
    minutes: int = 0

    @property
    def is_zero(self) -> bool:
        return self.days == 0 and self.hours == 0 and self.minutes == 0


def calculate_elapsed(start_date: datetime, now: datetime) -> ElapsedTime:
    """Elapsed whole days/hours/minutes, clamped at zero when start is after now.

    A day is 24 elapsed hours, not a calendar date change, so a span across a
    DST switch counts by real time. A naive value is read in the zone of the
    other argument.
    """
    start_date = ensure_aware(start_date, now.tzinfo)
    now = ensure_aware(now, start_date.tzinfo)
    delta = now - start_date
    seconds = delta.days * SECONDS_PER_DAY + delta.seconds
    if seconds <= 0:
        return ElapsedTime()
    return ElapsedTime(
        days=seconds // SECONDS_PER_DAY,
        hours=seconds // SECONDS_PER_HOUR,
        minutes=seconds // SECONDS_PER_MINUTE
    )

# ===== SAVINGS =====

@dataclass(frozen=True)
class QuitStatistics:
    cigarettes_avoided: int = 0
    money_saved: Decimal = Decimal("0")


def calculate_statistics(days_since_quit: int, cigarettes_per_day: int,
                         price_per_pack: Union[Decimal, int, float, str],
                         cigarettes_per_pack: int) -> QuitStatistics:
    """Savings over the whole span at the current consumption and price.

    Settings are applied retroactively: changing the pack price re-prices
    every day since the quit start, not only the days after the edit.
    """
    if cigarettes_per_pack <= 0:
        raise InvalidSettings("cigarettes_per_pack must be at least 1")

    cigarettes_avoided = max(0, days_since_quit) * cigarettes_per_day
    price_per_cigarette = to_decimal(price_per_pack, "price_per_pack") / Decimal(cigarettes_per_pack)
    money_saved = Decimal(cigarettes_avoided) * price_per_cigarette

    return QuitStatistics(cigarettes_avoided=cigarettes_avoided, money_saved=money_saved)

# ===== HEALTH TIMELINE =====

class TimeUnit(Enum):
    MINUTE = "minute"
    HOUR = "hour"
    DAY = "day"


@dataclass(frozen=True)
class HealthMilestone:
    interval: int
    unit: TimeUnit
    title: str
    description: str
    icon: str


HEALTH_MILESTONES: Sequence[HealthMilestone] = (
    HealthMilestone(20, TimeUnit.MINUTE, "20分後", "血圧と脈拍が通常のレベルに戻ります。", "heart.fill"),
    HealthMilestone(12, TimeUnit.HOUR, "12時間後", "血液中の一酸化炭素レベルが正常値に戻ります。", "lungs.fill"),
    HealthMilestone(24, TimeUnit.HOUR, "24時間後", "心臓発作のリスクが低下し始めます。", "heart.circle.fill"),
    HealthMilestone(48, TimeUnit.HOUR, "48時間後", "味覚と嗅覚が改善し始めます。", "nose.fill"),
    HealthMilestone(72, TimeUnit.HOUR, "72時間後", "気管支が緩み、呼吸が楽になります。エネルギーレベルが上昇します。", "bolt.fill"),
    HealthMilestone(14, TimeUnit.DAY, "2週間後", "循環が改善し、歩行が楽になります。", "figure.walk"),
    HealthMilestone(30, TimeUnit.DAY, "1ヶ月後", "肺機能が30%改善します。咳や息切れが減少します。", "lungs"),
    HealthMilestone(90, TimeUnit.DAY, "3ヶ月後", "循環が改善し、肺機能が大幅に向上します。", "arrow.up.heart.fill"),
    HealthMilestone(180, TimeUnit.DAY, "6ヶ月後", "ストレスに対処しやすくなり、感染症のリスクが減少します。", "shield.fill"),
    HealthMilestone(365, TimeUnit.DAY, "1年後", "冠動脈疾患のリスクが半分に減少します。", "heart.text.square.fill"),
)


@dataclass(frozen=True)
class HealthMilestoneStatus:
    milestone: HealthMilestone
    completed: bool
    remaining: int

    @property
    def time_left(self) -> str:
        return format_time_left(self.remaining, self.milestone.unit)


def elapsed_in_unit(elapsed: ElapsedTime, unit: TimeUnit) -> int:
    if unit == TimeUnit.MINUTE:
        return elapsed.minutes
    if unit == TimeUnit.HOUR:
        return elapsed.hours
    return elapsed.days


def format_time_left(remaining: int, unit: TimeUnit) -> str:
    remaining = max(0, remaining)
    if unit == TimeUnit.MINUTE:
        return f"{remaining}分"
    if unit == TimeUnit.HOUR:
        if remaining >= 24:
            return f"{remaining // 24}日{remaining % 24}時間"
        return f"{remaining}時間"
    return f"{remaining}日"


def build_health_timeline(elapsed: ElapsedTime,
                          milestones: Sequence[HealthMilestone] = HEALTH_MILESTONES) -> List[HealthMilestoneStatus]:
    timeline = []
    for milestone in milestones:
        current = elapsed_in_unit(elapsed, milestone.unit)
        timeline.append(HealthMilestoneStatus(
            milestone=milestone,
            completed=current >= milestone.interval,
            remaining=max(0, milestone.interval - current)
        ))
    return timeline
