#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
QuitCheck v1.0 - Achievement System
Milestone ladders for time, money and cigarettes avoided

Version: 1.0.0
Date: 2026-10-19
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Sequence, Set, Tuple, Union
import logging

from quitcheck.core.models import Achievement, AchievementType
from quitcheck.core.statistics import QuitStatistics
from quitcheck.utils.datetime_utils import now_local

logger = logging.getLogger(__name__)

Number = Union[int, Decimal]

# ===== DATA CLASSES =====

@dataclass(frozen=True)
class MilestoneDefinition:
    """One rung of a ladder. The title doubles as the achievement identity."""
    category: AchievementType
    threshold: int
    title: str
    detail: str
    icon: str


@dataclass(frozen=True)
class MilestoneMetrics:
    """Live values the ladders are measured against"""
    days_since_quit: int = 0
    cigarettes_avoided: int = 0
    money_saved: Decimal = Decimal("0")

    @classmethod
    def from_statistics(cls, statistics: QuitStatistics, days_since_quit: int) -> "MilestoneMetrics":
        return cls(
            days_since_quit=days_since_quit,
            cigarettes_avoided=statistics.cigarettes_avoided,
            money_saved=statistics.money_saved
        )

    def value_for(self, category: AchievementType) -> Number:
        if category == AchievementType.TIME:
            return self.days_since_quit
        if category == AchievementType.MONEY:
            return self.money_saved
        return self.cigarettes_avoided


@dataclass(frozen=True)
class MilestoneProgress:
    """Progress toward the next unearned milestone of a ladder"""
    definition: MilestoneDefinition
    current: Number
    target: int

    @property
    def progress_percentage(self) -> float:
        if self.target == 0:
            return 100.0
        return min(100.0, float(self.current) / self.target * 100)

    @property
    def is_complete(self) -> bool:
        return self.current >= self.target

# ===== ACHIEVEMENT CHECKERS =====

class AchievementChecker(ABC):
    """Base class for milestone checks"""

    @abstractmethod
    def check(self, metrics: MilestoneMetrics) -> bool:
        pass

    @abstractmethod
    def get_progress(self, metrics: MilestoneMetrics) -> Tuple[Number, int]:
        """(current, target), current capped at target"""
        pass


class ThresholdChecker(AchievementChecker):
    """Metric of the milestone's category meets or exceeds its threshold"""

    def __init__(self, definition: MilestoneDefinition):
        self.definition = definition

    def check(self, metrics: MilestoneMetrics) -> bool:
        return metrics.value_for(self.definition.category) >= self.definition.threshold

    def get_progress(self, metrics: MilestoneMetrics) -> Tuple[Number, int]:
        current = metrics.value_for(self.definition.category)
        return min(current, self.definition.threshold), self.definition.threshold

# ===== DEFAULT LADDERS =====

DEFAULT_MILESTONES: Sequence[MilestoneDefinition] = (
    # Time
    MilestoneDefinition(AchievementType.TIME, 1, "1日達成", "禁煙を1日続けました", "clock.badge.checkmark"),
    MilestoneDefinition(AchievementType.TIME, 3, "3日達成", "禁煙を3日続けました", "clock.badge.checkmark.fill"),
    MilestoneDefinition(AchievementType.TIME, 7, "1週間達成", "禁煙を1週間続けました", "calendar.badge.checkmark"),
    MilestoneDefinition(AchievementType.TIME, 30, "1ヶ月達成", "禁煙を1ヶ月続けました", "calendar.badge.clock"),
    # Money
    MilestoneDefinition(AchievementType.MONEY, 1000, "1,000円節約", "タバコを我慢して1,000円節約しました", "yensign.circle"),
    MilestoneDefinition(AchievementType.MONEY, 5000, "5,000円節約", "タバコを我慢して5,000円節約しました", "yensign.circle.fill"),
    MilestoneDefinition(AchievementType.MONEY, 10000, "1万円節約", "タバコを我慢して1万円節約しました", "banknote"),
    MilestoneDefinition(AchievementType.MONEY, 50000, "5万円節約", "タバコを我慢して5万円節約しました", "banknote.fill"),
    MilestoneDefinition(AchievementType.MONEY, 100000, "10万円節約", "タバコを我慢して10万円節約しました", "creditcard"),
    # Cigarettes avoided
    MilestoneDefinition(AchievementType.CIGARETTES, 100, "100本達成", "100本のタバコを吸わずに済みました", "lungs"),
    MilestoneDefinition(AchievementType.CIGARETTES, 500, "500本達成", "500本のタバコを吸わずに済みました", "lungs.fill"),
)

LADDER_ORDER = (AchievementType.TIME, AchievementType.MONEY, AchievementType.CIGARETTES)

# ===== ACHIEVEMENT REGISTRY =====

class AchievementRegistry:
    """All milestone definitions, grouped into ladders"""

    def __init__(self, definitions: Optional[Iterable[MilestoneDefinition]] = None):
        self.milestones: Dict[str, MilestoneDefinition] = {}
        self.checkers: Dict[str, AchievementChecker] = {}
        for definition in (DEFAULT_MILESTONES if definitions is None else definitions):
            self.register_milestone(definition)

    def register_milestone(self, definition: MilestoneDefinition,
                           checker: Optional[AchievementChecker] = None) -> None:
        if definition.title in self.milestones:
            raise ValueError(f"Duplicate milestone title: {definition.title}")
        self.milestones[definition.title] = definition
        self.checkers[definition.title] = checker or ThresholdChecker(definition)
        logger.debug(f"Registered milestone: {definition.title}")

    def get_checker(self, title: str) -> Optional[AchievementChecker]:
        return self.checkers.get(title)

    def get_ladder(self, category: AchievementType) -> List[MilestoneDefinition]:
        """Milestones of one category, lowest threshold first"""
        ladder = [m for m in self.milestones.values() if m.category == category]
        return sorted(ladder, key=lambda m: m.threshold)

    def get_all_milestones(self) -> List[MilestoneDefinition]:
        return [m for category in LADDER_ORDER for m in self.get_ladder(category)]

# ===== ACHIEVEMENT ENGINE =====

class AchievementEngine:
    """Diffs live metrics against already-earned achievements"""

    def __init__(self, registry: Optional[AchievementRegistry] = None):
        self.registry = registry or AchievementRegistry()

    def detect_new(self, statistics: QuitStatistics, days_since_quit: int,
                   existing: Iterable[Achievement],
                   now: Optional[datetime] = None) -> List[Achievement]:
        """Achievements to create for milestones crossed but not yet recorded.

        Ladders are walked time, money, cigarettes, each from the lowest
        threshold up. Earned titles are never re-emitted and nothing is ever
        revoked when a metric goes down.
        """
        metrics = MilestoneMetrics.from_statistics(statistics, days_since_quit)
        earned: Set[str] = {achievement.title for achievement in existing}
        achieved_date = now or now_local()
        new_achievements = []

        for definition in self.registry.get_all_milestones():
            if definition.title in earned:
                continue
            if not self.registry.get_checker(definition.title).check(metrics):
                continue

            achievement = Achievement.create(
                achievement_type=definition.category,
                title=definition.title,
                detail=definition.detail,
                icon_name=definition.icon,
                achieved_date=achieved_date
            )
            new_achievements.append(achievement)
            earned.add(definition.title)
            logger.info(f"🏆 Milestone reached: {definition.title}")

        return new_achievements

    def next_milestones(self, statistics: QuitStatistics, days_since_quit: int,
                        existing: Iterable[Achievement]) -> Dict[AchievementType, Optional[MilestoneProgress]]:
        """Lowest unearned milestone of every ladder, None once a ladder is finished"""
        metrics = MilestoneMetrics.from_statistics(statistics, days_since_quit)
        earned = {achievement.title for achievement in existing}
        result: Dict[AchievementType, Optional[MilestoneProgress]] = {}

        for category in LADDER_ORDER:
            result[category] = None
            for definition in self.registry.get_ladder(category):
                if definition.title in earned:
                    continue
                current, target = self.registry.get_checker(definition.title).get_progress(metrics)
                result[category] = MilestoneProgress(definition=definition, current=current, target=target)
                break

        return result


def detect_new_achievements(statistics: QuitStatistics, days_since_quit: int,
                            existing: Iterable[Achievement],
                            now: Optional[datetime] = None,
                            engine: Optional[AchievementEngine] = None) -> List[Achievement]:
    """Shortcut over a default engine"""
    return (engine or AchievementEngine()).detect_new(statistics, days_since_quit, existing, now)
