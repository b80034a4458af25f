"""
QuitCheck core: data models, statistics, achievements and record storage
"""

from .models import (
    QuitCheckError,
    ValidationError,
    InvalidStartDate,
    InvalidSettings,
    AchievementType,
    TrackerState,
    TrackerSettings,
    QuitRecord,
    Achievement
)

from .statistics import (
    ElapsedTime,
    QuitStatistics,
    calculate_elapsed,
    calculate_statistics,
    build_health_timeline
)

from .achievements import (
    AchievementEngine,
    AchievementRegistry,
    MilestoneDefinition,
    detect_new_achievements
)

from .database import (
    StorageError,
    RecordStore,
    InMemoryRecordStore,
    JsonRecordStore
)

__all__ = [
    # Errors
    'QuitCheckError',
    'ValidationError',
    'InvalidStartDate',
    'InvalidSettings',
    'StorageError',

    # Models
    'AchievementType',
    'TrackerState',
    'TrackerSettings',
    'QuitRecord',
    'Achievement',

    # Engines
    'ElapsedTime',
    'QuitStatistics',
    'calculate_elapsed',
    'calculate_statistics',
    'build_health_timeline',
    'AchievementEngine',
    'AchievementRegistry',
    'MilestoneDefinition',
    'detect_new_achievements',

    # Storage
    'RecordStore',
    'InMemoryRecordStore',
    'JsonRecordStore'
]
