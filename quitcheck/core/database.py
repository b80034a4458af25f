#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
QuitCheck v1.0 - Record Store
Persistence of the quit record and the achievement list

Version: 1.0.0
Date: 2026-10-19
"""

import copy
import os
import threading
from abc import ABC, abstractmethod
from datetime import datetime
from decimal import Decimal
from pathlib import Path
from typing import List, Optional
import logging

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from quitcheck.core.models import Achievement, AchievementType, QuitCheckError, QuitRecord

logger = logging.getLogger(__name__)

# ===== EXCEPTIONS =====

class StorageError(QuitCheckError):
    """Read or write of persisted data failed"""
    pass

# ===== INTERFACE =====

class RecordStore(ABC):
    """Persistence collaborator of the tracker. Every method may raise StorageError."""

    @abstractmethod
    def get_active_record(self) -> Optional[QuitRecord]:
        pass

    @abstractmethod
    def save_record(self, record: QuitRecord) -> None:
        pass

    @abstractmethod
    def delete_all_records(self) -> None:
        pass

    @abstractmethod
    def list_achievements(self) -> List[Achievement]:
        """Newest achievement first"""
        pass

    @abstractmethod
    def append_achievement(self, achievement: Achievement) -> None:
        pass

    @abstractmethod
    def delete_all_achievements(self) -> None:
        pass


def sort_newest_first(achievements: List[Achievement]) -> List[Achievement]:
    return sorted(achievements, key=lambda a: a.achieved_date, reverse=True)

# ===== IN-MEMORY STORE =====

class InMemoryRecordStore(RecordStore):
    """Process-local store; records are copied in and out"""

    def __init__(self):
        self._record: Optional[QuitRecord] = None
        self._achievements: List[Achievement] = []
        self._lock = threading.RLock()

    def get_active_record(self) -> Optional[QuitRecord]:
        with self._lock:
            return copy.deepcopy(self._record)

    def save_record(self, record: QuitRecord) -> None:
        with self._lock:
            self._record = copy.deepcopy(record)

    def delete_all_records(self) -> None:
        with self._lock:
            self._record = None

    def list_achievements(self) -> List[Achievement]:
        with self._lock:
            return sort_newest_first(self._achievements)

    def append_achievement(self, achievement: Achievement) -> None:
        with self._lock:
            if any(a.achievement_id == achievement.achievement_id for a in self._achievements):
                return
            self._achievements.append(achievement)

    def delete_all_achievements(self) -> None:
        with self._lock:
            self._achievements.clear()

# ===== JSON DOCUMENT SCHEMA =====

class StoredRecord(BaseModel):
    record_id: str
    start_date: datetime
    cigarettes_per_day: int = Field(ge=1)
    price_per_pack: Decimal = Field(gt=0)
    cigarettes_per_pack: int = Field(ge=1)
    currency: str
    goal: str
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_model(cls, record: QuitRecord) -> "StoredRecord":
        return cls(
            record_id=record.record_id,
            start_date=record.start_date,
            cigarettes_per_day=record.cigarettes_per_day,
            price_per_pack=record.price_per_pack,
            cigarettes_per_pack=record.cigarettes_per_pack,
            currency=record.currency,
            goal=record.goal,
            created_at=record.created_at,
            updated_at=record.updated_at
        )

    def to_model(self) -> QuitRecord:
        return QuitRecord(
            record_id=self.record_id,
            start_date=self.start_date,
            cigarettes_per_day=self.cigarettes_per_day,
            price_per_pack=self.price_per_pack,
            cigarettes_per_pack=self.cigarettes_per_pack,
            currency=self.currency,
            goal=self.goal,
            created_at=self.created_at,
            updated_at=self.updated_at
        )


class StoredAchievement(BaseModel):
    achievement_id: str
    achievement_type: AchievementType
    title: str
    detail: str = ""
    icon_name: str = ""
    achieved_date: datetime

    @classmethod
    def from_model(cls, achievement: Achievement) -> "StoredAchievement":
        return cls(
            achievement_id=achievement.achievement_id,
            achievement_type=achievement.achievement_type,
            title=achievement.title,
            detail=achievement.detail,
            icon_name=achievement.icon_name,
            achieved_date=achievement.achieved_date
        )

    def to_model(self) -> Achievement:
        return Achievement(
            achievement_id=self.achievement_id,
            achievement_type=self.achievement_type,
            title=self.title,
            detail=self.detail,
            icon_name=self.icon_name,
            achieved_date=self.achieved_date
        )


CURRENT_VERSION = "1.0.0"


class StoreDocument(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    version: str = Field(default=CURRENT_VERSION, alias="__database_version__")
    record: Optional[StoredRecord] = None
    achievements: List[StoredAchievement] = Field(default_factory=list)

# ===== JSON FILE STORE =====

class JsonRecordStore(RecordStore):
    """Single JSON document on disk, rewritten atomically on every change"""

    def __init__(self, data_file: Path):
        self.data_file = Path(data_file)
        self.file_lock = threading.RLock()

    def _load_document(self) -> StoreDocument:
        if not self.data_file.exists():
            return StoreDocument()

        try:
            raw = self.data_file.read_text(encoding="utf-8")
        except OSError as e:
            logger.error(f"Failed to read {self.data_file}: {e}")
            raise StorageError(f"Failed to read {self.data_file}: {e}") from e

        try:
            document = StoreDocument.model_validate_json(raw)
        except PydanticValidationError as e:
            logger.error(f"Database file is corrupted: {self.data_file}")
            raise StorageError(f"Database file {self.data_file} is corrupted: {e}") from e

        if document.version != CURRENT_VERSION:
            logger.warning(f"Database version {document.version} differs from {CURRENT_VERSION}")
        return document

    def _save_document(self, document: StoreDocument) -> None:
        # Atomic save through a temporary file
        temp_file = self.data_file.with_suffix('.tmp')
        payload = document.model_dump_json(by_alias=True, indent=2)

        try:
            self.data_file.parent.mkdir(parents=True, exist_ok=True)
            temp_file.write_text(payload, encoding="utf-8")
            StoreDocument.model_validate_json(temp_file.read_text(encoding="utf-8"))
            os.replace(temp_file, self.data_file)
        except (OSError, PydanticValidationError) as e:
            if temp_file.exists():
                temp_file.unlink()
            logger.error(f"Failed to save {self.data_file}: {e}")
            raise StorageError(f"Failed to save {self.data_file}: {e}") from e

    def get_active_record(self) -> Optional[QuitRecord]:
        with self.file_lock:
            document = self._load_document()
            return document.record.to_model() if document.record else None

    def save_record(self, record: QuitRecord) -> None:
        with self.file_lock:
            document = self._load_document()
            document.record = StoredRecord.from_model(record)
            self._save_document(document)
            logger.debug(f"Saved record {record.record_id}")

    def delete_all_records(self) -> None:
        with self.file_lock:
            document = self._load_document()
            document.record = None
            self._save_document(document)

    def list_achievements(self) -> List[Achievement]:
        with self.file_lock:
            document = self._load_document()
            return sort_newest_first([stored.to_model() for stored in document.achievements])

    def append_achievement(self, achievement: Achievement) -> None:
        with self.file_lock:
            document = self._load_document()
            if any(stored.achievement_id == achievement.achievement_id for stored in document.achievements):
                return
            document.achievements.append(StoredAchievement.from_model(achievement))
            self._save_document(document)
            logger.debug(f"Saved achievement {achievement.title}")

    def delete_all_achievements(self) -> None:
        with self.file_lock:
            document = self._load_document()
            document.achievements = []
            self._save_document(document)
