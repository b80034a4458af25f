"""
Reminder service: motivational notifications tied to the quit date
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, List, Optional, Sequence

from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.schedulers.base import BaseScheduler
from apscheduler.triggers.date import DateTrigger

from quitcheck.core.models import QuitCheckError, TrackerSettings
from quitcheck.utils.datetime_utils import add_days

logger = logging.getLogger(__name__)


class SchedulingError(QuitCheckError):
    """Reminder could not be registered; never fatal for the caller"""
    pass


@dataclass(frozen=True)
class Reminder:
    reminder_id: str
    title: str
    body: str
    trigger_at: datetime


@dataclass(frozen=True)
class ReminderDefinition:
    reminder_id: str
    days_after_start: int
    title: str
    body_template: str

    def build(self, settings: TrackerSettings) -> Reminder:
        return Reminder(
            reminder_id=self.reminder_id,
            title=self.title,
            body=self.body_template.format(cigarettes_per_day=settings.cigarettes_per_day),
            trigger_at=add_days(settings.start_date, self.days_after_start)
        )


ONE_DAY_REMINDER_ID = "quitcheck_one_day"
ONE_WEEK_REMINDER_ID = "quitcheck_one_week"

MOTIVATIONAL_REMINDERS: Sequence[ReminderDefinition] = (
    ReminderDefinition(
        ONE_DAY_REMINDER_ID, 1, "禁煙1日達成！",
        "素晴らしい！あなたは既に{cigarettes_per_day}本のタバコを吸わずに済みました。この調子で続けましょう！"
    ),
    ReminderDefinition(
        ONE_WEEK_REMINDER_ID, 7, "禁煙1週間達成！",
        "一週間続けられました！あなたの体は既に回復し始めています。"
    ),
)


def plan_motivational_reminders(settings: TrackerSettings, now: datetime,
                                definitions: Sequence[ReminderDefinition] = MOTIVATIONAL_REMINDERS) -> List[Reminder]:
    """Reminders still in the future for the given quit date"""
    reminders = [definition.build(settings) for definition in definitions]
    return [reminder for reminder in reminders if reminder.trigger_at > now]


class ReminderScheduler(ABC):
    """Notification collaborator of the tracker"""

    @abstractmethod
    def request_permission(self) -> bool:
        pass

    @abstractmethod
    def schedule(self, reminder_id: str, title: str, body: str, trigger_at: datetime) -> None:
        """Raises SchedulingError when the reminder cannot be registered"""
        pass

    @abstractmethod
    def cancel(self, reminder_id: str) -> None:
        pass

    @abstractmethod
    def cancel_all(self) -> None:
        pass


def log_reminder(reminder: Reminder) -> None:
    logger.info(f"🔔 {reminder.title} {reminder.body}")


class APSchedulerReminderScheduler(ReminderScheduler):
    """Reminders as one-shot APScheduler jobs"""

    JOB_PREFIX = "reminder:"

    def __init__(self, scheduler: Optional[BaseScheduler] = None,
                 deliver: Optional[Callable[[Reminder], None]] = None,
                 permission_granted: bool = True):
        self.scheduler = scheduler or BackgroundScheduler()
        self._owns_scheduler = scheduler is None
        self.deliver = deliver or log_reminder
        self.permission_granted = permission_granted

    def start(self) -> None:
        if not self.scheduler.running:
            self.scheduler.start()
            logger.info("📅 Reminder scheduler started")

    def request_permission(self) -> bool:
        return self.permission_granted

    def _job_id(self, reminder_id: str) -> str:
        return f"{self.JOB_PREFIX}{reminder_id}"

    def schedule(self, reminder_id: str, title: str, body: str, trigger_at: datetime) -> None:
        reminder = Reminder(reminder_id=reminder_id, title=title, body=body, trigger_at=trigger_at)
        try:
            self.scheduler.add_job(
                self.deliver,
                DateTrigger(run_date=trigger_at),
                args=[reminder],
                id=self._job_id(reminder_id),
                name=title,
                replace_existing=True
            )
        except Exception as e:
            raise SchedulingError(f"Failed to schedule reminder {reminder_id}: {e}") from e
        logger.info(f"➕ Reminder {reminder_id} scheduled for {trigger_at.isoformat()}")

    def cancel(self, reminder_id: str) -> None:
        try:
            self.scheduler.remove_job(self._job_id(reminder_id))
        except JobLookupError:
            logger.debug(f"Reminder {reminder_id} was not scheduled")

    def cancel_all(self) -> None:
        # The scheduler may also run the recompute job; only reminders are removed
        for job_id in self.pending_reminder_ids():
            self.cancel(job_id)

    def pending_reminder_ids(self) -> List[str]:
        return [
            job.id[len(self.JOB_PREFIX):]
            for job in self.scheduler.get_jobs()
            if job.id.startswith(self.JOB_PREFIX)
        ]

    def shutdown(self) -> None:
        if self._owns_scheduler and self.scheduler.running:
            self.scheduler.shutdown(wait=False)
            logger.info("📅 Reminder scheduler stopped")
