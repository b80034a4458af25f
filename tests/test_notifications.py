from datetime import datetime, timedelta

import pytest
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from conftest import NOW, TOKYO, make_settings
from quitcheck.services.notifications import (
    ONE_DAY_REMINDER_ID,
    ONE_WEEK_REMINDER_ID,
    APSchedulerReminderScheduler,
    Reminder,
    SchedulingError,
    plan_motivational_reminders,
)


class TestPlanMotivationalReminders:
    def test_fresh_quit_gets_both_reminders(self):
        reminders = plan_motivational_reminders(make_settings(days_ago=0), NOW)
        assert [r.reminder_id for r in reminders] == [ONE_DAY_REMINDER_ID, ONE_WEEK_REMINDER_ID]
        assert reminders[0].trigger_at == NOW + timedelta(days=1)
        assert reminders[1].trigger_at == NOW + timedelta(days=7)

    def test_body_mentions_daily_count(self):
        reminders = plan_motivational_reminders(make_settings(cigarettes_per_day=15), NOW)
        assert reminders[0].title == "禁煙1日達成！"
        assert "15本" in reminders[0].body

    def test_past_reminders_are_dropped(self):
        reminders = plan_motivational_reminders(make_settings(days_ago=3), NOW)
        assert [r.reminder_id for r in reminders] == [ONE_WEEK_REMINDER_ID]

    def test_trigger_exactly_now_is_dropped(self):
        assert plan_motivational_reminders(make_settings(days_ago=7), NOW) == []


@pytest.fixture
def scheduler():
    scheduler = BackgroundScheduler(timezone=TOKYO)
    scheduler.start(paused=True)
    yield scheduler
    scheduler.shutdown(wait=False)


@pytest.fixture
def delivered():
    return []


@pytest.fixture
def reminder_scheduler(scheduler, delivered):
    return APSchedulerReminderScheduler(scheduler=scheduler, deliver=delivered.append)


def in_future(days: int = 1) -> datetime:
    return datetime.now(TOKYO) + timedelta(days=days)


class TestAPSchedulerReminderScheduler:
    def test_schedule_adds_one_shot_job(self, reminder_scheduler, scheduler):
        trigger_at = in_future()
        reminder_scheduler.schedule("one_day", "title", "body", trigger_at)

        job = scheduler.get_job("reminder:one_day")
        assert job is not None
        assert job.name == "title"
        assert job.next_run_time == trigger_at
        assert reminder_scheduler.pending_reminder_ids() == ["one_day"]

    def test_schedule_same_id_replaces(self, reminder_scheduler, scheduler):
        reminder_scheduler.schedule("one_day", "old", "body", in_future(1))
        reminder_scheduler.schedule("one_day", "new", "body", in_future(2))
        assert reminder_scheduler.pending_reminder_ids() == ["one_day"]
        assert scheduler.get_job("reminder:one_day").name == "new"

    def test_job_delivers_reminder(self, reminder_scheduler, scheduler, delivered):
        trigger_at = in_future()
        reminder_scheduler.schedule("one_day", "title", "body", trigger_at)
        job = scheduler.get_job("reminder:one_day")
        job.func(*job.args)
        assert delivered == [Reminder("one_day", "title", "body", trigger_at)]

    def test_cancel(self, reminder_scheduler):
        reminder_scheduler.schedule("one_day", "title", "body", in_future())
        reminder_scheduler.cancel("one_day")
        assert reminder_scheduler.pending_reminder_ids() == []

    def test_cancel_unknown_is_a_no_op(self, reminder_scheduler):
        reminder_scheduler.cancel("missing")

    def test_cancel_all_keeps_other_jobs(self, reminder_scheduler, scheduler):
        scheduler.add_job(lambda: None, IntervalTrigger(seconds=60), id="quitcheck_recompute")
        reminder_scheduler.schedule("one_day", "title", "body", in_future(1))
        reminder_scheduler.schedule("one_week", "title", "body", in_future(7))

        reminder_scheduler.cancel_all()

        assert reminder_scheduler.pending_reminder_ids() == []
        assert scheduler.get_job("quitcheck_recompute") is not None

    def test_scheduler_failure_becomes_scheduling_error(self, reminder_scheduler):
        with pytest.raises(SchedulingError):
            reminder_scheduler.schedule("bad", "title", "body", "not a date")

    def test_permission(self, scheduler):
        assert APSchedulerReminderScheduler(scheduler=scheduler).request_permission()
        assert not APSchedulerReminderScheduler(scheduler=scheduler, permission_granted=False).request_permission()

    def test_shared_scheduler_is_not_shut_down(self, reminder_scheduler, scheduler):
        reminder_scheduler.shutdown()
        assert scheduler.running

    def test_owned_scheduler_lifecycle(self):
        reminder_scheduler = APSchedulerReminderScheduler()
        reminder_scheduler.start()
        assert reminder_scheduler.scheduler.running
        reminder_scheduler.shutdown()
        assert not reminder_scheduler.scheduler.running
