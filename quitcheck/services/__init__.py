# services/__init__.py

"""
QuitCheck services

Wires the record store, preferences, reminder scheduler and tracker
controller together from the configuration.
"""

import logging
from typing import Any, Dict, Optional

from apscheduler.schedulers.background import BackgroundScheduler

from quitcheck.config import TrackerConfig, get_config
from quitcheck.core.database import JsonRecordStore
from quitcheck.database.preferences import PreferencesStore
from quitcheck.services.notifications import APSchedulerReminderScheduler
from quitcheck.services.tracker import TrackerController
from quitcheck.utils.datetime_utils import SystemClock

logger = logging.getLogger(__name__)


class ServiceManager:
    """
    Builds and owns every service of the tracker

    - one background scheduler shared by reminders and the recompute timer
    - JSON record store and preferences under the configured data directory
    - orderly shutdown in reverse order
    """

    def __init__(self, config: Optional[TrackerConfig] = None):
        self.config = config
        self.scheduler: Optional[BackgroundScheduler] = None
        self.reminders: Optional[APSchedulerReminderScheduler] = None
        self.tracker: Optional[TrackerController] = None
        self.initialized = False

    def initialize_services(self, start_timer: bool = True) -> bool:
        """Create, load and start everything"""
        try:
            logger.info("🔧 Initializing QuitCheck services...")
            config = self.config = self.config or get_config()

            self.scheduler = BackgroundScheduler(timezone=config.timezone)
            self.reminders = APSchedulerReminderScheduler(
                scheduler=self.scheduler,
                permission_granted=config.scheduler.notifications_enabled
            )
            self.tracker = TrackerController(
                store=JsonRecordStore(config.storage.store_file),
                reminders=self.reminders,
                preferences=PreferencesStore(config.storage.preferences_file),
                clock=SystemClock(config.timezone),
                settings_factory=config.defaults.to_settings,
                scheduler=self.scheduler,
                recompute_interval_seconds=config.scheduler.recompute_interval_seconds
            )

            self.tracker.load()
            self.reminders.start()
            if start_timer:
                self.tracker.start()

            self.initialized = True
            logger.info("✅ Services initialized")
            return True

        except Exception as e:
            logger.error(f"❌ Service initialization failed: {e}")
            self.close_services()
            return False

    def health_check(self) -> Dict[str, Any]:
        """State of the services"""
        if not self.tracker:
            return {"status": "stopped"}

        snapshot = self.tracker.snapshot
        return {
            "status": "warning" if self.tracker.has_pending_writes else "healthy",
            "tracker_state": self.tracker.state.value,
            "timer_running": self.tracker.is_running,
            "pending_writes": self.tracker.has_pending_writes,
            "pending_reminders": self.reminders.pending_reminder_ids() if self.reminders else [],
            "days_since_quit": snapshot.days_since_quit,
            "last_recompute": snapshot.computed_at.isoformat()
        }

    def close_services(self):
        """Stop the timer and the scheduler"""
        logger.info("🛑 Closing services...")

        if self.tracker:
            self.tracker.stop()
            self.tracker = None

        if self.scheduler and self.scheduler.running:
            self.scheduler.shutdown(wait=False)
        self.scheduler = None
        self.reminders = None

        self.initialized = False
        logger.info("✅ Services closed")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close_services()


# Global service manager
_service_manager: Optional[ServiceManager] = None


def get_service_manager() -> ServiceManager:
    global _service_manager
    if _service_manager is None:
        _service_manager = ServiceManager()
    return _service_manager


def initialize_all_services(start_timer: bool = True) -> bool:
    return get_service_manager().initialize_services(start_timer=start_timer)


def close_all_services():
    global _service_manager
    if _service_manager:
        _service_manager.close_services()
        _service_manager = None


__all__ = [
    'ServiceManager',
    'TrackerController',
    'get_service_manager',
    'initialize_all_services',
    'close_all_services'
]
