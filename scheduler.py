import logging
from typing import Callable, Optional

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger

from config import get_settings
from database import session_scope
from models import AppSettings
from services import SettingsService

logger = logging.getLogger(__name__)

REMINDER_JOB_PREFIX = "reminder_"
REMINDER_TITLE = "Time to log your expenses"
REMINDER_BODY = "Open {app_name} and record today's transactions."

Notifier = Callable[[str, str], None]


def log_notifier(title: str, body: str) -> None:
    logger.info(f"reminder_sent: title={title!r} body={body!r}")


class ReminderScheduler:
    """Fires a daily reminder at each configured HH:MM while notifications are on."""

    def __init__(
        self,
        notifier: Optional[Notifier] = None,
        scheduler: Optional[BackgroundScheduler] = None,
    ) -> None:
        self.notifier = notifier or log_notifier
        self.scheduler = scheduler or BackgroundScheduler(
            timezone=get_settings().timezone
        )
        self.app_name = "My Finance Hub"

    def job_ids(self) -> list[str]:
        return sorted(
            job.id
            for job in self.scheduler.get_jobs()
            if job.id.startswith(REMINDER_JOB_PREFIX)
        )

    def _fire(self, slot: str) -> None:
        try:
            self.notifier(REMINDER_TITLE, REMINDER_BODY.format(app_name=self.app_name))
        except Exception:
            # A failed delivery must not stop later reminders.
            logger.exception(f"reminder_failed: slot={slot}")

    def sync(self, settings: AppSettings) -> list[str]:
        """Replace the reminder jobs with one per time in ``settings``."""
        for job_id in self.job_ids():
            self.scheduler.remove_job(job_id)
        self.app_name = settings.app_name or self.app_name
        if not settings.notifications:
            logger.info("reminders_synced: enabled=False jobs=0")
            return []

        for slot in settings.reminder_times:
            hour, minute = (int(part) for part in slot.split(":"))
            self.scheduler.add_job(
                self._fire,
                CronTrigger(hour=hour, minute=minute),
                args=[slot],
                id=f"{REMINDER_JOB_PREFIX}{slot}",
                replace_existing=True,
                misfire_grace_time=60,
            )
        ids = self.job_ids()
        logger.info(f"reminders_synced: enabled=True jobs={len(ids)}")
        return ids

    def sync_from_db(self) -> list[str]:
        with session_scope() as session:
            return self.sync(SettingsService(session).get())

    def start(self) -> None:
        self.sync_from_db()
        self.scheduler.start()
        logger.info("Reminder scheduler started")

    def stop(self) -> None:
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
            logger.info("Reminder scheduler stopped")
