"""
Daily retention job for config backups.
"""
import random
import time
from datetime import datetime
from typing import Optional

from apscheduler.schedulers.background import BackgroundScheduler  # type: ignore
from apscheduler.triggers.cron import CronTrigger  # type: ignore

from .audit import AuditLogger
from .backups import RETENTION_DAYS, BackupStore

JOB_ID = "cleanup-config-backups"
RUN_HOUR = 1
RUN_MINUTE = 10


class RetentionScheduler:
    """
    Prunes backups older than 60 days every night at 01:10:ss local time.

    The second is picked once per process in [1, 59] so that installations
    started together do not all hit their disks at the same instant.
    """
    def __init__(
        self,
        backups: BackupStore,
        logger: AuditLogger,
        scheduler: Optional[BackgroundScheduler] = None,
        second: Optional[int] = None,
    ):
        self.backups = backups
        self.logger = logger
        self.scheduler = scheduler or BackgroundScheduler()
        self.second = second if second is not None else random.randint(1, 59)
        self.trigger = CronTrigger(hour=RUN_HOUR, minute=RUN_MINUTE, second=self.second)

    def job(self) -> int:
        """Run one retention sweep."""
        self.logger.log("retention_run", days=RETENTION_DAYS,
                        message=f"Running job to cleanup config.json backup files older than {RETENTION_DAYS} days...")
        return self.backups.prune_older_than(RETENTION_DAYS)

    def next_run_time(self, now: Optional[datetime] = None) -> Optional[datetime]:
        now = now or datetime.now(self.trigger.timezone)
        return self.trigger.get_next_fire_time(None, now)

    def start(self) -> None:
        self.scheduler.add_job(self.job, self.trigger, id=JOB_ID, replace_existing=True)
        if not self.scheduler.running:
            self.scheduler.start()
        self.logger.log("retention_scheduled", next_run=str(self.next_run_time()))

    def stop(self) -> None:
        if self.scheduler.running:
            self.scheduler.shutdown()

    def run_forever(self) -> None:
        """Start the job and block until interrupted."""
        self.start()
        try:
            while True:
                time.sleep(1)
        except (KeyboardInterrupt, SystemExit):
            pass
        finally:
            self.stop()
