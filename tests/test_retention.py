from datetime import datetime, timedelta
from unittest.mock import MagicMock

from bridgeconf.retention import JOB_ID, RetentionScheduler


def test_second_is_jittered_within_range(backups, logger):
    seconds = {RetentionScheduler(backups, logger, scheduler=MagicMock()).second for _ in range(100)}
    assert all(1 <= s <= 59 for s in seconds)
    assert len(seconds) > 1

def test_next_run_is_ten_past_one(backups, logger):
    retention = RetentionScheduler(backups, logger, scheduler=MagicMock(), second=17)
    tz = retention.trigger.timezone

    next_run = retention.next_run_time(datetime(2026, 3, 4, 9, 0, 0).astimezone(tz))

    assert (next_run.hour, next_run.minute, next_run.second) == (1, 10, 17)
    assert next_run.date() == datetime(2026, 3, 5).date()

def test_job_prunes_sixty_day_old_backups(backups, logger):
    old = datetime.now() - timedelta(days=61)
    fresh = datetime.now() - timedelta(days=1)
    for dt in (old, fresh):
        (backups.backup_path / f"config.json.{int(dt.timestamp() * 1000)}").write_text("{}")

    removed = RetentionScheduler(backups, logger, scheduler=MagicMock()).job()

    assert removed == 1
    assert len(backups.list_backups()) == 1

def test_start_registers_single_job(backups, logger):
    scheduler = MagicMock()
    scheduler.running = False
    retention = RetentionScheduler(backups, logger, scheduler=scheduler)

    retention.start()

    scheduler.add_job.assert_called_once_with(retention.job, retention.trigger, id=JOB_ID, replace_existing=True)
    scheduler.start.assert_called_once()

def test_stop_shuts_down_running_scheduler(backups, logger):
    scheduler = MagicMock()
    scheduler.running = True
    RetentionScheduler(backups, logger, scheduler=scheduler).stop()
    scheduler.shutdown.assert_called_once()
