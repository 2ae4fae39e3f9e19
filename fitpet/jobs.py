# backend/fitpet/jobs.py
"""
Background jobs.

Each job is a plain function taking the Flask app. They are exposed as
``flask jobs <name>`` for an external cron, and ``JobScheduler`` can fire
them in-process when SCHEDULER_ENABLED is set.
"""
import logging
import threading
from datetime import datetime, timedelta
from typing import Callable, Dict, List, Optional

import click
from flask import Flask, current_app
from flask.cli import AppGroup

from .models.schedule import WeekDay
from .services import outbox, pets, reschedule

logger = logging.getLogger(__name__)


# -----------------------------
# Job bodies
# -----------------------------
def run_skip_check(app: Flask) -> int:
    with app.app_context():
        return len(reschedule.check_skipped_workouts(app.clock))


def run_health_decay(app: Flask) -> int:
    with app.app_context():
        return len(pets.apply_daily_health_decay_to_all_active_pets(app.clock))


def run_cleanup(app: Flask) -> int:
    with app.app_context():
        return reschedule.cleanup_old_reschedules(app.clock)


def run_outbox_drain(app: Flask) -> int:
    with app.app_context():
        return len(outbox.drain(max_attempts=app.config["OUTBOX_MAX_ATTEMPTS"]))


# -----------------------------
# Scheduling
# -----------------------------
def next_run_after(now: datetime, hour: int, weekday: Optional[str] = None) -> datetime:
    """
    Next datetime strictly after ``now`` at ``hour``:00, optionally only on
    ``weekday`` (a WeekDay name).
    """
    candidate = now.replace(hour=hour, minute=0, second=0, microsecond=0)
    if candidate <= now:
        candidate += timedelta(days=1)
    if weekday is not None:
        while WeekDay.for_date(candidate.date()) != weekday:
            candidate += timedelta(days=1)
    return candidate


class ScheduledJob:
    def __init__(self, name: str, func: Callable[[Flask], int], next_run: Callable[[datetime], datetime]):
        self.name = name
        self.func = func
        self.next_run = next_run
        self.due_at: Optional[datetime] = None


class JobScheduler:
    """Daemon thread that fires the daily/weekly jobs on the app clock."""

    def __init__(self, app: Flask, poll_seconds: float = 30.0):
        self.app = app
        self.poll_seconds = poll_seconds
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._lock = threading.Lock()
        self.jobs: List[ScheduledJob] = self._build_jobs(app.config)

    @staticmethod
    def _build_jobs(config) -> List[ScheduledJob]:
        interval = timedelta(seconds=config["OUTBOX_DRAIN_INTERVAL_SECONDS"])
        return [
            ScheduledJob(
                "check_skipped_workouts", run_skip_check,
                lambda now: next_run_after(now, config["SKIP_CHECK_HOUR"]),
            ),
            ScheduledJob(
                "daily_health_decay", run_health_decay,
                lambda now: next_run_after(now, config["DECAY_HOUR"]),
            ),
            ScheduledJob(
                "cleanup_old_reschedules", run_cleanup,
                lambda now: next_run_after(now, config["CLEANUP_HOUR"], config["CLEANUP_WEEKDAY"]),
            ),
            ScheduledJob("drain_outbox", run_outbox_drain, lambda now: now + interval),
        ]

    def start(self) -> None:
        with self._lock:
            if self._thread is not None and self._thread.is_alive():
                return
            now = self.app.clock.now()
            for job in self.jobs:
                job.due_at = job.next_run(now)
                logger.info("Job %s scheduled for %s", job.name, job.due_at)
            self._stop.clear()
            self._thread = threading.Thread(target=self._worker, name="fitpet-scheduler", daemon=True)
            self._thread.start()

    def stop(self) -> None:
        self._stop.set()

    def run_pending(self) -> Dict[str, int]:
        """Runs every job whose due time has passed; returns their results."""
        now = self.app.clock.now()
        results = {}
        for job in self.jobs:
            if job.due_at is None or job.due_at > now:
                continue
            try:
                results[job.name] = job.func(self.app)
                logger.info("Job %s finished: %s", job.name, results[job.name])
            except Exception:
                logger.exception("Job %s failed", job.name)
            job.due_at = job.next_run(now)
        return results

    def _worker(self) -> None:  # pragma: no cover - background thread
        while not self._stop.is_set():
            self.run_pending()
            self._stop.wait(self.poll_seconds)


# -----------------------------
# CLI: flask jobs ...
# -----------------------------
jobs_cli = AppGroup("jobs", help="Run pet/schedule background jobs once.")


@jobs_cli.command("check-skipped")
def check_skipped_command():
    """Reschedule workouts skipped yesterday."""
    count = run_skip_check(current_app._get_current_object())
    click.echo(f"Created {count} reschedule(s).")


@jobs_cli.command("decay")
def decay_command():
    """Apply daily health decay to every living pet."""
    failed = run_health_decay(current_app._get_current_object())
    click.echo(f"Health decay done, {failed} pet(s) failed.")


@jobs_cli.command("cleanup-reschedules")
def cleanup_command():
    """Purge reschedules older than last week."""
    deleted = run_cleanup(current_app._get_current_object())
    click.echo(f"Deleted {deleted} old reschedule(s).")


@jobs_cli.command("drain-outbox")
def drain_outbox_command():
    """Retry pending user.created messages."""
    processed = run_outbox_drain(current_app._get_current_object())
    click.echo(f"Processed {processed} outbox message(s).")
