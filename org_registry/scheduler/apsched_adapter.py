"""APScheduler wrapper for periodic ingestion triggers."""

from __future__ import annotations

from typing import Callable

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.interval import IntervalTrigger

from ..config import ScheduleConfig, ScheduleType
from ..logging_conf import component_logger

INGESTION_JOB_ID = "ingestion::registry"


class APSchedulerAdapter:
    """Manage the APScheduler job that re-runs ingestion."""

    def __init__(self) -> None:
        # One job instance at a time; the ingestion gate rejects any overlap anyway
        self.scheduler = BackgroundScheduler(job_defaults={"max_instances": 1, "coalesce": True})
        self.logger = component_logger("scheduler")
        self.started = False

    def start(self) -> None:
        if not self.started:
            self.scheduler.start()
            self.started = True
            self.logger.info("apscheduler_started")

    def shutdown(self) -> None:
        if self.started:
            self.scheduler.shutdown(wait=False)
            self.started = False
            self.logger.info("apscheduler_stopped")

    def schedule_ingestion(self, schedule: ScheduleConfig, callback: Callable[[], object]) -> None:
        trigger = self._build_trigger(schedule)
        self.scheduler.add_job(
            callback, trigger=trigger, id=INGESTION_JOB_ID, replace_existing=True
        )
        self.logger.info("job_scheduled", schedule=schedule.model_dump(mode="json"))

    def remove_ingestion(self) -> None:
        try:
            self.scheduler.remove_job(INGESTION_JOB_ID)
        except Exception:  # noqa: BLE001
            self.logger.warning("job_remove_failed", job_id=INGESTION_JOB_ID)

    def _build_trigger(self, schedule: ScheduleConfig):
        if schedule.type is ScheduleType.CRON:
            return CronTrigger.from_crontab(str(schedule.value))
        if schedule.type is ScheduleType.INTERVAL:
            if isinstance(schedule.value, (int, float)):
                return IntervalTrigger(seconds=float(schedule.value))
            if isinstance(schedule.value, dict):
                return IntervalTrigger(**schedule.value)
            raise ValueError("Interval schedule requires seconds or kwargs dict")
        raise ValueError(f"Unknown schedule type: {schedule.type}")

    def list_jobs(self) -> list[dict]:
        jobs = []
        for job in self.scheduler.get_jobs():
            jobs.append(
                {
                    "id": job.id,
                    "next_run_time": getattr(job, "next_run_time", None),
                    "trigger": str(job.trigger),
                }
            )
        return jobs


__all__ = ["APSchedulerAdapter", "INGESTION_JOB_ID"]
