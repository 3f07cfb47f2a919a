# registry.py

import asyncio
import logging
import secrets
from datetime import datetime, timedelta
from typing import Dict, List, Optional

from fastapi import Request

from config import JOB_TTL_SECONDS
from models import Job, JobStatus
from schemas import JobRequest


class JobRegistry:
    """
    Owns every Job record for the lifetime of the server process.

    One registry is created at startup and handed to request handlers
    through get_registry(); tests build their own.
    """

    def __init__(self, ttl_seconds: float = JOB_TTL_SECONDS):
        self.ttl = timedelta(seconds=ttl_seconds)
        self._jobs: Dict[str, Job] = {}

    def __len__(self) -> int:
        return len(self._jobs)

    def _new_id(self) -> str:
        while True:
            job_id = secrets.token_urlsafe(16)
            if job_id not in self._jobs:
                return job_id

    def create(self, request: JobRequest) -> Job:
        """Insert a queued record for an already-validated request."""
        job = Job(id=self._new_id(), request=request)
        job.log("Job queued")
        self._jobs[job.id] = job
        return job

    def get(self, job_id: str) -> Optional[Job]:
        return self._jobs.get(job_id)

    def list(self, status: Optional[JobStatus] = None, limit: Optional[int] = None) -> List[Job]:
        jobs = [job for job in self._jobs.values() if status is None or job.status == status]
        jobs.sort(key=lambda j: j.created_at, reverse=True)
        if limit:
            jobs = jobs[:limit]
        return jobs

    def attach_task(self, job_id: str, task: asyncio.Task) -> None:
        job = self._jobs[job_id]
        job.task = task

    def cancel(self, job_id: str) -> bool:
        """
        Ask a job's worker task to stop. The task records the failure itself.
        Returns False when the job is unknown or already terminal.
        """
        job = self._jobs.get(job_id)
        if job is None or job.status.is_terminal:
            return False
        if job.task is None or job.task.done():
            return False
        job.task.cancel()
        logging.info(f"🛑 Cancellation requested for job {job_id}")
        return True

    def evict_expired(self, now: Optional[datetime] = None) -> int:
        """Drop terminal records that finished more than ttl ago."""
        now = now or datetime.now()
        expired = [
            job_id
            for job_id, job in self._jobs.items()
            if job.status.is_terminal and job.finished_at and now - job.finished_at > self.ttl
        ]
        for job_id in expired:
            del self._jobs[job_id]
        if expired:
            logging.info(f"🧹 Evicted {len(expired)} finished job(s)")
        return len(expired)

    async def shutdown(self) -> None:
        """Cancel every in-flight task and wait for them to settle."""
        tasks = [job.task for job in self._jobs.values() if job.task and not job.task.done()]
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)


# Dependency for FastAPI to get the job registry
def get_registry(request: Request) -> JobRegistry:
    return request.app.state.registry
