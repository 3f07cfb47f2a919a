# models.py

import asyncio
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional

from schemas import JobRequest


class JobStatus(str, Enum):
    """Job processing status."""
    QUEUED = "queued"
    RUNNING = "running"
    DONE = "done"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.DONE, JobStatus.FAILED)


_ALLOWED_TRANSITIONS = {
    JobStatus.QUEUED: {JobStatus.RUNNING, JobStatus.FAILED},
    JobStatus.RUNNING: {JobStatus.DONE, JobStatus.FAILED},
    JobStatus.DONE: set(),
    JobStatus.FAILED: set(),
}


class InvalidTransition(Exception):
    """Raised when a job is moved to a state its current state cannot reach."""


@dataclass(frozen=True)
class LogLine:
    timestamp: datetime
    message: str

    def __str__(self) -> str:
        return f"[{self.timestamp.strftime('%H:%M:%S')}] {self.message}"


@dataclass
class Job:
    """
    In-memory record for one video generation job.

    Only the job's own worker task mutates a record; everything else reads
    it through to_dict(). Once the status is terminal the record is frozen.
    """
    id: str
    request: JobRequest
    status: JobStatus = JobStatus.QUEUED
    logs: List[LogLine] = field(default_factory=list)
    created_at: datetime = field(default_factory=datetime.now)
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None

    # Intermediate stage artefacts
    script: Optional[str] = None
    narration_url: Optional[str] = None
    visuals_url: Optional[str] = None
    composition_url: Optional[str] = None

    # Only set in the done state
    result_url: Optional[str] = None
    thumbnail_url: Optional[str] = None
    caption: Optional[str] = None

    # Only set in the failed state
    error: Optional[str] = None

    task: Optional[asyncio.Task] = field(default=None, repr=False, compare=False)

    def log(self, message: str) -> None:
        if self.status.is_terminal:
            raise InvalidTransition(f"Job {self.id} is {self.status.value}; log is closed")
        self.logs.append(LogLine(datetime.now(), message))

    def _move_to(self, status: JobStatus) -> None:
        if status not in _ALLOWED_TRANSITIONS[self.status]:
            raise InvalidTransition(f"Job {self.id}: {self.status.value} -> {status.value}")
        self.status = status

    def mark_running(self) -> None:
        self._move_to(JobStatus.RUNNING)
        self.started_at = datetime.now()

    def mark_done(self, result_url: str, thumbnail_url: str, caption: str) -> None:
        if not (result_url and thumbnail_url and caption):
            raise ValueError("A finished job needs a result, a thumbnail and a caption")
        self._move_to(JobStatus.DONE)
        self.result_url = result_url
        self.thumbnail_url = thumbnail_url
        self.caption = caption
        self.finished_at = datetime.now()

    def mark_failed(self, error: str) -> None:
        # The failure line goes in before the state closes the log.
        self.log(f"Job failed: {error}")
        self._move_to(JobStatus.FAILED)
        self.error = error or "Unknown error"
        self.finished_at = datetime.now()

    def to_dict(self) -> Dict:
        """Snapshot of the record in the shape of StatusResponse."""
        done = self.status == JobStatus.DONE
        return {
            "job_id": self.id,
            "status": self.status.value,
            "logs": [str(line) for line in self.logs],
            "created_at": self.created_at,
            "started_at": self.started_at,
            "finished_at": self.finished_at,
            "result_url": self.result_url if done else None,
            "thumbnail_url": self.thumbnail_url if done else None,
            "caption": self.caption if done else None,
            "error": self.error if self.status == JobStatus.FAILED else None,
        }
