"""
Client for the AI Video Generator API.

Submits a generation job, then polls its status until the job finishes,
fails, times out on the client side, or is cancelled by the caller.

    client = VideoJobClient("http://127.0.0.1:8000")
    result = client.generate({"topic": "Ocean exploration", "ratio": "16:9", "duration": 120})
    print(result.outcome, result.snapshot.get("result_url"))
"""

import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterator, List, Optional

import requests

from config import (
    API_BASE_URL,
    ASPECT_RATIOS,
    MAX_DURATION,
    MAX_POLL_ATTEMPTS,
    MAX_TOPIC_LENGTH,
    MIN_DURATION,
    POLL_INTERVAL_SECONDS,
    REQUEST_TIMEOUT_SECONDS,
)

logger = logging.getLogger(__name__)

TERMINAL_STATUSES = ("done", "failed")


class VideoClientError(Exception):
    """Base class for client-side failures."""


class ClientValidationError(VideoClientError):
    """The request was refused locally and never sent."""


class JobSubmissionError(VideoClientError):
    def __init__(self, message: str, status_code: Optional[int] = None, body: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class PollingError(VideoClientError):
    """A status request failed; the job itself may still be running."""

    def __init__(self, message: str, job_id: str, status_code: Optional[int] = None, body: str = ""):
        super().__init__(message)
        self.job_id = job_id
        self.status_code = status_code
        self.body = body


@dataclass
class PollResult:
    job_id: str
    outcome: str  # "done" | "failed" | "timeout" | "cancelled"
    snapshot: Dict[str, Any] = field(default_factory=dict)
    logs: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.outcome == "done"


def build_payload(
    topic: str,
    ratio: str = "16:9",
    duration: int = 60,
    speechify: bool = True,
    sora: bool = True,
    veo: bool = True,
    platforms: Optional[List[str]] = None,
) -> Dict[str, Any]:
    """Shape form values into the body expected by /generate-video/."""
    return {
        "topic": topic,
        "ratio": ratio,
        "duration": duration,
        "providers": {"speechify": speechify, "sora": sora, "veo": veo},
        "platforms": list(platforms or []),
    }


def validate_payload(payload: Dict[str, Any]) -> None:
    topic = (payload.get("topic") or "").strip()
    if not topic:
        raise ClientValidationError("Please enter a topic.")
    if len(topic) > MAX_TOPIC_LENGTH:
        raise ClientValidationError(f"Topic is too long (max {MAX_TOPIC_LENGTH} characters).")

    duration = payload.get("duration")
    if isinstance(duration, bool) or not isinstance(duration, int):
        raise ClientValidationError("Duration must be a whole number of seconds.")
    if not MIN_DURATION <= duration <= MAX_DURATION:
        raise ClientValidationError(
            f"Duration must be between {MIN_DURATION} and {MAX_DURATION} seconds (got {duration})."
        )

    ratio = payload.get("ratio", "16:9")
    if ratio not in ASPECT_RATIOS:
        raise ClientValidationError(f"Unsupported aspect ratio '{ratio}'. Use one of {', '.join(ASPECT_RATIOS)}.")


class VideoJobClient:
    def __init__(
        self,
        base_url: str = API_BASE_URL,
        session=None,
        poll_interval: float = POLL_INTERVAL_SECONDS,
        max_attempts: int = MAX_POLL_ATTEMPTS,
        timeout: float = REQUEST_TIMEOUT_SECONDS,
        on_log: Optional[Callable[[str], None]] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()
        self.poll_interval = poll_interval
        self.max_attempts = max_attempts
        self.timeout = timeout
        self.on_log = on_log
        self.logs: List[str] = []

    def _url(self, path: str) -> str:
        return f"{self.base_url}{path}"

    def _log(self, line: str) -> None:
        self.logs.append(line)
        if self.on_log:
            self.on_log(line)

    def submit(self, payload: Dict[str, Any]) -> str:
        """Validate locally, create the job, and return its id. Never retried."""
        # Each submission starts a fresh display log.
        self.logs = []
        try:
            validate_payload(payload)
        except ClientValidationError as e:
            self._log(f"Error: {e}")
            raise

        try:
            response = self.session.post(self._url("/generate-video/"), json=payload, timeout=self.timeout)
        except requests.RequestException as e:
            self._log(f"Error: could not reach the server ({e})")
            raise JobSubmissionError(f"Could not reach the server: {e}") from e

        if not 200 <= response.status_code < 300:
            self._log(f"Error: submission failed with {response.status_code}: {response.text}")
            raise JobSubmissionError(
                f"Submission failed with status {response.status_code}",
                status_code=response.status_code,
                body=response.text,
            )

        job_id = response.json()["job_id"]
        self._log(f"Job submitted: {job_id}")
        return job_id

    def fetch_status(self, job_id: str) -> Dict[str, Any]:
        try:
            response = self.session.get(self._url(f"/task-status/{job_id}"), timeout=self.timeout)
        except requests.RequestException as e:
            raise PollingError(f"Status request for job {job_id} failed: {e}", job_id) from e

        if not 200 <= response.status_code < 300:
            raise PollingError(
                f"Status request for job {job_id} failed with status {response.status_code}",
                job_id,
                status_code=response.status_code,
                body=response.text,
            )
        return response.json()

    def poll(self, job_id: str, cancel_event: Optional[threading.Event] = None) -> Iterator[Dict[str, Any]]:
        """
        Yield one snapshot per poll until the job reaches a terminal state,
        the attempt budget runs out, or cancel_event is set.

        A failed status request raises PollingError and ends the loop; the
        job on the server is left alone.
        """
        cancel_event = cancel_event or threading.Event()
        seen = 0
        for _ in range(self.max_attempts):
            if cancel_event.wait(self.poll_interval):
                return

            try:
                snapshot = self.fetch_status(job_id)
            except PollingError as e:
                self._log(f"Error: {e}")
                raise
            lines = snapshot.get("logs") or []
            for line in lines[seen:]:
                self._log(line)
            seen = max(seen, len(lines))

            yield snapshot
            if snapshot.get("status") in TERMINAL_STATUSES:
                return

    def cancel(self, job_id: str) -> Optional[Dict[str, Any]]:
        """Ask the server to stop a job. Returns the snapshot, or None if the request failed."""
        try:
            response = self.session.post(self._url(f"/cancel-job/{job_id}"), timeout=self.timeout)
        except requests.RequestException as e:
            logger.warning(f"Cancel request for job {job_id} failed: {e}")
            return None
        if not 200 <= response.status_code < 300:
            logger.warning(f"Cancel request for job {job_id} returned {response.status_code}")
            return None
        return response.json()

    def generate(self, payload: Dict[str, Any], cancel_event: Optional[threading.Event] = None) -> PollResult:
        """Submit a job and follow it to the end."""
        cancel_event = cancel_event or threading.Event()
        job_id = self.submit(payload)

        snapshot: Dict[str, Any] = {}
        for snapshot in self.poll(job_id, cancel_event):
            pass

        status = snapshot.get("status")
        if status == "done":
            self._log("Video ready.")
            return PollResult(job_id, "done", snapshot, list(self.logs))
        if status == "failed":
            self._log(f"Error: {snapshot.get('error')}")
            return PollResult(job_id, "failed", snapshot, list(self.logs))

        # The loop gave up before the job finished: stop the server side too.
        outcome = "cancelled" if cancel_event.is_set() else "timeout"
        if outcome == "timeout":
            self._log("Warning: timed out waiting for the job; cancelling it.")
        else:
            self._log("Cancelled; stopping the job.")
        final = self.cancel(job_id)
        return PollResult(job_id, outcome, final or snapshot, list(self.logs))
