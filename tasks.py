# tasks.py

import asyncio
import logging
from typing import Awaitable, Callable, List, Optional, Tuple

from config import (
    JOB_TIMEOUT_SECONDS,
    MAX_CONCURRENT_JOBS,
    MEDIA_BASE_URL,
    STAGE_DELAY_SECONDS,
    SWEEP_INTERVAL_SECONDS,
)
from models import Job
from registry import JobRegistry
from services import (
    CaptionService,
    CompositionService,
    NarrationService,
    ScriptService,
    ThumbnailService,
    VisualsService,
)

Stage = Tuple[str, Callable[[Job], Awaitable[None]]]


async def _script_stage(job: Job) -> None:
    job.script = await ScriptService.generate(job.request.topic, job.request.duration)


async def _narration_stage(job: Job) -> None:
    job.narration_url = await NarrationService.synthesize(job.id, job.script)


async def _visuals_stage(job: Job) -> None:
    job.visuals_url = await VisualsService.render(job.id, job.script, job.request.ratio)


async def _composition_stage(job: Job) -> None:
    job.composition_url = await CompositionService.compose(
        job.id,
        job.request.ratio,
        narration_url=job.narration_url,
        visuals_url=job.visuals_url,
    )


def build_stages(job: Job) -> List[Stage]:
    """Fixed stage order; provider flags only switch stages off."""
    providers = job.request.providers
    stages: List[Stage] = [("Generating script", _script_stage)]
    if providers.speechify:
        stages.append(("Generating narration (speechify)", _narration_stage))
    if providers.sora:
        stages.append(("Generating visuals (sora)", _visuals_stage))
    if providers.veo:
        stages.append(("Composing video (veo)", _composition_stage))
    return stages


class JobWorker:
    """
    Runs each job's stage pipeline as its own asyncio task.

    At most max_concurrent jobs run at once; the rest stay queued until a
    slot frees up.
    """

    def __init__(
        self,
        registry: JobRegistry,
        max_concurrent: int = MAX_CONCURRENT_JOBS,
        stage_delay: float = STAGE_DELAY_SECONDS,
        job_timeout: Optional[float] = JOB_TIMEOUT_SECONDS,
    ):
        self.registry = registry
        self.stage_delay = stage_delay
        self.job_timeout = job_timeout
        self._slots = asyncio.Semaphore(max(1, max_concurrent))

    def schedule_job(self, job_id: str) -> asyncio.Task:
        """Start the job in the background and return its task right away."""
        task = asyncio.create_task(self.run_job(job_id), name=f"job-{job_id}")
        task.add_done_callback(lambda t: self._settle(job_id, t))
        self.registry.attach_task(job_id, task)
        return task

    def _settle(self, job_id: str, task: asyncio.Task) -> None:
        # A task cancelled before its first step never enters run_job.
        job = self.registry.get(job_id)
        if job is not None and not job.status.is_terminal:
            job.mark_failed("Cancelled" if task.cancelled() else "Worker stopped unexpectedly")

    async def run_job(self, job_id: str) -> None:
        job = self.registry.get(job_id)
        if job is None:
            logging.error(f"❌ Worker got unknown job {job_id}")
            return

        try:
            async with self._slots:
                job.mark_running()
                job.log("Job started")
                logging.info(f"📝 Worker started job {job_id} for topic: '{job.request.topic}'")
                await asyncio.wait_for(self._run_stages(job), timeout=self.job_timeout)
            logging.info(f"✅ Worker finished job {job_id}. Video at: {job.result_url}")
        except asyncio.CancelledError:
            logging.warning(f"🛑 Job {job_id} cancelled")
            job.mark_failed("Cancelled")
            raise
        except asyncio.TimeoutError:
            logging.error(f"❌ Job {job_id} timed out after {self.job_timeout}s")
            job.mark_failed("Timed out")
        except Exception as e:
            logging.exception(f"❌ Worker failed job {job_id}")
            job.mark_failed(f"{type(e).__name__}: {e}")

    async def _run_stages(self, job: Job) -> None:
        for message, stage in build_stages(job):
            job.log(message)
            await stage(job)
            await asyncio.sleep(self.stage_delay)

        request = job.request
        job.log("Rendering thumbnail")
        thumbnail_url = await ThumbnailService.render(job.id, request.topic, request.ratio)
        job.log("Writing caption")
        caption = await CaptionService.write(request.topic, list(request.platforms))
        await asyncio.sleep(self.stage_delay)

        result_url = job.composition_url or job.visuals_url or f"{MEDIA_BASE_URL}/renders/{job.id}.mp4"
        job.log("Job complete")
        job.mark_done(result_url, thumbnail_url, caption)

    async def sweep_expired(self, interval: float = SWEEP_INTERVAL_SECONDS) -> None:
        """Evict expired finished jobs until cancelled."""
        while True:
            await asyncio.sleep(interval)
            self.registry.evict_expired()
