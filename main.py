import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

import config
from registry import JobRegistry
from routers.generation import router as generation_router
from services import ModerationService
from tasks import JobWorker

# --------------------------------------------------------------------------
# --- Configuration & Setup ---
# --------------------------------------------------------------------------

logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the job registry and worker for this process, tear them down on exit."""
    registry = JobRegistry(ttl_seconds=config.JOB_TTL_SECONDS)
    worker = JobWorker(
        registry,
        max_concurrent=config.MAX_CONCURRENT_JOBS,
        stage_delay=config.STAGE_DELAY_SECONDS,
        job_timeout=config.JOB_TIMEOUT_SECONDS,
    )
    app.state.registry = registry
    app.state.worker = worker
    app.state.moderation = ModerationService(config.BLOCKED_TERMS)

    sweeper = asyncio.create_task(worker.sweep_expired(config.SWEEP_INTERVAL_SECONDS))
    logging.info("🚀 Job registry ready")
    try:
        yield
    finally:
        sweeper.cancel()
        await asyncio.gather(sweeper, return_exceptions=True)
        await registry.shutdown()
        logging.info("Job registry shut down")


app = FastAPI(
    title="AI Video Generator",
    description="Submit a topic, poll the job, get back a (placeholder) video, thumbnail and caption.",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(generation_router)


@app.get("/")
def read_root():
    return {"status": "🚀 AI Video Generator is running!"}
