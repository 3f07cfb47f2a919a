"""
Service classes for the AI Video Generator.
Contains request validation, content moderation and the provider stubs
(script, narration, visuals, composition, thumbnail, caption).
"""

import logging
import re
from dataclasses import dataclass
from typing import List, Optional

from config import (
    BLOCKED_TERMS,
    MAX_DURATION,
    MAX_TOPIC_LENGTH,
    MEDIA_BASE_URL,
    MIN_DURATION,
)
from exceptions import BadRequestException, ProviderError
from schemas import JobRequest


def validate_job_request(request: JobRequest) -> None:
    """Server-side checks that must pass before a job record is created."""
    topic = (request.topic or "").strip()
    if not topic:
        raise BadRequestException("Topic must not be empty.")
    if len(topic) > MAX_TOPIC_LENGTH:
        raise BadRequestException(f"Topic must be at most {MAX_TOPIC_LENGTH} characters.")
    if not MIN_DURATION <= request.duration <= MAX_DURATION:
        raise BadRequestException(
            f"Duration must be between {MIN_DURATION} and {MAX_DURATION} seconds."
        )


@dataclass(frozen=True)
class ModerationResult:
    allowed: bool
    reason: Optional[str] = None
    matched: Optional[str] = None


class ModerationService:
    """Keyword screen for topic text."""

    def __init__(self, blocked_terms: Optional[List[str]] = None):
        terms = BLOCKED_TERMS if blocked_terms is None else blocked_terms
        self.patterns = [
            (term, re.compile(rf"\b{re.escape(term)}\b", re.IGNORECASE)) for term in terms
        ]

    def check(self, topic: str) -> ModerationResult:
        for term, pattern in self.patterns:
            if pattern.search(topic):
                logging.warning(f"🚫 Topic rejected by moderation (term: '{term}')")
                return ModerationResult(allowed=False, reason="blocked_term", matched=term)
        return ModerationResult(allowed=True)


def _media_url(job_id: str, kind: str, extension: str) -> str:
    return f"{MEDIA_BASE_URL}/{kind}/{job_id}.{extension}"


def _require(value: str, what: str) -> str:
    if not value or not value.strip():
        raise ProviderError(f"Cannot run {what} on empty input.")
    return value


class ScriptService:
    """Turns a topic into a narration script."""

    @staticmethod
    async def generate(topic: str, duration: int) -> str:
        _require(topic, "script generation")
        logging.info(f"📝 Writing a {duration}s script for: '{topic}'")
        return (
            f"A {duration}-second video about {topic.strip()}. "
            f"Open on a wide shot, explain the key ideas, close with a call to action."
        )


class NarrationService:
    """Text-to-speech narration (speechify)."""

    @staticmethod
    async def synthesize(job_id: str, script: str) -> str:
        _require(script, "narration")
        return _media_url(job_id, "narration", "mp3")


class VisualsService:
    """Storyboard / visual generation (sora)."""

    @staticmethod
    async def render(job_id: str, script: str, ratio: str) -> str:
        _require(script, "visual generation")
        return _media_url(job_id, f"visuals/{ratio.replace(':', 'x')}", "mp4")


class CompositionService:
    """Final video composition (veo)."""

    @staticmethod
    async def compose(
        job_id: str,
        ratio: str,
        narration_url: Optional[str] = None,
        visuals_url: Optional[str] = None,
    ) -> str:
        logging.info(
            f"🎬 Composing job {job_id} ({ratio}); "
            f"narration={'yes' if narration_url else 'no'}, visuals={'yes' if visuals_url else 'no'}"
        )
        return _media_url(job_id, "videos", "mp4")


class ThumbnailService:
    @staticmethod
    async def render(job_id: str, topic: str, ratio: str) -> str:
        _require(topic, "thumbnail rendering")
        return _media_url(job_id, "thumbnails", "jpg")


class CaptionService:
    """Writes a post caption, with hashtags for the requested platforms."""

    @staticmethod
    async def write(topic: str, platforms: List[str]) -> str:
        _require(topic, "caption writing")
        caption = f"{topic.strip()}: everything you need to know in one short video."
        tags = ["#" + re.sub(r"\W+", "", word.lower()) for word in topic.split()[:3]]
        tags = [tag for tag in tags if len(tag) > 1]
        if "tiktok" in platforms or "instagram" in platforms:
            tags.append("#reels")
        if "youtube" in platforms:
            tags.append("#shorts")
        if tags:
            caption = f"{caption} {' '.join(tags)}"
        return caption
