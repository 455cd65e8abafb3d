"""
video_job.py — Submit → poll → resolve → fetch for one Veo request.

  SUBMITTED ──► POLLING ──► DONE ──► RESOLVED
      │            │          │
      └────────────┴──────────┴──► FAILED

Polling uses a fixed interval with no backoff. There is no poll ceiling
unless max_polls is set. The sleep coroutine is injectable so tests can
run the loop without waiting. A Liveness flag shared with the owning
session is checked around every wait; once it is closed the job stops
polling and fails with JobCancelled.
"""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import Awaitable, Callable, List, Optional

from .errors import FetchError, GenerationError, JobCancelled
from .media import MediaRef
from .models import GenerationRequest, VideoJobHandle

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]


class VideoJobState(str, Enum):
    SUBMITTED = "submitted"
    POLLING = "polling"
    DONE = "done"
    RESOLVED = "resolved"
    FAILED = "failed"


_ALLOWED = {
    None: {VideoJobState.SUBMITTED, VideoJobState.FAILED},
    VideoJobState.SUBMITTED: {VideoJobState.POLLING, VideoJobState.FAILED},
    VideoJobState.POLLING: {VideoJobState.DONE, VideoJobState.FAILED},
    VideoJobState.DONE: {VideoJobState.RESOLVED, VideoJobState.FAILED},
    VideoJobState.RESOLVED: set(),
    VideoJobState.FAILED: set(),
}


class Liveness:
    """Closeable flag shared by every poll loop of one session."""

    def __init__(self) -> None:
        self._alive = True

    @property
    def alive(self) -> bool:
        return self._alive

    def close(self) -> None:
        self._alive = False


class VideoJob:
    def __init__(
        self,
        gateway,
        request: GenerationRequest,
        poll_interval: float = 5.0,
        max_polls: Optional[int] = None,
        sleep: Sleep = asyncio.sleep,
        liveness: Optional[Liveness] = None,
    ) -> None:
        self.gateway = gateway
        self.request = request
        self.poll_interval = poll_interval
        self.max_polls = max_polls
        self._sleep = sleep
        self.liveness = liveness or Liveness()

        self.state: Optional[VideoJobState] = None
        self.transitions: List[VideoJobState] = []
        self.handle: Optional[VideoJobHandle] = None
        self.polls = 0
        self.error: Optional[BaseException] = None

    @property
    def label(self) -> str:
        return self.request.category.value

    def _enter(self, state: VideoJobState) -> None:
        if state not in _ALLOWED[self.state]:
            raise RuntimeError(f"Illegal video job transition {self.state} → {state}")
        self.state = state
        self.transitions.append(state)

    def _check_alive(self) -> None:
        if not self.liveness.alive:
            raise JobCancelled(f"{self.label} video job cancelled: session closed")

    async def run(self) -> MediaRef:
        """Drive the job to RESOLVED and return the video. Raises GenerationError on failure."""
        try:
            return await self._run()
        except asyncio.CancelledError:
            self._fail(JobCancelled(f"{self.label} video job cancelled"))
            raise
        except GenerationError as e:
            self._fail(e)
            raise
        except FetchError as e:
            self._fail(e)
            raise GenerationError(f"{self.label} video could not be fetched: {e}") from e
        except Exception as e:
            self._fail(e)
            raise GenerationError(f"{self.label} video job failed: {e}") from e

    def _fail(self, error: BaseException) -> None:
        self.error = error
        if self.state is not VideoJobState.FAILED:
            self._enter(VideoJobState.FAILED)
        logger.warning(f"✗ {self.label} video job failed after {self.polls} poll(s): {error}")

    async def _run(self) -> MediaRef:
        self._check_alive()
        self.handle = await self.gateway.submit_video_job(self.request)
        self._enter(VideoJobState.SUBMITTED)
        self._enter(VideoJobState.POLLING)

        while not self.handle.done:
            if self.max_polls is not None and self.polls >= self.max_polls:
                raise GenerationError(
                    f"{self.label} video job not done after {self.polls} polls"
                )
            self._check_alive()
            await self._sleep(self.poll_interval)
            self._check_alive()
            self.handle = await self.gateway.poll_video_job(self.handle)
            self.polls += 1
            logger.debug(f"{self.label} poll #{self.polls}: done={self.handle.done}")

        self._enter(VideoJobState.DONE)
        if self.handle.error:
            raise GenerationError(f"{self.label} video job reported an error: {self.handle.error}")
        if not self.handle.uri:
            raise GenerationError("no media returned")

        self._check_alive()
        payload = await self.gateway.fetch_video_payload(self.handle.uri)
        self._check_alive()
        self._enter(VideoJobState.RESOLVED)
        logger.info(f"✓ {self.label} video ({len(payload) // 1024} KB, {self.polls} poll(s))")
        return MediaRef(data=payload, mime_type="video/mp4", uri=self.handle.uri)
