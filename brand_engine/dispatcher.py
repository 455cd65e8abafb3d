"""
dispatcher.py — Fan one selection of categories out into parallel jobs.

Image categories call the gateway directly; video categories run a
VideoJob. All jobs start together and the dispatcher waits for every one
to finish. A failing job is logged and left out of the batch; it never
cancels its siblings. The successful assets are appended to the gallery
in a single snapshot swap.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from .errors import DispatchError, JobCancelled
from .gallery import Gallery
from .models import Asset, Category, GenerationRequest, StyleProfile
from .prompts import build_image_prompt, build_video_prompt
from .video_job import Liveness, Sleep, VideoJob

logger = logging.getLogger(__name__)


@dataclass
class JobOutcome:
    category: Category
    asset: Optional[Asset] = None
    error: Optional[BaseException] = None
    elapsed_seconds: float = 0.0

    @property
    def ok(self) -> bool:
        return self.asset is not None


@dataclass
class DispatchReport:
    outcomes: List[JobOutcome] = field(default_factory=list)
    elapsed_seconds: float = 0.0

    @property
    def assets(self) -> List[Asset]:
        return [o.asset for o in self.outcomes if o.asset is not None]

    @property
    def failures(self) -> Dict[Category, BaseException]:
        return {o.category: o.error for o in self.outcomes if o.error is not None}


class GenerationDispatcher:
    def __init__(
        self,
        gateway,
        gallery: Gallery,
        poll_interval: float = 5.0,
        max_polls: Optional[int] = None,
        sleep: Optional[Sleep] = None,
    ) -> None:
        self.gateway = gateway
        self.gallery = gallery
        self.poll_interval = poll_interval
        self.max_polls = max_polls
        self._sleep = sleep or asyncio.sleep

    async def dispatch(
        self,
        categories: Iterable[Category],
        profile: Optional[StyleProfile],
        theme: Optional[str] = None,
        liveness: Optional[Liveness] = None,
    ) -> DispatchReport:
        """
        Generate one asset per category, concurrently.

        Raises DispatchError for an empty selection or a missing profile and
        CredentialMissing when no API key is configured. Per-category failures
        are returned in the report, never raised.
        """
        selected = list(dict.fromkeys(categories))
        if not selected:
            raise DispatchError("Select at least one category to generate")
        if profile is None:
            raise DispatchError("No style profile — analyze a reference image first")
        self.gateway.ensure_credential()

        liveness = liveness or Liveness()
        start = time.monotonic()
        logger.info(f"→ Dispatching {len(selected)} job(s): {', '.join(c.value for c in selected)}")

        outcomes = await asyncio.gather(
            *(self._run_job(GenerationRequest(cat, profile, theme), liveness) for cat in selected)
        )
        if not liveness.alive:
            # Torn down mid-batch: nothing is published and nothing counts as produced.
            outcomes = [_cancelled(o) for o in outcomes]
        report = DispatchReport(outcomes=list(outcomes), elapsed_seconds=time.monotonic() - start)
        self.gallery.extend(report.assets)

        logger.info(
            f"Dispatch finished: {len(report.assets)}/{len(selected)} succeeded "
            f"({report.elapsed_seconds:.1f}s)"
        )
        return report

    async def _run_job(self, request: GenerationRequest, liveness: Liveness) -> JobOutcome:
        category = request.category
        t0 = time.monotonic()
        try:
            if category.is_video:
                job = VideoJob(
                    self.gateway,
                    request,
                    poll_interval=self.poll_interval,
                    max_polls=self.max_polls,
                    sleep=self._sleep,
                    liveness=liveness,
                )
                media = await job.run()
                prompt = build_video_prompt(request)
            else:
                media = await self.gateway.generate_image(request)
                prompt = build_image_prompt(request)
        except Exception as exc:
            logger.warning(f"✗ {category.value} failed: {exc}")
            return JobOutcome(category, error=exc, elapsed_seconds=time.monotonic() - t0)

        asset = Asset(category=category, media=media, prompt=prompt)
        return JobOutcome(category, asset=asset, elapsed_seconds=time.monotonic() - t0)


def _cancelled(outcome: JobOutcome) -> JobOutcome:
    if outcome.asset is None:
        return outcome
    return JobOutcome(
        outcome.category,
        error=JobCancelled(f"{outcome.category.value} discarded: session closed"),
        elapsed_seconds=outcome.elapsed_seconds,
    )
