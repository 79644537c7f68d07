"""HTTP client for the LearnHub RPC surface and the video progress reporter.

The reporter follows the player contract: while a lecture plays it samples
the position on a fixed interval and sends it with
``completed = position / duration >= ratio``; when the video ends it sends
one last report with the full duration and ``completed = True``. A report
that fails is logged and dropped. Nothing is retried; the next tick sends
whatever the position is by then.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Optional, Union

import httpx

from .background import cancel_and_wait, spawn
from .models import Language
from .settings.config import settings

logger = logging.getLogger(__name__)


class LearnHubClient:
    def __init__(
        self,
        base_url: str,
        *,
        session_token: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = 10.0,
    ):
        cookies = {settings.SESSION_COOKIE_NAME: session_token} if session_token else None
        self._http = httpx.AsyncClient(base_url=base_url, cookies=cookies, transport=transport, timeout=timeout)

    async def __aenter__(self) -> "LearnHubClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    async def query(self, procedure: str) -> Any:
        """GET /api/<group>/<procedure> for procedures without input."""
        resp = await self._http.get(f"/api/{procedure}")
        resp.raise_for_status()
        return resp.json()

    async def call(self, procedure: str, payload: Optional[dict] = None) -> Any:
        resp = await self._http.post(f"/api/{procedure}", json=payload or {})
        resp.raise_for_status()
        return resp.json()

    async def update_progress(
        self, lecture_id: int, position_sec: int, completed: bool, watched_language: Union[Language, str]
    ) -> Any:
        return await self.call(
            "progress/update",
            {
                "lectureId": lecture_id,
                "positionSec": position_sec,
                "completed": completed,
                "watchedLanguage": Language(watched_language).value,
            },
        )


class ProgressReporter:
    """Periodic position reports for one lecture being watched."""

    def __init__(
        self,
        client: LearnHubClient,
        *,
        lecture_id: int,
        duration_sec: int,
        language: Union[Language, str],
        position: Callable[[], float],
        interval: Optional[float] = None,
        completion_ratio: Optional[float] = None,
    ):
        self.client = client
        self.lecture_id = lecture_id
        self.duration_sec = duration_sec
        self.language = Language(language)
        self._position = position
        self.interval = interval if interval is not None else settings.PROGRESS_REPORT_INTERVAL_SEC
        self.completion_ratio = completion_ratio if completion_ratio is not None else settings.PROGRESS_COMPLETION_RATIO
        self._task: Optional[asyncio.Task] = None

    def is_complete(self, position_sec: float) -> bool:
        if self.duration_sec <= 0:
            return False
        return position_sec / self.duration_sec >= self.completion_ratio

    async def report(self, position_sec: int, completed: bool) -> bool:
        try:
            await self.client.update_progress(self.lecture_id, position_sec, completed, self.language)
        except httpx.HTTPError as exc:
            logger.warning(
                "Progress report for lecture %s at %ss dropped: %s", self.lecture_id, position_sec, exc
            )
            return False
        return True

    async def tick(self) -> bool:
        position = max(0.0, float(self._position()))
        return await self.report(int(position), self.is_complete(position))

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            await self.tick()

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = spawn(self._run(), name=f"progress-lecture-{self.lecture_id}")

    async def stop(self) -> None:
        # pause or unmount: stop sampling without a final report
        await cancel_and_wait(self._task)
        self._task = None

    async def finish(self) -> bool:
        """End of media: stop sampling and report the lecture as watched."""
        await self.stop()
        return await self.report(self.duration_sec, True)
