"""Progress reporter contract, against a mocked transport."""
import asyncio
import json
import logging

import httpx
import pytest

from learnhub.background import running_tasks
from learnhub.client import LearnHubClient, ProgressReporter

pytestmark = pytest.mark.anyio


class Recorder:
    def __init__(self, fail_first: int = 0, error: bool = False):
        self.bodies: list[dict] = []
        self.fail_first = fail_first
        self.error = error

    def __call__(self, request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/api/progress/update"
        assert request.headers.get("cookie") == "session=token-123"
        if self.fail_first:
            self.fail_first -= 1
            if self.error:
                raise httpx.ConnectError("connection refused", request=request)
            return httpx.Response(500, json={"detail": "Storage error", "code": "INTERNAL_SERVER_ERROR"})
        self.bodies.append(json.loads(request.content))
        return httpx.Response(200, json={"success": True, "id": 1})


def _reporter(recorder: Recorder, position=lambda: 0.0, **kwargs):
    client = LearnHubClient("http://test", session_token="token-123", transport=httpx.MockTransport(recorder))
    reporter = ProgressReporter(
        client, lecture_id=7, duration_sec=600, language="ar", position=position, **kwargs
    )
    return client, reporter


async def test_completion_threshold_is_ninety_five_percent():
    _, reporter = _reporter(Recorder())
    assert reporter.is_complete(569) is False
    assert reporter.is_complete(570) is True
    assert reporter.is_complete(600) is True
    zero = ProgressReporter(reporter.client, lecture_id=1, duration_sec=0, language="en", position=lambda: 0)
    assert zero.is_complete(0) is False


async def test_tick_reports_position_and_computed_flag():
    recorder = Recorder()
    positions = iter([120.7, 580.2])
    client, reporter = _reporter(recorder, position=lambda: next(positions))
    async with client:
        assert await reporter.tick() is True
        assert await reporter.tick() is True
    assert recorder.bodies == [
        {"lectureId": 7, "positionSec": 120, "completed": False, "watchedLanguage": "ar"},
        {"lectureId": 7, "positionSec": 580, "completed": True, "watchedLanguage": "ar"},
    ]


@pytest.mark.parametrize("error", [False, True])
async def test_failed_report_is_logged_and_dropped(caplog, error):
    recorder = Recorder(fail_first=1, error=error)
    positions = iter([30, 40])
    client, reporter = _reporter(recorder, position=lambda: next(positions))
    async with client:
        with caplog.at_level(logging.WARNING, logger="learnhub.client"):
            assert await reporter.tick() is False
        # no retry of the 30s report; the next tick carries the new position
        assert await reporter.tick() is True
    assert [b["positionSec"] for b in recorder.bodies] == [40]
    assert any("dropped" in r.getMessage() for r in caplog.records)


async def test_finish_sends_full_duration_as_completed():
    recorder = Recorder()
    client, reporter = _reporter(recorder, position=lambda: 300)
    async with client:
        assert await reporter.finish() is True
    assert recorder.bodies == [{"lectureId": 7, "positionSec": 600, "completed": True, "watchedLanguage": "ar"}]


async def test_background_loop_samples_until_stopped():
    recorder = Recorder()
    client, reporter = _reporter(recorder, position=lambda: 42, interval=0.01)
    async with client:
        before = running_tasks()
        reporter.start()
        reporter.start()  # already running; no second loop
        assert running_tasks() == before + 1
        await asyncio.sleep(0.08)
        await reporter.stop()
        assert reporter.running is False
        sent = len(recorder.bodies)
        await asyncio.sleep(0.03)
    assert sent >= 1
    assert len(recorder.bodies) == sent
    assert all(b == {"lectureId": 7, "positionSec": 42, "completed": False, "watchedLanguage": "ar"} for b in recorder.bodies)


async def test_interval_and_ratio_default_to_settings():
    from learnhub.settings.config import settings

    _, reporter = _reporter(Recorder())
    assert reporter.interval == settings.PROGRESS_REPORT_INTERVAL_SEC == 10.0
    assert reporter.completion_ratio == settings.PROGRESS_COMPLETION_RATIO == 0.95
