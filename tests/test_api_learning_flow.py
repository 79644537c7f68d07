"""End-to-end: a teacher builds a course, a student enrolls and watches it."""
import pytest
from sqlalchemy import select

from conftest import create_course, create_lecture, create_unit
from learnhub import database
from learnhub.models import AnalyticsEvent, Progress

pytestmark = pytest.mark.anyio


async def _events(event_type: str):
    async with database.session_factory()() as session:
        stmt = select(AnalyticsEvent).where(AnalyticsEvent.event_type == event_type).order_by(AnalyticsEvent.id)
        return (await session.execute(stmt)).scalars().all()


async def test_algebra_scenario(teacher_client, student_client, student):
    course_id = await create_course(teacher_client, title="Algebra")
    unit_id = await create_unit(teacher_client, course_id, order=1)
    lecture_id = await create_lecture(teacher_client, unit_id, durationSec=600)

    listed = (await student_client.post("/api/courses/list", json={})).json()
    assert [c["title"] for c in listed] == ["Algebra"]

    resp = await student_client.post("/api/enrollment/enroll", json={"courseId": course_id})
    assert resp.status_code == 200
    mine = (await student_client.get("/api/enrollment/myEnrollments")).json()
    assert len(mine) == 1
    assert mine[0]["enrollment"]["status"] == "ACTIVE"
    assert mine[0]["course"]["id"] == course_id

    resp = await student_client.post(
        "/api/progress/update",
        json={"lectureId": lecture_id, "positionSec": 580, "completed": True, "watchedLanguage": "en"},
    )
    assert resp.status_code == 200

    stored = (await student_client.post("/api/progress/get", json={"lectureId": lecture_id})).json()
    assert stored["positionSec"] == 580
    assert stored["completed"] is True
    assert stored["userId"] == student.id

    completed = await _events("lecture_completed")
    assert len(completed) == 1
    assert completed[0].user_id == student.id
    assert completed[0].props == {"lectureId": lecture_id, "positionSec": 580}
    assert [e.props["courseId"] for e in await _events("course_enrolled")] == [course_id]


async def test_progress_reports_collapse_into_one_row(teacher_client, student_client):
    lecture_id = await create_lecture(
        teacher_client, await create_unit(teacher_client, await create_course(teacher_client))
    )
    for position, completed in ((10, False), (20, False), (590, True)):
        resp = await student_client.post(
            "/api/progress/update",
            json={"lectureId": lecture_id, "positionSec": position, "completed": completed, "watchedLanguage": "ar"},
        )
        assert resp.status_code == 200

    async with database.session_factory()() as session:
        rows = (await session.execute(select(Progress))).scalars().all()
    assert [(r.position_sec, r.completed) for r in rows] == [(590, True)]
    # only the completed report is logged
    assert len(await _events("lecture_completed")) == 1


async def test_progress_reads(teacher_client, student_client):
    course_id = await create_course(teacher_client)
    unit_id = await create_unit(teacher_client, course_id)
    first = await create_lecture(teacher_client, unit_id, order=1)
    second = await create_lecture(teacher_client, unit_id, order=2)

    assert (await student_client.post("/api/progress/get", json={"lectureId": first})).json() is None
    assert (await student_client.post("/api/progress/getByCourse", json={"courseId": course_id})).json() is None

    for lecture_id in (first, second):
        await student_client.post(
            "/api/progress/update",
            json={"lectureId": lecture_id, "positionSec": 30, "completed": False, "watchedLanguage": "he"},
        )

    mine = (await student_client.get("/api/progress/myProgress")).json()
    assert [p["lectureId"] for p in mine] == [first, second]
    latest = (await student_client.post("/api/progress/getByCourse", json={"courseId": course_id})).json()
    assert latest["lectureId"] in (first, second)
    assert latest["watchedLanguage"] == "he"


async def test_teacher_manages_enrollments(teacher_client, student_client, student):
    course_id = await create_course(teacher_client)
    await student_client.post("/api/enrollment/enroll", json={"courseId": course_id})

    roster = (await teacher_client.post("/api/enrollment/listForCourse", json={"courseId": course_id})).json()
    assert [r["user"]["id"] for r in roster] == [student.id]
    enrollment_id = roster[0]["enrollment"]["id"]

    resp = await teacher_client.post("/api/enrollment/setStatus", json={"id": enrollment_id, "status": "COMPLETED"})
    assert resp.status_code == 200
    mine = (await student_client.get("/api/enrollment/myEnrollments")).json()
    assert mine[0]["enrollment"]["status"] == "COMPLETED"
    assert mine[0]["enrollment"]["completedAt"] is not None

    stats = (await teacher_client.post("/api/analytics/course", json={"courseId": course_id})).json()
    assert stats == {"enrollments": 1, "completions": 1, "completionRate": 100.0}


async def test_enrollment_of_deleted_course_has_no_course(teacher_client, student_client):
    course_id = await create_course(teacher_client)
    await student_client.post("/api/enrollment/enroll", json={"courseId": course_id})
    await teacher_client.post("/api/courses/delete", json={"id": course_id})

    mine = (await student_client.get("/api/enrollment/myEnrollments")).json()
    assert mine[0]["enrollment"]["courseId"] == course_id
    assert mine[0]["course"] is None
