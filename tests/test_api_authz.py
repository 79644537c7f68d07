"""Role gates, shape validation and error bodies at the RPC boundary."""
import pytest
from sqlalchemy import func, select

from conftest import COURSE_BODY, create_course
from learnhub import database
from learnhub.models import AuditLog, Course, Enrollment, School

pytestmark = pytest.mark.anyio


async def _count(model) -> int:
    async with database.session_factory()() as session:
        return await session.scalar(select(func.count()).select_from(model))


async def test_protected_procedure_requires_identity(anon_client):
    resp = await anon_client.post("/api/courses/list", json={})
    assert resp.status_code == 401
    assert resp.json()["code"] == "UNAUTHORIZED"


async def test_invalid_cookie_is_unauthorized(client_for):
    client = await client_for()
    client.cookies.set("session", "not-a-jwt")
    assert (await client.get("/api/enrollment/myEnrollments")).status_code == 401


@pytest.mark.parametrize(
    "path, body",
    [
        ("/api/courses/create", COURSE_BODY),
        ("/api/schools/create", {"name": "Academy"}),
        ("/api/games/create", {"title": "Quiz", "type": "HTML5"}),
    ],
)
async def test_student_cannot_use_teacher_procedures(student_client, path, body):
    resp = await student_client.post(path, json=body)
    assert resp.status_code == 403
    assert resp.json()["code"] == "FORBIDDEN"
    assert await _count(Course) == 0
    assert await _count(School) == 0
    assert await _count(AuditLog) == 0


async def test_teacher_cannot_enroll(teacher_client):
    course_id = await create_course(teacher_client)
    resp = await teacher_client.post("/api/enrollment/enroll", json={"courseId": course_id})
    assert resp.status_code == 403
    assert await _count(Enrollment) == 0


async def test_admin_passes_every_gate(admin_client):
    course_id = await create_course(admin_client)
    assert (await admin_client.post("/api/enrollment/enroll", json={"courseId": course_id})).status_code == 200
    assert (await admin_client.post("/api/auditLogs/list", json={})).status_code == 200


async def test_audit_log_listing_is_admin_only(teacher_client, student_client):
    assert (await teacher_client.post("/api/auditLogs/list", json={})).status_code == 403
    assert (await student_client.post("/api/auditLogs/list", json={})).status_code == 403


async def test_missing_field_is_bad_request_naming_it(teacher_client):
    body = {k: v for k, v in COURSE_BODY.items() if k != "title"}
    resp = await teacher_client.post("/api/courses/create", json=body)
    assert resp.status_code == 400
    payload = resp.json()
    assert payload["code"] == "BAD_REQUEST"
    assert payload["field"] == "title"
    assert await _count(Course) == 0


async def test_invalid_enum_value_is_bad_request(student_client):
    resp = await student_client.post("/api/auth/updateLanguage", json={"language": "fr"})
    assert resp.status_code == 400
    assert resp.json()["field"] == "language"


async def test_negative_position_is_rejected(student_client):
    resp = await student_client.post(
        "/api/progress/update",
        json={"lectureId": 1, "positionSec": -1, "completed": False, "watchedLanguage": "en"},
    )
    assert resp.status_code == 400
    assert resp.json()["field"] == "positionSec"


async def test_null_for_required_field_in_update_is_rejected(teacher_client):
    course_id = await create_course(teacher_client)
    resp = await teacher_client.post("/api/courses/update", json={"id": course_id, "title": None})
    assert resp.status_code == 400
    assert resp.json()["field"] == "title"


async def test_page_limit_is_bounded(teacher_client):
    resp = await teacher_client.post("/api/courses/list", json={"limit": 0})
    assert resp.status_code == 400
    assert resp.json()["field"] == "limit"


async def test_duplicate_enrollment_is_conflict(teacher_client, student_client):
    course_id = await create_course(teacher_client)
    first = await student_client.post("/api/enrollment/enroll", json={"courseId": course_id})
    assert first.status_code == 200
    second = await student_client.post("/api/enrollment/enroll", json={"courseId": course_id})
    assert second.status_code == 409
    assert second.json()["code"] == "CONFLICT"
    assert await _count(Enrollment) == 1
