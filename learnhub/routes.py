from fastapi import APIRouter

from .routers import (
    analytics,
    attachments,
    audit_logs,
    auth,
    courses,
    enrollment,
    game_sessions,
    games,
    lectures,
    progress,
    schools,
    students,
    units,
    users,
)

router = APIRouter(prefix="/api")

# group name on the wire -> router module
GROUPS = {
    "auth": auth,
    "schools": schools,
    "users": users,
    "courses": courses,
    "units": units,
    "lectures": lectures,
    "attachments": attachments,
    "games": games,
    "enrollment": enrollment,
    "progress": progress,
    "gameSessions": game_sessions,
    "students": students,
    "analytics": analytics,
    "auditLogs": audit_logs,
}

for _group, _module in GROUPS.items():
    router.include_router(_module.router, prefix=f"/{_group}", tags=[_group])
