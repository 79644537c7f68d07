from sqlalchemy import (
    Column, Integer, String, Boolean, Text, DateTime, func,
    UniqueConstraint, Index, Float, JSON,
)
from sqlalchemy.orm import relationship
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy import Enum as SAEnum
from .database import Base
import enum

# JSONB on Postgres, plain JSON elsewhere (sqlite in tests)
JSONType = JSON().with_variant(JSONB(), "postgresql")


class Role(str, enum.Enum):
    STUDENT = "STUDENT"
    TEACHER = "TEACHER"
    ADMIN = "ADMIN"


class Language(str, enum.Enum):
    en = "en"
    ar = "ar"
    he = "he"


class Visibility(str, enum.Enum):
    PUBLIC = "PUBLIC"
    PRIVATE = "PRIVATE"


class EnrollmentStatus(str, enum.Enum):
    ACTIVE = "ACTIVE"
    COMPLETED = "COMPLETED"
    DROPPED = "DROPPED"


class GameType(str, enum.Enum):
    LTI = "LTI"
    SCORM = "SCORM"
    XAPI = "XAPI"
    HTML5 = "HTML5"


# shared by users, progress and game sessions
language_enum = SAEnum(Language, name="language")


# NOTE: parent links below (course_id, unit_id, lecture_id, ...) are plain
# indexed integers, not database foreign keys. Deleting a parent leaves its
# children in place.

# ---------------------------
# USERS & SCHOOLS
# ---------------------------
class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    open_id = Column(String(64), unique=True, nullable=False)
    external_id = Column(String(64), unique=True, nullable=False)
    # unique when set; login looks users up by email
    email = Column(String(320), unique=True, nullable=True, index=True)
    # fastapi-users reads/writes `hashed_password`
    hashed_password = Column("password_hash", Text, nullable=False)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    role = Column(SAEnum(Role, name="user_role"), default=Role.STUDENT, nullable=False, index=True)
    school_id = Column(Integer, nullable=True, index=True)
    preferred_language = Column(language_enum, default=Language.en, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    failed_login_attempts = Column(Integer, default=0, nullable=False)
    locked_until = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
    last_login_at = Column(DateTime(timezone=True), nullable=True)
    last_signed_in = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<User {self.id} {self.role.value if self.role else '?'}>"


class School(Base):
    __tablename__ = "schools"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False, index=True)
    name_ar = Column(String(255), nullable=True)
    name_he = Column(String(255), nullable=True)
    region = Column(String(100), nullable=True)
    contact_email = Column(String(320), nullable=True)
    meta = Column(JSONType, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)


# ---------------------------
# CONTENT HIERARCHY
# ---------------------------
class Course(Base):
    __tablename__ = "courses"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), nullable=False)
    title_ar = Column(String(255), nullable=True)
    title_he = Column(String(255), nullable=True)
    description = Column(Text, nullable=False)
    description_ar = Column(Text, nullable=True)
    description_he = Column(Text, nullable=True)
    thumbnail_url = Column(String(500), nullable=True)
    tags = Column(JSONType, default=list, nullable=False)        # list[str]
    tags_ar = Column(JSONType, default=list, nullable=False)
    tags_he = Column(JSONType, default=list, nullable=False)
    visibility = Column(SAEnum(Visibility, name="course_visibility"), default=Visibility.PUBLIC, nullable=False, index=True)
    prerequisites = Column(Text, nullable=True)
    prerequisites_ar = Column(Text, nullable=True)
    prerequisites_he = Column(Text, nullable=True)
    learning_outcomes = Column(Text, nullable=True)
    learning_outcomes_ar = Column(Text, nullable=True)
    learning_outcomes_he = Column(Text, nullable=True)
    estimated_duration = Column(Integer, nullable=True)          # minutes
    created_by = Column(Integer, nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
    published_at = Column(DateTime(timezone=True), nullable=True)

    units = relationship(
        "Unit",
        primaryjoin="Course.id == foreign(Unit.course_id)",
        order_by=lambda: [Unit.order.asc(), Unit.id.asc()],
        viewonly=True,
        lazy="raise",
    )


class Unit(Base):
    __tablename__ = "units"

    id = Column(Integer, primary_key=True, index=True)
    course_id = Column(Integer, nullable=False)
    title = Column(String(255), nullable=False)
    title_ar = Column(String(255), nullable=True)
    title_he = Column(String(255), nullable=True)
    description = Column(Text, nullable=True)
    description_ar = Column(Text, nullable=True)
    description_he = Column(Text, nullable=True)
    order = Column(Integer, nullable=False)                      # sort only; not unique
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    lectures = relationship(
        "Lecture",
        primaryjoin="Unit.id == foreign(Lecture.unit_id)",
        order_by=lambda: [Lecture.order.asc(), Lecture.id.asc()],
        viewonly=True,
        lazy="raise",
    )

    __table_args__ = (Index("ix_units_course_order", "course_id", "order"),)


class Lecture(Base):
    __tablename__ = "lectures"

    id = Column(Integer, primary_key=True, index=True)
    unit_id = Column(Integer, nullable=False)
    title = Column(String(255), nullable=False)
    title_ar = Column(String(255), nullable=True)
    title_he = Column(String(255), nullable=True)
    description = Column(Text, nullable=True)
    description_ar = Column(Text, nullable=True)
    description_he = Column(Text, nullable=True)
    order = Column(Integer, nullable=False)
    video_url = Column(String(500), nullable=False)
    video_url_ar = Column(String(500), nullable=True)
    video_url_he = Column(String(500), nullable=True)
    duration_sec = Column(Integer, nullable=False)
    captions_url = Column(String(500), nullable=True)
    captions_url_ar = Column(String(500), nullable=True)
    captions_url_he = Column(String(500), nullable=True)
    summary_markdown = Column(Text, nullable=True)
    summary_markdown_ar = Column(Text, nullable=True)
    summary_markdown_he = Column(Text, nullable=True)
    references = Column(JSONType, nullable=True)
    available_from = Column(DateTime(timezone=True), nullable=True)
    available_until = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    attachments = relationship(
        "Attachment",
        primaryjoin="Lecture.id == foreign(Attachment.lecture_id)",
        order_by="Attachment.id.asc()",
        viewonly=True,
        lazy="raise",
    )

    __table_args__ = (Index("ix_lectures_unit_order", "unit_id", "order"),)


class Attachment(Base):
    __tablename__ = "attachments"

    id = Column(Integer, primary_key=True, index=True)
    lecture_id = Column(Integer, nullable=False, index=True)
    title = Column(String(255), nullable=False)
    title_ar = Column(String(255), nullable=True)
    title_he = Column(String(255), nullable=True)
    file_url = Column(String(500), nullable=False)
    file_url_ar = Column(String(500), nullable=True)
    file_url_he = Column(String(500), nullable=True)
    file_type = Column(String(50), nullable=False)
    file_size = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)


# ---------------------------
# INTERACTIVE GAMES
# ---------------------------
class InteractiveGame(Base):
    __tablename__ = "interactive_games"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), nullable=False)
    title_ar = Column(String(255), nullable=True)
    title_he = Column(String(255), nullable=True)
    type = Column(SAEnum(GameType, name="game_type"), nullable=False)
    launch_url = Column(String(500), nullable=True)
    launch_url_ar = Column(String(500), nullable=True)
    launch_url_he = Column(String(500), nullable=True)
    config = Column(JSONType, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)


class UnitGame(Base):
    __tablename__ = "unit_games"

    id = Column(Integer, primary_key=True)
    unit_id = Column(Integer, nullable=False, index=True)
    game_id = Column(Integer, nullable=False, index=True)
    required_to_complete = Column(Boolean, default=False, nullable=False)
    scoring_rules = Column(JSONType, nullable=True)
    order = Column(Integer, default=0, nullable=False)


# ---------------------------
# ENROLLMENT & PROGRESS
# ---------------------------
class Enrollment(Base):
    __tablename__ = "enrollments"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, nullable=False, index=True)
    course_id = Column(Integer, nullable=False, index=True)
    status = Column(SAEnum(EnrollmentStatus, name="enrollment_status"), default=EnrollmentStatus.ACTIVE, nullable=False, index=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    last_accessed_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    # a student enrolls in a given course at most once
    __table_args__ = (UniqueConstraint("user_id", "course_id", name="uq_enrollment_user_course"),)


class Progress(Base):
    __tablename__ = "progress"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, nullable=False, index=True)
    lecture_id = Column(Integer, nullable=False, index=True)
    position_sec = Column(Integer, default=0, nullable=False)
    completed = Column(Boolean, default=False, nullable=False, index=True)
    watched_language = Column(language_enum, default=Language.en, nullable=False)
    last_seen_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = (UniqueConstraint("user_id", "lecture_id", name="uq_progress_user_lecture"),)


class GameSession(Base):
    __tablename__ = "game_sessions"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, nullable=False, index=True)
    game_id = Column(Integer, nullable=False, index=True)
    unit_id = Column(Integer, nullable=False, index=True)
    score = Column(Float, nullable=True)
    completed = Column(Boolean, default=False, nullable=False, index=True)
    duration_sec = Column(Integer, nullable=True)
    raw_events = Column(JSONType, nullable=True)
    played_language = Column(language_enum, default=Language.en, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    completed_at = Column(DateTime(timezone=True), nullable=True)


# ---------------------------
# AUDIT & ANALYTICS (append-only)
# ---------------------------
class AuditLog(Base):
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True)
    actor_user_id = Column(Integer, nullable=False, index=True)
    action = Column(String(100), nullable=False)       # CREATE, UPDATE, DELETE, PUBLISH, LINK_GAME, ...
    entity_type = Column(String(100), nullable=False)
    entity_id = Column(Integer, nullable=True)
    meta = Column(JSONType, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)

    __table_args__ = (Index("ix_audit_logs_entity", "entity_type", "entity_id"),)


class AnalyticsEvent(Base):
    __tablename__ = "analytics_events"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, nullable=True, index=True)
    session_id = Column(String(100), nullable=True, index=True)
    event_type = Column(String(100), nullable=False, index=True)  # course_enrolled, lecture_completed, ...
    props = Column(JSONType, nullable=True)
    timestamp = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)
