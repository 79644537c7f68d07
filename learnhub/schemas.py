from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from pydantic.alias_generators import to_camel
from typing import Any, Literal, Optional, List
from datetime import datetime

from .models import EnrollmentStatus, GameType, Language, Role, Visibility


class CamelModel(BaseModel):
    """camelCase on the wire (`titleAr`), snake_case in Python (`title_ar`)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


def not_null(*fields: str):
    """Field validator for partial updates: a field may be left out but not set to null."""

    def check(cls, value):
        if value is None:
            raise ValueError("may be omitted but not null")
        return value

    return field_validator(*fields)(check)


def lower_email(*fields: str):
    """Store emails lowercased; login lookups compare case-insensitively."""

    def normalize(cls, value):
        return value.strip().lower() if isinstance(value, str) else value

    return field_validator(*fields)(normalize)


class IdInput(CamelModel):
    id: int


class PageInput(CamelModel):
    limit: Optional[int] = Field(default=None, ge=1, le=500)
    offset: Optional[int] = Field(default=None, ge=0)


class Success(CamelModel):
    success: bool = True
    id: Optional[int] = None


# =========================
# USERS / AUTH
# =========================
class UserRead(CamelModel):
    id: int
    open_id: str
    external_id: str
    email: Optional[str] = None
    first_name: str
    last_name: str
    role: Role
    preferred_language: Language
    school_id: Optional[int] = None
    created_at: Optional[datetime] = None
    last_signed_in: Optional[datetime] = None


class UpdateLanguageInput(CamelModel):
    language: Language


class UpdateProfileInput(CamelModel):
    first_name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    email: Optional[EmailStr] = None
    preferred_language: Optional[Language] = None

    reject_null = not_null("first_name", "last_name", "preferred_language")
    normalize_email = lower_email("email")


class SignInInput(CamelModel):
    open_id: str = Field(min_length=1, max_length=64)
    external_id: str = Field(min_length=1, max_length=64)
    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    email: Optional[EmailStr] = None
    password: str = Field(min_length=8, max_length=128)

    normalize_email = lower_email("email")


# =========================
# SCHOOLS
# =========================
class SchoolCreate(CamelModel):
    name: str = Field(min_length=1, max_length=255)
    name_ar: Optional[str] = None
    name_he: Optional[str] = None
    region: Optional[str] = None
    contact_email: Optional[EmailStr] = None
    meta: Optional[Any] = None


class SchoolUpdate(CamelModel):
    id: int
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    name_ar: Optional[str] = None
    name_he: Optional[str] = None
    region: Optional[str] = None
    contact_email: Optional[EmailStr] = None

    reject_null = not_null("name")


class SchoolRead(CamelModel):
    id: int
    name: str
    name_ar: Optional[str] = None
    name_he: Optional[str] = None
    region: Optional[str] = None
    contact_email: Optional[str] = None
    meta: Optional[Any] = None
    created_at: Optional[datetime] = None


# =========================
# COURSES
# =========================
class CourseListInput(PageInput):
    visibility: Optional[Visibility] = None
    created_by: Optional[int] = None
    search: Optional[str] = None


class CourseGetInput(CamelModel):
    id: int
    # resolved text for this language; defaults to the caller's preference
    language: Optional[Language] = None


class CourseCreate(CamelModel):
    title: str = Field(min_length=1, max_length=255)
    title_ar: Optional[str] = None
    title_he: Optional[str] = None
    description: str
    description_ar: Optional[str] = None
    description_he: Optional[str] = None
    thumbnail_url: Optional[str] = None
    tags: List[str]
    tags_ar: Optional[List[str]] = None
    tags_he: Optional[List[str]] = None
    visibility: Visibility
    prerequisites: Optional[str] = None
    prerequisites_ar: Optional[str] = None
    prerequisites_he: Optional[str] = None
    learning_outcomes: Optional[str] = None
    learning_outcomes_ar: Optional[str] = None
    learning_outcomes_he: Optional[str] = None
    estimated_duration: Optional[int] = Field(default=None, ge=0)


class CourseUpdate(CamelModel):
    id: int
    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    title_ar: Optional[str] = None
    title_he: Optional[str] = None
    description: Optional[str] = None
    description_ar: Optional[str] = None
    description_he: Optional[str] = None
    thumbnail_url: Optional[str] = None
    tags: Optional[List[str]] = None
    tags_ar: Optional[List[str]] = None
    tags_he: Optional[List[str]] = None
    visibility: Optional[Visibility] = None
    prerequisites: Optional[str] = None
    prerequisites_ar: Optional[str] = None
    prerequisites_he: Optional[str] = None
    learning_outcomes: Optional[str] = None
    learning_outcomes_ar: Optional[str] = None
    learning_outcomes_he: Optional[str] = None
    estimated_duration: Optional[int] = Field(default=None, ge=0)

    reject_null = not_null("title", "description", "tags", "tags_ar", "tags_he", "visibility")


class CourseRead(CamelModel):
    id: int
    title: str
    title_ar: Optional[str] = None
    title_he: Optional[str] = None
    description: str
    description_ar: Optional[str] = None
    description_he: Optional[str] = None
    thumbnail_url: Optional[str] = None
    tags: List[str] = []
    tags_ar: List[str] = []
    tags_he: List[str] = []
    visibility: Visibility
    prerequisites: Optional[str] = None
    prerequisites_ar: Optional[str] = None
    prerequisites_he: Optional[str] = None
    learning_outcomes: Optional[str] = None
    learning_outcomes_ar: Optional[str] = None
    learning_outcomes_he: Optional[str] = None
    estimated_duration: Optional[int] = None
    created_by: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    published_at: Optional[datetime] = None


class CoursePreview(CamelModel):
    description: str
    description_ar: Optional[str] = None
    description_he: Optional[str] = None
    estimated_duration: Optional[int] = None
    unit_count: int
    learning_outcomes: Optional[str] = None


# =========================
# UNITS / LECTURES / ATTACHMENTS
# =========================
class UnitListInput(CamelModel):
    course_id: int


class UnitCreate(CamelModel):
    course_id: int
    title: str = Field(min_length=1, max_length=255)
    title_ar: Optional[str] = None
    title_he: Optional[str] = None
    description: Optional[str] = None
    description_ar: Optional[str] = None
    description_he: Optional[str] = None
    order: int


class UnitUpdate(CamelModel):
    id: int
    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    title_ar: Optional[str] = None
    title_he: Optional[str] = None
    description: Optional[str] = None
    description_ar: Optional[str] = None
    description_he: Optional[str] = None
    order: Optional[int] = None

    reject_null = not_null("title", "order")


class LectureCreate(CamelModel):
    unit_id: int
    title: str = Field(min_length=1, max_length=255)
    title_ar: Optional[str] = None
    title_he: Optional[str] = None
    description: Optional[str] = None
    description_ar: Optional[str] = None
    description_he: Optional[str] = None
    order: int
    video_url: str = Field(min_length=1, max_length=500)
    video_url_ar: Optional[str] = None
    video_url_he: Optional[str] = None
    duration_sec: int = Field(gt=0)
    captions_url: Optional[str] = None
    captions_url_ar: Optional[str] = None
    captions_url_he: Optional[str] = None
    summary_markdown: Optional[str] = None
    summary_markdown_ar: Optional[str] = None
    summary_markdown_he: Optional[str] = None
    references: Optional[Any] = None
    available_from: Optional[datetime] = None
    available_until: Optional[datetime] = None


class LectureUpdate(CamelModel):
    id: int
    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    title_ar: Optional[str] = None
    title_he: Optional[str] = None
    description: Optional[str] = None
    description_ar: Optional[str] = None
    description_he: Optional[str] = None
    order: Optional[int] = None
    video_url: Optional[str] = Field(default=None, min_length=1, max_length=500)
    video_url_ar: Optional[str] = None
    video_url_he: Optional[str] = None
    duration_sec: Optional[int] = Field(default=None, gt=0)
    captions_url: Optional[str] = None
    captions_url_ar: Optional[str] = None
    captions_url_he: Optional[str] = None
    summary_markdown: Optional[str] = None
    summary_markdown_ar: Optional[str] = None
    summary_markdown_he: Optional[str] = None
    references: Optional[Any] = None

    reject_null = not_null("title", "order", "video_url", "duration_sec")


class LectureRead(CamelModel):
    id: int
    unit_id: int
    title: str
    title_ar: Optional[str] = None
    title_he: Optional[str] = None
    description: Optional[str] = None
    description_ar: Optional[str] = None
    description_he: Optional[str] = None
    order: int
    video_url: str
    video_url_ar: Optional[str] = None
    video_url_he: Optional[str] = None
    duration_sec: int
    captions_url: Optional[str] = None
    captions_url_ar: Optional[str] = None
    captions_url_he: Optional[str] = None
    summary_markdown: Optional[str] = None
    summary_markdown_ar: Optional[str] = None
    summary_markdown_he: Optional[str] = None
    references: Optional[Any] = None
    available_from: Optional[datetime] = None
    available_until: Optional[datetime] = None
    created_at: Optional[datetime] = None


class UnitRead(CamelModel):
    id: int
    course_id: int
    title: str
    title_ar: Optional[str] = None
    title_he: Optional[str] = None
    description: Optional[str] = None
    description_ar: Optional[str] = None
    description_he: Optional[str] = None
    order: int
    created_at: Optional[datetime] = None


class UnitWithLectures(UnitRead):
    lectures: List[LectureRead] = []


class CourseDetail(CamelModel):
    course: CourseRead
    units: List[UnitWithLectures]
    language: Language
    localized: dict[str, Any]


class UploadUrlInput(CamelModel):
    file_name: str = Field(min_length=1, max_length=255)
    file_type: str = Field(min_length=1, max_length=100)


class UploadUrlRead(CamelModel):
    file_key: str
    upload_url: str
    video_url: str


class AttachmentListInput(CamelModel):
    lecture_id: int


class AttachmentCreate(CamelModel):
    lecture_id: int
    title: str = Field(min_length=1, max_length=255)
    title_ar: Optional[str] = None
    title_he: Optional[str] = None
    file_url: str = Field(min_length=1, max_length=500)
    file_url_ar: Optional[str] = None
    file_url_he: Optional[str] = None
    file_type: str = Field(min_length=1, max_length=50)
    file_size: Optional[int] = Field(default=None, ge=0)


class AttachmentUpdate(CamelModel):
    id: int
    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    title_ar: Optional[str] = None
    title_he: Optional[str] = None
    file_url: Optional[str] = Field(default=None, min_length=1, max_length=500)
    file_url_ar: Optional[str] = None
    file_url_he: Optional[str] = None
    file_type: Optional[str] = Field(default=None, min_length=1, max_length=50)
    file_size: Optional[int] = Field(default=None, ge=0)

    reject_null = not_null("title", "file_url", "file_type")


class AttachmentRead(CamelModel):
    id: int
    lecture_id: int
    title: str
    title_ar: Optional[str] = None
    title_he: Optional[str] = None
    file_url: str
    file_url_ar: Optional[str] = None
    file_url_he: Optional[str] = None
    file_type: str
    file_size: Optional[int] = None
    created_at: Optional[datetime] = None


class LectureDetail(CamelModel):
    lecture: LectureRead
    attachments: List[AttachmentRead]


# =========================
# GAMES
# =========================
class GameCreate(CamelModel):
    title: str = Field(min_length=1, max_length=255)
    title_ar: Optional[str] = None
    title_he: Optional[str] = None
    type: GameType
    launch_url: Optional[str] = None
    launch_url_ar: Optional[str] = None
    launch_url_he: Optional[str] = None
    config: Optional[Any] = None


class GameRead(CamelModel):
    id: int
    title: str
    title_ar: Optional[str] = None
    title_he: Optional[str] = None
    type: GameType
    launch_url: Optional[str] = None
    launch_url_ar: Optional[str] = None
    launch_url_he: Optional[str] = None
    config: Optional[Any] = None
    created_at: Optional[datetime] = None


class LinkGameInput(CamelModel):
    unit_id: int
    game_id: int
    required_to_complete: bool
    scoring_rules: Optional[Any] = None
    order: int


class UnitGameRead(CamelModel):
    id: int
    unit_id: int
    game_id: int
    required_to_complete: bool
    scoring_rules: Optional[Any] = None
    order: int


class UnitGameEntry(CamelModel):
    unit_game: UnitGameRead
    game: Optional[GameRead] = None


class UnitDetail(CamelModel):
    unit: UnitRead
    lectures: List[LectureRead]
    games: List[UnitGameEntry]


class GameSessionCreate(CamelModel):
    game_id: int
    unit_id: int
    played_language: Language


class GameSessionUpdate(CamelModel):
    session_id: int
    score: Optional[float] = None
    completed: Optional[bool] = None
    duration_sec: Optional[int] = Field(default=None, ge=0)
    raw_events: Optional[Any] = None

    reject_null = not_null("completed")

class GameSessionRead(CamelModel):
    id: int
    user_id: int
    game_id: int
    unit_id: int
    score: Optional[float] = None
    completed: bool
    duration_sec: Optional[int] = None
    raw_events: Optional[Any] = None
    played_language: Language
    created_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None


# =========================
# ENROLLMENT & PROGRESS
# =========================
class EnrollInput(CamelModel):
    course_id: int


class EnrollmentRead(CamelModel):
    id: int
    user_id: int
    course_id: int
    status: EnrollmentStatus
    completed_at: Optional[datetime] = None
    last_accessed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None


class EnrollmentWithCourse(CamelModel):
    enrollment: EnrollmentRead
    course: Optional[CourseRead] = None


class EnrollmentWithUser(CamelModel):
    enrollment: EnrollmentRead
    user: Optional[UserRead] = None


class CourseIdInput(CamelModel):
    course_id: int


class SetEnrollmentStatusInput(CamelModel):
    id: int
    status: EnrollmentStatus


class ProgressUpdateInput(CamelModel):
    lecture_id: int
    position_sec: int = Field(ge=0)
    completed: bool
    watched_language: Language


class ProgressGetInput(CamelModel):
    lecture_id: int


class ProgressRead(CamelModel):
    id: int
    user_id: int
    lecture_id: int
    position_sec: int
    completed: bool
    watched_language: Language
    last_seen_at: Optional[datetime] = None
    created_at: Optional[datetime] = None


# =========================
# STUDENTS (teacher view)
# =========================
class StudentListInput(PageInput):
    school_id: Optional[int] = None
    search: Optional[str] = None


class StudentDetail(CamelModel):
    student: UserRead
    enrollments: List[EnrollmentWithCourse]
    progress: List[ProgressRead]
    game_sessions: List[GameSessionRead]


# =========================
# ANALYTICS / AUDIT
# =========================
class OverviewInput(CamelModel):
    range: Optional[Literal["7d", "30d", "90d", "1y"]] = None


class OverviewRead(CamelModel):
    course_count: int
    student_count: int
    school_count: int
    dau: int
    mau: int
    average_watch_time: float
    completion_rate: float
    game_play_rate: float


class CourseAnalyticsRead(CamelModel):
    enrollments: int
    completions: int
    completion_rate: float


class EventsInput(CamelModel):
    user_id: Optional[int] = None
    event_type: Optional[str] = None
    limit: Optional[int] = Field(default=None, ge=1, le=500)


class AnalyticsEventRead(CamelModel):
    id: int
    user_id: Optional[int] = None
    session_id: Optional[str] = None
    event_type: str
    props: Optional[Any] = None
    timestamp: Optional[datetime] = None


class AuditListInput(PageInput):
    actor_user_id: Optional[int] = None
    entity_type: Optional[str] = None


class AuditLogRead(CamelModel):
    id: int
    actor_user_id: int
    action: str
    entity_type: str
    entity_id: Optional[int] = None
    meta: Optional[Any] = None
    created_at: Optional[datetime] = None
