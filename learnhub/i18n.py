"""Trilingual field resolution.

Every user-facing text field is stored three times: the base (English) value
in ``field`` and optional Arabic/Hebrew overrides in ``field_ar`` and
``field_he``. A missing or empty override falls back to the base value.
"""
from __future__ import annotations

from typing import Any, Callable, Dict, Iterable, Mapping, Union

from .models import Attachment, Course, InteractiveGame, Language, Lecture, School, Unit

SUFFIXES = {Language.ar: "_ar", Language.he: "_he"}

# Translatable fields per entity, in the order they are rendered
TRANSLATABLE_FIELDS: Dict[type, tuple[str, ...]] = {
    School: ("name",),
    Course: ("title", "description", "prerequisites", "learning_outcomes", "tags"),
    Unit: ("title", "description"),
    Lecture: ("title", "description", "video_url", "captions_url", "summary_markdown"),
    Attachment: ("title", "file_url"),
    InteractiveGame: ("title", "launch_url"),
}


def _coerce_language(language: Union[Language, str, None]) -> Language:
    if isinstance(language, Language):
        return language
    try:
        return Language((language or "en").strip().lower())
    except ValueError:
        return Language.en


def _read(record: Any, name: str) -> Any:
    if isinstance(record, Mapping):
        return record.get(name)
    return getattr(record, name, None)


def localize(record: Any, field: str, language: Union[Language, str, None]) -> Any:
    """Return ``field`` of ``record`` in ``language``, falling back to the base value.

    ``record`` may be an ORM row or a plain mapping with snake_case keys.
    Unknown language codes resolve to English.
    """
    lang = _coerce_language(language)
    base = _read(record, field)
    suffix = SUFFIXES.get(lang)
    if suffix is None:
        return base
    override = _read(record, f"{field}{suffix}")
    return override if override else base


def _resolver(fields: Iterable[str]) -> Callable[[Any, Union[Language, str, None]], Dict[str, Any]]:
    fields = tuple(fields)

    def resolve(record: Any, language: Union[Language, str, None]) -> Dict[str, Any]:
        return {name: localize(record, name, language) for name in fields}

    return resolve


localize_course = _resolver(TRANSLATABLE_FIELDS[Course])
localize_unit = _resolver(TRANSLATABLE_FIELDS[Unit])
localize_lecture = _resolver(TRANSLATABLE_FIELDS[Lecture])


def localize_any(record: Any, language: Union[Language, str, None]) -> Dict[str, Any]:
    fields = TRANSLATABLE_FIELDS.get(type(record))
    if fields is None:
        raise TypeError(f"{type(record).__name__} has no translatable fields")
    return {name: localize(record, name, language) for name in fields}
