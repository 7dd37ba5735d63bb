"""Payload dataclasses decoded from ClassCharts responses.

Every model exposes a ``from_wire`` classmethod that accepts the ``data``
or ``meta`` member of a response envelope as received.  Object keys are
normalised to snake_case while decoding, so ``sessionId`` and ``session_id``
are read alike.  Decoders raise
:class:`~classcharts.core.exceptions.DecodeError` when a required field is
missing or has the wrong type.
"""

from dataclasses import dataclass
from typing import Any, Union

from classcharts.core.envelope import normalize_key
from classcharts.core.exceptions import DecodeError

JsonValue = Union[
    None, bool, int, float, str, list["JsonValue"], dict[str, "JsonValue"]
]


def json_value(raw: Any) -> JsonValue:
    """Validate an arbitrary JSON-like value.

    Used for metadata whose shape the library does not care about.
    Primitive shapes are tried first; lists and dicts are checked
    recursively.

    Args:
        raw: A value produced by :func:`json.loads`.

    Returns:
        The value, unchanged.

    Raises:
        DecodeError: If the value (or anything nested in it) is not a JSON
            primitive, list, or string-keyed dict.
    """
    if raw is None or isinstance(raw, (bool, int, float, str)):
        return raw
    if isinstance(raw, list):
        return [json_value(item) for item in raw]
    if isinstance(raw, dict):
        for key in raw:
            if not isinstance(key, str):
                raise DecodeError(f"Unsupported object key: {key!r}")
        return {key: json_value(value) for key, value in raw.items()}
    raise DecodeError(f"Unsupported value type: {type(raw).__name__}")


def _mapping(raw: Any, name: str) -> dict:
    if not isinstance(raw, dict):
        raise DecodeError(f"Expected an object for {name}, got {type(raw).__name__}")
    return {
        normalize_key(key) if isinstance(key, str) else key: value
        for key, value in raw.items()
    }


def _field(raw: dict, key: str, expected: type | tuple[type, ...]) -> Any:
    if key not in raw:
        raise DecodeError(f"Missing field '{key}'")
    value = raw[key]
    # bool is a subclass of int; never accept it where a number is expected.
    if isinstance(value, bool) and bool not in (
        expected if isinstance(expected, tuple) else (expected,)
    ):
        raise DecodeError(f"Field '{key}' has unexpected type bool")
    if not isinstance(value, expected):
        raise DecodeError(
            f"Field '{key}' has unexpected type {type(value).__name__}"
        )
    return value


# ----------------------
# Session
# ----------------------


@dataclass
class SessionMeta:
    """Metadata returned by the login endpoint."""

    session_id: str

    @classmethod
    def from_wire(cls, raw: Any) -> "SessionMeta":
        raw = _mapping(raw, "meta")
        return cls(session_id=_field(raw, "session_id", str))


@dataclass
class SessionInfoMeta:
    """Metadata returned by the session renewal (``/ping``) endpoint."""

    version: str
    session_id: str

    @classmethod
    def from_wire(cls, raw: Any) -> "SessionInfoMeta":
        raw = _mapping(raw, "meta")
        return cls(
            version=_field(raw, "version", str),
            session_id=_field(raw, "session_id", str),
        )


@dataclass
class VersionMeta:
    """Metadata carrying only the API version."""

    version: str

    @classmethod
    def from_wire(cls, raw: Any) -> "VersionMeta":
        raw = _mapping(raw, "meta")
        return cls(version=_field(raw, "version", str))


# ----------------------
# Student
# ----------------------


@dataclass
class Student:
    """The logged-in student's profile."""

    id: int
    name: str
    first_name: str
    last_name: str
    avatar_url: str
    display_behaviour: bool
    """Whether the school shows behaviour points to the student."""

    display_detentions: bool
    """Whether the school shows detentions to the student."""

    @classmethod
    def from_wire(cls, raw: Any) -> "Student":
        raw = _mapping(raw, "user")
        return cls(
            id=_field(raw, "id", int),
            name=_field(raw, "name", str),
            first_name=_field(raw, "first_name", str),
            last_name=_field(raw, "last_name", str),
            avatar_url=_field(raw, "avatar_url", str),
            display_behaviour=_field(raw, "display_behaviour", bool),
            display_detentions=_field(raw, "display_detentions", bool),
        )


@dataclass
class StudentInfo:
    """``data`` member of the student info response."""

    user: Student

    @classmethod
    def from_wire(cls, raw: Any) -> "StudentInfo":
        raw = _mapping(raw, "data")
        return cls(user=Student.from_wire(_field(raw, "user", dict)))


# ----------------------
# Announcement
# ----------------------


@dataclass
class Announcement:
    """A school announcement visible to the student."""

    id: int
    title: str
    description: str

    @classmethod
    def from_wire(cls, raw: Any) -> "Announcement":
        raw = _mapping(raw, "announcement")
        return cls(
            id=_field(raw, "id", int),
            title=_field(raw, "title", str),
            description=_field(raw, "description", str),
        )

    @classmethod
    def list_from_wire(cls, raw: Any) -> list["Announcement"]:
        """Decode the ``data`` array of the announcements response."""
        if not isinstance(raw, list):
            raise DecodeError(
                f"Expected a list of announcements, got {type(raw).__name__}"
            )
        return [cls.from_wire(item) for item in raw]
