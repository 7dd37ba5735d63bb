"""Codec for the ClassCharts response envelope.

Every ClassCharts endpoint answers with one of two JSON shapes that share a
single wire structure::

    {"success": 1, "data": ..., "meta": ...}
    {"success": 0, "error": "Session expired", "expired": 1}

:func:`decode_envelope` turns a body into a :class:`Success` or a
:class:`Failure`.  The success shape is tried first and wins whenever both
``data`` and ``meta`` are present; otherwise the failure shape is tried.
A body matching neither is reported as corrupted.
"""

import re
from dataclasses import asdict, dataclass, is_dataclass
from typing import Any, Callable, Generic, TypeVar, Union

from classcharts.core.exceptions import DecodeError

D = TypeVar("D")
M = TypeVar("M")

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")


@dataclass
class Success(Generic[D, M]):
    """A successful response carrying a payload and its metadata."""

    data: D
    meta: M


@dataclass
class Failure:
    """A failed response.

    Attributes:
        message: Human-readable error returned by the server.
        expired: ``True`` when the server considers the session invalid,
            regardless of how old the local credential is.
    """

    message: str
    expired: bool = False


ApiResponse = Union[Success[D, M], Failure]


def normalize_key(key: str) -> str:
    """Convert a camelCase or PascalCase key to lower snake_case.

    Keys that are already snake_case are returned lower-cased, so
    ``sessionId``, ``SessionID`` and ``session_id`` all become
    ``session_id``.
    """
    return _CAMEL_BOUNDARY.sub("_", key).lower()


def decode_envelope(
    body: Any,
    decode_data: Callable[[Any], D],
    decode_meta: Callable[[Any], M],
) -> Success[D, M] | Failure:
    """Decode a response body into a :class:`Success` or :class:`Failure`.

    Args:
        body: The parsed JSON body.  Envelope members are read verbatim and
            the payloads are handed to the decoders unchanged.
        decode_data: Turns the ``data`` member into the payload type.
        decode_meta: Turns the ``meta`` member into the metadata type.

    Returns:
        The decoded envelope variant.

    Raises:
        DecodeError: If the body matches neither shape, or if ``data`` /
            ``meta`` are present but cannot be decoded.
    """
    if not isinstance(body, dict):
        raise DecodeError(
            f"Corrupted response body: expected an object, "
            f"got {type(body).__name__}"
        )
    if body.get("data") is not None and body.get("meta") is not None:
        try:
            return Success(
                data=decode_data(body["data"]),
                meta=decode_meta(body["meta"]),
            )
        except DecodeError:
            raise
        except (KeyError, TypeError, ValueError) as e:
            raise DecodeError(f"Corrupted response payload: {e}") from e

    code = body.get("success")
    message = body.get("error")
    if (
        isinstance(code, int)
        and not isinstance(code, bool)
        and code == 0
        and isinstance(message, str)
    ):
        # A missing or malformed expiry flag means "not expired".
        expired = body.get("expired")
        return Failure(
            message=message,
            expired=isinstance(expired, int) and expired == 1,
        )

    raise DecodeError(
        "Corrupted response body: could not find `error` or `data`"
    )


def to_wire(value: Any) -> Any:
    """Default encoder: dataclasses become dicts, everything else is kept."""
    if is_dataclass(value) and not isinstance(value, type):
        return asdict(value)
    if isinstance(value, list):
        return [to_wire(item) for item in value]
    return value


def encode_envelope(
    envelope: Success | Failure,
    encode_data: Callable[[Any], Any] = to_wire,
    encode_meta: Callable[[Any], Any] = to_wire,
) -> dict[str, Any]:
    """Encode an envelope variant into its wire shape.

    A :class:`Failure` writes the ``success`` discriminator, the message and
    the expiry flag.  A :class:`Success` writes ``data`` and ``meta`` only.
    """
    if isinstance(envelope, Failure):
        return {
            "success": 0,
            "error": envelope.message,
            "expired": 1 if envelope.expired else 0,
        }
    return {
        "data": encode_data(envelope.data),
        "meta": encode_meta(envelope.meta),
    }
