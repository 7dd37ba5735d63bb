"""Turn raw HTTP responses into envelope variants."""

from typing import Any, Callable, TypeVar

import requests

from classcharts.core.envelope import Failure, Success, decode_envelope
from classcharts.core.exceptions import DecodeError, UnauthorizedError

D = TypeVar("D")
M = TypeVar("M")


def decode_response(
    response: requests.Response,
    decode_data: Callable[[Any], D],
    decode_meta: Callable[[Any], M],
) -> Success[D, M] | Failure:
    """Decode the body of *response* into a :class:`Success` or :class:`Failure`.

    Args:
        response: A response returned by the transport.
        decode_data: Decoder for the ``data`` member.
        decode_meta: Decoder for the ``meta`` member.

    Returns:
        The decoded envelope variant.

    Raises:
        UnauthorizedError: On HTTP 401.
        requests.HTTPError: On any other error status whose body is not JSON.
        DecodeError: If the body is empty, not JSON, or matches neither
            envelope shape.
    """
    if response.status_code == 401:
        raise UnauthorizedError()
    if not response.content:
        response.raise_for_status()
        raise DecodeError("Corrupted response body: empty")
    try:
        body = response.json()
    except ValueError as e:
        response.raise_for_status()
        raise DecodeError("Corrupted response body: not JSON") from e
    return decode_envelope(body, decode_data, decode_meta)
