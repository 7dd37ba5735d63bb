"""HTTP transport and the intercepted request pipeline."""

import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, TypeVar

import requests

from classcharts.core.envelope import Failure, Success
from classcharts.core.exceptions import (
    ApiError,
    ServerRejectedError,
    SessionExpiredError,
)
from classcharts.providers.classcharts.interceptor import (
    MAX_AUTH_RETRIES,
    BypassAuthInterceptor,
    InterceptedRequest,
    is_auth_failure,
)
from classcharts.providers.classcharts.responses import decode_response

logger = logging.getLogger(__name__)

D = TypeVar("D")
M = TypeVar("M")


class Transport(ABC):
    """Narrow send-request capability the client depends on."""

    @abstractmethod
    def send(self, request: requests.Request) -> requests.Response:
        """Send *request* and return the raw response.

        *request* is an unprepared :class:`requests.Request`; preparing it
        (default headers, body encoding) is up to the transport.

        Raises:
            requests.RequestException: On connection-level failures.
        """

    def close(self) -> None:
        """Release any pooled connections."""


class RequestsTransport(Transport):
    """Transport backed by a :class:`requests.Session`.

    Args:
        user_agent: The User-Agent header value for all HTTP requests.
        timeout: Per-request timeout in seconds.
    """

    def __init__(self, user_agent: str, timeout: float = 20.0):
        self.timeout = timeout
        self.session = requests.Session()
        self.session.headers.update({
            "User-Agent": user_agent,
            "Accept": "application/json",
        })

    def send(self, request: requests.Request) -> requests.Response:
        prepared = self.session.prepare_request(request)
        return self.session.send(prepared, timeout=self.timeout)

    def close(self) -> None:
        self.session.close()


class ClientSession:
    """Runs requests through the interceptor and the transport.

    Args:
        transport: Sends the adapted requests.
        interceptor: Decides how each request is authenticated.
    """

    def __init__(self, transport: Transport, interceptor: BypassAuthInterceptor):
        self.transport = transport
        self.interceptor = interceptor

    def send(self, request: requests.Request) -> requests.Response:
        """Prepare and send *request* once, without decoding or retrying.

        Raises:
            AuthError: If a credential is needed but cannot be obtained.
            requests.RequestException: On connection-level failures.
        """
        return self._dispatch(self.interceptor.prepare(request, self))

    def execute(
        self,
        request: requests.Request,
        decode_data: Callable[[Any], D],
        decode_meta: Callable[[Any], M],
    ) -> Success[D, M]:
        """Send *request*, decode its envelope, and retry once on auth failure.

        Args:
            request: The request to send.  It is never modified.
            decode_data: Decoder for the ``data`` member of the response.
            decode_meta: Decoder for the ``meta`` member of the response.

        Returns:
            The decoded :class:`~classcharts.core.envelope.Success`.

        Raises:
            ServerRejectedError: If the server answers with a failure
                envelope that does not call for a retry.
            SessionExpiredError: If the session is still rejected after
                it was renewed.
            AuthError: If a credential cannot be obtained or renewed.
            DecodeError: If the body matches neither envelope shape.
            requests.RequestException: On connection-level failures.
        """
        intercepted = self.interceptor.prepare(request, self)
        while True:
            try:
                envelope = decode_response(
                    self._dispatch(intercepted), decode_data, decode_meta
                )
                if isinstance(envelope, Failure):
                    raise ServerRejectedError(envelope.message, envelope.expired)
                return envelope
            except ApiError as error:
                decision = self.interceptor.should_retry(intercepted, self, error)
                if not decision.retry:
                    if (
                        is_auth_failure(error)
                        and not intercepted.bypassed
                        and intercepted.retry_count >= MAX_AUTH_RETRIES
                    ):
                        raise SessionExpiredError(error.message) from error
                    raise
            intercepted = self.interceptor.prepare(
                request,
                self,
                credential=decision.credential,
                retry_count=intercepted.retry_count + 1,
            )

    def _dispatch(self, intercepted: InterceptedRequest) -> requests.Response:
        request = intercepted.request
        logger.debug("%s %s", request.method, request.url)
        return self.transport.send(request)
