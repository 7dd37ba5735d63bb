"""ClassCharts student API client."""

import logging
from typing import Any, Callable, TypeVar

import requests

from classcharts.auth.credentials import InMemoryCredentialStore
from classcharts.auth.interfaces import Credential, CredentialStore
from classcharts.core.config import ClientConfig
from classcharts.core.envelope import Success
from classcharts.core.interfaces import StudentProvider
from classcharts.core.models import (
    Announcement,
    JsonValue,
    SessionMeta,
    StudentInfo,
    VersionMeta,
    json_value,
)
from classcharts.providers.classcharts.authenticator import ClassChartsAuthenticator
from classcharts.providers.classcharts.interceptor import BypassAuthInterceptor
from classcharts.providers.classcharts.session import (
    ClientSession,
    RequestsTransport,
    Transport,
)

logger = logging.getLogger(__name__)

D = TypeVar("D")
M = TypeVar("M")

# The student login form is protected by reCAPTCHA in the browser; the API
# accepts this placeholder instead of a real token.
_RECAPTCHA_PLACEHOLDER = "no-token-available"


class ClassChartsClient(StudentProvider):
    """Client for the ClassCharts student API.

    This is the composition root of the library: it wires the credential
    store, the authenticator, the interceptor and the transport together.
    Every operation sends its request through the interceptor, which keeps
    the session credential fresh, and decodes the response envelope.

    Usage::

        with ClassChartsClient() as client:
            client.login("ABC123", "2008-01-01")
            for announcement in client.get_announcements().data:
                print(announcement.title)

    Args:
        config: Endpoint and timeout settings.  Defaults to
            :meth:`ClientConfig.from_env`.
        store: Where the session credential lives.  Defaults to a fresh
            :class:`~classcharts.auth.credentials.InMemoryCredentialStore`.
        transport: Sends HTTP requests.  Defaults to a
            :class:`~classcharts.providers.classcharts.session.RequestsTransport`.
    """

    def __init__(
        self,
        config: ClientConfig | None = None,
        store: CredentialStore | None = None,
        transport: Transport | None = None,
    ):
        self.config = config or ClientConfig.from_env()
        self.store = store if store is not None else InMemoryCredentialStore()
        self.authenticator = ClassChartsAuthenticator(
            store=self.store, url=self.config.url("/ping")
        )
        self.interceptor = BypassAuthInterceptor(
            store=self.store,
            authenticator=self.authenticator,
            bypass_paths=self.config.bypass_paths,
            refresh_timeout=self.config.timeout,
        )
        self.session = ClientSession(
            transport=transport
            or RequestsTransport(
                user_agent=self.config.user_agent,
                timeout=self.config.timeout,
            ),
            interceptor=self.interceptor,
        )

    def __enter__(self) -> "ClassChartsClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    # -------------------------
    # Session
    # -------------------------

    def login(self, code: str, dob: str) -> None:
        """Log a student in and store the new session credential.

        This is the only operation that creates a credential from nothing.

        Args:
            code: The student's access code (case-insensitive).
            dob: Date of birth as ``YYYY-MM-DD``.

        Raises:
            ServerRejectedError: If the server rejects the code or date of
                birth.
            DecodeError: If the response body is corrupted.
            StoreError: If the credential could not be persisted.
            requests.RequestException: On connection-level failures.
        """
        response = self.request(
            "POST",
            "/login",
            json_value,
            SessionMeta.from_wire,
            data={
                "code": code.lower(),
                "dob": dob,
                "recaptcha-token": _RECAPTCHA_PLACEHOLDER,
                "remember": "true",
            },
        )
        self.store.set(Credential.issue(response.meta.session_id))
        logger.info("Logged in to %s", self.config.base_url)

    def logout(self) -> bool:
        """Forget the stored session credential.

        The server-side session is left to expire on its own.

        Returns:
            ``True`` if a credential was removed.
        """
        return self.store.clear()

    def is_authenticated(self) -> bool:
        """Return ``True`` if a session credential is stored."""
        return self.store.get() is not None

    def close(self) -> None:
        """Release the transport and stop the renewal worker."""
        self.authenticator.close()
        self.session.transport.close()

    # -------------------------
    # Resources
    # -------------------------

    def get_announcements(self) -> Success[list[Announcement], JsonValue]:
        """Return the announcements visible to the logged-in student.

        Returns:
            A :class:`~classcharts.core.envelope.Success` whose ``data`` is a
            list of :class:`~classcharts.core.models.Announcement` instances.

        Raises:
            AuthError: If no session can be obtained or renewed.
            ServerRejectedError: If the server rejects the request.
            DecodeError: If the response body is corrupted.
        """
        return self.request(
            "GET", "/announcements", Announcement.list_from_wire, json_value
        )

    def get_student_info(self) -> Success[StudentInfo, VersionMeta]:
        """Return the logged-in student's profile.

        Raises:
            AuthError: If no session can be obtained or renewed.
            ServerRejectedError: If the server rejects the request.
            DecodeError: If the response body is corrupted.
        """
        return self.request(
            "POST",
            "/ping",
            StudentInfo.from_wire,
            VersionMeta.from_wire,
            data={"include_data": "true"},
        )

    def request(
        self,
        method: str,
        path: str,
        decode_data: Callable[[Any], D],
        decode_meta: Callable[[Any], M],
        data: dict | None = None,
        params: dict | None = None,
    ) -> Success[D, M]:
        """Send an intercepted request to a student API endpoint.

        Args:
            method: HTTP method.
            path: Endpoint path relative to the student API prefix, e.g.
                ``"/homeworks"``.
            decode_data: Decoder for the ``data`` member of the response.
            decode_meta: Decoder for the ``meta`` member of the response.
            data: Form-encoded body parameters.
            params: Query string parameters.

        Returns:
            The decoded :class:`~classcharts.core.envelope.Success`.

        Raises:
            AuthError: If no session can be obtained or renewed.
            ServerRejectedError: If the server answers with a failure
                envelope after the retry budget is spent.
            DecodeError: If the response body is corrupted.
            requests.RequestException: On connection-level failures.
        """
        request = requests.Request(
            method,
            self.config.url(path),
            data=data,
            params=params,
        )
        return self.session.execute(request, decode_data, decode_meta)
