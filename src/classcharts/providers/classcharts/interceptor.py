"""Request interceptor that attaches, skips, or renews the session credential.

For every outgoing request :meth:`BypassAuthInterceptor.prepare` decides
whether to send it unauthenticated (its path is exempt, or it carries the
``Bypass-Auth: true`` marker) or to attach the current credential, renewing
it first when it is missing or stale.  After a request fails,
:meth:`BypassAuthInterceptor.should_retry` decides whether the failure was
an authentication failure worth exactly one retry with a renewed credential.
"""

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING
from urllib.parse import urlsplit

import requests
from requests.structures import CaseInsensitiveDict

from classcharts.auth.interfaces import Credential, CredentialStore
from classcharts.core.exceptions import ApiError
from classcharts.providers.classcharts.authenticator import ClassChartsAuthenticator

if TYPE_CHECKING:
    from classcharts.providers.classcharts.session import ClientSession

logger = logging.getLogger(__name__)

BYPASS_HEADER = "Bypass-Auth"

# Retries allowed per original request after an authentication failure.
MAX_AUTH_RETRIES = 1


@dataclass
class InterceptedRequest:
    """A request after :meth:`BypassAuthInterceptor.prepare` has run.

    Attributes:
        request: The copy of the request that is actually sent.
        credential: The credential attached to it, or ``None`` when the
            request bypassed authentication.
        retry_count: How many times the original request has been retried.
    """

    request: requests.Request
    credential: Credential | None = None
    retry_count: int = 0

    @property
    def bypassed(self) -> bool:
        return self.credential is None


@dataclass(frozen=True)
class RetryDecision:
    """Outcome of :meth:`BypassAuthInterceptor.should_retry`."""

    retry: bool
    credential: Credential | None = None


PROPAGATE = RetryDecision(retry=False)


def is_auth_failure(error: Exception) -> bool:
    """Return ``True`` if *error* means the server rejected the session."""
    return isinstance(error, ApiError) and error.expired


class BypassAuthInterceptor:
    """Attaches session credentials to every request that is not exempt.

    Args:
        store: Source of the current credential.
        authenticator: Renews credentials that are missing, stale, or
            rejected by the server.
        bypass_paths: URL path prefixes that must never be authenticated,
            such as the login endpoint.
        refresh_timeout: Seconds a request waits for a shared renewal, or
            ``None`` to wait indefinitely.
    """

    def __init__(
        self,
        store: CredentialStore,
        authenticator: ClassChartsAuthenticator,
        bypass_paths: tuple[str, ...] = (),
        refresh_timeout: float | None = None,
    ):
        self._store = store
        self._authenticator = authenticator
        self.bypass_paths = tuple(bypass_paths)
        self._refresh_timeout = refresh_timeout

    def should_bypass(self, request: requests.Request) -> bool:
        """Return ``True`` if *request* must be sent without a credential."""
        headers = CaseInsensitiveDict(request.headers or {})
        if str(headers.get(BYPASS_HEADER, "")).lower() == "true":
            return True
        path = urlsplit(request.url).path
        return any(path.startswith(prefix) for prefix in self.bypass_paths)

    def prepare(
        self,
        request: requests.Request,
        session: "ClientSession",
        credential: Credential | None = None,
        retry_count: int = 0,
    ) -> InterceptedRequest:
        """Return a copy of *request* ready to be sent.

        The original request is never modified, so it can be prepared
        again for a retry.

        Args:
            request: The request built by the client.
            session: The session the request will be sent through; passed
                on to the authenticator when a renewal is needed.
            credential: Credential to attach instead of the stored one
                (used for retries).
            retry_count: Number of retries already attempted.

        Returns:
            An :class:`InterceptedRequest` wrapping the adapted copy.

        Raises:
            AuthError: If a credential is needed but cannot be obtained.
        """
        bypass = self.should_bypass(request)
        adapted = _copy_request(request)
        adapted.headers.pop(BYPASS_HEADER, None)

        if bypass:
            logger.debug("Bypassing authentication for %s", _path(request))
            return InterceptedRequest(adapted, None, retry_count)

        credential = credential or self._store.get()
        if credential is None or credential.requires_refresh:
            logger.debug(
                "Credential %s before %s",
                "missing" if credential is None else "stale",
                _path(request),
            )
            credential = self._authenticator.refresh(
                credential, session, timeout=self._refresh_timeout
            )

        adapted.headers["Authorization"] = credential.authorization_header
        return InterceptedRequest(adapted, credential, retry_count)

    def should_retry(
        self,
        intercepted: InterceptedRequest,
        session: "ClientSession",
        error: Exception,
    ) -> RetryDecision:
        """Decide whether a failed request should be sent again.

        Only authentication failures of authenticated requests are retried,
        and only once.  The credential the request was sent with is renewed
        before the retry.

        Returns:
            A :class:`RetryDecision` carrying the renewed credential, or
            :data:`PROPAGATE`.

        Raises:
            AuthError: If the renewal fails.
        """
        if intercepted.bypassed or not is_auth_failure(error):
            return PROPAGATE
        if intercepted.retry_count >= MAX_AUTH_RETRIES:
            logger.debug(
                "Giving up on %s after %d retry",
                _path(intercepted.request),
                intercepted.retry_count,
            )
            return PROPAGATE

        logger.debug(
            "Session rejected for %s; renewing", _path(intercepted.request)
        )
        credential = self._authenticator.refresh(
            intercepted.credential, session, timeout=self._refresh_timeout
        )
        return RetryDecision(retry=True, credential=credential)


def _copy_request(request: requests.Request) -> requests.Request:
    return requests.Request(
        method=request.method,
        url=request.url,
        headers=CaseInsensitiveDict(request.headers or {}),
        data=request.data,
        params=request.params,
        json=request.json,
    )


def _path(request: requests.Request) -> str:
    return urlsplit(request.url).path
