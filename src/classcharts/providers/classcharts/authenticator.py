"""Session renewal for the ClassCharts student API.

ClassCharts sessions are renewed by calling the ``/ping`` endpoint with the
current session token; the response carries a new token.  Several requests
may notice a stale or rejected credential at the same moment, so renewals
are single-flight: at most one ``/ping`` call is in flight at a time, and
every caller that arrives meanwhile receives its result.
"""

import concurrent.futures
import logging
import threading
from typing import TYPE_CHECKING

import requests

from classcharts.auth.interfaces import Credential, CredentialStore
from classcharts.core.envelope import Failure
from classcharts.core.exceptions import (
    AuthenticationRequiredError,
    AuthRejectedError,
    AuthTransportError,
    DecodeError,
    RefreshTimeoutError,
    StoreError,
    UnauthorizedError,
)
from classcharts.core.models import SessionInfoMeta, json_value
from classcharts.providers.classcharts.responses import decode_response

if TYPE_CHECKING:
    from classcharts.providers.classcharts.session import ClientSession

logger = logging.getLogger(__name__)


class ClassChartsAuthenticator:
    """Produces fresh credentials by calling the session renewal endpoint.

    Renewals run on a dedicated worker thread.  A caller that stops waiting
    (see the ``timeout`` argument of :meth:`refresh`) never cancels a
    renewal that other callers depend on.

    Args:
        store: Credential store read before each renewal and written after
            a successful one.
        url: Absolute URL of the renewal (``/ping``) endpoint.
    """

    def __init__(self, store: CredentialStore, url: str):
        self._store = store
        self.url = url
        self._lock = threading.Lock()
        self._inflight: concurrent.futures.Future | None = None
        self._executor = concurrent.futures.ThreadPoolExecutor(
            max_workers=1, thread_name_prefix="classcharts-refresh"
        )

    def refresh(
        self,
        stale: Credential | None,
        session: "ClientSession",
        timeout: float | None = None,
    ) -> Credential:
        """Return a credential to use instead of *stale*.

        If the store already holds a different, fresh credential (another
        caller renewed it in the meantime) that credential is returned
        without any network call.  Otherwise a renewal is started, or the
        one already in flight is joined.

        Args:
            stale: The credential that is stale or was rejected, or ``None``
                when the request had no credential at all.
            session: Session through which the renewal request is sent.
            timeout: Seconds to wait for the renewal, or ``None`` to wait
                until it completes.

        Returns:
            The renewed (or already current) credential.

        Raises:
            AuthenticationRequiredError: If there is no credential to renew.
            AuthRejectedError: If the server refuses to renew the session.
            AuthTransportError: If the renewal call fails or its body is
                unusable.
            RefreshTimeoutError: If *timeout* elapses first.
        """
        with self._lock:
            latest = self._store.get() or stale
            if latest is None:
                raise AuthenticationRequiredError(
                    "No ClassCharts session found. Log in first."
                )
            # NOTE: an unequal credential is trusted as soon as it is not
            # stale by age, even if the server has already expired it.
            if latest != stale and not latest.requires_refresh:
                logger.debug("Credential already renewed by another caller")
                return latest

            if self._inflight is None:
                logger.debug("Starting session renewal")
                self._inflight = self._executor.submit(
                    self._renew, latest, session
                )
            future = self._inflight

        try:
            return future.result(timeout=timeout)
        except concurrent.futures.TimeoutError as e:
            raise RefreshTimeoutError(
                f"Session renewal did not finish within {timeout} seconds"
            ) from e

    def close(self) -> None:
        """Stop the renewal worker once any in-flight renewal is done."""
        self._executor.shutdown(wait=False)

    # -------------------------
    # Internal helpers
    # -------------------------

    def _renew(self, latest: Credential, session: "ClientSession") -> Credential:
        try:
            credential = self._request_renewal(latest, session)
        except Exception:
            with self._lock:
                self._inflight = None
            raise

        # The store write and the slot release are one step for refresh().
        with self._lock:
            try:
                self._store.set(credential)
            except StoreError as e:
                logger.warning("Renewed session could not be saved: %s", e)
            finally:
                self._inflight = None
        logger.info("Session renewed")
        return credential

    def _request_renewal(
        self, latest: Credential, session: "ClientSession"
    ) -> Credential:
        """Call the renewal endpoint and return the credential it grants.

        The request authenticates manually with the best known token and
        carries the bypass marker, so the interceptor neither attaches the
        stale credential nor tries to renew it again.
        """
        request = requests.Request(
            "POST",
            self.url,
            headers={
                "Authorization": latest.authorization_header,
                "Bypass-Auth": "true",
            },
            data={"include_data": "true"},
        )

        try:
            response = session.send(request)
            envelope = decode_response(
                response, json_value, SessionInfoMeta.from_wire
            )
        except UnauthorizedError as e:
            raise AuthRejectedError(e.message, expired=True) from e
        except (requests.RequestException, DecodeError) as e:
            raise AuthTransportError(f"Session renewal failed: {e}") from e

        if isinstance(envelope, Failure):
            raise AuthRejectedError(envelope.message, expired=envelope.expired)

        return Credential.issue(envelope.meta.session_id)
