"""Unit tests for the bypass-aware request interceptor."""

from unittest.mock import MagicMock

import pytest
import requests

from classcharts.auth.interfaces import Credential
from classcharts.core.exceptions import (
    DecodeError,
    ServerRejectedError,
    UnauthorizedError,
)
from classcharts.providers.classcharts.interceptor import (
    PROPAGATE,
    BypassAuthInterceptor,
    InterceptedRequest,
)

URL = "https://classcharts.test/apiv2student"


@pytest.fixture()
def authenticator():
    auth = MagicMock()
    auth.refresh.return_value = Credential.issue("RENEWED")
    return auth


@pytest.fixture()
def interceptor(store, authenticator):
    return BypassAuthInterceptor(
        store=store,
        authenticator=authenticator,
        bypass_paths=("/apiv2student/login",),
        refresh_timeout=5,
    )


@pytest.fixture()
def session():
    return MagicMock()


class TestPrepare:
    def test_bypass_path_never_authenticated(
        self, interceptor, store, authenticator, session, fresh_credential
    ):
        store.set(fresh_credential)
        result = interceptor.prepare(
            requests.Request("POST", f"{URL}/login"), session
        )
        assert "Authorization" not in result.request.headers
        assert result.bypassed
        authenticator.refresh.assert_not_called()

    def test_bypass_path_without_credential(
        self, interceptor, authenticator, session
    ):
        result = interceptor.prepare(
            requests.Request("POST", f"{URL}/login"), session
        )
        assert "Authorization" not in result.request.headers
        authenticator.refresh.assert_not_called()

    def test_bypass_marker_is_stripped(self, interceptor, authenticator, session):
        request = requests.Request(
            "POST",
            f"{URL}/ping",
            headers={"Authorization": "Basic OLD", "bypass-auth": "True"},
        )
        result = interceptor.prepare(request, session)
        assert "Bypass-Auth" not in result.request.headers
        assert result.request.headers["Authorization"] == "Basic OLD"
        authenticator.refresh.assert_not_called()

    def test_marker_with_other_value_does_not_bypass(
        self, interceptor, store, session, fresh_credential
    ):
        store.set(fresh_credential)
        request = requests.Request(
            "GET", f"{URL}/announcements", headers={"Bypass-Auth": "false"}
        )
        result = interceptor.prepare(request, session)
        assert "Bypass-Auth" not in result.request.headers
        assert result.request.headers["Authorization"] == "Basic FRESH"

    def test_attaches_fresh_credential(
        self, interceptor, store, authenticator, session, fresh_credential
    ):
        store.set(fresh_credential)
        result = interceptor.prepare(
            requests.Request("GET", f"{URL}/announcements"), session
        )
        assert result.request.headers["Authorization"] == "Basic FRESH"
        assert result.credential == fresh_credential
        authenticator.refresh.assert_not_called()

    def test_stale_credential_is_renewed_first(
        self, interceptor, store, authenticator, session, stale_credential
    ):
        store.set(stale_credential)
        result = interceptor.prepare(
            requests.Request("GET", f"{URL}/announcements"), session
        )
        authenticator.refresh.assert_called_once_with(
            stale_credential, session, timeout=5
        )
        assert result.request.headers["Authorization"] == "Basic RENEWED"

    def test_missing_credential_is_renewed_from_nothing(
        self, interceptor, authenticator, session
    ):
        interceptor.prepare(
            requests.Request("GET", f"{URL}/announcements"), session
        )
        authenticator.refresh.assert_called_once_with(None, session, timeout=5)

    def test_explicit_credential_wins(
        self, interceptor, store, session, stale_credential, fresh_credential
    ):
        store.set(stale_credential)
        result = interceptor.prepare(
            requests.Request("GET", f"{URL}/announcements"),
            session,
            credential=fresh_credential,
            retry_count=1,
        )
        assert result.request.headers["Authorization"] == "Basic FRESH"
        assert result.retry_count == 1

    def test_original_request_untouched(
        self, interceptor, store, session, fresh_credential
    ):
        store.set(fresh_credential)
        request = requests.Request(
            "GET", f"{URL}/announcements", headers={"X-Trace": "1"}
        )
        interceptor.prepare(request, session)
        assert request.headers == {"X-Trace": "1"}


class TestShouldRetry:
    def _sent(self, credential, retry_count=0):
        return InterceptedRequest(
            requests.Request("GET", f"{URL}/announcements"),
            credential,
            retry_count,
        )

    def test_expired_failure_retries_with_renewed_credential(
        self, interceptor, authenticator, session, fresh_credential
    ):
        decision = interceptor.should_retry(
            self._sent(fresh_credential),
            session,
            ServerRejectedError("bad token", expired=True),
        )
        assert decision.retry is True
        assert decision.credential.session_id == "RENEWED"
        authenticator.refresh.assert_called_once_with(
            fresh_credential, session, timeout=5
        )

    def test_http_401_retries(self, interceptor, session, fresh_credential):
        decision = interceptor.should_retry(
            self._sent(fresh_credential), session, UnauthorizedError()
        )
        assert decision.retry is True

    def test_non_expired_failure_propagates(
        self, interceptor, authenticator, session, fresh_credential
    ):
        decision = interceptor.should_retry(
            self._sent(fresh_credential),
            session,
            ServerRejectedError("bad token", expired=False),
        )
        assert decision is PROPAGATE
        authenticator.refresh.assert_not_called()

    def test_decode_error_propagates(self, interceptor, session, fresh_credential):
        decision = interceptor.should_retry(
            self._sent(fresh_credential), session, DecodeError("bad")
        )
        assert decision is PROPAGATE

    def test_only_one_retry(
        self, interceptor, authenticator, session, fresh_credential
    ):
        decision = interceptor.should_retry(
            self._sent(fresh_credential, retry_count=1),
            session,
            ServerRejectedError("bad token", expired=True),
        )
        assert decision is PROPAGATE
        authenticator.refresh.assert_not_called()

    def test_bypassed_request_never_retries(
        self, interceptor, authenticator, session
    ):
        decision = interceptor.should_retry(
            self._sent(None),
            session,
            ServerRejectedError("bad token", expired=True),
        )
        assert decision is PROPAGATE
        authenticator.refresh.assert_not_called()
