"""Shared fixtures: a scripted transport and ready-made credentials."""

import json
import threading
from datetime import datetime, timedelta, timezone
from urllib.parse import urlsplit

import pytest
import requests

from classcharts.auth.credentials import InMemoryCredentialStore
from classcharts.auth.interfaces import Credential
from classcharts.core.config import ClientConfig
from classcharts.providers.classcharts.client import ClassChartsClient
from classcharts.providers.classcharts.session import Transport

BASE_URL = "https://classcharts.test"
PING = "/apiv2student/ping"
LOGIN = "/apiv2student/login"
ANNOUNCEMENTS = "/apiv2student/announcements"


def make_response(body, status: int = 200) -> requests.Response:
    """Build a :class:`requests.Response` with a JSON (or raw) body."""
    response = requests.Response()
    response.status_code = status
    if body is None:
        response._content = b""
    elif isinstance(body, bytes):
        response._content = body
    else:
        response._content = json.dumps(body).encode("utf-8")
        response.headers["Content-Type"] = "application/json"
    response.encoding = "utf-8"
    return response


def ping_body(session_id: str) -> dict:
    return {
        "success": 1,
        "data": {"user": {"id": 1}},
        "meta": {"version": "27.1.0", "session_id": session_id},
    }


class FakeTransport(Transport):
    """Transport that answers from per-path scripts and records requests.

    Each route is a list of responses (consumed in order, the last one is
    repeated) or a callable receiving the request.
    """

    def __init__(self, routes: dict | None = None):
        self.routes = dict(routes or {})
        self.requests: list[requests.Request] = []
        self.closed = False
        self._lock = threading.Lock()

    def send(self, request: requests.Request) -> requests.Response:
        path = urlsplit(request.url).path
        with self._lock:
            self.requests.append(request)
            route = self.routes[path]
            if callable(route):
                handler = route
            else:
                item = route.pop(0) if len(route) > 1 else route[0]
                handler = None
        if handler is not None:
            return handler(request)
        if isinstance(item, Exception):
            raise item
        if isinstance(item, requests.Response):
            return item
        return make_response(item)

    def calls(self, path: str) -> list[requests.Request]:
        with self._lock:
            return [r for r in self.requests if urlsplit(r.url).path == path]

    def close(self) -> None:
        self.closed = True


@pytest.fixture()
def config():
    return ClientConfig(base_url=BASE_URL, timeout=5)


@pytest.fixture()
def store():
    return InMemoryCredentialStore()


@pytest.fixture()
def fresh_credential():
    return Credential.issue("FRESH")


@pytest.fixture()
def stale_credential():
    return Credential(
        session_id="STALE",
        granted_at=datetime.now(timezone.utc) - timedelta(seconds=200),
    )


@pytest.fixture()
def transport():
    return FakeTransport()


@pytest.fixture()
def client(config, store, transport):
    with ClassChartsClient(config=config, store=store, transport=transport) as c:
        yield c
