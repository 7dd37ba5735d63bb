"""Abstract interfaces for the authentication layer.

This module defines the session credential value and the contract that any
credential storage must implement.  It is intentionally free of HTTP
details so that the interceptor and authenticator can read and write the
current credential without knowing where it lives.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

# Shorter than the server-side session lifetime so that credentials are
# renewed before the server starts rejecting them.
STALENESS_WINDOW = timedelta(seconds=170)


@dataclass(frozen=True)
class Credential:
    """Proof of session identity plus the time it was granted.

    Two credentials are equal only when both the token and the grant time
    match, which lets the authenticator tell whether another caller has
    already replaced a stale credential.

    Attributes:
        session_id: The opaque session token issued by ClassCharts.
        granted_at: Timezone-aware time at which the token was issued.
    """

    session_id: str
    granted_at: datetime

    @classmethod
    def issue(cls, session_id: str) -> "Credential":
        """Return a credential for *session_id* granted right now."""
        return cls(session_id=session_id, granted_at=datetime.now(timezone.utc))

    @property
    def requires_refresh(self) -> bool:
        """``True`` once the credential is older than the staleness window."""
        return self.is_stale()

    def is_stale(self, now: datetime | None = None) -> bool:
        """Return ``True`` if the credential should be renewed at *now*.

        Args:
            now: Reference time.  Defaults to the current UTC time.

        Returns:
            ``True`` when ``now - granted_at`` is at least
            :data:`STALENESS_WINDOW`.
        """
        now = now or datetime.now(timezone.utc)
        return now - self.granted_at >= STALENESS_WINDOW

    @property
    def authorization_header(self) -> str:
        """Value of the ``Authorization`` header for this credential.

        ClassCharts expects the raw session token after ``Basic``; it is
        not base64-encoded user/password material.
        """
        return f"Basic {self.session_id}"

    def to_dict(self) -> dict[str, str]:
        """Serialise the credential for persistent storage."""
        return {
            "session_id": self.session_id,
            "granted_at": self.granted_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, raw: dict) -> "Credential":
        """Rebuild a credential written by :meth:`to_dict`.

        Raises:
            KeyError: If a field is missing.
            ValueError: If ``granted_at`` is not an ISO-8601 timestamp.
        """
        granted_at = datetime.fromisoformat(raw["granted_at"])
        if granted_at.tzinfo is None:
            granted_at = granted_at.replace(tzinfo=timezone.utc)
        return cls(session_id=str(raw["session_id"]), granted_at=granted_at)

    def __repr__(self) -> str:
        # Keep session tokens out of logs and tracebacks.
        return f"Credential(session_id='***', granted_at={self.granted_at!r})"


class CredentialStore(ABC):
    """Abstract holder of the current session credential.

    The client owns exactly one store for its lifetime.  It is the single
    source of truth read by the interceptor and written by the
    authenticator and by ``login``.  Implementations must be safe to use
    from several threads: a :meth:`set` that completes before a
    :meth:`get` begins must be visible to that :meth:`get`.

    Example usage::

        store = InMemoryCredentialStore()        # concrete implementation
        client = ClassChartsClient(store=store)  # injected into the client
        client.login("ABC123", "2008-01-01")
        store.get().session_id
    """

    @abstractmethod
    def get(self) -> Credential | None:
        """Return the current credential, or ``None`` when logged out.

        This method must not raise.
        """

    @abstractmethod
    def set(self, credential: Credential) -> None:
        """Atomically replace the current credential.

        Raises:
            StoreError: If the credential could not be persisted.  The new
                value must still be returned by :meth:`get` afterwards.
        """

    @abstractmethod
    def clear(self) -> bool:
        """Forget the current credential.

        Returns:
            ``True`` if a credential was removed.
        """
