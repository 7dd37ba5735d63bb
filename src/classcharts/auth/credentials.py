"""Credential stores for ClassCharts sessions.

Two implementations are provided here:

* :class:`InMemoryCredentialStore`: keeps the credential for the lifetime
  of the process.  Used by default and in tests.
* :class:`FileCredentialStore`: additionally persists the credential to
  ``~/.config/classcharts/credentials.json`` so the CLI can reuse a session
  across invocations.  The file is restricted to the owner (0o600).
"""

import json
import logging
import os
import threading
from pathlib import Path

from classcharts.auth.interfaces import Credential, CredentialStore
from classcharts.core.exceptions import StoreError

logger = logging.getLogger(__name__)

_CONFIG_DIR = Path.home() / ".config" / "classcharts"
_CREDENTIALS_FILE = _CONFIG_DIR / "credentials.json"
_ENV_CREDENTIALS_FILE = "CLASSCHARTS_CREDENTIALS_FILE"


def credentials_path() -> Path:
    """Return the path of the credentials file.

    Honours the ``CLASSCHARTS_CREDENTIALS_FILE`` environment variable.

    Returns:
        A :class:`pathlib.Path` pointing to the credentials JSON file.
    """
    override = os.getenv(_ENV_CREDENTIALS_FILE)
    return Path(override) if override else _CREDENTIALS_FILE


class InMemoryCredentialStore(CredentialStore):
    """Process-local credential store guarded by a lock."""

    def __init__(self, credential: Credential | None = None):
        self._credential = credential
        self._lock = threading.Lock()

    def get(self) -> Credential | None:
        with self._lock:
            return self._credential

    def set(self, credential: Credential) -> None:
        with self._lock:
            self._credential = credential

    def clear(self) -> bool:
        with self._lock:
            removed = self._credential is not None
            self._credential = None
        return removed


class FileCredentialStore(InMemoryCredentialStore):
    """Credential store backed by a JSON file.

    The in-memory value is always replaced before the file is written, so a
    failed write leaves the new credential usable for the running process.
    A missing or unreadable file simply means "logged out".

    Args:
        path: Location of the credentials file.  Defaults to
            :func:`credentials_path`.
    """

    def __init__(self, path: Path | None = None):
        self._path = path or credentials_path()
        super().__init__(self._load())

    @property
    def path(self) -> Path:
        return self._path

    def set(self, credential: Credential) -> None:
        super().set(credential)
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._path.write_text(
                json.dumps(credential.to_dict(), indent=2),
                encoding="utf-8",
            )
            self._path.chmod(0o600)
        except OSError as e:
            raise StoreError(
                f"Could not save credentials to {self._path}: {e}"
            ) from e

    def clear(self) -> bool:
        removed = super().clear()
        if self._path.exists():
            try:
                self._path.unlink()
            except OSError as e:
                raise StoreError(
                    f"Could not remove credentials file {self._path}: {e}"
                ) from e
            return True
        return removed

    def _load(self) -> Credential | None:
        if not self._path.exists():
            return None
        try:
            raw = json.loads(self._path.read_text(encoding="utf-8"))
            return Credential.from_dict(raw)
        except (json.JSONDecodeError, OSError, KeyError, TypeError, ValueError):
            logger.warning("Ignoring unreadable credentials file %s", self._path)
            return None
