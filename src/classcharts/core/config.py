"""Client configuration.

Values are read from the environment by :meth:`ClientConfig.from_env`:

* ``CLASSCHARTS_BASE_URL``: site root (default ``https://www.classcharts.com``).
* ``CLASSCHARTS_API_PATH``: student API prefix (default ``/apiv2student``).
* ``CLASSCHARTS_TIMEOUT``: per-request timeout in seconds (default 20).
"""

import os
from dataclasses import dataclass, field

DEFAULT_BASE_URL = "https://www.classcharts.com"
DEFAULT_API_PATH = "/apiv2student"
DEFAULT_TIMEOUT = 20.0
DEFAULT_USER_AGENT = "classcharts-python/0.1"

_ENV_BASE_URL = "CLASSCHARTS_BASE_URL"
_ENV_API_PATH = "CLASSCHARTS_API_PATH"
_ENV_TIMEOUT = "CLASSCHARTS_TIMEOUT"


@dataclass
class ClientConfig:
    """Settings shared by the client, its transport and its authenticator."""

    base_url: str = DEFAULT_BASE_URL
    api_path: str = DEFAULT_API_PATH
    timeout: float = DEFAULT_TIMEOUT
    """Seconds before a request, or a wait for a shared renewal, gives up."""

    user_agent: str = DEFAULT_USER_AGENT
    bypass_paths: tuple[str, ...] = field(default_factory=tuple)
    """Path prefixes that are never authenticated.

    Defaults to the login endpoint when left empty.
    """

    def __post_init__(self):
        self.base_url = self.base_url.rstrip("/")
        self.api_path = "/" + self.api_path.strip("/")
        if not self.bypass_paths:
            self.bypass_paths = (f"{self.api_path}/login",)

    @classmethod
    def from_env(cls) -> "ClientConfig":
        """Build a configuration from ``CLASSCHARTS_*`` environment variables.

        Raises:
            ValueError: If ``CLASSCHARTS_TIMEOUT`` is not a number.
        """
        return cls(
            base_url=os.getenv(_ENV_BASE_URL, DEFAULT_BASE_URL),
            api_path=os.getenv(_ENV_API_PATH, DEFAULT_API_PATH),
            timeout=float(os.getenv(_ENV_TIMEOUT, DEFAULT_TIMEOUT)),
        )

    def url(self, path: str) -> str:
        """Return the absolute URL of a student API *path*."""
        return f"{self.base_url}{self.api_path}{path}"
