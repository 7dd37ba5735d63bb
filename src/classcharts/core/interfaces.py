"""Abstract interface for student API providers."""

from abc import ABC, abstractmethod

from classcharts.core.envelope import Success
from classcharts.core.models import (
    Announcement,
    JsonValue,
    StudentInfo,
    VersionMeta,
)


class StudentProvider(ABC):
    """Abstract base class for student-facing school API providers.

    The service layer and the CLI depend exclusively on this abstraction,
    never on a specific provider implementation.
    """

    @abstractmethod
    def login(self, code: str, dob: str) -> None:
        """Start a new session for a student.

        Args:
            code: The student's access code.
            dob: Date of birth as ``YYYY-MM-DD``.

        Raises:
            ApiError: If the server rejects the login.
        """

    @abstractmethod
    def is_authenticated(self) -> bool:
        """Return ``True`` if a session credential is available.

        This method must not raise.
        """

    @abstractmethod
    def get_announcements(self) -> Success[list[Announcement], JsonValue]:
        """Return the announcements visible to the logged-in student.

        Raises:
            AuthError: If no session can be obtained or renewed.
            ApiError: If the server rejects the request.
        """

    @abstractmethod
    def get_student_info(self) -> Success[StudentInfo, VersionMeta]:
        """Return the logged-in student's profile.

        Raises:
            AuthError: If no session can be obtained or renewed.
            ApiError: If the server rejects the request.
        """

    def close(self) -> None:
        """Release network resources held by the provider."""
