"""Service layer that wraps a StudentProvider for student-facing operations."""

from classcharts.core.interfaces import StudentProvider
from classcharts.core.models import Announcement, Student


class StudentService:
    """Provides business-logic methods for a logged-in student.

    Delegates all API calls to the injected provider so that the service
    layer remains independent of any specific school platform.
    """

    def __init__(self, provider: StudentProvider):
        """Initialise the service.

        Args:
            provider: A concrete implementation of :class:`StudentProvider`.
        """
        self.provider = provider

    def login(self, code: str, dob: str) -> None:
        """Start a session for the student identified by *code* and *dob*."""
        self.provider.login(code, dob)

    def is_authenticated(self) -> bool:
        return self.provider.is_authenticated()

    def get_announcements(self) -> list[Announcement]:
        """Return the announcements visible to the student.

        Returns:
            A list of :class:`Announcement` instances in server order.
        """
        return self.provider.get_announcements().data

    def get_student(self) -> Student:
        """Return the logged-in student's profile."""
        return self.provider.get_student_info().data.user

    def get_api_version(self) -> str:
        """Return the API version reported alongside the student profile."""
        return self.provider.get_student_info().meta.version

    def close(self) -> None:
        self.provider.close()
