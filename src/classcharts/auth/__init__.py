"""Authentication layer: credential value and storage."""

from classcharts.auth.credentials import FileCredentialStore, InMemoryCredentialStore
from classcharts.auth.interfaces import Credential, CredentialStore

__all__ = [
    "Credential",
    "CredentialStore",
    "FileCredentialStore",
    "InMemoryCredentialStore",
]
