"""ClassCharts provider package."""

from classcharts.providers.classcharts.authenticator import ClassChartsAuthenticator
from classcharts.providers.classcharts.client import ClassChartsClient
from classcharts.providers.classcharts.interceptor import BypassAuthInterceptor
from classcharts.providers.classcharts.session import (
    ClientSession,
    RequestsTransport,
    Transport,
)

__all__ = [
    "BypassAuthInterceptor",
    "ClassChartsAuthenticator",
    "ClassChartsClient",
    "ClientSession",
    "RequestsTransport",
    "Transport",
]
