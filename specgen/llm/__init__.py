"""Model runtime adapters."""

from .runner import LLMRunner, ProviderSettings
from .transports import CliTransport, HttpTransport, LLMError, LLMRequest, Transport

__all__ = [
    "CliTransport",
    "HttpTransport",
    "LLMError",
    "LLMRequest",
    "LLMRunner",
    "ProviderSettings",
    "Transport",
]
