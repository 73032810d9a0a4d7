"""Typed failures raised by model providers."""

from __future__ import annotations


class ProviderError(Exception):
    """Raised when a provider call fails."""

    def __init__(self, provider_name: str, message: str) -> None:
        self.provider_name = provider_name
        super().__init__(f"[{provider_name}] {message}")


class ProviderAuthError(ProviderError):
    """The provider rejected the credentials (HTTP 401/403)."""


class ProviderRateLimitError(ProviderError):
    """The provider throttled the request (HTTP 429)."""

    def __init__(
        self, provider_name: str, message: str, retry_after: float | None = None
    ) -> None:
        self.retry_after = retry_after
        super().__init__(provider_name, message)


class ProviderConnectionError(ProviderError):
    """Network failure or timeout talking to the provider."""


class ProviderResponseError(ProviderError):
    """Non-success status or a payload without usable text."""

    def __init__(
        self, provider_name: str, message: str, status_code: int | None = None
    ) -> None:
        self.status_code = status_code
        super().__init__(provider_name, message)
