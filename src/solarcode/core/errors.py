from __future__ import annotations
from typing import Optional

SETUP_URL = "https://console.upstage.ai/"
BILLING_URL = "https://console.upstage.ai/billing"


class ProviderError(Exception):
    """Base class for provider-level failures."""

    retryable = False

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message
        self.prefix: Optional[str] = None

    def add_prefix(self, prefix: str) -> "ProviderError":
        # Keep the innermost backend tag if the error is re-raised more than once
        if self.prefix is None:
            self.prefix = prefix
        return self

    def __str__(self) -> str:
        return f"{self.prefix}: {self.message}" if self.prefix else self.message


class TransportError(ProviderError):
    """
    Any non-2xx HTTP result, or a request that never got a response
    (status_code is None for timeouts and network failures).
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: Optional[int] = None,
        reason: str = "",
        body: str = "",
    ):
        super().__init__(message)
        self.status_code = status_code
        self.reason = reason
        self.body = body

    @property
    def retryable(self) -> bool:  # type: ignore[override]
        s = self.status_code
        return s is None or s in (408, 429) or 500 <= s <= 599


class QuotaError(ProviderError):
    """Backend refused the call for billing or access reasons. Retrying will not help."""

    def __init__(self, details: str):
        self.details = details
        self.remediation = (
            "Solar API credit is insufficient or this key is not allowed to call the API.\n\n"
            "How to fix:\n"
            f"1. Visit {BILLING_URL}\n"
            "2. Register a payment method or add credit\n"
            "3. Restart solar\n\n"
            f"Details: {details}"
        )
        super().__init__(self.remediation)


class CapabilityError(ProviderError):
    """The backend has no endpoint for the requested operation."""


class DecodeWarning(UserWarning):
    """A single SSE event that could not be decoded. Recorded and skipped, never raised."""

    def __init__(self, line: str, error: str):
        super().__init__(f"Skipped malformed stream event: {error}")
        self.line = line
        self.error = error


class ConfigurationError(ValueError):
    """
    Setup problem found before any network call.
    The message is the full remediation text shown to the user.
    """

    def __init__(self, message: str, *, env_var: Optional[str] = None, setup_url: str = SETUP_URL):
        super().__init__(message)
        self.env_var = env_var
        self.setup_url = setup_url
