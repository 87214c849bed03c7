"""Shared exception types for the storefront services."""

from typing import Any, Optional


class ConfigurationError(Exception):
    """Raised when required credentials are absent from the environment."""

    def __init__(self, missing: list[str], message: Optional[str] = None):
        self.missing = missing
        self.message = message or "Missing environment variables: " + ", ".join(
            missing
        )
        super().__init__(self.message)


class UpstreamError(Exception):
    """A third-party API answered with a non-2xx status."""

    provider = "upstream"

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        response_data: Any = None,
    ):
        self.message = message
        self.status_code = status_code
        self.response_data = response_data if response_data is not None else {}
        super().__init__(message)

    @property
    def unauthorized(self) -> bool:
        return self.status_code == 401


def require_settings(**values: Any) -> None:
    """Raise ConfigurationError naming every falsy keyword argument."""
    missing = [name for name, value in values.items() if not value]
    if missing:
        raise ConfigurationError(missing)
