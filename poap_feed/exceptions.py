"""
POAP Feed Exceptions - Custom exception hierarchy.

Every error carries the component and network it came from so the
watcher boundary can log it with context.
"""

from datetime import datetime, timezone
from typing import Any, Optional


class PoapFeedError(Exception):
    """Base exception for all POAP feed errors."""

    def __init__(
        self,
        message: str,
        component: Optional[str] = None,
        network: Optional[str] = None,
        original_error: Optional[Exception] = None,
        context: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.component = component
        self.network = network
        self.original_error = original_error
        self.context = context or {}
        self.timestamp = datetime.now(timezone.utc)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "component": self.component,
            "network": self.network,
            "original_error": str(self.original_error) if self.original_error else None,
            "context": self.context,
            "timestamp": self.timestamp.isoformat(),
        }

    def __str__(self) -> str:
        parts = [f"{self.__class__.__name__}: {self.message}"]
        if self.component:
            parts.append(f"[component={self.component}]")
        if self.network:
            parts.append(f"[network={self.network}]")
        if self.original_error:
            parts.append(f"(caused by: {self.original_error})")
        return " ".join(parts)


class FetchError(PoapFeedError):
    """Transient upstream failure: HTTP status >= 400 or network error."""

    def __init__(
        self,
        message: str,
        component: Optional[str] = None,
        status_code: Optional[int] = None,
        response_body: Optional[str] = None,
        request_url: Optional[str] = None,
        original_error: Optional[Exception] = None,
        context: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, component, None, original_error, context)
        self.status_code = status_code
        self.response_body = response_body
        self.request_url = request_url

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        data = super().to_dict()
        data.update({
            "status_code": self.status_code,
            "response_body": self.response_body,
            "request_url": self.request_url,
        })
        return data


class EnrichmentError(PoapFeedError):
    """Hard metadata failure: token or event fields unavailable."""

    def __init__(
        self,
        message: str,
        token_id: Optional[str] = None,
        missing_fields: Optional[list[str]] = None,
        original_error: Optional[Exception] = None,
        context: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, "enricher", None, original_error, context)
        self.token_id = token_id
        self.missing_fields = missing_fields or []

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        data = super().to_dict()
        data.update({
            "token_id": self.token_id,
            "missing_fields": self.missing_fields,
        })
        return data


class DeliveryError(PoapFeedError):
    """A chat or webhook delivery failed."""

    def __init__(
        self,
        message: str,
        destination: Optional[str] = None,
        component: Optional[str] = None,
        original_error: Optional[Exception] = None,
        context: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, component, None, original_error, context)
        self.destination = destination

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        data = super().to_dict()
        data["destination"] = self.destination
        return data


class DecodeError(PoapFeedError):
    """A raw log could not be decoded into a transfer event."""

    def __init__(
        self,
        message: str,
        network: Optional[str] = None,
        raw_log: Optional[Any] = None,
        original_error: Optional[Exception] = None,
    ) -> None:
        super().__init__(message, "subscription", network, original_error)
        self.raw_log = raw_log

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        data = super().to_dict()
        data["raw_log"] = str(self.raw_log)[:500] if self.raw_log else None
        return data


class SubscriptionError(PoapFeedError):
    """The chain subscription is dead after exhausting reconnects."""

    def __init__(
        self,
        message: str,
        network: Optional[str] = None,
        attempts: int = 0,
        original_error: Optional[Exception] = None,
    ) -> None:
        super().__init__(message, "subscription", network, original_error)
        self.attempts = attempts

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        data = super().to_dict()
        data["attempts"] = self.attempts
        return data


class ConfigurationError(PoapFeedError):
    """Missing or invalid configuration."""

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        errors: Optional[list[str]] = None,
    ) -> None:
        super().__init__(message, "config")
        self.config_key = config_key
        self.errors = errors or []

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        data = super().to_dict()
        data["config_key"] = self.config_key
        data["errors"] = self.errors
        return data
