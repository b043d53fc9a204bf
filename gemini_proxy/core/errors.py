from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from google.genai import errors as genai_errors


@dataclass
class ProxyError(Exception):
    message: str
    details: Any = None
    status_code: int = 500

    def __str__(self) -> str:
        return self.message

    def to_error(self) -> dict[str, Any]:
        body: dict[str, Any] = {"error": self.message}
        if self.details is not None:
            body["details"] = self.details
        return body


@dataclass
class MethodNotAllowedError(ProxyError):
    status_code: int = 405
    allow: str = "POST, OPTIONS"


@dataclass
class InvalidRequestError(ProxyError):
    status_code: int = 400


@dataclass
class ConfigurationError(ProxyError):
    status_code: int = 500


@dataclass
class UpstreamError(ProxyError):
    """The model backend failed or answered with a non-success status."""

    status_code: int = 500


@dataclass
class NormalizationError(ProxyError):
    """The model answered, but not in the shape the endpoint promises."""

    status_code: int = 500


def map_upstream_error(exc: Exception) -> ProxyError:
    """Map Gemini SDK exceptions to proxy errors, mirroring upstream status."""

    if isinstance(exc, ProxyError):
        return exc

    if isinstance(exc, genai_errors.APIError):
        status_code = exc.code if _is_error_status(exc.code) else 500
        return UpstreamError(
            message="Internal server error while contacting Gemini.",
            details=exc.message or str(exc),
            status_code=status_code,
        )

    return UpstreamError(
        message="Internal server error while contacting Gemini.",
        details=str(exc) or exc.__class__.__name__,
    )


def _is_error_status(code: Any) -> bool:
    return isinstance(code, int) and 400 <= code <= 599
