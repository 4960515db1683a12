# src/core/errors.py — v1
"""Analysis error taxonomy.

Every failure the pipeline can end in is one of these. Each carries a
human-readable title, message and remediation suggestion so the caller can
render a terminal state without knowing how it came about.
"""

from __future__ import annotations

from cinearchive.core.models import AnalysisResult, ErrorInfo


class AnalysisError(Exception):
    """Base class for classified analysis failures."""

    kind: str = "error"
    title: str = "SIGNAL_LOST"
    default_message: str = "Visual signature unclear."
    suggestion: str = "Retry the scan."

    def __init__(
        self,
        message: str | None = None,
        *,
        status_code: int | None = None,
        body: str = "",
    ):
        self.message = message or self.default_message
        self.status_code = status_code
        self.body = body
        super().__init__(self.message)

    def to_info(self) -> ErrorInfo:
        return ErrorInfo(
            kind=self.kind,
            title=self.title,
            message=self.message,
            suggestion=self.suggestion,
        )


# --- Configuration ---


class NotConfigured(AnalysisError):
    kind = "not_configured"
    title = "SECURITY_CLEARANCE_FAILED"
    default_message = "No API key configured for the inference service."
    suggestion = "Set GEMINI_API_KEY in the environment or .env file and restart."


class ApiOffline(AnalysisError):
    kind = "api_offline"
    title = "UPLINK_OFFLINE"
    default_message = "The inference service did not answer the last health check."
    suggestion = "Wait for the service to come back online, then retry."


# --- Authorization (never retried) ---


class AuthFailure(AnalysisError):
    kind = "auth_failure"
    title = "SECURITY_CLEARANCE_FAILED"
    default_message = "Terminal uplink rejected. Credentials invalid or expired (401)."
    suggestion = "Check that the API key is valid and has not been revoked."


class AccessForbidden(AnalysisError):
    kind = "access_forbidden"
    title = "ACCESS_FORBIDDEN"
    default_message = "The API key is not allowed to use this model (403)."
    suggestion = "Enable the Generative Language API for the key's project or use another key."


# --- Transport (never retried within one run) ---


class NetworkTimeout(AnalysisError):
    kind = "network_timeout"
    title = "UPLINK_TIMEOUT"
    default_message = "The inference service did not answer in time."
    suggestion = "Check the connection and retry."


class NetworkUnreachable(AnalysisError):
    kind = "network_unreachable"
    title = "UPLINK_SEVERED"
    default_message = "The inference service could not be reached."
    suggestion = "Check the network connection, proxy and DNS settings, then retry."


# --- Service side ---


RESTRICTED_PLACEHOLDER = AnalysisResult(
    title="DATA_RESTRICTED",
    year="UNKNOWN",
    genre="ERROR_403",
    description="Visual signature unidentifiable. Deep network scan recommended.",
)


class ServiceError(AnalysisError):
    """Non-2xx status that is neither an auth failure nor retryable."""

    kind = "service_error"
    title = "SIGNAL_LOST"
    default_message = "The inference service answered with an error."
    suggestion = "Retry the scan; if it keeps failing, check the service status."


class ServiceRefused(AnalysisError):
    """The service declined to answer (content policy, low confidence)."""

    kind = "service_refused"
    title = "DATA_RESTRICTED"
    default_message = "Visual signature unidentifiable. Deep network scan recommended."
    suggestion = "Run a deep network scan to identify the artifact with web search."

    def __init__(self, message: str | None = None, **kwargs):
        super().__init__(message, **kwargs)
        self.placeholder = RESTRICTED_PLACEHOLDER


class MalformedResponse(AnalysisError):
    kind = "malformed_response"
    title = "SIGNAL_CORRUPTED"
    default_message = "The service answered with data that could not be decoded."
    suggestion = "Retry the scan; the model output is not deterministic."


class ExhaustedRetries(AnalysisError):
    kind = "exhausted_retries"
    title = "SIGNAL_LOST"
    default_message = "The service stayed busy or unavailable after every attempt."
    suggestion = "Wait a minute before retrying; the service is rate limiting or overloaded."

    def __init__(self, message: str | None = None, *, attempts: int = 0, **kwargs):
        super().__init__(message, **kwargs)
        self.attempts = attempts
