"""Error Hierarchy — typed, categorized exceptions for all Nostr Oracle failure modes.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Collaborator errors (search, LLM, DB, payment) are recovered inside the pipeline;
      only VerificationFailedError and request errors reach HTTP clients
    - to_response() produces the REST envelope
    - No internal details leaked in user-facing messages

Design Decisions:
    - Single hierarchy with OracleError base: FastAPI global handler catches all
    - ErrorContext as dataclass: rich observability without coupling to logging framework
    - DuplicateRecordError split from DatabaseError: uniqueness races are benign and
      callers silence them
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any
from datetime import datetime, timezone


class ErrorSeverity(str, Enum):
    """Error severity for observability and client handling."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """High-level error categories for routing and handling."""
    VALIDATION = "validation"
    CONFIGURATION = "configuration"
    DATABASE = "database"
    EXTERNAL_API = "external_api"
    INTERNAL = "internal"
    CONFLICT = "conflict"
    TIMEOUT = "timeout"


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    event_id: str | None = None
    claim: str | None = None
    debug_info: dict[str, Any] | None = None
    retry_after_ms: int | None = None


class OracleError(Exception):
    """Base exception for all Nostr Oracle errors."""

    def __init__(
        self,
        message: str,
        code: str,
        category: ErrorCategory,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: ErrorContext | None = None,
        http_status: int = 500,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.category = category
        self.severity = severity
        self.context = context or ErrorContext()
        self.http_status = http_status

    def to_response(self) -> dict:
        """Convert to standardized REST error response."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "category": self.category.value,
                "severity": self.severity.value,
                "timestamp": self.context.timestamp.isoformat(),
                "context": {
                    "event_id": self.context.event_id,
                    "retry_after_ms": self.context.retry_after_ms,
                },
            }
        }


# ─── Request Errors (400-level) ─────────────────────────────────

class MissingFieldError(OracleError):
    """Required request fields absent."""
    def __init__(self, fields: list[str], context: ErrorContext | None = None):
        super().__init__(
            f"Missing required fields: {', '.join(fields)}",
            "MISSING_FIELDS", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, context, 400,
        )
        self.fields = fields


# ─── Pipeline Errors ────────────────────────────────────────────

class VerificationFailedError(OracleError):
    """Manual verification failed unexpectedly (the one user-visible failure)."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, "VERIFICATION_FAILED", ErrorCategory.INTERNAL,
            ErrorSeverity.ERROR, context, 500,
        )


class ConfigurationMissingError(OracleError):
    """A provider credential is not configured."""
    def __init__(self, setting: str, context: ErrorContext | None = None):
        super().__init__(
            f"{setting} is not configured",
            "CONFIGURATION_MISSING", ErrorCategory.CONFIGURATION,
            ErrorSeverity.WARNING, context, 503,
        )
        self.setting = setting


# ─── Infrastructure Errors (500-level) ──────────────────────────

class DatabaseError(OracleError):
    """Database operation failed."""
    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        super().__init__(
            f"Database {operation} failed: {message}",
            "DATABASE_ERROR", ErrorCategory.DATABASE,
            ErrorSeverity.CRITICAL, context, 503,
        )
        self.operation = operation


class DuplicateRecordError(DatabaseError):
    """Uniqueness constraint hit — another writer stored the same record first."""
    def __init__(self, context: ErrorContext | None = None):
        super().__init__("Unique constraint violated", "commit", context)
        self.code = "DUPLICATE_RECORD"
        self.category = ErrorCategory.CONFLICT
        self.severity = ErrorSeverity.INFO
        self.http_status = 409


class AnthropicAPIError(OracleError):
    """Anthropic API call failed."""
    def __init__(
        self,
        message: str,
        api_error_type: str,
        retry_after_ms: int | None = None,
        context: ErrorContext | None = None,
    ):
        ctx = context or ErrorContext()
        ctx.retry_after_ms = retry_after_ms
        super().__init__(
            f"Anthropic API error ({api_error_type}): {message}",
            "ANTHROPIC_API_ERROR", ErrorCategory.EXTERNAL_API,
            ErrorSeverity.CRITICAL, ctx, 503,
        )
        self.api_error_type = api_error_type


class SearchError(OracleError):
    """News search failed (timeout, network, quota, malformed response)."""
    def __init__(self, message: str, reason: str, context: ErrorContext | None = None):
        super().__init__(
            f"News search failed ({reason}): {message}",
            "SEARCH_ERROR", ErrorCategory.EXTERNAL_API,
            ErrorSeverity.WARNING, context, 503,
        )
        self.reason = reason


class RewardError(OracleError):
    """Lightning invoice or zap construction failed."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            f"Reward failed: {message}",
            "REWARD_ERROR", ErrorCategory.EXTERNAL_API,
            ErrorSeverity.WARNING, context, 503,
        )
