"""Error Hierarchy — typed, categorized exceptions for all ladder failure modes.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - User-facing errors (400-level) carry a literal message meant for direct display
    - Internal errors (500-level) are never shown verbatim: public_message() substitutes
      GENERIC_FAILURE_MESSAGE and the full detail goes to the log
    - to_response() produces the REST envelope

Design Decisions:
    - Single hierarchy with LadderError base: coordinators raise, the intake layer
      decides what the player sees
    - public flag on the instance rather than isinstance checks at the edge: one
      attribute lookup, no import of every subclass
    - ErrorContext as dataclass: rich observability without coupling to logging framework
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

GENERIC_FAILURE_MESSAGE = "something went wrong, an operator will investigate"


class ErrorSeverity(str, Enum):
    """Error severity for observability and client handling."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """High-level error categories for routing and handling."""
    BUSINESS_RULE = "business_rule"
    RESOURCE_NOT_FOUND = "resource_not_found"
    CONFLICT = "conflict"
    DATABASE = "database"
    EXTERNAL_API = "external_api"
    INTERNAL = "internal"


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    player_id: str | None = None
    session_id: str | None = None
    match_id: str | None = None
    debug_info: dict[str, Any] | None = None
    retry_after_ms: int | None = None


class LadderError(Exception):
    """Base exception for all ladder errors."""

    def __init__(
        self,
        message: str,
        code: str,
        category: ErrorCategory,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: ErrorContext | None = None,
        http_status: int = 500,
        public: bool = False,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.category = category
        self.severity = severity
        self.context = context or ErrorContext()
        self.http_status = http_status
        self.public = public

    def to_response(self) -> dict:
        """Convert to standardized REST error response."""
        return {
            "error": {
                "code": self.code,
                "message": public_message(self),
                "category": self.category.value,
                "severity": self.severity.value,
                "timestamp": self.context.timestamp.isoformat(),
                "context": {
                    "player_id": self.context.player_id,
                    "session_id": self.context.session_id,
                    "match_id": self.context.match_id,
                    "retry_after_ms": self.context.retry_after_ms,
                },
            }
        }


def public_message(exc: BaseException) -> str:
    """Text the acting player is allowed to see for ``exc``."""
    if isinstance(exc, LadderError) and exc.public:
        return exc.message
    return GENERIC_FAILURE_MESSAGE


# ─── User-facing Errors (400-level) ─────────────────────────────

class UserFacingError(LadderError):
    """Expected outcome the player can act on. Never a bug."""
    def __init__(
        self,
        message: str,
        code: str,
        category: ErrorCategory = ErrorCategory.BUSINESS_RULE,
        context: ErrorContext | None = None,
        http_status: int = 409,
    ):
        super().__init__(
            message, code, category, ErrorSeverity.INFO, context,
            http_status, public=True,
        )


class NoJoinableSessionError(UserFacingError):
    def __init__(self, context: ErrorContext | None = None):
        super().__init__(
            "could not find a joinable race for the given league",
            "NO_JOINABLE_SESSION", ErrorCategory.RESOURCE_NOT_FOUND,
            context, 404,
        )


class AlreadyRegisteredError(UserFacingError):
    def __init__(self, league_name: str, context: ErrorContext | None = None):
        super().__init__(
            f"you are already registered for the next {league_name} race",
            "ALREADY_REGISTERED", ErrorCategory.CONFLICT, context, 409,
        )
        self.league_name = league_name


class LeagueNotFoundError(UserFacingError):
    def __init__(
        self, short_code: str | None = None, context: ErrorContext | None = None,
    ):
        message = (
            "could not find a league with this shortcode"
            if short_code is not None else "could not find this league"
        )
        super().__init__(
            message, "LEAGUE_NOT_FOUND", ErrorCategory.RESOURCE_NOT_FOUND,
            context, 404,
        )
        self.short_code = short_code


class PlayerNotFoundError(UserFacingError):
    def __init__(self, context: ErrorContext | None = None):
        super().__init__(
            "could not find this player, register first",
            "PLAYER_NOT_FOUND", ErrorCategory.RESOURCE_NOT_FOUND,
            context, 404,
        )


class RaceInProgressError(UserFacingError):
    def __init__(self, context: ErrorContext | None = None):
        super().__init__(
            "you already have a race in progress",
            "RACE_IN_PROGRESS", ErrorCategory.CONFLICT, context, 409,
        )


class TooLateToCancelError(UserFacingError):
    def __init__(self, context: ErrorContext | None = None):
        super().__init__(
            "it is too late to cancel this race, forfeit instead",
            "TOO_LATE_TO_CANCEL", ErrorCategory.BUSINESS_RULE, context, 409,
        )


class RaceNotStartedError(UserFacingError):
    def __init__(self, context: ErrorContext | None = None):
        super().__init__(
            "you can't complete a race that has not started",
            "RACE_NOT_STARTED", ErrorCategory.BUSINESS_RULE, context, 409,
        )


class NoActiveSessionError(UserFacingError):
    """Cancel without a session to leave."""
    def __init__(self, context: ErrorContext | None = None):
        super().__init__(
            "you are not in any active race right now",
            "NO_ACTIVE_SESSION", ErrorCategory.RESOURCE_NOT_FOUND,
            context, 404,
        )


class NoActiveRaceError(UserFacingError):
    """Complete/forfeit without a non-terminal entry."""
    def __init__(self, context: ErrorContext | None = None):
        super().__init__(
            "you are not in any active race right now",
            "NO_ACTIVE_RACE", ErrorCategory.RESOURCE_NOT_FOUND,
            context, 404,
        )


# ─── Internal Errors (500-level) ────────────────────────────────

class InvalidTransitionError(LadderError):
    """A transition was applied to an entry in the wrong state."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, "INVALID_TRANSITION", ErrorCategory.INTERNAL,
            ErrorSeverity.ERROR, context, 500,
        )


class DatabaseError(LadderError):
    """Database operation failed."""
    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        super().__init__(
            f"Database {operation} failed: {message}",
            "DATABASE_ERROR", ErrorCategory.DATABASE,
            ErrorSeverity.CRITICAL, context, 503,
        )
        self.operation = operation


class NotificationError(LadderError):
    """Notification transport failed."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            f"Notification delivery failed: {message}",
            "NOTIFICATION_ERROR", ErrorCategory.EXTERNAL_API,
            ErrorSeverity.ERROR, context, 502,
        )


class SpoilerUnlockError(LadderError):
    """Spoiler unlock API call failed."""
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
            f"Spoiler unlock API error ({api_error_type}): {message}",
            "SPOILER_UNLOCK_ERROR", ErrorCategory.EXTERNAL_API,
            ErrorSeverity.ERROR, ctx, 502,
        )
        self.api_error_type = api_error_type
