"""Error types for sign-in resolution."""
from typing import Any, Optional


class AuthError(Exception):
    """Base sign-in error."""

    def __init__(
        self, message: str, error_code: str = "INTERNAL_ERROR", details: Optional[dict[str, Any]] = None
    ) -> None:
        """
        Initialize AuthError.

        Args:
            message: Error message.
            error_code: Machine-readable error code.
            details: Additional error details.
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary."""
        return {
            "error": self.error_code,
            "message": self.message,
            "details": self.details,
        }


class StrategyUnavailableError(AuthError):
    """The strategy's prerequisites are not met in this environment."""

    def __init__(self, auth_type: str, details: Optional[dict[str, Any]] = None) -> None:
        super().__init__(
            f"Auth type '{auth_type}' is not available.",
            "STRATEGY_UNAVAILABLE",
            {"auth_type": auth_type, **(details or {})},
        )
        self.auth_type = auth_type


class AuthenticationFailureError(AuthError):
    """A strategy was attempted and failed."""

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None) -> None:
        super().__init__(message, "AUTHENTICATION_FAILURE", details)


class NoStrategyAvailableError(AuthError):
    """Every strategy of a chain failed."""

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None) -> None:
        super().__init__(message, "NO_STRATEGY_AVAILABLE", details)


class RestorePreconditionError(AuthError, ValueError):
    """A persisted account entity is missing required fields."""

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None) -> None:
        super().__init__(message, "RESTORE_PRECONDITION_VIOLATED", details)


class SessionMismatchError(AuthError):
    """A restored sign-in disagrees with the persisted snapshot."""

    def __init__(self, message: str, old_value: Any, new_value: Any) -> None:
        super().__init__(
            message,
            "SESSION_MISMATCH",
            {"old": str(old_value), "new": str(new_value)},
        )
        self.old_value = old_value
        self.new_value = new_value


class EnvironmentConflictError(AuthError):
    """The signed-in cloud differs from the requested one."""

    def __init__(self, message: str, actual: str, expected: str) -> None:
        super().__init__(
            message,
            "ENVIRONMENT_CONFLICT",
            {"actual": actual, "expected": expected},
        )
        self.actual = actual
        self.expected = expected


class UnsupportedRestoreTypeError(AuthError):
    """The persisted auth type cannot be restored."""

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None) -> None:
        super().__init__(message, "UNSUPPORTED_RESTORE_TYPE", details)


class UnsupportedAuthTypeError(AuthError):
    """The requested auth type is unknown or not valid here."""

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None) -> None:
        super().__init__(message, "UNSUPPORTED_AUTH_TYPE", details)


class NotSignedInError(AuthError):
    """No account is signed in."""

    def __init__(self, message: str = "Not signed in, please sign in first.") -> None:
        super().__init__(message, "NOT_SIGNED_IN")


class InvalidConfigurationError(AuthError):
    """Auth configuration is present but incomplete."""

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None) -> None:
        super().__init__(message, "INVALID_CONFIGURATION", details)


class ServiceError(AuthError):
    """Azure Resource Manager call failed."""

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None) -> None:
        super().__init__(message, "SERVICE_ERROR", details)


class CommandError(AuthError):
    """External command failed or is not installed."""

    def __init__(
        self,
        message: str,
        details: Optional[dict[str, Any]] = None,
        not_installed: bool = False,
    ) -> None:
        super().__init__(message, "COMMAND_ERROR", details)
        self.not_installed = not_installed
