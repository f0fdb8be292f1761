from typing import Any, Dict, List, Optional

from .enums import ErrorCode


class SettlementError(Exception):
    def __init__(
        self,
        message: str,
        code: Optional[ErrorCode] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or ErrorCode.INTERNAL_ERROR
        self.details = details or {}


class SchemaViolation(SettlementError):
    """Raised when a batch request is malformed or out of range."""

    def __init__(self, message: str, issues: Optional[List[Dict[str, Any]]] = None):
        super().__init__(message, ErrorCode.VALIDATION_ERROR)
        self.issues = issues or []


class UpstreamUnavailable(SettlementError):
    """Raised when the oracle or a delegated service cannot be reached."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, ErrorCode.UPSTREAM_UNAVAILABLE, details)


class InvalidConfiguration(SettlementError):
    """Raised when a component is built or called with unusable parameters."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, ErrorCode.CONFIGURATION_ERROR, details)


class InvalidSecurityZone(InvalidConfiguration):
    """Raised when a security zone falls outside the signed byte range."""

    def __init__(self, zone: Any):
        super().__init__(
            f"Security zone {zone!r} outside [-128, 127]",
            details={"securityZone": zone},
        )
        self.zone = zone


class ComputationFailure(SettlementError):
    """Raised when encoding or signing is rejected by the underlying primitive."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, ErrorCode.COMPUTATION_FAILURE, details)
