"""
Custom exception hierarchy for the Relief terrain engine.

Every error raised by the engine derives from ReliefException so callers
(request handlers, batch jobs) can map failures to a response uniformly.
Failures raised by collaborators (elevation sources, stores) that are not
ReliefException subclasses propagate unchanged.
"""

from typing import Any, Dict, List, Optional


class ReliefException(Exception):
    """
    Base exception for all Relief-specific errors.

    Attributes:
        error_code: String identifier for the error type
        message: User-friendly error message
        details: Technical details for logging/debugging
        status_code: HTTP-style status code for callers that expose one
        suggestions: Optional list of resolution suggestions
    """

    def __init__(
        self,
        message: str,
        error_code: str,
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None,
        suggestions: Optional[List[str]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.details = details or {}
        self.suggestions = suggestions or []

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert exception to a dictionary.

        Returns:
            Dictionary representation of the error
        """
        return {
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details,
            "suggestions": self.suggestions,
        }

    def __str__(self) -> str:
        return f"{self.error_code}: {self.message}"

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"error_code='{self.error_code}', "
            f"message='{self.message}', "
            f"status_code={self.status_code})"
        )


class ValidationError(ReliefException):
    """
    Raised when input validation fails.

    Used for out-of-range score bounds, inverted bounding boxes and other
    malformed arguments. Maps to 400 Bad Request.
    """

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        suggestions: Optional[List[str]] = None,
    ):
        error_details = details or {}
        if field:
            error_details["field"] = field

        super().__init__(
            message=message,
            error_code="VALIDATION_ERROR",
            status_code=400,
            details=error_details,
            suggestions=suggestions or ["Check the input values and try again"],
        )


class GeometryError(ReliefException):
    """
    Raised when an analysis area is not a usable polygon.

    Maps to 422 Unprocessable Entity.
    """

    def __init__(
        self,
        message: str,
        geometry_type: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        suggestions: Optional[List[str]] = None,
    ):
        error_details = details or {}
        if geometry_type:
            error_details["geometry_type"] = geometry_type

        default_suggestions = [
            "Provide a non-empty Polygon in longitude/latitude coordinates",
            "Check for self-intersecting rings",
        ]

        super().__init__(
            message=message,
            error_code="GEOMETRY_ERROR",
            status_code=422,
            details=error_details,
            suggestions=suggestions or default_suggestions,
        )


class NoElevationDataError(ReliefException):
    """
    Raised when no elevation samples exist inside an analysis envelope.

    Terminal for the current analysis: it is not retried and nothing is
    persisted. Maps to 404 Not Found.
    """

    def __init__(
        self,
        message: str = "No elevation data available for the specified area",
        bounds: Optional[tuple] = None,
        details: Optional[Dict[str, Any]] = None,
        suggestions: Optional[List[str]] = None,
    ):
        error_details = details or {}
        if bounds is not None:
            error_details["bounds"] = list(bounds)

        default_suggestions = [
            "Import elevation samples covering the area",
            "Enlarge the analysis area",
        ]

        super().__init__(
            message=message,
            error_code="NO_ELEVATION_DATA",
            status_code=404,
            details=error_details,
            suggestions=suggestions or default_suggestions,
        )


class ElevationSourceTimeoutError(ReliefException):
    """
    Raised when the elevation sample fetch exceeds its configured timeout.

    Maps to 504 Gateway Timeout.
    """

    def __init__(
        self,
        message: str,
        timeout_seconds: Optional[float] = None,
        details: Optional[Dict[str, Any]] = None,
        suggestions: Optional[List[str]] = None,
    ):
        error_details = details or {}
        if timeout_seconds is not None:
            error_details["timeout_seconds"] = timeout_seconds

        default_suggestions = [
            "Try again with a smaller area",
            "Increase RELIEF_ELEVATION_FETCH_TIMEOUT_SECONDS",
        ]

        super().__init__(
            message=message,
            error_code="ELEVATION_SOURCE_TIMEOUT",
            status_code=504,
            details=error_details,
            suggestions=suggestions or default_suggestions,
        )


class StorageError(ReliefException):
    """
    Raised when persisting or loading analysis records fails.

    Maps to 500 Internal Server Error.
    """

    def __init__(
        self,
        message: str,
        operation: Optional[str] = None,
        file_path: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        suggestions: Optional[List[str]] = None,
    ):
        error_details = details or {}
        if operation:
            error_details["operation"] = operation
        if file_path:
            error_details["file_path"] = file_path

        super().__init__(
            message=message,
            error_code="STORAGE_ERROR",
            status_code=500,
            details=error_details,
            suggestions=suggestions or ["Check the analysis store directory is writable"],
        )


class ConfigurationError(ReliefException):
    """
    Raised when engine configuration is invalid.

    Maps to 500 Internal Server Error.
    """

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        suggestions: Optional[List[str]] = None,
    ):
        error_details = details or {}
        if config_key:
            error_details["config_key"] = config_key

        default_suggestions = [
            "Check RELIEF_* environment variables are set correctly",
            "Verify .env file syntax",
        ]

        super().__init__(
            message=message,
            error_code="CONFIGURATION_ERROR",
            status_code=500,
            details=error_details,
            suggestions=suggestions or default_suggestions,
        )
