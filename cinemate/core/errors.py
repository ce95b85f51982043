"""
Failure types of the bulk recommendation pipeline.

Each class carries the HTTP status and the short error string the API
reports for it.
"""

from typing import Any, Dict, Optional


class PipelineError(Exception):
    """Base class for failures that end a recommendation request."""

    status_code: int = 500
    error: str = "Failed to generate recommendations"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.error)
        self.message = message or self.error

    def to_payload(self) -> Dict[str, Any]:
        """JSON body returned to the client."""
        return {"error": self.error, "details": self.message}


class Unauthenticated(PipelineError):
    """No valid session or token."""

    status_code = 401
    error = "Unauthorized"

    def to_payload(self) -> Dict[str, Any]:
        return {"error": self.error}


class InsufficientData(PipelineError):
    """The user has fewer stored ratings than the pipeline needs."""

    status_code = 400
    error = "Not enough ratings"

    def __init__(self, current_count: int, required: int):
        self.current_count = current_count
        self.required = required
        super().__init__(
            f"Please rate at least {required} movies before getting personalized recommendations"
        )

    def to_payload(self) -> Dict[str, Any]:
        return {
            "error": self.error,
            "message": self.message,
            "currentRatings": self.current_count,
        }


class AlreadyInProgress(PipelineError):
    """A generation for the same user is already running."""

    status_code = 409
    error = "Recommendation generation already in progress"

    def to_payload(self) -> Dict[str, Any]:
        return {"error": self.error, "message": self.message}


class UpstreamUnavailable(PipelineError):
    """An external AI call failed or timed out."""

    def __init__(self, service: str, reason: str):
        self.service = service
        self.reason = reason
        super().__init__(f"{service} request failed: {reason}")


class SchemaViolation(PipelineError):
    """The generation model did not produce the expected JSON, even after a retry."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Model output did not match the recommendation schema: {reason}")
