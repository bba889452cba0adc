"""Error taxonomy for the submission pipeline and scoring layer.

Every error carries the HTTP status it maps to so the API layer can render
it without a lookup table. ``SyncFailure`` never reaches a caller: the
source synchroniser logs it and records the failed attempt.
"""
from typing import Any, Iterable, Optional


class PipelineError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code: int = 500

    def __init__(self, message: str, **details: Any):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict[str, Any]:
        """Serialize the error for a JSON response body."""
        return {"error": self.message, **self.details}


class Unauthenticated(PipelineError):
    """No caller identity was presented."""

    status_code = 401

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message)


class Forbidden(PipelineError):
    """Caller is known but lacks a capability for the pipeline type."""

    status_code = 403

    def __init__(
        self,
        message: str = "Access denied to this pipeline",
        required_capabilities: Optional[Iterable[str]] = None,
    ):
        if required_capabilities is None:
            super().__init__(message)
        else:
            super().__init__(
                message,
                required_capabilities=sorted(getattr(c, "value", c) for c in required_capabilities),
            )


class NotFound(PipelineError):
    status_code = 404


class InvalidInput(PipelineError):
    status_code = 400


class InvalidStatus(InvalidInput):
    """Requested status is not one of the pipeline states."""

    def __init__(self, status: Any, allowed: Iterable[str]):
        super().__init__(
            f"Invalid status: {status!r}",
            allowed_statuses=list(allowed),
        )


class Conflict(PipelineError):
    """Submission changed since the caller last read it."""

    status_code = 409


class StoreFailure(PipelineError):
    status_code = 500

    def __init__(self, message: str = "Internal server error"):
        super().__init__(message)


class SyncFailure(Exception):
    """A source record could not be updated from the pipeline status."""

    def __init__(self, submission_type: str, reference_id: str, reason: str):
        super().__init__(f"{submission_type}:{reference_id}: {reason}")
        self.submission_type = submission_type
        self.reference_id = reference_id
        self.reason = reason
