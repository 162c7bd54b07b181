"""Error taxonomy for the N-body engine.

Every failure is terminal for a run: there are no retries and no partial
results. The host catches ``NBodyError``, reports it and aborts.
"""

from typing import Optional


class NBodyError(Exception):
    """Base class for all engine errors."""


class AllocationError(NBodyError):
    """A device storage request could not be satisfied."""

    def __init__(self, operation: str, detail: str = ""):
        self.operation = operation
        self.detail = detail
        message = f"{operation} failed"
        if detail:
            message += f": {detail}"
        super().__init__(message)


class LaunchError(NBodyError):
    """A parallel dispatch (or the barrier after it) failed."""

    def __init__(self, operation: str, location: Optional[str] = None, detail: str = ""):
        self.operation = operation
        self.location = location
        self.detail = detail
        message = f"{operation} failed"
        if location:
            message += f" ({location})"
        if detail:
            message += f": {detail}"
        super().__init__(message)


class ContractViolation(NBodyError):
    """The caller broke the engine's lifecycle or argument contract."""


class BackendUnavailable(NBodyError):
    """The requested compute backend cannot run on this machine."""

    def __init__(self, backend: str, detail: str = ""):
        self.backend = backend
        self.detail = detail
        message = f"{backend} backend unavailable"
        if detail:
            message += f": {detail}"
        super().__init__(message)
