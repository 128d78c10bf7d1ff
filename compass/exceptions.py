"""Exception hierarchy for the planning service."""


class CompassError(Exception):
    """Base exception for all Compass errors."""


class PipelineError(CompassError):
    """Raised when a planning run cannot produce an itinerary."""


class NoUsableLocationsError(PipelineError):
    """Raised when no location survives validation."""

    def __init__(
        self,
        message: str = "No valid locations found. Please try different screenshots.",
    ) -> None:
        super().__init__(message)


class CollaboratorError(CompassError):
    """Raised by an external collaborator call that returned unusable data."""

    def __init__(self, collaborator: str, message: str) -> None:
        self.collaborator = collaborator
        super().__init__(f"{collaborator}: {message}")


class UploadValidationError(CompassError):
    """Raised when uploaded screenshots or form fields are invalid."""


class RunNotFoundError(CompassError):
    """Raised when a run id is unknown to the run store."""

    def __init__(self, run_id: str) -> None:
        self.run_id = run_id
        super().__init__(f"Run not found: {run_id}")
