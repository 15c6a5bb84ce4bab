class ServiceError(RuntimeError):
    """Raised by adapters when a rental back-end call fails (network, HTTP error, rejected action)."""

    def __init__(self, message: str | None = None, status_code: int | None = None) -> None:
        super().__init__(message or "Rental service request failed")
        self.message = message
        self.status_code = status_code


class WorkflowValidationError(ValueError):
    """Raised when workflow inputs are invalid (unknown status, negative amounts)."""
    pass
