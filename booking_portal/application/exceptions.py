class CollaboratorError(RuntimeError):
    """Raised when a portal collaborator fails (timeouts, network errors, 5xx, rejected requests)."""

    def __init__(self, message: str | None = None, status_code: int | None = None) -> None:
        super().__init__(message or "Collaborator request failed")
        self.message = message
        self.status_code = status_code


class DuplicateSlotError(CollaboratorError):
    """Raised when the appointment collaborator reports the slot is already taken."""
    pass


class AuthenticationError(CollaboratorError):
    """Raised when an OAuth identity token is rejected."""
    pass
