"""Exceptions raised by the service layer and rendered as JSON by the app."""


class ClinicError(Exception):
    """Base error carrying the HTTP status the API should answer with."""
    status_code = 400

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code

    def to_dict(self):
        return {"error": self.message}


class ValidationFailed(ClinicError):
    status_code = 400


class AuthError(ClinicError):
    status_code = 401


class PermissionDenied(ClinicError):
    status_code = 403


class NotFoundError(ClinicError):
    status_code = 404


class ConflictError(ClinicError):
    status_code = 409


class SlotUnavailableError(ValidationFailed):
    """Requested slot is not one the doctor declared available."""


class SlotConflictError(ConflictError):
    """Slot is already taken on that date."""
