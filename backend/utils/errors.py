"""Domain exceptions raised by the crud layer and rendered by main.py."""


class AppError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(AppError):
    """Bad input: amount exceeds total, required field missing, client not configured."""
    status_code = 400


class NotFoundError(AppError):
    status_code = 404


class ForbiddenError(AppError):
    status_code = 403


class ExternalServiceError(AppError):
    """SMS gateway or remote license API failure."""
    status_code = 502
