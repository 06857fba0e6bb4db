"""
Error taxonomy for the Movie Scenes backend.
Every error is an HTTPException so FastAPI can render it directly.
"""

from fastapi import HTTPException


class AppError(HTTPException):
    """Base error carrying a human-readable message plus raw diagnostic detail."""

    status_code = 500

    def __init__(self, message: str, details=None, status_code: int = None, **extra):
        super().__init__(status_code=status_code or self.status_code, detail=message)
        self.message = message
        self.details = details
        self.extra = extra

    def to_body(self) -> dict:
        body = {"error": self.message}
        if self.details is not None:
            body["details"] = self.details
        body.update(self.extra)
        return body


class ConfigurationError(AppError):
    """Missing or rejected provider credentials."""
    status_code = 500


class ValidationError(AppError):
    """Missing or malformed caller input."""
    status_code = 400


class ProviderError(AppError):
    """An upstream provider call failed or returned an error status."""
    status_code = 500


class SceneParseError(AppError):
    """Generated text did not match the expected scene grammar."""
    status_code = 500


class GenerationTimeoutError(AppError):
    status_code = 500


class NotFoundError(AppError):
    status_code = 404


class JobNotFoundError(NotFoundError):
    pass
