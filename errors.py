# backend/errors.py

from typing import Optional


class ResumeServiceError(Exception):
    """
    Base class for every failure the API knows how to report.

    `status_code` is what the top-level exception handler in main.py
    sends back; only caller mistakes use a 4xx code.
    """

    status_code: int = 500

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationError(ResumeServiceError):
    """Missing or malformed caller input. Message is shown to the user as-is."""

    status_code = 400


class SchemaViolation(ResumeServiceError):
    """A present field had the wrong type or an out-of-set enum value."""


class UpstreamError(ResumeServiceError):
    """Transport or HTTP failure while calling the model provider."""


class EmptyModelResponse(ResumeServiceError):
    pass


class MalformedModelOutput(ResumeServiceError):
    pass


class MissingConfiguration(ResumeServiceError):
    pass


class ResumeNotFound(ResumeServiceError):
    status_code = 404
