# athletrack/errors.py
"""
Error taxonomy shared by services and routers.

Only ValidationError and NotFoundError are expected to reach a client.
ConflictError is retried or swallowed internally; the last two never leave
the service layer.
"""
from typing import List, Optional


class AppError(Exception):
    status_code = 500

    def __init__(self, detail: str, fields: Optional[List[str]] = None):
        super().__init__(detail)
        self.detail = detail
        self.fields = fields or []


class ValidationError(AppError):
    status_code = 422


class NotFoundError(AppError):
    status_code = 404


class ConflictError(AppError):
    status_code = 409


class DerivedStateComputationError(AppError):
    """A PR/goal/badge/challenge step failed after the primary write."""

    def __init__(self, step: str, cause: Exception):
        super().__init__(f"{step} failed: {cause}")
        self.step = step
        self.cause = cause


class ExternalProviderError(AppError):
    status_code = 502
