"""
Error taxonomy for the insights engine.

Every error propagates unchanged to the caller; the HTTP layer maps
each class to a status code in `backend.app.main`.
"""

from __future__ import annotations


class InsightsError(Exception):
    status_code = 400

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class InvalidInput(InsightsError):
    status_code = 422


class NotFound(InsightsError):
    status_code = 404


class OwnershipViolation(InsightsError):
    status_code = 403
