"""Typed engine errors.

Engine code raises these on precondition violations; the HTTP layer maps
``status_code`` onto the response (see ``ilab.middleware.error_handler``).
"""

from __future__ import annotations


class EngineError(Exception):
    """Base class for all errors raised by the engine."""

    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class NotFoundError(EngineError):
    """A profile, badge, submission, criterion, score or team does not exist."""

    status_code = 404


class ValidationError(EngineError):
    """Input violates an engine invariant (bad points, score out of range, ...)."""

    status_code = 400


class ConflictError(EngineError):
    """The requested state already exists (duplicate slug, judge assigned twice)."""

    status_code = 409


class PermissionDeniedError(EngineError):
    """The caller is not allowed to act on this resource."""

    status_code = 403


class DuplicateScoreError(ValidationError):
    """A score for this (submission, judge, criterion) triple already exists."""


class ConflictOfInterestError(ValidationError):
    """A judge tried to score their own team's submission."""


class TeamFullError(ValidationError):
    """The team is already at capacity."""
