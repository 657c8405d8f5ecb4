"""Domain errors shared by opportunities, applications and feedback."""

from __future__ import annotations

from typing import Mapping

from fastapi import status

if hasattr(status, "HTTP_422_UNPROCESSABLE_CONTENT"):
	_HTTP_422 = status.HTTP_422_UNPROCESSABLE_CONTENT
else:  # pragma: no cover - fallback for older Starlette builds
	_HTTP_422 = status.HTTP_422_UNPROCESSABLE_ENTITY


class VolunteeringError(Exception):
	"""Base class for workflow errors.

	`kind` is the stable tag callers branch on; `detail` is a short reason code
	(e.g. ``application_not_found``) rendered to clients.
	"""

	kind: str = "Error"
	status_code: int = status.HTTP_400_BAD_REQUEST
	detail: str = "volunteering_error"

	def __init__(self, detail: str | None = None) -> None:
		super().__init__(detail or self.detail)
		if detail:
			self.detail = detail


class ValidationFailedError(VolunteeringError):
	"""Raised when an opportunity payload fails field validation."""

	kind = "ValidationFailed"
	status_code = _HTTP_422
	detail = "validation_failed"

	def __init__(self, errors: Mapping[str, str], detail: str | None = None) -> None:
		super().__init__(detail)
		self.errors = dict(errors)


class NotFoundError(VolunteeringError):
	kind = "NotFound"
	status_code = status.HTTP_404_NOT_FOUND
	detail = "not_found"


class ForbiddenError(VolunteeringError):
	"""Raised when the actor lacks the role or manage-access required."""

	kind = "Forbidden"
	status_code = status.HTTP_403_FORBIDDEN
	detail = "forbidden"


class ConflictError(VolunteeringError):
	"""Raised for duplicates and for transitions the stored state no longer permits."""

	kind = "Conflict"
	status_code = status.HTTP_409_CONFLICT
	detail = "conflict"


class InvalidStateTransitionError(VolunteeringError):
	kind = "InvalidStateTransition"
	status_code = status.HTTP_409_CONFLICT
	detail = "invalid_state_transition"


class UnavailableError(VolunteeringError):
	"""Storage failures surface as this instead of leaking driver errors."""

	kind = "Unavailable"
	status_code = status.HTTP_503_SERVICE_UNAVAILABLE
	detail = "storage_unavailable"
