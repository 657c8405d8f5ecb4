"""Error translation helpers for the volunteering API."""

from __future__ import annotations

from typing import Any

from fastapi import HTTPException, status

from app.domain.common import exceptions


def to_http_error(exc: Exception) -> HTTPException:
	"""Translate domain exceptions to FastAPI HTTP errors."""
	if isinstance(exc, HTTPException):
		return exc
	if isinstance(exc, exceptions.VolunteeringError):
		detail: dict[str, Any] = {"kind": exc.kind, "message": exc.detail}
		if isinstance(exc, exceptions.ValidationFailedError):
			detail["errors"] = exc.errors
		return HTTPException(status_code=exc.status_code, detail=detail)
	return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
