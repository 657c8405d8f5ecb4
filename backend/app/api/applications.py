"""Application API endpoints addressed by application id."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends

from app.api._errors import to_http_error
from app.domain.applications import schemas
from app.domain.applications.service import ApplicationService
from app.infra.auth import AuthenticatedUser, get_current_user

router = APIRouter(prefix="/applications", tags=["applications"])
_service = ApplicationService()


@router.get("/me", response_model=schemas.ApplicationListResponse)
async def list_my_applications_endpoint(
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> schemas.ApplicationListResponse:
	try:
		return await _service.list_mine(auth_user)
	except Exception as exc:
		raise to_http_error(exc) from exc


@router.patch("/{application_id}", response_model=schemas.ApplicationResponse)
async def update_application_endpoint(
	application_id: UUID,
	payload: schemas.ApplicationPatchRequest,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> schemas.ApplicationResponse:
	"""Decide a pending application or flip attendance on an approved one."""
	try:
		return await _service.update(auth_user, application_id, payload)
	except Exception as exc:
		raise to_http_error(exc) from exc
