"""Opportunity API endpoints, including apply and feedback sub-resources."""

from __future__ import annotations

from typing import Any, Dict, Optional
from uuid import UUID

from fastapi import APIRouter, Body, Depends, Query, Response, status

from app.api._errors import to_http_error
from app.domain.applications import schemas as application_schemas
from app.domain.applications.service import ApplicationService
from app.domain.feedback import schemas as feedback_schemas
from app.domain.feedback.service import FeedbackService
from app.domain.opportunities import schemas
from app.domain.opportunities.models import ComputedStatus
from app.domain.opportunities.service import OpportunityService
from app.infra.auth import AuthenticatedUser, get_current_user, get_optional_user

router = APIRouter(prefix="/opportunities", tags=["opportunities"])
_opportunities = OpportunityService()
_applications = ApplicationService()
_feedback = FeedbackService()


@router.post("/validate", response_model=schemas.FormValidationResponse)
async def validate_form_endpoint(form: Dict[str, Any] = Body(default={})) -> schemas.FormValidationResponse:
	return _opportunities.check_form(form)


@router.post("/validate/{field}", response_model=schemas.FieldValidationResponse)
async def validate_field_endpoint(
	field: str,
	payload: schemas.FieldValidationRequest,
) -> schemas.FieldValidationResponse:
	return _opportunities.check_field(field, payload.value, payload.form)


@router.post("", response_model=schemas.OpportunityResponse, status_code=status.HTTP_201_CREATED)
async def create_opportunity_endpoint(
	payload: schemas.OpportunityCreateRequest,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> schemas.OpportunityResponse:
	try:
		return await _opportunities.create(auth_user, payload)
	except Exception as exc:
		raise to_http_error(exc) from exc


@router.get("", response_model=schemas.OpportunityListResponse)
async def list_opportunities_endpoint(
	mode: Optional[str] = None,
	city: Optional[str] = None,
	state: Optional[str] = None,
	cause_category: Optional[str] = Query(default=None, alias="causeCategory"),
	computed_status: Optional[ComputedStatus] = Query(default=None, alias="status"),
	include_archived: bool = Query(default=False, alias="includeArchived"),
	page: int = Query(default=1, ge=1),
	limit: Optional[int] = Query(default=None, ge=1),
) -> schemas.OpportunityListResponse:
	try:
		return await _opportunities.list(
			mode=mode,
			city=city,
			state=state,
			cause_category=cause_category,
			status=computed_status,
			include_archived=include_archived,
			page=page,
			limit=limit,
		)
	except Exception as exc:
		raise to_http_error(exc) from exc


@router.get("/{opportunity_id}", response_model=schemas.OpportunityResponse)
async def get_opportunity_endpoint(
	opportunity_id: UUID,
	auth_user: Optional[AuthenticatedUser] = Depends(get_optional_user),
) -> schemas.OpportunityResponse:
	try:
		return await _opportunities.get(opportunity_id, auth_user)
	except Exception as exc:
		raise to_http_error(exc) from exc


@router.patch("/{opportunity_id}", response_model=schemas.OpportunityResponse)
async def update_opportunity_endpoint(
	opportunity_id: UUID,
	payload: schemas.OpportunityUpdateRequest,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> schemas.OpportunityResponse:
	try:
		return await _opportunities.update(auth_user, opportunity_id, payload)
	except Exception as exc:
		raise to_http_error(exc) from exc


@router.delete(
	"/{opportunity_id}",
	status_code=204,
	response_class=Response,
	response_model=None,
)
async def delete_opportunity_endpoint(
	opportunity_id: UUID,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> None:
	try:
		await _opportunities.delete(auth_user, opportunity_id)
		return None
	except Exception as exc:
		raise to_http_error(exc) from exc


@router.post("/{opportunity_id}/close", response_model=schemas.OpportunityResponse)
async def close_opportunity_endpoint(
	opportunity_id: UUID,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> schemas.OpportunityResponse:
	try:
		return await _opportunities.close(auth_user, opportunity_id)
	except Exception as exc:
		raise to_http_error(exc) from exc


@router.post(
	"/{opportunity_id}/applications",
	response_model=application_schemas.ApplicationResponse,
	status_code=status.HTTP_201_CREATED,
)
async def apply_endpoint(
	opportunity_id: UUID,
	payload: Optional[application_schemas.ApplyRequest] = None,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> application_schemas.ApplicationResponse:
	try:
		return await _applications.apply(auth_user, opportunity_id, payload or application_schemas.ApplyRequest())
	except Exception as exc:
		raise to_http_error(exc) from exc


@router.get("/{opportunity_id}/applications", response_model=application_schemas.ApplicationListResponse)
async def list_applications_endpoint(
	opportunity_id: UUID,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> application_schemas.ApplicationListResponse:
	try:
		return await _applications.list_for_opportunity(auth_user, opportunity_id)
	except Exception as exc:
		raise to_http_error(exc) from exc


@router.post(
	"/{opportunity_id}/feedback",
	response_model=feedback_schemas.OpportunityFeedbackResponse,
	status_code=status.HTTP_201_CREATED,
)
async def submit_opportunity_feedback_endpoint(
	opportunity_id: UUID,
	payload: feedback_schemas.OpportunityFeedbackRequest,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> feedback_schemas.OpportunityFeedbackResponse:
	try:
		return await _feedback.submit_opportunity_feedback(auth_user, opportunity_id, payload)
	except Exception as exc:
		raise to_http_error(exc) from exc


@router.post(
	"/{opportunity_id}/volunteers/{volunteer_id}/feedback",
	response_model=feedback_schemas.VolunteerFeedbackResponse,
	status_code=status.HTTP_201_CREATED,
)
async def submit_volunteer_feedback_endpoint(
	opportunity_id: UUID,
	volunteer_id: str,
	payload: feedback_schemas.VolunteerFeedbackRequest,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> feedback_schemas.VolunteerFeedbackResponse:
	try:
		return await _feedback.submit_volunteer_feedback(auth_user, opportunity_id, volunteer_id, payload)
	except Exception as exc:
		raise to_http_error(exc) from exc
