"""Opportunity CRUD, listing with derived status, and form validation."""

from __future__ import annotations

import logging
from datetime import date, datetime, time, timezone
from typing import Any, Callable, Iterable, Mapping, Optional
from uuid import UUID

from app.domain.applications import repo as application_repo
from app.domain.common.exceptions import ForbiddenError, NotFoundError, ValidationFailedError
from app.domain.opportunities import models, policies, repo as repo_module, schemas
from app.domain.opportunities.status import compute_status
from app.domain.opportunities.validation import (
	FIELD_ALIASES,
	OpportunityForm,
	parse_when,
	validate_field,
	validate_form,
)
from app.domain.organizations.access import OrganizationAccess
from app.infra.auth import AuthenticatedUser
from app.obs import metrics as obs_metrics
from app.settings import settings

logger = logging.getLogger(__name__)

# Changing one of these keys re-checks the fields that depend on it.
_DEPENDENTS: Mapping[str, tuple[str, ...]] = {
	"mode": ("address", "city", "state", "country"),
	"dateType": ("startDate", "endDate"),
	"startDate": ("endDate",),
}


def _utcnow() -> datetime:
	return datetime.now(timezone.utc)


def _wire(name: str) -> str:
	return FIELD_ALIASES.get(name, name)


def _as_datetime(value: Any) -> Optional[datetime]:
	when = parse_when(value)
	if when is None:
		return None
	if not isinstance(when, datetime):
		return datetime.combine(when, time.min, tzinfo=timezone.utc)
	return when if when.tzinfo else when.replace(tzinfo=timezone.utc)


def _clean_text(value: Any) -> Any:
	if isinstance(value, str):
		return value.strip() or None
	return value


def _column_values(values: Mapping[str, Any]) -> dict[str, Any]:
	"""Normalize validated form values into column values."""
	columns: dict[str, Any] = {}
	for key, value in values.items():
		if key in ("start_date", "end_date"):
			columns[key] = _as_datetime(value)
		elif key == "max_volunteers":
			columns[key] = int(float(value)) if value is not None else None
		elif key in ("skills_required", "causes"):
			columns[key] = [item.strip() for item in value or [] if item and item.strip()]
		else:
			columns[key] = _clean_text(value)
	return columns


def _form_from_opportunity(opportunity: models.Opportunity) -> dict[str, Any]:
	return opportunity.model_dump(include=set(OpportunityForm.__dataclass_fields__))


def to_response(
	opportunity: models.Opportunity,
	now: datetime,
	*,
	can_apply: Optional[bool] = None,
) -> schemas.OpportunityResponse:
	payload = opportunity.model_dump()
	payload["computed_status"] = compute_status(opportunity, now)
	payload["can_apply"] = can_apply
	return schemas.OpportunityResponse.model_validate(payload)


class OpportunityService:
	"""Creator-owned opportunities whose lifecycle is derived on every read."""

	def __init__(
		self,
		repository: repo_module.OpportunityRepository | None = None,
		applications: application_repo.ApplicationRepository | None = None,
		access: OrganizationAccess | None = None,
		clock: Callable[[], datetime] | None = None,
	) -> None:
		self.repo = repository or repo_module.OpportunityRepository()
		self.applications = applications or application_repo.ApplicationRepository()
		self.access = access or OrganizationAccess()
		self.clock = clock or _utcnow

	async def create(
		self,
		actor: AuthenticatedUser,
		payload: schemas.OpportunityCreateRequest,
	) -> schemas.OpportunityResponse:
		if not await self.access.has_manage_access(payload.organization_id, actor):
			raise ForbiddenError("manage_access_required")
		now = self.clock()
		values = payload.model_dump(exclude={"organization_id", "status"})
		result = validate_form(OpportunityForm.from_payload(values), now=now)
		if not result.valid:
			obs_metrics.inc_validation_failures(result.errors)
			raise ValidationFailedError(result.errors)
		columns = _column_values(values)
		columns["organization_id"] = payload.organization_id
		columns["status"] = payload.status
		opportunity = await self.repo.create(creator_id=actor.id, values=columns)
		obs_metrics.inc_opportunity_created(opportunity.mode.value, opportunity.date_type.value)
		logger.info(
			"opportunity.created",
			extra={"opportunity_id": str(opportunity.id), "organization_id": opportunity.organization_id},
		)
		return to_response(opportunity, now)

	async def update(
		self,
		actor: AuthenticatedUser,
		opportunity_id: UUID,
		payload: schemas.OpportunityUpdateRequest,
	) -> schemas.OpportunityResponse:
		"""Patch an opportunity, re-checking only the touched fields and their dependents."""
		opportunity = await self._get_owned(actor, opportunity_id)
		now = self.clock()
		changes = payload.model_dump(exclude_unset=True, exclude={"status"})
		merged = {**_form_from_opportunity(opportunity), **changes}
		result = validate_form(OpportunityForm.from_payload(merged), now=now)
		errors = {name: message for name, message in result.errors.items() if name in self._touched(changes)}
		if errors:
			obs_metrics.inc_validation_failures(errors)
			raise ValidationFailedError(errors)
		columns = _column_values(changes)
		if payload.status is not None:
			columns["status"] = payload.status
		updated = await self.repo.update(opportunity_id, columns)
		if updated is None:
			raise NotFoundError("opportunity_not_found")
		logger.info("opportunity.updated", extra={"opportunity_id": str(opportunity_id), "fields": sorted(columns)})
		return to_response(updated, now)

	async def close(self, actor: AuthenticatedUser, opportunity_id: UUID) -> schemas.OpportunityResponse:
		await self._get_owned(actor, opportunity_id)
		updated = await self.repo.update(opportunity_id, {"status": models.OpportunityStatus.CLOSED})
		if updated is None:
			raise NotFoundError("opportunity_not_found")
		logger.info("opportunity.closed", extra={"opportunity_id": str(opportunity_id)})
		return to_response(updated, self.clock())

	async def delete(self, actor: AuthenticatedUser, opportunity_id: UUID) -> None:
		await self._get_owned(actor, opportunity_id)
		if not await self.repo.delete(opportunity_id):
			raise NotFoundError("opportunity_not_found")
		logger.info("opportunity.deleted", extra={"opportunity_id": str(opportunity_id)})

	async def get(
		self,
		opportunity_id: UUID,
		actor: Optional[AuthenticatedUser] = None,
	) -> schemas.OpportunityResponse:
		opportunity = await self.repo.get(opportunity_id)
		if opportunity is None:
			raise NotFoundError("opportunity_not_found")
		now = self.clock()
		can_apply = False
		if actor is not None:
			existing = await self.applications.find_by_pair(opportunity_id, actor.id)
			approved = await self.repo.count_approved(opportunity_id)
			can_apply = policies.can_participate(
				actor,
				opportunity,
				existing_application=existing,
				approved_count=approved,
				now=now,
			)
		return to_response(opportunity, now, can_apply=can_apply)

	async def list(
		self,
		*,
		mode: Optional[str] = None,
		city: Optional[str] = None,
		state: Optional[str] = None,
		cause_category: Optional[str] = None,
		status: Optional[models.ComputedStatus] = None,
		include_archived: bool = False,
		page: int = 1,
		limit: Optional[int] = None,
	) -> schemas.OpportunityListResponse:
		page = max(page, 1)
		limit = min(max(limit or settings.default_page_size, 1), settings.max_page_size)
		now = self.clock()
		hides_archived = status is not models.ComputedStatus.ARCHIVED and (status is not None or not include_archived)
		rows = await self.repo.list(
			mode=mode,
			city=city,
			state=state,
			cause_category=cause_category,
			live_at=now if hides_archived else None,
		)
		items = [to_response(row, now) for row in rows]
		if status is not None:
			items = [item for item in items if item.computed_status is status]
		elif not include_archived:
			items = [item for item in items if item.computed_status is not models.ComputedStatus.ARCHIVED]
		start = (page - 1) * limit
		return schemas.OpportunityListResponse(
			items=items[start : start + limit],
			total=len(items),
			page=page,
			limit=limit,
		)

	def check_form(self, payload: Mapping[str, Any]) -> schemas.FormValidationResponse:
		result = validate_form(OpportunityForm.from_payload(payload), now=self.clock())
		return schemas.FormValidationResponse(valid=result.valid, errors=result.errors)

	def check_field(
		self,
		field: str,
		value: Any,
		form: Mapping[str, Any],
	) -> schemas.FieldValidationResponse:
		name = _wire(field)
		error = validate_field(name, value, OpportunityForm.from_payload(form), now=self.clock())
		return schemas.FieldValidationResponse(field=name, valid=error is None, error=error)

	async def _get_owned(self, actor: AuthenticatedUser, opportunity_id: UUID) -> models.Opportunity:
		opportunity = await self.repo.get(opportunity_id)
		if opportunity is None:
			raise NotFoundError("opportunity_not_found")
		policies.ensure_creator(opportunity, actor)
		return opportunity

	@staticmethod
	def _touched(changes: Iterable[str]) -> set[str]:
		touched = {_wire(name) for name in changes}
		for name in list(touched):
			touched.update(_DEPENDENTS.get(name, ()))
		return touched
