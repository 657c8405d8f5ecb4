"""Application lifecycle: apply, decide and attendance."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable, Optional
from uuid import UUID

from app.domain.applications import models, policies, repo as repo_module, schemas
from app.domain.common.exceptions import (
	ConflictError,
	ForbiddenError,
	InvalidStateTransitionError,
	NotFoundError,
	ValidationFailedError,
)
from app.domain.opportunities import models as opportunity_models, repo as opportunity_repo
from app.domain.organizations.access import OrganizationAccess
from app.infra.auth import AuthenticatedUser
from app.obs import metrics as obs_metrics

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
	return datetime.now(timezone.utc)


def to_response(application: models.Application) -> schemas.ApplicationResponse:
	return schemas.ApplicationResponse.model_validate(application.model_dump())


class ApplicationService:
	"""Drives a volunteer application through pending -> approved/rejected."""

	def __init__(
		self,
		repository: repo_module.ApplicationRepository | None = None,
		opportunities: opportunity_repo.OpportunityRepository | None = None,
		access: OrganizationAccess | None = None,
		clock: Callable[[], datetime] | None = None,
	) -> None:
		self.repo = repository or repo_module.ApplicationRepository()
		self.opportunities = opportunities or opportunity_repo.OpportunityRepository()
		self.access = access or OrganizationAccess()
		self.clock = clock or _utcnow

	async def apply(
		self,
		actor: AuthenticatedUser,
		opportunity_id: UUID,
		payload: schemas.ApplyRequest,
	) -> schemas.ApplicationResponse:
		policies.ensure_volunteer(actor)
		opportunity = await self.opportunities.get(opportunity_id)
		if opportunity is None:
			raise NotFoundError("opportunity_not_found")
		motivation = (payload.motivation or "").strip() or None
		application = await self.repo.create(
			opportunity_id=opportunity_id,
			user_id=actor.id,
			motivation=motivation,
		)
		obs_metrics.inc_application_submitted()
		logger.info(
			"application.submitted",
			extra={"application_id": str(application.id), "opportunity_id": str(opportunity_id)},
		)
		return to_response(application)

	async def update(
		self,
		actor: AuthenticatedUser,
		application_id: UUID,
		payload: schemas.ApplicationPatchRequest,
	) -> schemas.ApplicationResponse:
		"""Apply exactly one of a decision or an attendance change."""
		if (payload.status is None) == (payload.has_attended is None):
			raise ValidationFailedError({"status": "Provide either status or hasAttended"})
		if payload.status is not None:
			return await self.decide(actor, application_id, payload.status)
		return await self.mark_attended(actor, application_id, bool(payload.has_attended))

	async def decide(
		self,
		actor: AuthenticatedUser,
		application_id: UUID,
		outcome: models.ApplicationStatus | str,
	) -> schemas.ApplicationResponse:
		decision = policies.ensure_decision_outcome(outcome)
		application, _ = await self._load_managed(actor, application_id)
		policies.ensure_pending(application)
		decided = await self.repo.decide(
			application_id,
			outcome=decision,
			decided_by=actor.id,
			decided_at=self.clock(),
		)
		if decided is None:
			# Lost a race: the row changed between the read and the update.
			if await self.repo.get(application_id) is None:
				raise NotFoundError("application_not_found")
			raise ConflictError("application_already_decided")
		obs_metrics.inc_application_decision(decision.value)
		logger.info(
			"application.decided",
			extra={"application_id": str(application_id), "outcome": decision.value, "actor_id": actor.id},
		)
		return to_response(decided)

	async def mark_attended(
		self,
		actor: AuthenticatedUser,
		application_id: UUID,
		attended: bool,
	) -> schemas.ApplicationResponse:
		application, _ = await self._load_managed(actor, application_id)
		policies.ensure_approved_for_attendance(application)
		updated = await self.repo.set_attendance(application_id, attended=attended, updated_at=self.clock())
		if updated is None:
			if await self.repo.get(application_id) is None:
				raise NotFoundError("application_not_found")
			raise InvalidStateTransitionError("application_not_approved")
		obs_metrics.inc_attendance_update(attended)
		logger.info(
			"application.attendance_updated",
			extra={"application_id": str(application_id), "attended": attended, "actor_id": actor.id},
		)
		return to_response(updated)

	async def list_for_opportunity(
		self,
		actor: AuthenticatedUser,
		opportunity_id: UUID,
	) -> schemas.ApplicationListResponse:
		opportunity = await self.opportunities.get(opportunity_id)
		if opportunity is None:
			raise NotFoundError("opportunity_not_found")
		await self._ensure_manage_access(actor, opportunity)
		items = await self.repo.list_by_opportunity(opportunity_id)
		return schemas.ApplicationListResponse(items=[to_response(item) for item in items])

	async def list_mine(self, actor: AuthenticatedUser) -> schemas.ApplicationListResponse:
		items = await self.repo.list_by_user(actor.id)
		return schemas.ApplicationListResponse(items=[to_response(item) for item in items])

	async def _load_managed(
		self,
		actor: AuthenticatedUser,
		application_id: UUID,
	) -> tuple[models.Application, opportunity_models.Opportunity]:
		application = await self.repo.get(application_id)
		if application is None:
			raise NotFoundError("application_not_found")
		opportunity: Optional[opportunity_models.Opportunity] = await self.opportunities.get(
			application.opportunity_id
		)
		if opportunity is None:
			raise NotFoundError("opportunity_not_found")
		await self._ensure_manage_access(actor, opportunity)
		return application, opportunity

	async def _ensure_manage_access(
		self,
		actor: AuthenticatedUser,
		opportunity: opportunity_models.Opportunity,
	) -> None:
		if not await self.access.has_manage_access(opportunity.organization_id, actor):
			raise ForbiddenError("manage_access_required")
