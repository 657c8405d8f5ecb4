"""Feedback submission for concluded opportunities."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable
from uuid import UUID

from app.domain.applications import policies as application_policies, repo as application_repo
from app.domain.common.exceptions import NotFoundError, ValidationFailedError
from app.domain.feedback import models, repo as repo_module, schemas
from app.domain.opportunities import models as opportunity_models, repo as opportunity_repo
from app.infra.auth import AuthenticatedUser
from app.obs import metrics as obs_metrics

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
	return datetime.now(timezone.utc)


def _strip(value: str | None) -> str | None:
	return (value or "").strip() or None


def ensure_rating(rating: int) -> None:
	if not models.RATING_MIN <= rating <= models.RATING_MAX:
		raise ValidationFailedError(
			{"rating": f"Rating must be between {models.RATING_MIN} and {models.RATING_MAX}"}
		)


class FeedbackService:
	"""Ratings from attended participants once an opportunity has ended."""

	def __init__(
		self,
		repository: repo_module.FeedbackRepository | None = None,
		applications: application_repo.ApplicationRepository | None = None,
		opportunities: opportunity_repo.OpportunityRepository | None = None,
		clock: Callable[[], datetime] | None = None,
	) -> None:
		self.repo = repository or repo_module.FeedbackRepository()
		self.applications = applications or application_repo.ApplicationRepository()
		self.opportunities = opportunities or opportunity_repo.OpportunityRepository()
		self.clock = clock or _utcnow

	async def submit_opportunity_feedback(
		self,
		actor: AuthenticatedUser,
		opportunity_id: UUID,
		payload: schemas.OpportunityFeedbackRequest,
	) -> schemas.OpportunityFeedbackResponse:
		ensure_rating(payload.rating)
		opportunity = await self._get_opportunity(opportunity_id)
		application = await self.applications.find_by_pair(opportunity_id, actor.id)
		application_policies.ensure_can_rate_opportunity(application, opportunity, self.clock())
		images = [url.strip() for url in payload.images if url and url.strip()]
		feedback = await self.repo.create_opportunity_feedback(
			opportunity_id=opportunity_id,
			user_id=actor.id,
			rating=payload.rating,
			comment=_strip(payload.comment),
			images=images,
		)
		obs_metrics.inc_feedback_submitted("opportunity")
		logger.info(
			"feedback.submitted",
			extra={"kind": "opportunity", "opportunity_id": str(opportunity_id), "rating": payload.rating},
		)
		return schemas.OpportunityFeedbackResponse.model_validate(feedback.model_dump())

	async def submit_volunteer_feedback(
		self,
		actor: AuthenticatedUser,
		opportunity_id: UUID,
		volunteer_id: str,
		payload: schemas.VolunteerFeedbackRequest,
	) -> schemas.VolunteerFeedbackResponse:
		ensure_rating(payload.rating)
		opportunity = await self._get_opportunity(opportunity_id)
		rater_application = await self.applications.find_by_pair(opportunity_id, actor.id)
		target_application = None
		if volunteer_id != actor.id:
			target_application = await self.applications.find_by_pair(opportunity_id, volunteer_id)
		application_policies.ensure_can_rate_volunteer(
			actor,
			volunteer_id,
			rater_application,
			target_application,
			opportunity,
			self.clock(),
		)
		feedback = await self.repo.create_volunteer_feedback(
			opportunity_id=opportunity_id,
			user_id=actor.id,
			volunteer_id=volunteer_id,
			rating=payload.rating,
			testimonial=_strip(payload.testimonial),
		)
		obs_metrics.inc_feedback_submitted("volunteer")
		logger.info(
			"feedback.submitted",
			extra={"kind": "volunteer", "opportunity_id": str(opportunity_id), "rating": payload.rating},
		)
		return schemas.VolunteerFeedbackResponse.model_validate(feedback.model_dump())

	async def _get_opportunity(self, opportunity_id: UUID) -> opportunity_models.Opportunity:
		opportunity = await self.opportunities.get(opportunity_id)
		if opportunity is None:
			raise NotFoundError("opportunity_not_found")
		return opportunity
