"""Participation and ownership guards for opportunities."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from app.domain.common.exceptions import ForbiddenError
from app.domain.opportunities import models
from app.domain.opportunities.status import is_concluded
from app.infra.auth import ROLE_ORGANIZATION, AuthenticatedUser


def ensure_creator(opportunity: models.Opportunity, actor: AuthenticatedUser) -> None:
	if opportunity.creator_id != actor.id:
		raise ForbiddenError("creator_required")


def can_participate(
	actor: Optional[AuthenticatedUser],
	opportunity: models.Opportunity,
	*,
	existing_application: Any,
	approved_count: int,
	now: datetime,
) -> bool:
	"""Whether `actor` should be offered an "apply" action.

	Display hint only; `ApplicationService.apply` does not consult it.
	"""
	if actor is None or actor.role == ROLE_ORGANIZATION:
		return False
	if opportunity.creator_id == actor.id:
		return False
	if existing_application is not None:
		return False
	if approved_count >= opportunity.max_volunteers:
		return False
	return not is_concluded(opportunity, now)
