"""Guards for the application state machine and feedback eligibility."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from app.domain.applications.models import DECISION_OUTCOMES, Application, ApplicationStatus
from app.domain.common.exceptions import (
	ConflictError,
	ForbiddenError,
	InvalidStateTransitionError,
	NotFoundError,
	ValidationFailedError,
)
from app.domain.opportunities.models import Opportunity
from app.domain.opportunities.status import is_concluded
from app.infra.auth import AuthenticatedUser


def ensure_volunteer(actor: AuthenticatedUser) -> None:
	if not actor.is_volunteer:
		raise ForbiddenError("volunteer_role_required")


def ensure_decision_outcome(outcome: ApplicationStatus | str) -> ApplicationStatus:
	try:
		value = ApplicationStatus(outcome)
	except ValueError:
		value = None
	if value not in DECISION_OUTCOMES:
		raise ValidationFailedError({"status": "Status must be approved or rejected"})
	return value


def ensure_pending(application: Application) -> None:
	"""Decisions are one-way: only a pending application may be decided."""
	if application.status is not ApplicationStatus.PENDING:
		raise ConflictError("application_already_decided")


def ensure_approved_for_attendance(application: Application) -> None:
	if application.status is not ApplicationStatus.APPROVED:
		raise InvalidStateTransitionError("application_not_approved")


def ensure_can_rate_opportunity(
	application: Optional[Application],
	opportunity: Opportunity,
	now: datetime,
) -> None:
	"""Rater must be an approved, attended participant of a concluded opportunity."""
	if application is None or not application.is_attended_participant:
		raise ForbiddenError("feedback_not_eligible")
	if not is_concluded(opportunity, now):
		raise InvalidStateTransitionError("opportunity_not_concluded")


def ensure_can_rate_volunteer(
	rater: AuthenticatedUser,
	volunteer_id: str,
	rater_application: Optional[Application],
	target_application: Optional[Application],
	opportunity: Opportunity,
	now: datetime,
) -> None:
	if rater.id == volunteer_id:
		raise ForbiddenError("cannot_rate_self")
	ensure_can_rate_opportunity(rater_application, opportunity, now)
	if target_application is None:
		raise NotFoundError("volunteer_not_found")
	if not target_application.is_attended_participant:
		raise ForbiddenError("volunteer_not_eligible")
