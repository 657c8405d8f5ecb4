from __future__ import annotations

from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest

from app.domain.applications import schemas
from app.domain.applications.models import ApplicationStatus
from app.domain.applications.service import ApplicationService
from app.domain.common.exceptions import (
	ConflictError,
	ForbiddenError,
	InvalidStateTransitionError,
	NotFoundError,
	ValidationFailedError,
)
from app.infra.auth import AuthenticatedUser

NOW = datetime(2025, 6, 15, 12, 0, tzinfo=timezone.utc)

VOLUNTEER = AuthenticatedUser(id="vol-1", role="volunteer")
MANAGER = AuthenticatedUser(id="mgr-1", role="organization")
OUTSIDER = AuthenticatedUser(id="mgr-2", role="organization")


def _noop(*args, **kwargs):
	return None


@pytest.fixture(autouse=True)
def silence_metrics(monkeypatch):
	monkeypatch.setattr("app.obs.metrics.inc_application_submitted", _noop)
	monkeypatch.setattr("app.obs.metrics.inc_application_decision", _noop)
	monkeypatch.setattr("app.obs.metrics.inc_attendance_update", _noop)


async def _seed_opportunity(store):
	store.managers.add(("org-1", MANAGER.id))
	return await store.opportunity_repo.create(
		creator_id=MANAGER.id,
		values={
			"organization_id": "org-1",
			"title": "Tree planting",
			"short_summary": "Plant saplings along the river",
			"description": "Join the crew planting native saplings along the riverbank to restore the habitat.",
			"mode": "remote",
			"date_type": "single_day",
			"start_date": NOW + timedelta(days=3),
			"max_volunteers": 5,
			"contact_name": "Mina",
			"contact_email": "mina@example.org",
			"contact_phone": "5551234567",
		},
	)


def _service(store) -> ApplicationService:
	return ApplicationService(
		repository=store.application_repo,
		opportunities=store.opportunity_repo,
		access=store.access,
		clock=lambda: NOW,
	)


@pytest.mark.asyncio
async def test_apply_creates_pending_application(memory_store):
	opportunity = await _seed_opportunity(memory_store)
	service = _service(memory_store)

	response = await service.apply(VOLUNTEER, opportunity.id, schemas.ApplyRequest(motivation="  I love trees  "))

	assert response.status is ApplicationStatus.PENDING
	assert response.has_attended is False
	assert response.motivation == "I love trees"
	assert response.approved_by is None


@pytest.mark.asyncio
async def test_apply_twice_conflicts(memory_store):
	opportunity = await _seed_opportunity(memory_store)
	service = _service(memory_store)
	await service.apply(VOLUNTEER, opportunity.id, schemas.ApplyRequest())

	with pytest.raises(ConflictError):
		await service.apply(VOLUNTEER, opportunity.id, schemas.ApplyRequest())
	assert len(memory_store.applications) == 1


@pytest.mark.asyncio
async def test_apply_requires_volunteer_and_existing_opportunity(memory_store):
	opportunity = await _seed_opportunity(memory_store)
	service = _service(memory_store)

	with pytest.raises(ForbiddenError):
		await service.apply(MANAGER, opportunity.id, schemas.ApplyRequest())
	with pytest.raises(NotFoundError):
		await service.apply(VOLUNTEER, uuid4(), schemas.ApplyRequest())


@pytest.mark.asyncio
async def test_decide_records_actor_and_time(memory_store):
	opportunity = await _seed_opportunity(memory_store)
	service = _service(memory_store)
	application = await service.apply(VOLUNTEER, opportunity.id, schemas.ApplyRequest())

	decided = await service.decide(MANAGER, application.id, "rejected")

	assert decided.status is ApplicationStatus.REJECTED
	assert decided.approved_by == MANAGER.id
	assert decided.approved_at == NOW


@pytest.mark.asyncio
async def test_decide_is_one_way(memory_store):
	opportunity = await _seed_opportunity(memory_store)
	service = _service(memory_store)
	application = await service.apply(VOLUNTEER, opportunity.id, schemas.ApplyRequest())
	await service.decide(MANAGER, application.id, ApplicationStatus.APPROVED)

	with pytest.raises(ConflictError):
		await service.decide(MANAGER, application.id, ApplicationStatus.REJECTED)
	assert memory_store.applications[application.id].status is ApplicationStatus.APPROVED


@pytest.mark.asyncio
async def test_decide_requires_manage_access(memory_store):
	opportunity = await _seed_opportunity(memory_store)
	service = _service(memory_store)
	application = await service.apply(VOLUNTEER, opportunity.id, schemas.ApplyRequest())

	with pytest.raises(ForbiddenError):
		await service.decide(OUTSIDER, application.id, "approved")
	admin = AuthenticatedUser(id="root", role="admin")
	decided = await service.decide(admin, application.id, "approved")
	assert decided.approved_by == "root"


@pytest.mark.asyncio
async def test_decide_lost_race_reports_conflict(memory_store, monkeypatch):
	opportunity = await _seed_opportunity(memory_store)
	service = _service(memory_store)
	application = await service.apply(VOLUNTEER, opportunity.id, schemas.ApplyRequest())

	async def _already_decided(*args, **kwargs):
		return None

	monkeypatch.setattr(memory_store.application_repo, "decide", _already_decided)
	with pytest.raises(ConflictError):
		await service.decide(MANAGER, application.id, "approved")


@pytest.mark.asyncio
@pytest.mark.parametrize("outcome", [None, "rejected"])
async def test_attendance_requires_approved(memory_store, outcome):
	opportunity = await _seed_opportunity(memory_store)
	service = _service(memory_store)
	application = await service.apply(VOLUNTEER, opportunity.id, schemas.ApplyRequest())
	if outcome:
		await service.decide(MANAGER, application.id, outcome)

	with pytest.raises(InvalidStateTransitionError):
		await service.mark_attended(MANAGER, application.id, True)


@pytest.mark.asyncio
async def test_attendance_toggles_and_is_idempotent(memory_store):
	opportunity = await _seed_opportunity(memory_store)
	service = _service(memory_store)
	application = await service.apply(VOLUNTEER, opportunity.id, schemas.ApplyRequest())
	await service.decide(MANAGER, application.id, "approved")

	first = await service.mark_attended(MANAGER, application.id, True)
	second = await service.mark_attended(MANAGER, application.id, True)
	assert first.has_attended is True
	assert second.has_attended is True
	assert second.status is ApplicationStatus.APPROVED

	cleared = await service.mark_attended(MANAGER, application.id, False)
	assert cleared.has_attended is False


@pytest.mark.asyncio
async def test_update_dispatches_on_payload(memory_store):
	opportunity = await _seed_opportunity(memory_store)
	service = _service(memory_store)
	application = await service.apply(VOLUNTEER, opportunity.id, schemas.ApplyRequest())

	approved = await service.update(MANAGER, application.id, schemas.ApplicationPatchRequest(status="approved"))
	assert approved.status is ApplicationStatus.APPROVED
	attended = await service.update(MANAGER, application.id, schemas.ApplicationPatchRequest(hasAttended=True))
	assert attended.has_attended is True

	with pytest.raises(ValidationFailedError):
		await service.update(MANAGER, application.id, schemas.ApplicationPatchRequest())
	with pytest.raises(ValidationFailedError):
		await service.update(
			MANAGER,
			application.id,
			schemas.ApplicationPatchRequest(status="approved", has_attended=True),
		)


@pytest.mark.asyncio
async def test_missing_application_is_not_found(memory_store):
	service = _service(memory_store)
	with pytest.raises(NotFoundError):
		await service.mark_attended(MANAGER, uuid4(), True)


@pytest.mark.asyncio
async def test_listings(memory_store):
	opportunity = await _seed_opportunity(memory_store)
	service = _service(memory_store)
	await service.apply(VOLUNTEER, opportunity.id, schemas.ApplyRequest())

	mine = await service.list_mine(VOLUNTEER)
	assert [item.opportunity_id for item in mine.items] == [opportunity.id]

	managed = await service.list_for_opportunity(MANAGER, opportunity.id)
	assert len(managed.items) == 1
	with pytest.raises(ForbiddenError):
		await service.list_for_opportunity(OUTSIDER, opportunity.id)
