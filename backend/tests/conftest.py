import sys
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Mapping, Optional
from uuid import UUID, uuid4

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

# Ensure backend package is importable when tests run from repo root
BACKEND_ROOT = Path(__file__).resolve().parents[1]
if str(BACKEND_ROOT) not in sys.path:
	sys.path.insert(0, str(BACKEND_ROOT))

from app import main as app_main
from app.domain.applications import models as application_models
from app.domain.common.exceptions import ConflictError
from app.domain.feedback import models as feedback_models
from app.domain.opportunities import models as opportunity_models
from app.infra import postgres
from app.infra.auth import ROLE_ADMIN, AuthenticatedUser
from app.main import app
from app.settings import settings


class MemoryOpportunityRepository:
	"""In-memory stand-in for `OpportunityRepository`."""

	def __init__(self, store: "MemoryStore") -> None:
		self._store = store

	async def create(self, *, creator_id: str, values: Mapping[str, Any]) -> opportunity_models.Opportunity:
		now = datetime.now(timezone.utc)
		payload = {key: value for key, value in values.items() if value is not None}
		opportunity = opportunity_models.Opportunity(
			id=uuid4(),
			creator_id=creator_id,
			created_at=now,
			updated_at=now,
			**payload,
		)
		self._store.opportunities[opportunity.id] = opportunity
		return opportunity

	async def get(self, opportunity_id: UUID) -> Optional[opportunity_models.Opportunity]:
		return self._store.opportunities.get(opportunity_id)

	async def update(self, opportunity_id: UUID, changes: Mapping[str, Any]):
		current = self._store.opportunities.get(opportunity_id)
		if current is None:
			return None
		updated = opportunity_models.Opportunity.model_validate(
			{**current.model_dump(), **changes, "updated_at": datetime.now(timezone.utc)}
		)
		self._store.opportunities[opportunity_id] = updated
		return updated

	async def delete(self, opportunity_id: UUID) -> bool:
		return self._store.opportunities.pop(opportunity_id, None) is not None

	async def list(self, *, mode=None, city=None, state=None, cause_category=None, live_at=None):
		rows = [row for row in self._store.opportunities.values() if row.status is not opportunity_models.OpportunityStatus.DRAFT]
		if live_at is not None:
			rows = [
				row
				for row in rows
				if row.status is not opportunity_models.OpportunityStatus.CLOSED
				and (
					row.end_date is None
					or row.end_date >= live_at
					or row.date_type is opportunity_models.DateType.SINGLE_DAY
					or (row.date_type is opportunity_models.DateType.ONGOING and row.start_date is None)
				)
			]
		for attr, value in (("mode", mode), ("city", city), ("state", state), ("cause_category", cause_category)):
			if value:
				rows = [row for row in rows if getattr(getattr(row, attr), "value", getattr(row, attr)) == value]
		return sorted(rows, key=lambda row: row.created_at, reverse=True)

	async def count_approved(self, opportunity_id: UUID) -> int:
		return sum(
			1
			for item in self._store.applications.values()
			if item.opportunity_id == opportunity_id and item.status is application_models.ApplicationStatus.APPROVED
		)


class MemoryApplicationRepository:
	"""In-memory stand-in for `ApplicationRepository` with the same preconditions."""

	def __init__(self, store: "MemoryStore") -> None:
		self._store = store

	async def create(self, *, opportunity_id: UUID, user_id: str, motivation: Optional[str]):
		if await self.find_by_pair(opportunity_id, user_id) is not None:
			raise ConflictError("application_exists")
		now = datetime.now(timezone.utc)
		application = application_models.Application(
			id=uuid4(),
			opportunity_id=opportunity_id,
			user_id=user_id,
			motivation=motivation,
			created_at=now,
			updated_at=now,
		)
		self._store.applications[application.id] = application
		return application

	async def get(self, application_id: UUID):
		return self._store.applications.get(application_id)

	async def find_by_pair(self, opportunity_id: UUID, user_id: str):
		for item in self._store.applications.values():
			if item.opportunity_id == opportunity_id and item.user_id == user_id:
				return item
		return None

	async def list_by_opportunity(self, opportunity_id: UUID):
		return [item for item in self._store.applications.values() if item.opportunity_id == opportunity_id]

	async def list_by_user(self, user_id: str):
		return [item for item in self._store.applications.values() if item.user_id == user_id]

	async def decide(self, application_id: UUID, *, outcome, decided_by: str, decided_at: datetime):
		current = self._store.applications.get(application_id)
		if current is None or current.status is not application_models.ApplicationStatus.PENDING:
			return None
		updated = current.model_copy(
			update={"status": outcome, "approved_by": decided_by, "approved_at": decided_at, "updated_at": decided_at}
		)
		self._store.applications[application_id] = updated
		return updated

	async def set_attendance(self, application_id: UUID, *, attended: bool, updated_at: datetime):
		current = self._store.applications.get(application_id)
		if current is None or current.status is not application_models.ApplicationStatus.APPROVED:
			return None
		updated = current.model_copy(update={"has_attended": attended, "updated_at": updated_at})
		self._store.applications[application_id] = updated
		return updated


class MemoryFeedbackRepository:
	def __init__(self, store: "MemoryStore") -> None:
		self._store = store

	async def create_opportunity_feedback(self, *, opportunity_id, user_id, rating, comment, images):
		key = (user_id, opportunity_id)
		if key in self._store.opportunity_feedback:
			raise ConflictError("feedback_exists")
		feedback = feedback_models.OpportunityFeedback(
			id=uuid4(),
			opportunity_id=opportunity_id,
			user_id=user_id,
			rating=rating,
			comment=comment,
			images=list(images),
			created_at=datetime.now(timezone.utc),
		)
		self._store.opportunity_feedback[key] = feedback
		return feedback

	async def create_volunteer_feedback(self, *, opportunity_id, user_id, volunteer_id, rating, testimonial):
		key = (user_id, volunteer_id, opportunity_id)
		if key in self._store.volunteer_feedback:
			raise ConflictError("feedback_exists")
		feedback = feedback_models.VolunteerFeedback(
			id=uuid4(),
			opportunity_id=opportunity_id,
			user_id=user_id,
			volunteer_id=volunteer_id,
			rating=rating,
			testimonial=testimonial,
			created_at=datetime.now(timezone.utc),
		)
		self._store.volunteer_feedback[key] = feedback
		return feedback


class MemoryAccess:
	"""Manage-access keyed by (organization_id, user_id)."""

	def __init__(self, store: "MemoryStore") -> None:
		self._store = store

	async def has_manage_access(self, organization_id: str, actor: AuthenticatedUser) -> bool:
		if actor.role == ROLE_ADMIN:
			return True
		return (organization_id, actor.id) in self._store.managers


@dataclass
class MemoryStore:
	opportunities: dict = field(default_factory=dict)
	applications: dict = field(default_factory=dict)
	opportunity_feedback: dict = field(default_factory=dict)
	volunteer_feedback: dict = field(default_factory=dict)
	managers: set = field(default_factory=set)

	def __post_init__(self) -> None:
		self.opportunity_repo = MemoryOpportunityRepository(self)
		self.application_repo = MemoryApplicationRepository(self)
		self.feedback_repo = MemoryFeedbackRepository(self)
		self.access = MemoryAccess(self)


@pytest.fixture
def memory_store() -> MemoryStore:
	return MemoryStore()


@pytest.fixture(autouse=True)
def patch_postgres(monkeypatch):
	async def _noop(*args, **kwargs):
		return None

	monkeypatch.setattr(postgres, "init_pool", _noop)
	monkeypatch.setattr(postgres, "close_pool", _noop)
	monkeypatch.setattr(app_main, "ensure_schema", _noop)


@pytest.fixture(autouse=True)
def force_test_settings():
	"""Ensure a consistent test environment.

	API tests authenticate via X-User-Id/X-User-Role headers, which are only
	accepted in dev mode.
	"""
	original_env = settings.environment
	settings.environment = "dev"
	try:
		yield
	finally:
		settings.environment = original_env


@pytest_asyncio.fixture
async def api_client():
	transport = ASGITransport(app=app)
	async with AsyncClient(transport=transport, base_url="http://testserver") as client:
		yield client
