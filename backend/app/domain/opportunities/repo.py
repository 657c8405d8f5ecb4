"""Async repository helpers for opportunities."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Mapping, Optional
from uuid import UUID, uuid4

from app.domain.common.storage import storage_call
from app.domain.opportunities import models
from app.infra.postgres import get_pool

# Columns callers may write; everything else is owned by the repository.
WRITABLE_COLUMNS = (
	"organization_id",
	"title",
	"short_summary",
	"description",
	"cause_category",
	"mode",
	"date_type",
	"start_date",
	"end_date",
	"start_time",
	"end_time",
	"address",
	"city",
	"state",
	"country",
	"osrm_link",
	"max_volunteers",
	"skills_required",
	"causes",
	"language_preference",
	"gender_preference",
	"contact_name",
	"contact_email",
	"contact_phone",
	"status",
)


def _db_value(value: Any) -> Any:
	return getattr(value, "value", value)


class OpportunityRepository:
	"""Thin data-access layer around asyncpg."""

	@storage_call
	async def create(self, *, creator_id: str, values: Mapping[str, Any]) -> models.Opportunity:
		columns = [column for column in WRITABLE_COLUMNS if column in values]
		params = [_db_value(values[column]) for column in columns]
		placeholders = ", ".join(f"${idx}" for idx in range(3, len(columns) + 3))
		pool = await get_pool()
		async with pool.acquire() as conn:
			record = await conn.fetchrow(
				f"""
				INSERT INTO opportunities (id, creator_id, {", ".join(columns)})
				VALUES ($1, $2, {placeholders})
				RETURNING *
				""",
				uuid4(),
				creator_id,
				*params,
			)
		return models.Opportunity.model_validate(dict(record))

	@storage_call
	async def get(self, opportunity_id: UUID) -> Optional[models.Opportunity]:
		pool = await get_pool()
		async with pool.acquire() as conn:
			record = await conn.fetchrow("SELECT * FROM opportunities WHERE id=$1", opportunity_id)
		return models.Opportunity.model_validate(dict(record)) if record else None

	@storage_call
	async def update(self, opportunity_id: UUID, changes: Mapping[str, Any]) -> Optional[models.Opportunity]:
		columns = [column for column in WRITABLE_COLUMNS if column in changes]
		if not columns:
			return await self.get(opportunity_id)
		assignments = ", ".join(f"{column}=${idx}" for idx, column in enumerate(columns, start=2))
		now = datetime.now(timezone.utc)
		pool = await get_pool()
		async with pool.acquire() as conn:
			record = await conn.fetchrow(
				f"""
				UPDATE opportunities
				SET {assignments}, updated_at=${len(columns) + 2}
				WHERE id=$1
				RETURNING *
				""",
				opportunity_id,
				*[_db_value(changes[column]) for column in columns],
				now,
			)
		return models.Opportunity.model_validate(dict(record)) if record else None

	@storage_call
	async def delete(self, opportunity_id: UUID) -> bool:
		pool = await get_pool()
		async with pool.acquire() as conn:
			result = await conn.execute("DELETE FROM opportunities WHERE id=$1", opportunity_id)
		return result.endswith(" 1")

	@storage_call
	async def list(
		self,
		*,
		mode: Optional[str] = None,
		city: Optional[str] = None,
		state: Optional[str] = None,
		cause_category: Optional[str] = None,
		live_at: Optional[datetime] = None,
	) -> list[models.Opportunity]:
		"""List non-draft opportunities, newest first.

		With `live_at`, rows already archived at that instant by a manual close
		or a passed end date are left out. Single-day rows and open-ended ongoing
		rows are kept for the caller to resolve.
		"""
		clauses: list[str] = ["status <> 'draft'"]
		args: list[Any] = []
		for column, value in (
			("mode", mode),
			("city", city),
			("state", state),
			("cause_category", cause_category),
		):
			if value:
				args.append(value)
				clauses.append(f"{column}=${len(args)}")
		if live_at is not None:
			args.append(live_at)
			clauses.append("status <> 'closed'")
			clauses.append(
				"(end_date IS NULL OR end_date >= $%d OR date_type = 'single_day'"
				" OR (date_type = 'ongoing' AND start_date IS NULL))" % len(args)
			)
		query = f"SELECT * FROM opportunities WHERE {' AND '.join(clauses)} ORDER BY created_at DESC"
		pool = await get_pool()
		async with pool.acquire() as conn:
			records = await conn.fetch(query, *args)
		return [models.Opportunity.model_validate(dict(record)) for record in records]

	@storage_call
	async def count_approved(self, opportunity_id: UUID) -> int:
		pool = await get_pool()
		async with pool.acquire() as conn:
			count = await conn.fetchval(
				"""
				SELECT COUNT(*) FROM opportunity_applications
				WHERE opportunity_id=$1 AND status='approved'
				""",
				opportunity_id,
			)
		return int(count or 0)
