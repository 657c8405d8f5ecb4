"""Async repository helpers for applications."""

from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

import asyncpg

from app.domain.applications import models
from app.domain.common.exceptions import ConflictError
from app.domain.common.storage import storage_call
from app.infra.postgres import get_pool


def _to_model(record: Optional[asyncpg.Record]) -> Optional[models.Application]:
	return models.Application.model_validate(dict(record)) if record else None


class ApplicationRepository:
	"""Thin data-access layer around asyncpg.

	Pair uniqueness and status preconditions are enforced by the database, so
	racing writers get exactly one winner.
	"""

	@storage_call
	async def create(
		self,
		*,
		opportunity_id: UUID,
		user_id: str,
		motivation: Optional[str],
	) -> models.Application:
		pool = await get_pool()
		async with pool.acquire() as conn:
			try:
				record = await conn.fetchrow(
					"""
					INSERT INTO opportunity_applications (id, opportunity_id, user_id, motivation)
					VALUES ($1, $2, $3, $4)
					RETURNING *
					""",
					uuid4(),
					opportunity_id,
					user_id,
					motivation,
				)
			except asyncpg.UniqueViolationError as exc:  # type: ignore[attr-defined]
				raise ConflictError("application_exists") from exc
		return models.Application.model_validate(dict(record))

	@storage_call
	async def get(self, application_id: UUID) -> Optional[models.Application]:
		pool = await get_pool()
		async with pool.acquire() as conn:
			record = await conn.fetchrow(
				"SELECT * FROM opportunity_applications WHERE id=$1",
				application_id,
			)
		return _to_model(record)

	@storage_call
	async def find_by_pair(self, opportunity_id: UUID, user_id: str) -> Optional[models.Application]:
		pool = await get_pool()
		async with pool.acquire() as conn:
			record = await conn.fetchrow(
				"SELECT * FROM opportunity_applications WHERE opportunity_id=$1 AND user_id=$2",
				opportunity_id,
				user_id,
			)
		return _to_model(record)

	@storage_call
	async def list_by_opportunity(self, opportunity_id: UUID) -> list[models.Application]:
		pool = await get_pool()
		async with pool.acquire() as conn:
			records = await conn.fetch(
				"""
				SELECT * FROM opportunity_applications
				WHERE opportunity_id=$1
				ORDER BY created_at ASC
				""",
				opportunity_id,
			)
		return [models.Application.model_validate(dict(record)) for record in records]

	@storage_call
	async def list_by_user(self, user_id: str) -> list[models.Application]:
		pool = await get_pool()
		async with pool.acquire() as conn:
			records = await conn.fetch(
				"""
				SELECT * FROM opportunity_applications
				WHERE user_id=$1
				ORDER BY created_at DESC
				""",
				user_id,
			)
		return [models.Application.model_validate(dict(record)) for record in records]

	@storage_call
	async def decide(
		self,
		application_id: UUID,
		*,
		outcome: models.ApplicationStatus,
		decided_by: str,
		decided_at: datetime,
	) -> Optional[models.Application]:
		"""Move a pending application to `outcome`; None when it was not pending."""
		pool = await get_pool()
		async with pool.acquire() as conn:
			async with conn.transaction():
				record = await conn.fetchrow(
					"""
					UPDATE opportunity_applications
					SET status=$2, approved_by=$3, approved_at=$4, updated_at=$4
					WHERE id=$1 AND status='pending'
					RETURNING *
					""",
					application_id,
					outcome.value,
					decided_by,
					decided_at,
				)
		return _to_model(record)

	@storage_call
	async def set_attendance(
		self,
		application_id: UUID,
		*,
		attended: bool,
		updated_at: datetime,
	) -> Optional[models.Application]:
		"""Set the attendance flag of an approved application; None otherwise."""
		pool = await get_pool()
		async with pool.acquire() as conn:
			async with conn.transaction():
				record = await conn.fetchrow(
					"""
					UPDATE opportunity_applications
					SET has_attended=$2, updated_at=$3
					WHERE id=$1 AND status='approved'
					RETURNING *
					""",
					application_id,
					attended,
					updated_at,
				)
		return _to_model(record)
