"""Async repository helpers for feedback."""

from __future__ import annotations

from typing import Optional, Sequence
from uuid import UUID, uuid4

import asyncpg

from app.domain.common.exceptions import ConflictError
from app.domain.common.storage import storage_call
from app.domain.feedback import models
from app.infra.postgres import get_pool


class FeedbackRepository:
	"""Insert-only store; a second submission for the same key is a conflict."""

	@storage_call
	async def create_opportunity_feedback(
		self,
		*,
		opportunity_id: UUID,
		user_id: str,
		rating: int,
		comment: Optional[str],
		images: Sequence[str],
	) -> models.OpportunityFeedback:
		pool = await get_pool()
		async with pool.acquire() as conn:
			try:
				record = await conn.fetchrow(
					"""
					INSERT INTO opportunity_feedback (id, opportunity_id, user_id, rating, comment, images)
					VALUES ($1, $2, $3, $4, $5, $6)
					RETURNING *
					""",
					uuid4(),
					opportunity_id,
					user_id,
					rating,
					comment,
					list(images),
				)
			except asyncpg.UniqueViolationError as exc:  # type: ignore[attr-defined]
				raise ConflictError("feedback_exists") from exc
		return models.OpportunityFeedback.model_validate(dict(record))

	@storage_call
	async def create_volunteer_feedback(
		self,
		*,
		opportunity_id: UUID,
		user_id: str,
		volunteer_id: str,
		rating: int,
		testimonial: Optional[str],
	) -> models.VolunteerFeedback:
		pool = await get_pool()
		async with pool.acquire() as conn:
			try:
				record = await conn.fetchrow(
					"""
					INSERT INTO volunteer_feedback (id, opportunity_id, user_id, volunteer_id, rating, testimonial)
					VALUES ($1, $2, $3, $4, $5, $6)
					RETURNING *
					""",
					uuid4(),
					opportunity_id,
					user_id,
					volunteer_id,
					rating,
					testimonial,
				)
			except asyncpg.UniqueViolationError as exc:  # type: ignore[attr-defined]
				raise ConflictError("feedback_exists") from exc
		return models.VolunteerFeedback.model_validate(dict(record))
