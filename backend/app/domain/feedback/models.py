"""Domain models for post-participation feedback."""

from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

# Inclusive rating scale shared by both feedback kinds.
RATING_MIN = 1
RATING_MAX = 5


class OpportunityFeedback(BaseModel):
	id: UUID
	opportunity_id: UUID
	user_id: str
	rating: int
	comment: Optional[str] = None
	images: list[str] = Field(default_factory=list)
	created_at: datetime

	model_config = ConfigDict(from_attributes=True)


class VolunteerFeedback(BaseModel):
	"""A participant's rating of a fellow participant."""

	id: UUID
	opportunity_id: UUID
	user_id: str
	volunteer_id: str
	rating: int
	testimonial: Optional[str] = None
	created_at: datetime

	model_config = ConfigDict(from_attributes=True)
