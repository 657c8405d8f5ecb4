"""Pydantic schemas for the feedback API."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import Field

from app.domain.opportunities.schemas import WireModel


class _RatingRequest(WireModel):
	# range is checked by feedback.service.ensure_rating
	rating: int


class OpportunityFeedbackRequest(_RatingRequest):
	comment: Optional[str] = Field(default=None, max_length=4000)
	images: List[str] = Field(default_factory=list, max_length=10)


class VolunteerFeedbackRequest(_RatingRequest):
	testimonial: Optional[str] = Field(default=None, max_length=4000)


class OpportunityFeedbackResponse(WireModel):
	id: UUID
	opportunity_id: UUID
	user_id: str
	rating: int
	comment: Optional[str] = None
	images: List[str] = Field(default_factory=list)
	created_at: datetime


class VolunteerFeedbackResponse(WireModel):
	id: UUID
	opportunity_id: UUID
	user_id: str
	volunteer_id: str
	rating: int
	testimonial: Optional[str] = None
	created_at: datetime
