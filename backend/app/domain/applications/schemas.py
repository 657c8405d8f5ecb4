"""Pydantic schemas for the applications API."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import Field

from app.domain.applications.models import ApplicationStatus
from app.domain.opportunities.schemas import WireModel


class ApplyRequest(WireModel):
	motivation: Optional[str] = Field(default=None, max_length=2000)


class ApplicationPatchRequest(WireModel):
	"""Either a decision (`status`) or an attendance flag (`hasAttended`)."""

	status: Optional[ApplicationStatus] = None
	has_attended: Optional[bool] = None


class ApplicationResponse(WireModel):
	id: UUID
	opportunity_id: UUID
	user_id: str
	motivation: Optional[str] = None
	status: ApplicationStatus
	has_attended: bool
	approved_by: Optional[str] = None
	approved_at: Optional[datetime] = None
	created_at: datetime
	updated_at: datetime


class ApplicationListResponse(WireModel):
	items: List[ApplicationResponse]
