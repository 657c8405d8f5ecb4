"""Domain models for volunteering opportunities."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class OpportunityMode(str, Enum):
	ONSITE = "onsite"
	REMOTE = "remote"
	HYBRID = "hybrid"


class DateType(str, Enum):
	SINGLE_DAY = "single_day"
	MULTI_DAY = "multi_day"
	ONGOING = "ongoing"


class OpportunityStatus(str, Enum):
	"""Persisted, manually controlled status.

	Only ``closed`` influences the derived lifecycle; see `ComputedStatus`.
	"""

	DRAFT = "draft"
	OPEN = "open"
	CLOSED = "closed"


class ComputedStatus(str, Enum):
	"""Lifecycle state derived on every read, never stored."""

	UPCOMING = "upcoming"
	ACTIVE = "active"
	ARCHIVED = "archived"


class Opportunity(BaseModel):
	"""Represents an opportunity row."""

	id: UUID
	organization_id: str
	creator_id: str
	title: str
	short_summary: str
	description: str
	cause_category: Optional[str] = None
	mode: OpportunityMode
	date_type: DateType
	start_date: Optional[datetime] = None
	end_date: Optional[datetime] = None
	start_time: Optional[str] = None
	end_time: Optional[str] = None
	address: Optional[str] = None
	city: Optional[str] = None
	state: Optional[str] = None
	country: Optional[str] = None
	osrm_link: Optional[str] = None
	max_volunteers: int
	skills_required: list[str] = Field(default_factory=list)
	causes: list[str] = Field(default_factory=list)
	language_preference: Optional[str] = None
	gender_preference: Optional[str] = None
	contact_name: str
	contact_email: str
	contact_phone: str
	status: OpportunityStatus = OpportunityStatus.OPEN
	created_at: datetime
	updated_at: datetime

	model_config = ConfigDict(from_attributes=True)
