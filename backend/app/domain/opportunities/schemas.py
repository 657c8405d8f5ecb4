"""Pydantic schemas for the opportunities API.

Wire names are camelCase so that request keys, response keys and validation
error keys share one vocabulary; snake_case keys are accepted on input too.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from app.domain.opportunities.models import ComputedStatus, DateType, OpportunityMode, OpportunityStatus


class WireModel(BaseModel):
	model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class OpportunityFields(WireModel):
	"""Form fields; content rules are enforced by `validate_form`, not pydantic."""

	title: Optional[str] = None
	short_summary: Optional[str] = None
	description: Optional[str] = None
	cause_category: Optional[str] = None
	mode: Optional[str] = None
	date_type: Optional[str] = None
	start_date: Optional[Any] = None
	end_date: Optional[Any] = None
	start_time: Optional[str] = None
	end_time: Optional[str] = None
	address: Optional[str] = None
	city: Optional[str] = None
	state: Optional[str] = None
	country: Optional[str] = None
	osrm_link: Optional[str] = None
	max_volunteers: Optional[Any] = None
	skills_required: Optional[List[str]] = None
	causes: Optional[List[str]] = None
	language_preference: Optional[str] = None
	gender_preference: Optional[str] = None
	contact_name: Optional[str] = None
	contact_email: Optional[str] = None
	contact_phone: Optional[str] = None


class OpportunityCreateRequest(OpportunityFields):
	organization_id: str = Field(..., min_length=1)
	status: OpportunityStatus = OpportunityStatus.OPEN


class OpportunityUpdateRequest(OpportunityFields):
	status: Optional[OpportunityStatus] = None


class OpportunityResponse(WireModel):
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
	skills_required: List[str] = Field(default_factory=list)
	causes: List[str] = Field(default_factory=list)
	language_preference: Optional[str] = None
	gender_preference: Optional[str] = None
	contact_name: str
	contact_email: str
	contact_phone: str
	status: OpportunityStatus
	computed_status: ComputedStatus
	can_apply: Optional[bool] = None
	created_at: datetime
	updated_at: datetime


class OpportunityListResponse(WireModel):
	items: List[OpportunityResponse]
	total: int
	page: int
	limit: int


class FieldValidationRequest(WireModel):
	value: Any = None
	form: Dict[str, Any] = Field(default_factory=dict)


class FieldValidationResponse(WireModel):
	field: str
	valid: bool
	error: Optional[str] = None


class FormValidationResponse(WireModel):
	valid: bool
	errors: Dict[str, str] = Field(default_factory=dict)
