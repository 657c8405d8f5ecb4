"""Domain models for volunteer applications."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class ApplicationStatus(str, Enum):
	PENDING = "pending"
	APPROVED = "approved"
	REJECTED = "rejected"


DECISION_OUTCOMES = (ApplicationStatus.APPROVED, ApplicationStatus.REJECTED)


class Application(BaseModel):
	"""One volunteer's relationship to one opportunity."""

	id: UUID
	opportunity_id: UUID
	user_id: str
	motivation: Optional[str] = None
	status: ApplicationStatus = ApplicationStatus.PENDING
	has_attended: bool = False
	approved_by: Optional[str] = None
	approved_at: Optional[datetime] = None
	created_at: datetime
	updated_at: datetime

	model_config = ConfigDict(from_attributes=True)

	@property
	def is_attended_participant(self) -> bool:
		return self.status is ApplicationStatus.APPROVED and self.has_attended
