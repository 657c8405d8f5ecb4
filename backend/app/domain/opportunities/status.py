"""Derived lifecycle status for opportunities.

The manual ``status`` column only ever forces ``archived`` (when closed); the
rest of the lifecycle is computed from the stored dates against ``now`` on
every read.
"""

from __future__ import annotations

from datetime import date, datetime, time, timezone
from typing import Any, Optional

from app.domain.opportunities.models import ComputedStatus, DateType, OpportunityStatus


def _value(field: Any) -> Any:
	return getattr(field, "value", field)


def as_comparable(value: date | datetime | None, now: datetime) -> Optional[datetime]:
	"""Return `value` as a datetime comparable with `now`.

	Naive datetimes are read as UTC; bare dates as midnight.
	"""
	if value is None:
		return None
	if not isinstance(value, datetime):
		value = datetime.combine(value, time.min)
	if now.tzinfo is None:
		if value.tzinfo is not None:
			value = value.astimezone(timezone.utc).replace(tzinfo=None)
		return value
	if value.tzinfo is None:
		value = value.replace(tzinfo=timezone.utc)
	return value.astimezone(now.tzinfo)


def compute_status(opportunity: Any, now: datetime) -> ComputedStatus:
	"""Compute the lifecycle status of `opportunity` at `now`.

	`opportunity` only needs ``status``, ``date_type``, ``start_date`` and
	``end_date`` attributes.
	"""
	if _value(opportunity.status) == OpportunityStatus.CLOSED.value:
		return ComputedStatus.ARCHIVED

	date_type = _value(opportunity.date_type)
	start = as_comparable(opportunity.start_date, now)
	end = as_comparable(opportunity.end_date, now)

	if date_type == DateType.ONGOING.value and start is None:
		return ComputedStatus.ACTIVE

	if date_type == DateType.SINGLE_DAY.value:
		if start is None:
			# a single-day row without its day cannot be running
			return ComputedStatus.ARCHIVED
		if start.date() == now.date():
			return ComputedStatus.ACTIVE
		return ComputedStatus.UPCOMING if start.date() > now.date() else ComputedStatus.ARCHIVED

	if date_type == DateType.MULTI_DAY.value:
		if start is not None and now < start:
			return ComputedStatus.UPCOMING
		if end is not None and now > end:
			return ComputedStatus.ARCHIVED
		return ComputedStatus.ACTIVE

	if date_type == DateType.ONGOING.value:
		if now < start:
			return ComputedStatus.UPCOMING
		if end is None or now <= end:
			return ComputedStatus.ACTIVE
		return ComputedStatus.ARCHIVED

	return ComputedStatus.ACTIVE


def is_concluded(opportunity: Any, now: datetime) -> bool:
	return compute_status(opportunity, now) is ComputedStatus.ARCHIVED
