"""Field rules for opportunity create/edit forms.

The same rules serve the submission handler (`validate_form`) and the
interactive editor (`validate_field`); both read thresholds from
`VALIDATION_LIMITS` and messages from `VALIDATION_MESSAGES` only. Nothing here
raises for bad input: a field either yields an error string or ``None``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, fields
from datetime import date, datetime, timezone
from typing import Any, Callable, Mapping, Optional

from pydantic import AnyUrl, TypeAdapter, ValidationError

from app.domain.opportunities.status import as_comparable


@dataclass(frozen=True)
class LengthLimit:
	min_length: int
	max_length: Optional[int] = None


@dataclass(frozen=True)
class ValidationLimits:
	title: LengthLimit = LengthLimit(3, 200)
	short_summary: LengthLimit = LengthLimit(10, 500)
	description: LengthLimit = LengthLimit(50, 5000)
	contact_name: LengthLimit = LengthLimit(2)
	contact_phone_min_digits: int = 10
	max_volunteers_min: int = 1
	max_volunteers_max: int = 10000


VALIDATION_LIMITS = ValidationLimits()

_L = VALIDATION_LIMITS

VALIDATION_MESSAGES: Mapping[str, Mapping[str, str]] = {
	"title": {
		"required": "Title is required",
		"too_short": f"Title must be at least {_L.title.min_length} characters",
		"too_long": f"Title must be less than {_L.title.max_length} characters",
	},
	"shortSummary": {
		"required": "Short summary is required",
		"too_short": f"Short summary must be at least {_L.short_summary.min_length} characters",
		"too_long": f"Short summary must be less than {_L.short_summary.max_length} characters",
	},
	"description": {
		"required": "Description is required",
		"too_short": f"Description must be at least {_L.description.min_length} characters",
		"too_long": f"Description must be less than {_L.description.max_length} characters",
	},
	"contactName": {
		"required": "Contact name is required",
		"too_short": f"Contact name must be at least {_L.contact_name.min_length} characters",
	},
	"contactEmail": {
		"required": "Contact email is required",
		"invalid": "Please enter a valid email address",
	},
	"contactPhone": {
		"required": "Contact phone is required",
		"invalid": "Please enter a valid phone number",
	},
	"maxVolunteers": {
		"required": "Maximum volunteers is required",
		"invalid": f"Maximum volunteers must be between {_L.max_volunteers_min} and {_L.max_volunteers_max}",
	},
	"mode": {"invalid": "Please select onsite, remote or hybrid"},
	"dateType": {"invalid": "Please select single day, multi-day or ongoing"},
	"address": {
		"onsite": "Address is required for onsite opportunities",
		"hybrid": "Address is required for hybrid opportunities",
	},
	"city": {
		"onsite": "City is required for onsite opportunities",
		"hybrid": "City is required for hybrid opportunities",
	},
	"state": {
		"onsite": "State is required for onsite opportunities",
		"hybrid": "State is required for hybrid opportunities",
	},
	"country": {
		"onsite": "Country is required for onsite opportunities",
		"hybrid": "Country is required for hybrid opportunities",
	},
	"dates": {
		"start_required_single": "Start date is required for single day opportunities",
		"start_required_multi": "Start date is required for multi-day opportunities",
		"start_past": "Start date cannot be in the past",
		"end_required_multi": "Multi-day opportunities must have an end date",
		"end_after_start": "End date must be after start date",
		"end_past": "End date cannot be in the past",
		"end_not_allowed_single": "Single day opportunities should not have an end date",
		"invalid": "Please enter a valid date",
	},
	"osrmLink": {"invalid": "Please enter a valid URL"},
}

MODES = ("onsite", "remote", "hybrid")
DATE_TYPES = ("single_day", "multi_day", "ongoing")

_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_PHONE_RE = re.compile(r"^[\d\s\-+()]+$")
_URL_ADAPTER = TypeAdapter(AnyUrl)


@dataclass(frozen=True)
class OpportunityForm:
	"""Candidate opportunity fields, any of which may be missing."""

	title: Any = None
	short_summary: Any = None
	description: Any = None
	cause_category: Any = None
	mode: Any = None
	date_type: Any = None
	address: Any = None
	city: Any = None
	state: Any = None
	country: Any = None
	osrm_link: Any = None
	start_date: Any = None
	end_date: Any = None
	start_time: Any = None
	end_time: Any = None
	max_volunteers: Any = None
	contact_name: Any = None
	contact_email: Any = None
	contact_phone: Any = None

	@classmethod
	def from_payload(cls, payload: Mapping[str, Any]) -> "OpportunityForm":
		"""Build a form from wire (camelCase) or attribute (snake_case) keys."""
		values: dict[str, Any] = {}
		for item in fields(cls):
			wire = FIELD_ALIASES.get(item.name, item.name)
			if wire in payload:
				values[item.name] = payload[wire]
			elif item.name in payload:
				values[item.name] = payload[item.name]
		return cls(**values)

	def value_of(self, field_name: str) -> Any:
		return getattr(self, WIRE_TO_ATTR.get(field_name, field_name), None)


FIELD_ALIASES: Mapping[str, str] = {
	"short_summary": "shortSummary",
	"cause_category": "causeCategory",
	"date_type": "dateType",
	"osrm_link": "osrmLink",
	"start_date": "startDate",
	"end_date": "endDate",
	"start_time": "startTime",
	"end_time": "endTime",
	"max_volunteers": "maxVolunteers",
	"contact_name": "contactName",
	"contact_email": "contactEmail",
	"contact_phone": "contactPhone",
}
WIRE_TO_ATTR: Mapping[str, str] = {wire: attr for attr, wire in FIELD_ALIASES.items()}


@dataclass(frozen=True)
class FormValidationResult:
	valid: bool
	errors: dict[str, str]


def _is_missing(value: Any) -> bool:
	if value is None:
		return True
	return isinstance(value, str) and not value.strip()


def _text(value: Any) -> str:
	return value.strip() if isinstance(value, str) else str(value)


def _enum_value(value: Any) -> Any:
	return getattr(value, "value", value)


_INVALID = object()


def parse_when(value: Any) -> Any:
	"""Return a `date`/`datetime`, ``None`` when missing, or `_INVALID`.

	Aware datetimes come back in UTC; offsets that push the instant outside the
	supported year range are invalid.
	"""
	if _is_missing(value):
		return None
	if isinstance(value, datetime):
		when = value
	elif isinstance(value, date):
		return value
	else:
		text = _text(value)
		try:
			if len(text) == 10:
				return date.fromisoformat(text)
			when = datetime.fromisoformat(text.replace("Z", "+00:00"))
		except ValueError:
			return _INVALID
	if when.tzinfo is None:
		return when
	try:
		return when.astimezone(timezone.utc)
	except (ValueError, OverflowError):
		return _INVALID


def _is_past(when: date | datetime, now: datetime) -> bool:
	# Bare dates are compared by day so that "today" is still allowed.
	if not isinstance(when, datetime):
		return when < now.date()
	aligned = as_comparable(when, now)
	assert aligned is not None
	return aligned < now


def _check_length(name: str, value: Any, limit: LengthLimit) -> Optional[str]:
	messages = VALIDATION_MESSAGES[name]
	if _is_missing(value):
		return messages["required"]
	text = _text(value)
	if len(text) < limit.min_length:
		return messages["too_short"]
	if limit.max_length is not None and len(text) > limit.max_length:
		return messages["too_long"]
	return None


def _title(value: Any, form: OpportunityForm, now: datetime) -> Optional[str]:
	return _check_length("title", value, _L.title)


def _short_summary(value: Any, form: OpportunityForm, now: datetime) -> Optional[str]:
	return _check_length("shortSummary", value, _L.short_summary)


def _description(value: Any, form: OpportunityForm, now: datetime) -> Optional[str]:
	return _check_length("description", value, _L.description)


def _contact_name(value: Any, form: OpportunityForm, now: datetime) -> Optional[str]:
	return _check_length("contactName", value, _L.contact_name)


def _contact_email(value: Any, form: OpportunityForm, now: datetime) -> Optional[str]:
	messages = VALIDATION_MESSAGES["contactEmail"]
	if _is_missing(value):
		return messages["required"]
	if not _EMAIL_RE.match(_text(value)):
		return messages["invalid"]
	return None


def _contact_phone(value: Any, form: OpportunityForm, now: datetime) -> Optional[str]:
	messages = VALIDATION_MESSAGES["contactPhone"]
	if _is_missing(value):
		return messages["required"]
	text = _text(value)
	digits = re.sub(r"\D", "", text)
	if not _PHONE_RE.match(text) or len(digits) < _L.contact_phone_min_digits:
		return messages["invalid"]
	return None


def _max_volunteers(value: Any, form: OpportunityForm, now: datetime) -> Optional[str]:
	messages = VALIDATION_MESSAGES["maxVolunteers"]
	if _is_missing(value):
		return messages["required"]
	if isinstance(value, bool):
		return messages["invalid"]
	if isinstance(value, float):
		if not value.is_integer():
			return messages["invalid"]
		value = int(value)
	if not isinstance(value, int):
		try:
			value = int(_text(value))
		except ValueError:
			return messages["invalid"]
	if value < _L.max_volunteers_min or value > _L.max_volunteers_max:
		return messages["invalid"]
	return None


def _osrm_link(value: Any, form: OpportunityForm, now: datetime) -> Optional[str]:
	if _is_missing(value):
		return None
	try:
		url = _URL_ADAPTER.validate_python(_text(value))
	except ValidationError:
		return VALIDATION_MESSAGES["osrmLink"]["invalid"]
	if not url.host:
		return VALIDATION_MESSAGES["osrmLink"]["invalid"]
	return None


def _mode(value: Any, form: OpportunityForm, now: datetime) -> Optional[str]:
	if _enum_value(value) not in MODES:
		return VALIDATION_MESSAGES["mode"]["invalid"]
	return None


def _date_type(value: Any, form: OpportunityForm, now: datetime) -> Optional[str]:
	if _enum_value(value) not in DATE_TYPES:
		return VALIDATION_MESSAGES["dateType"]["invalid"]
	return None


def _location(name: str) -> Callable[[Any, OpportunityForm, datetime], Optional[str]]:
	def _check(value: Any, form: OpportunityForm, now: datetime) -> Optional[str]:
		mode = _enum_value(form.mode)
		if mode not in ("onsite", "hybrid"):
			return None
		if _is_missing(value):
			return VALIDATION_MESSAGES[name][mode]
		return None

	return _check


def _start_date(value: Any, form: OpportunityForm, now: datetime) -> Optional[str]:
	messages = VALIDATION_MESSAGES["dates"]
	date_type = _enum_value(form.date_type)
	if date_type not in DATE_TYPES:
		return None
	when = parse_when(value)
	if when is None:
		if date_type == "single_day":
			return messages["start_required_single"]
		if date_type == "multi_day":
			return messages["start_required_multi"]
		return None
	if when is _INVALID:
		return messages["invalid"]
	if _is_past(when, now):
		return messages["start_past"]
	return None


def _end_date(value: Any, form: OpportunityForm, now: datetime) -> Optional[str]:
	messages = VALIDATION_MESSAGES["dates"]
	date_type = _enum_value(form.date_type)
	if date_type not in DATE_TYPES:
		return None
	when = parse_when(value)
	if date_type == "single_day":
		return messages["end_not_allowed_single"] if when is not None else None
	if when is None:
		return messages["end_required_multi"] if date_type == "multi_day" else None
	if when is _INVALID:
		return messages["invalid"]

	start = parse_when(form.start_date)
	if start is None or start is _INVALID:
		if date_type == "ongoing" and _is_past(when, now):
			return messages["end_past"]
		return None
	if as_comparable(when, now) <= as_comparable(start, now):
		return messages["end_after_start"]
	return None


FieldValidator = Callable[[Any, OpportunityForm, datetime], Optional[str]]

# Evaluation order of `validate_form`; keys are the wire names used in error maps.
FIELD_VALIDATORS: Mapping[str, FieldValidator] = {
	"title": _title,
	"shortSummary": _short_summary,
	"description": _description,
	"mode": _mode,
	"dateType": _date_type,
	"address": _location("address"),
	"city": _location("city"),
	"state": _location("state"),
	"country": _location("country"),
	"startDate": _start_date,
	"endDate": _end_date,
	"maxVolunteers": _max_volunteers,
	"contactName": _contact_name,
	"contactEmail": _contact_email,
	"contactPhone": _contact_phone,
	"osrmLink": _osrm_link,
}


def _resolve_now(now: Optional[datetime]) -> datetime:
	return now if now is not None else datetime.now(timezone.utc)


def validate_field(
	name: str,
	value: Any,
	form: OpportunityForm,
	*,
	now: Optional[datetime] = None,
) -> Optional[str]:
	"""Validate one field against its sibling context; unknown names pass."""
	validator = FIELD_VALIDATORS.get(name)
	if validator is None:
		return None
	return validator(value, form, _resolve_now(now))


def validate_form(form: OpportunityForm, *, now: Optional[datetime] = None) -> FormValidationResult:
	current = _resolve_now(now)
	errors: dict[str, str] = {}
	for name in FIELD_VALIDATORS:
		error = validate_field(name, form.value_of(name), form, now=current)
		if error:
			errors[name] = error
	return FormValidationResult(valid=not errors, errors=errors)
