"""Central registry for Prometheus metrics used across the backend."""

from __future__ import annotations

from prometheus_client import Counter, Histogram


REQUEST_COUNTER = Counter(
	"justadrop_http_requests_total",
	"Total HTTP requests processed",
	["route", "method", "status"],
)

REQUEST_LATENCY = Histogram(
	"justadrop_http_request_duration_seconds",
	"HTTP request latency in seconds",
	["route", "method"],
	buckets=(0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.0, 5.0),
)

OPPORTUNITIES_CREATED = Counter(
	"justadrop_opportunities_created_total",
	"Opportunities created",
	["mode", "date_type"],
)

OPPORTUNITY_VALIDATION_FAILURES = Counter(
	"justadrop_opportunity_validation_failures_total",
	"Opportunity payloads rejected by validation, per failing field",
	["field"],
)

APPLICATIONS_SUBMITTED = Counter(
	"justadrop_applications_submitted_total",
	"Volunteer applications created",
)

APPLICATION_DECISIONS = Counter(
	"justadrop_application_decisions_total",
	"Application approve/reject decisions",
	["outcome"],
)

ATTENDANCE_UPDATES = Counter(
	"justadrop_attendance_updates_total",
	"Attendance flag updates on approved applications",
	["attended"],
)

FEEDBACK_SUBMITTED = Counter(
	"justadrop_feedback_submitted_total",
	"Feedback records created",
	["kind"],
)


def observe_request(route: str, method: str, status: int, seconds: float) -> None:
	REQUEST_COUNTER.labels(route=route, method=method, status=str(status)).inc()
	REQUEST_LATENCY.labels(route=route, method=method).observe(seconds)


def inc_opportunity_created(mode: str, date_type: str) -> None:
	OPPORTUNITIES_CREATED.labels(mode=mode, date_type=date_type).inc()


def inc_validation_failures(fields) -> None:
	for field in fields:
		OPPORTUNITY_VALIDATION_FAILURES.labels(field=field).inc()


def inc_application_submitted() -> None:
	APPLICATIONS_SUBMITTED.inc()


def inc_application_decision(outcome: str) -> None:
	APPLICATION_DECISIONS.labels(outcome=outcome).inc()


def inc_attendance_update(attended: bool) -> None:
	ATTENDANCE_UPDATES.labels(attended="true" if attended else "false").inc()


def inc_feedback_submitted(kind: str) -> None:
	FEEDBACK_SUBMITTED.labels(kind=kind).inc()
