from datetime import date, timedelta

import pytest

from app.api import applications as applications_api
from app.api import opportunities as opportunities_api
from app.domain.applications.service import ApplicationService
from app.domain.feedback.service import FeedbackService
from app.domain.opportunities.service import OpportunityService

MANAGER_HEADERS = {"X-User-Id": "mgr-1", "X-User-Role": "organization"}
VOLUNTEER_HEADERS = {"X-User-Id": "vol-1", "X-User-Role": "volunteer"}
PEER_HEADERS = {"X-User-Id": "vol-2", "X-User-Role": "volunteer"}


@pytest.fixture
def wired_services(monkeypatch, memory_store):
	memory_store.managers.add(("org-1", "mgr-1"))
	applications = ApplicationService(
		repository=memory_store.application_repo,
		opportunities=memory_store.opportunity_repo,
		access=memory_store.access,
	)
	monkeypatch.setattr(
		opportunities_api,
		"_opportunities",
		OpportunityService(
			repository=memory_store.opportunity_repo,
			applications=memory_store.application_repo,
			access=memory_store.access,
		),
	)
	monkeypatch.setattr(opportunities_api, "_applications", applications)
	monkeypatch.setattr(applications_api, "_service", applications)
	monkeypatch.setattr(
		opportunities_api,
		"_feedback",
		FeedbackService(
			repository=memory_store.feedback_repo,
			applications=memory_store.application_repo,
			opportunities=memory_store.opportunity_repo,
		),
	)
	return memory_store


def _opportunity_payload(**overrides):
	payload = {
		"organizationId": "org-1",
		"title": "Park restoration",
		"shortSummary": "Replant the flower beds in the park",
		"description": "Dig, weed and replant the flower beds near the east gate with the parks department team.",
		"mode": "hybrid",
		"dateType": "single_day",
		"startDate": (date.today() + timedelta(days=2)).isoformat(),
		"address": "East Gate",
		"city": "Pune",
		"state": "Maharashtra",
		"country": "India",
		"maxVolunteers": 10,
		"contactName": "Dev",
		"contactEmail": "dev@example.org",
		"contactPhone": "020 1234 5678",
	}
	payload.update(overrides)
	return payload


@pytest.mark.asyncio
async def test_application_lifecycle_through_feedback(api_client, wired_services):
	created = await api_client.post("/opportunities", json=_opportunity_payload(), headers=MANAGER_HEADERS)
	assert created.status_code == 201
	opportunity = created.json()
	assert opportunity["computedStatus"] == "upcoming"
	opportunity_id = opportunity["id"]

	detail = await api_client.get(f"/opportunities/{opportunity_id}", headers=VOLUNTEER_HEADERS)
	assert detail.status_code == 200
	assert detail.json()["canApply"] is True

	applied = await api_client.post(
		f"/opportunities/{opportunity_id}/applications",
		json={"motivation": "I garden every weekend"},
		headers=VOLUNTEER_HEADERS,
	)
	assert applied.status_code == 201
	application = applied.json()
	assert application["status"] == "pending"
	assert application["hasAttended"] is False

	duplicate = await api_client.post(f"/opportunities/{opportunity_id}/applications", headers=VOLUNTEER_HEADERS)
	assert duplicate.status_code == 409
	assert duplicate.json()["detail"]["kind"] == "Conflict"

	early_attendance = await api_client.patch(
		f"/applications/{application['id']}",
		json={"hasAttended": True},
		headers=MANAGER_HEADERS,
	)
	assert early_attendance.status_code == 409
	assert early_attendance.json()["detail"]["kind"] == "InvalidStateTransition"

	forbidden = await api_client.patch(
		f"/applications/{application['id']}",
		json={"status": "approved"},
		headers=PEER_HEADERS,
	)
	assert forbidden.status_code == 403

	approved = await api_client.patch(
		f"/applications/{application['id']}",
		json={"status": "approved"},
		headers=MANAGER_HEADERS,
	)
	assert approved.status_code == 200
	assert approved.json()["approvedBy"] == "mgr-1"
	assert approved.json()["approvedAt"] is not None

	attended = await api_client.patch(
		f"/applications/{application['id']}",
		json={"hasAttended": True},
		headers=MANAGER_HEADERS,
	)
	assert attended.status_code == 200
	assert attended.json()["hasAttended"] is True

	too_soon = await api_client.post(
		f"/opportunities/{opportunity_id}/feedback",
		json={"rating": 5},
		headers=VOLUNTEER_HEADERS,
	)
	assert too_soon.status_code == 409

	closed = await api_client.post(f"/opportunities/{opportunity_id}/close", headers=MANAGER_HEADERS)
	assert closed.status_code == 200
	assert closed.json()["computedStatus"] == "archived"

	out_of_range = await api_client.post(
		f"/opportunities/{opportunity_id}/feedback",
		json={"rating": 9},
		headers=VOLUNTEER_HEADERS,
	)
	assert out_of_range.status_code == 422
	assert out_of_range.json()["detail"]["kind"] == "ValidationFailed"
	assert out_of_range.json()["detail"]["errors"] == {"rating": "Rating must be between 1 and 5"}

	feedback = await api_client.post(
		f"/opportunities/{opportunity_id}/feedback",
		json={"rating": 5, "comment": "Lovely morning"},
		headers=VOLUNTEER_HEADERS,
	)
	assert feedback.status_code == 201
	assert feedback.json()["rating"] == 5

	again = await api_client.post(
		f"/opportunities/{opportunity_id}/feedback",
		json={"rating": 4},
		headers=VOLUNTEER_HEADERS,
	)
	assert again.status_code == 409

	mine = await api_client.get("/applications/me", headers=VOLUNTEER_HEADERS)
	assert mine.status_code == 200
	assert [item["id"] for item in mine.json()["items"]] == [application["id"]]


@pytest.mark.asyncio
async def test_invalid_opportunity_returns_field_errors(api_client, wired_services):
	response = await api_client.post(
		"/opportunities",
		json=_opportunity_payload(city="", endDate=(date.today() + timedelta(days=3)).isoformat()),
		headers=MANAGER_HEADERS,
	)
	assert response.status_code == 422
	body = response.json()
	assert body["detail"]["kind"] == "ValidationFailed"
	assert set(body["detail"]["errors"]) == {"city", "endDate"}
	assert "request_id" in body


@pytest.mark.asyncio
async def test_validation_endpoints(api_client, wired_services):
	whole = await api_client.post("/opportunities/validate", json=_opportunity_payload(mode="remote", city=""))
	assert whole.status_code == 200
	assert whole.json() == {"valid": True, "errors": {}}

	single = await api_client.post(
		"/opportunities/validate/city",
		json={"value": "", "form": {"mode": "onsite"}},
	)
	assert single.status_code == 200
	assert single.json()["valid"] is False
	assert single.json()["error"] == "City is required for onsite opportunities"


@pytest.mark.asyncio
async def test_out_of_range_offset_is_a_field_error(api_client, wired_services):
	payload = _opportunity_payload(startDate="9999-12-31T23:00:00-14:00")
	checked = await api_client.post("/opportunities/validate", json=payload)
	assert checked.status_code == 200
	assert checked.json() == {"valid": False, "errors": {"startDate": "Please enter a valid date"}}

	created = await api_client.post("/opportunities", json=payload, headers=MANAGER_HEADERS)
	assert created.status_code == 422
	assert created.json()["detail"]["errors"] == {"startDate": "Please enter a valid date"}


@pytest.mark.asyncio
async def test_listing_hides_archived_by_default(api_client, wired_services):
	first = await api_client.post("/opportunities", json=_opportunity_payload(), headers=MANAGER_HEADERS)
	second = await api_client.post(
		"/opportunities",
		json=_opportunity_payload(title="Second restoration"),
		headers=MANAGER_HEADERS,
	)
	await api_client.post(f"/opportunities/{second.json()['id']}/close", headers=MANAGER_HEADERS)

	listing = await api_client.get("/opportunities")
	assert listing.status_code == 200
	assert [item["id"] for item in listing.json()["items"]] == [first.json()["id"]]

	archived = await api_client.get("/opportunities", params={"status": "archived"})
	assert [item["id"] for item in archived.json()["items"]] == [second.json()["id"]]


@pytest.mark.asyncio
async def test_unauthenticated_requests_are_rejected(api_client, wired_services):
	response = await api_client.post("/opportunities", json=_opportunity_payload())
	assert response.status_code == 401
