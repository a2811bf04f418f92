"""Tests for the finder-facing and internal HTTP endpoints."""

from unittest.mock import patch

import pytest
from asgiref.sync import sync_to_async
from django.conf import settings
from django.contrib.auth import get_user_model
from django.db import DatabaseError
from ninja.testing import TestAsyncClient, TestClient

from returnable.models import FoundItemReport, IdentifierRecord
from returnable.services import build_lookup_resolver, build_subscription_service
from returnable.store import IdentifierStore
from returnable.tokens import TokenGenerator
from returnable.urls import api

User = get_user_model()

REAL_TOKEN = "1f" * 32


@pytest.fixture
def public_client():
    return TestAsyncClient(api)


@pytest.fixture
def internal_client():
    return TestClient(api, headers={"Authorization": f"Bearer {settings.RETURNABLE_API_TOKEN}"})


@pytest.fixture
def owners(make_owner):
    return {
        "real": make_owner("real", "ABC123", REAL_TOKEN),
        "inactive": make_owner("inactive", "DEF456", "2e" * 32, record_status=IdentifierRecord.Status.INACTIVE),
        "lapsed": make_owner("lapsed", "GHJ789", "3d" * 32, subscribed=False),
    }


def response_shape(response):
    body = response.json()
    return response.status_code, sorted(body), {k: type(v).__name__ for k, v in body.items()}, len(body["token"])


@pytest.mark.django_db(transaction=True)
@pytest.mark.asyncio
class TestLookupEndpoint:
    async def test_real_identifier(self, public_client, owners):
        res = await public_client.post("/lookup", json={"identifier": "abc 123"})
        assert res.status_code == 200
        assert res.json() == {"success": True, "token": REAL_TOKEN}

    async def test_responses_are_indistinguishable(self, public_client, owners):
        not_found = await public_client.post("/lookup", json={"identifier": "XYZ987"})
        inactive = await public_client.post("/lookup", json={"identifier": "DEF456"})
        lapsed = await public_client.post("/lookup", json={"identifier": "GHJ789"})
        with patch.object(IdentifierStore, "get_by_identifier", side_effect=DatabaseError("down")):
            fault = await public_client.post("/lookup", json={"identifier": "ABC123"})
        real = await public_client.post("/lookup", json={"identifier": "ABC123"})

        shapes = {response_shape(r) for r in (not_found, inactive, lapsed, fault, real)}
        assert shapes == {(200, ["success", "token"], {"success": "bool", "token": "str"}, 64)}
        for res in (not_found, inactive, lapsed, fault):
            assert TokenGenerator.is_token_shaped(res.json()["token"])
            assert res.json()["token"] != REAL_TOKEN

    async def test_decoys_are_deterministic(self, public_client, owners):
        first = await public_client.post("/lookup", json={"identifier": "XYZ987"})
        second = await public_client.post("/lookup", json={"identifier": "xyz-987"})
        other = await public_client.post("/lookup", json={"identifier": "XYZ986"})
        assert first.json()["token"] == second.json()["token"]
        assert first.json()["token"] != other.json()["token"]

    @pytest.mark.parametrize("payload", [{}, {"identifier": None}, {"identifier": ""}, {"identifier": 123456}])
    async def test_missing_or_odd_input(self, public_client, payload):
        res = await public_client.post("/lookup", json=payload)
        assert res.status_code == 200
        assert res.json()["success"] is True
        assert TokenGenerator.is_token_shaped(res.json()["token"])

    @pytest.mark.parametrize("body", ["not json", "{\"identifier\": ", "[1, 2]", "\"ABC123\""])
    async def test_unreadable_body_gets_decoy(self, public_client, owners, body):
        res = await public_client.post("/lookup", data=body)
        assert res.status_code == 200
        assert sorted(res.json()) == ["success", "token"]
        assert res.json()["success"] is True
        assert TokenGenerator.is_token_shaped(res.json()["token"])
        assert res.json()["token"] != REAL_TOKEN

    async def test_empty_body_gets_decoy(self, public_client):
        res = await public_client.post("/lookup")
        assert res.status_code == 200
        assert TokenGenerator.is_token_shaped(res.json()["token"])

    async def test_check_identifier(self, public_client):
        res = await public_client.post("/identifiers/check", json={"identifier": "v0m 493"})
        assert res.status_code == 200
        assert res.json() == {
            "candidate": "VOM493",
            "valid": True,
            "errors": [],
            "diagnostics": ["Did you mean: VOM493?"],
        }


@pytest.mark.django_db(transaction=True)
@pytest.mark.asyncio
class TestFinderPages:
    async def test_contact_page_flow_is_identical_for_real_and_fake_identifiers(self, public_client, owners):
        form = {"finder_name": "Jamie", "finder_contact": "jamie@example.com", "message": "Found your wallet"}
        answers = {}
        for typed in ("ABC123", "XYZ987"):
            lookup = await public_client.post("/lookup", json={"identifier": typed})
            report = await public_client.post("/reports", json={"token": lookup.json()["token"], **form})
            answers[typed] = (response_shape(lookup), report.status_code, report.json())

        assert answers["ABC123"] == answers["XYZ987"]
        assert await FoundItemReport.objects.acount() == 1

    async def test_contact_page_endpoint_is_gone(self, public_client):
        with pytest.raises(Exception, match="Cannot resolve"):
            await public_client.get(f"/found/{REAL_TOKEN}")

    async def test_report_receipts_are_identical(self, public_client, owners):
        form = {
            "finder_name": "Jamie",
            "finder_contact": "jamie@example.com",
            "message": "Found your wallet",
            "location": "Park",
            "item_type": "wallet",
        }
        real = await public_client.post("/reports", json={"token": REAL_TOKEN, **form})
        fake = await public_client.post("/reports", json={"token": "5b" * 32, **form})

        assert real.status_code == fake.status_code == 200
        assert real.json() == fake.json() == {
            "success": True,
            "message": "Found item report submitted successfully",
        }
        assert await FoundItemReport.objects.acount() == 1

    async def test_report_requires_form_fields(self, public_client):
        res = await public_client.post("/reports", json={"token": REAL_TOKEN})
        assert res.status_code == 422


@pytest.mark.django_db(transaction=True)
@pytest.mark.asyncio
async def test_end_to_end(public_client):
    user = await User.objects.acreate(username="e2e")
    result = await sync_to_async(build_subscription_service().activate)(user.id, "monthly")
    record = result.record

    res = await public_client.post("/lookup", json={"identifier": record.identifier.lower()})
    assert res.json()["token"] == record.token

    resolver = build_lookup_resolver()
    assert await resolver.aresolve_token(record.token) == user.id
    assert await resolver.aresolve_token("5b" * 32) is None

    form = {"finder_name": "Sam", "finder_contact": "sam@example.com", "message": "Got your bag"}
    real = await public_client.post("/reports", json={"token": record.token, **form})
    fake = await public_client.post("/reports", json={"token": "5b" * 32, **form})
    assert real.json() == fake.json()
    assert await FoundItemReport.objects.filter(user_id=user.id).acount() == 1


@pytest.mark.django_db
class TestInternalEndpoints:
    def test_requires_bearer_token(self):
        res = TestClient(api).get("/identifiers/stats")
        assert res.status_code == 401

    def test_activate_subscription_allocates_identifier(self, internal_client):
        user = User.objects.create(username="owner")
        res = internal_client.post("/subscriptions/activate", json={"user_id": user.id, "plan_type": "monthly"})

        assert res.status_code == 200
        data = res.json()
        assert data["success"] is True
        assert data["created_identifier"] is True
        assert data["subscription"]["status"] == "ACTIVE"
        record = IdentifierRecord.objects.get(user=user)
        assert data["identifier"]["identifier"] == record.identifier
        assert data["identifier"]["qr_code_url"] == f"https://found.example.com/found/{record.token}"

    def test_activate_unknown_plan(self, internal_client):
        user = User.objects.create(username="owner")
        res = internal_client.post("/subscriptions/activate", json={"user_id": user.id, "plan_type": "weekly"})
        assert res.status_code == 400
        assert res.json()["success"] is False

    def test_activate_reports_exhaustion(self, internal_client, settings):
        settings.RETURNABLE_MAX_ALLOCATION_ATTEMPTS = 1
        user = User.objects.create(username="owner")
        with patch.object(IdentifierStore, "identifier_exists", return_value=True):
            res = internal_client.post("/subscriptions/activate", json={"user_id": user.id, "plan_type": "monthly"})
        assert res.status_code == 503
        assert not IdentifierRecord.objects.exists()

    def test_update_status(self, internal_client):
        user = User.objects.create(username="owner")
        build_subscription_service().activate(user.id, "monthly", external_subscription_id="sub_42")

        res = internal_client.post("/subscriptions/status", json={"external_subscription_id": "sub_42", "status": "past_due"})
        assert res.status_code == 200
        assert res.json()["status"] == "PAST_DUE"

        missing = internal_client.post("/subscriptions/status", json={"external_subscription_id": "nope", "status": "ACTIVE"})
        assert missing.status_code == 404

    def test_identifier_lifecycle(self, internal_client, make_owner):
        record = make_owner("owner", "ABC123", REAL_TOKEN)

        got = internal_client.get(f"/identifiers/{record.user_id}")
        assert got.status_code == 200
        assert got.json()["manual_url"] == "https://found.example.com/found?id=ABC123"

        off = internal_client.post(f"/identifiers/{record.user_id}/deactivate")
        assert off.json()["status"] == "INACTIVE"
        on = internal_client.post(f"/identifiers/{record.user_id}/reactivate")
        assert on.json()["status"] == "ACTIVE"
        assert on.json()["token"] == REAL_TOKEN

        assert internal_client.get("/identifiers/999999").status_code == 404

    def test_stats(self, internal_client, make_owner):
        make_owner("owner", "ABC123", REAL_TOKEN)
        res = internal_client.get("/identifiers/stats")
        assert res.status_code == 200
        assert res.json()["total_allocated"] == 1
        assert res.json()["theoretical_max"] == 6_955_200
