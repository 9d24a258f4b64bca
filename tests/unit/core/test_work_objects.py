# tests/unit/core/test_work_objects.py
"""Tests for core/work_objects.py — Linear lookups and task entities."""

from __future__ import annotations

import json

import httpx
import pytest

from slack_relay.config.settings import Settings
from slack_relay.core.work_objects import (
    LinearWorkObjectBuilder,
    build_linear_work_objects,
    build_task_entity,
    extract_identifiers,
    get_work_object_builder,
)
from slack_relay.models.types import LinearIssue

API_URL = "https://linear.test/graphql"


def _issue_payload(identifier: str = "ENG-1", **overrides) -> dict:
    issue = {
        "id": f"id-{identifier}",
        "identifier": identifier,
        "title": "Fix login",
        "description": "Users cannot log in",
        "priority": 2,
        "priorityLabel": "High",
        "createdAt": "2024-01-01T00:00:00.000Z",
        "updatedAt": "2024-01-02T00:00:00.000Z",
        "url": f"https://linear.app/acme/issue/{identifier}",
        "state": {"name": "In Progress", "color": "#f2c94c", "type": "started"},
        "assignee": {"name": "Sam", "email": "sam@example.com"},
        "project": {"name": "Auth"},
    }
    issue.update(overrides)
    return issue


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


class LinearStub:
    """MockTransport handler recording requested identifiers."""

    def __init__(self, status_code: int = 200, missing=(), fail_transport: bool = False):
        self.status_code = status_code
        self.missing = set(missing)
        self.fail_transport = fail_transport
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        identifier = body["variables"]["id"]
        self.requests.append((identifier, request.headers.get("authorization")))
        if self.fail_transport:
            raise httpx.ConnectError("connection refused", request=request)
        if self.status_code != 200:
            return httpx.Response(self.status_code, json={"errors": [{"message": "nope"}]})
        issue = None if identifier in self.missing else _issue_payload(identifier)
        return httpx.Response(200, json={"data": {"issue": issue}})


def _builder(stub: LinearStub, clock=None, ttl: float = 60) -> LinearWorkObjectBuilder:
    return LinearWorkObjectBuilder(
        api_key="lin_api_key",
        api_url=API_URL,
        cache_ttl_seconds=ttl,
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(stub)),
        clock=clock or FakeClock(),
    )


class TestExtractIdentifiers:
    def test_unique_in_order(self):
        text = "See ENG-12 and OPS-3, then ENG-12 again"
        assert extract_identifiers(text) == ["ENG-12", "OPS-3"]

    def test_ignores_non_identifiers(self):
        assert extract_identifiers("a-1, E-1, TOOLONGPREFIX-1, eng-1, UTF-8x") == []


class TestBuildTaskEntity:
    def test_entity_shape(self):
        entity = build_task_entity(LinearIssue.model_validate(_issue_payload()))

        assert entity["url"] == "https://linear.app/acme/issue/ENG-1"
        assert entity["external_ref"] == {"id": "id-ENG-1", "type": "issue"}
        assert entity["entity_type"] == "slack#/entities/task"

        attributes = entity["entity_payload"]["attributes"]
        assert attributes["title"] == {"text": "ENG-1: Fix login"}
        assert attributes["display_id"] == "ENG-1"
        assert attributes["product_name"] == "Linear"
        assert attributes["metadata_last_modified"] == 1704153600

        fields = entity["entity_payload"]["fields"]
        assert fields["status"] == {
            "value": "In Progress",
            "tag_color": "yellow",
            "link": "https://linear.app/acme/issue/ENG-1",
        }
        assert fields["priority"] == {"value": "High", "tag_color": "red"}
        assert fields["date_created"] == {"value": 1704067200}
        assert fields["date_updated"] == {"value": 1704153600}
        assert fields["assignee"]["user"] == {"text": "Sam", "email": "sam@example.com"}

    def test_description_truncated(self):
        issue = LinearIssue.model_validate(_issue_payload(description="x" * 600))
        entity = build_task_entity(issue)

        assert len(entity["entity_payload"]["fields"]["description"]["value"]) == 500

    def test_unknown_state_and_priority_fall_back_to_gray(self):
        issue = LinearIssue.model_validate(
            _issue_payload(state={"name": "Odd", "type": "mystery"}, priority=9, assignee=None)
        )
        fields = build_task_entity(issue)["entity_payload"]["fields"]

        assert fields["status"]["tag_color"] == "gray"
        assert fields["priority"]["tag_color"] == "gray"
        assert "assignee" not in fields

    def test_invalid_dates_omitted(self):
        issue = LinearIssue.model_validate(_issue_payload(createdAt="yesterday", updatedAt="soon"))
        entity = build_task_entity(issue)

        assert "date_created" not in entity["entity_payload"]["fields"]
        assert "metadata_last_modified" not in entity["entity_payload"]["attributes"]


class TestLinearWorkObjectBuilder:
    async def test_builds_entities_and_sends_raw_key(self):
        stub = LinearStub()
        metadata = await _builder(stub).build("Working on ENG-1 and OPS-2")

        assert [e["external_ref"]["id"] for e in metadata.entities] == ["id-ENG-1", "id-OPS-2"]
        assert stub.requests == [("ENG-1", "lin_api_key"), ("OPS-2", "lin_api_key")]

    async def test_no_identifiers_skips_api(self):
        stub = LinearStub()
        assert await _builder(stub).build("nothing to see") is None
        assert stub.requests == []

    async def test_limit(self):
        stub = LinearStub()
        metadata = await _builder(stub).build("AB-1 AB-2 AB-3", limit=2)

        assert len(metadata.entities) == 2
        assert [r[0] for r in stub.requests] == ["AB-1", "AB-2"]

    async def test_missing_issues_yield_none(self):
        stub = LinearStub(missing={"ENG-404"})
        assert await _builder(stub).build("ENG-404") is None

    async def test_cache_within_ttl(self):
        stub = LinearStub()
        clock = FakeClock()
        builder = _builder(stub, clock=clock)

        await builder.fetch_issue("ENG-1")
        clock.now += 59
        await builder.fetch_issue("ENG-1")
        assert len(stub.requests) == 1

        clock.now += 1
        await builder.fetch_issue("ENG-1")
        assert len(stub.requests) == 2

    async def test_api_error_cached_as_miss(self):
        stub = LinearStub(status_code=500)
        builder = _builder(stub)

        assert await builder.fetch_issue("ENG-1") is None
        assert await builder.fetch_issue("ENG-1") is None
        assert len(stub.requests) == 1

    async def test_transport_error_not_cached(self):
        stub = LinearStub(fail_transport=True)
        builder = _builder(stub)

        assert await builder.fetch_issue("ENG-1") is None
        assert await builder.fetch_issue("ENG-1") is None
        assert len(stub.requests) == 2


class TestDefaultBuilder:
    def test_disabled_without_key(self):
        assert get_work_object_builder(Settings(_env_file=None, LINEAR_API_KEY="  ")) is None

    def test_reused_for_same_key(self):
        settings = Settings(_env_file=None, LINEAR_API_KEY="lin_1")
        assert get_work_object_builder(settings) is get_work_object_builder(settings)

        other = Settings(_env_file=None, LINEAR_API_KEY="lin_2")
        assert get_work_object_builder(other).api_key == "lin_2"

    async def test_build_linear_work_objects_disabled(self):
        settings = Settings(_env_file=None, LINEAR_API_KEY=None)
        assert await build_linear_work_objects("ENG-1", settings=settings) is None
