"""Tests for the organization API tool catalog."""

from __future__ import annotations

from typing import Any
from urllib.parse import parse_qs, urlsplit

import pytest
from pydantic import ValidationError

from vaultbridge.auth import TokenManager
from vaultbridge.security.allowlist import validate_api_endpoint
from vaultbridge.tools.api import ApiTool, OrganizationApiClient
from vaultbridge.tools.base import ApiResult
from vaultbridge.tools.organization import organization_tools

MEMBER_ID = "0b5d7e42-9c1a-4c55-8f7e-1d2c3b4a5f60"
GROUP_ID = "6e1f2a3b-4c5d-4e6f-8a9b-0c1d2e3f4a5b"
COLLECTION_ID = "3fa85f64-5717-4562-b3fc-2c963f66afa6"


class RecordingClient(OrganizationApiClient):
    """Records execute() calls instead of sending requests."""

    def __init__(self, result: ApiResult | None = None) -> None:
        super().__init__("https://api.example.com", TokenManager("id", "secret", "https://identity.example.com"))
        self.calls: list[tuple[str, str, Any]] = []
        self.result = result or ApiResult(status=200)

    async def execute(self, endpoint: str, method: str, body: Any = None) -> ApiResult:
        self.calls.append((endpoint, method, body))
        return self.result


@pytest.fixture
def tools() -> dict[str, ApiTool]:
    return {tool.name: tool for tool in organization_tools(RecordingClient())}


def call(tools: dict[str, ApiTool], name: str, raw: dict[str, Any] | None = None):
    tool = tools[name]
    return tool.call(tool.args_model.model_validate(raw or {}))


class TestCatalog:
    def test_expected_tools(self, tools: dict[str, ApiTool]) -> None:
        assert set(tools) == {
            "list_org_collections", "get_org_collection", "update_org_collection", "delete_org_collection",
            "list_org_members", "get_org_member", "invite_org_member", "update_org_member",
            "remove_org_member", "get_org_member_groups", "update_org_member_groups", "reinvite_org_member",
            "list_org_groups", "get_org_group", "create_org_group", "update_org_group", "delete_org_group",
            "get_org_group_members", "update_org_group_members",
            "list_org_policies", "get_org_policy", "update_org_policy",
            "get_org_events", "get_org_subscription", "update_org_subscription",
            "import_org_users_and_groups",
        }

    def test_uuid_format_in_schema(self, tools: dict[str, ApiTool]) -> None:
        schema = tools["get_org_member"].to_schema()["inputSchema"]
        assert schema["properties"]["memberId"]["format"] == "uuid"
        assert schema["required"] == ["memberId"]


class TestEndpoints:
    """Every generated path is on the endpoint allowlist."""

    @pytest.mark.parametrize(
        "name,raw,method,endpoint",
        [
            ("list_org_collections", {}, "GET", "/public/collections"),
            ("get_org_collection", {"collectionId": COLLECTION_ID}, "GET", f"/public/collections/{COLLECTION_ID}"),
            ("delete_org_collection", {"collectionId": COLLECTION_ID}, "DELETE",
             f"/public/collections/{COLLECTION_ID}"),
            ("list_org_members", {}, "GET", "/public/members"),
            ("get_org_member", {"memberId": MEMBER_ID}, "GET", f"/public/members/{MEMBER_ID}"),
            ("remove_org_member", {"memberId": MEMBER_ID}, "DELETE", f"/public/members/{MEMBER_ID}"),
            ("get_org_member_groups", {"memberId": MEMBER_ID}, "GET", f"/public/members/{MEMBER_ID}/group-ids"),
            ("reinvite_org_member", {"memberId": MEMBER_ID}, "POST", f"/public/members/{MEMBER_ID}/reinvite"),
            ("list_org_groups", {}, "GET", "/public/groups"),
            ("get_org_group", {"groupId": GROUP_ID}, "GET", f"/public/groups/{GROUP_ID}"),
            ("delete_org_group", {"groupId": GROUP_ID}, "DELETE", f"/public/groups/{GROUP_ID}"),
            ("get_org_group_members", {"groupId": GROUP_ID}, "GET", f"/public/groups/{GROUP_ID}/member-ids"),
            ("list_org_policies", {}, "GET", "/public/policies"),
            ("get_org_policy", {"policyType": 15}, "GET", "/public/policies/15"),
            ("get_org_events", {}, "GET", "/public/events"),
            ("get_org_subscription", {}, "GET", "/public/organization/subscription"),
        ],
    )
    def test_method_and_path(
        self, tools: dict[str, ApiTool], name: str, raw: dict[str, Any], method: str, endpoint: str
    ) -> None:
        api_call = call(tools, name, raw)
        assert (api_call.method, api_call.endpoint) == (method, endpoint)
        assert api_call.body is None
        assert validate_api_endpoint(api_call.endpoint)

    def test_uppercase_uuid_rendered_lowercase(self, tools: dict[str, ApiTool]) -> None:
        api_call = call(tools, "get_org_member", {"memberId": MEMBER_ID.upper()})
        assert api_call.endpoint == f"/public/members/{MEMBER_ID}"
        assert validate_api_endpoint(api_call.endpoint)


class TestBodies:
    def test_update_collection(self, tools: dict[str, ApiTool]) -> None:
        api_call = call(
            tools,
            "update_org_collection",
            {"collectionId": COLLECTION_ID, "externalId": "ext", "groups": [{"id": GROUP_ID, "readOnly": True}]},
        )
        assert api_call.method == "PUT"
        assert api_call.body == {"externalId": "ext", "groups": [{"id": GROUP_ID, "readOnly": True}]}
        assert api_call.fallback == f"Collection {COLLECTION_ID} updated successfully"

    def test_invite_member(self, tools: dict[str, ApiTool]) -> None:
        api_call = call(tools, "invite_org_member", {"email": "a@example.com", "type": 2, "groups": [GROUP_ID]})
        assert api_call.endpoint == "/public/members"
        assert api_call.body == {"email": "a@example.com", "type": 2, "groups": [GROUP_ID]}

    def test_update_member_groups(self, tools: dict[str, ApiTool]) -> None:
        api_call = call(tools, "update_org_member_groups", {"memberId": MEMBER_ID, "groupIds": [GROUP_ID]})
        assert api_call.body == {"groupIds": [GROUP_ID]}

    def test_create_and_update_group(self, tools: dict[str, ApiTool]) -> None:
        created = call(tools, "create_org_group", {"name": "Eng"})
        assert (created.method, created.endpoint, created.body) == ("POST", "/public/groups", {"name": "Eng"})

        updated = call(tools, "update_org_group", {"groupId": GROUP_ID, "name": "Ops"})
        assert updated.endpoint == f"/public/groups/{GROUP_ID}"
        assert updated.body == {"name": "Ops"}

    def test_update_group_members(self, tools: dict[str, ApiTool]) -> None:
        api_call = call(tools, "update_org_group_members", {"groupId": GROUP_ID, "memberIds": [MEMBER_ID]})
        assert api_call.body == {"memberIds": [MEMBER_ID]}

    def test_update_policy(self, tools: dict[str, ApiTool]) -> None:
        api_call = call(tools, "update_org_policy", {"policyType": 1, "enabled": True, "data": {"minLength": 12}})
        assert api_call.endpoint == "/public/policies/1"
        assert api_call.body == {"enabled": True, "data": {"minLength": 12}}

    def test_events_query_encoded(self, tools: dict[str, ApiTool]) -> None:
        api_call = call(
            tools,
            "get_org_events",
            {"start": "2024-01-01T00:00:00Z", "end": "2024-02-01T00:00:00Z", "actingUserId": MEMBER_ID,
             "continuationToken": "a&b=c"},
        )
        parts = urlsplit(api_call.endpoint)
        assert parts.path == "/public/events"
        assert parse_qs(parts.query) == {
            "start": ["2024-01-01T00:00:00Z"],
            "end": ["2024-02-01T00:00:00Z"],
            "actingUserId": [MEMBER_ID],
            "continuationToken": ["a&b=c"],
        }
        assert validate_api_endpoint(api_call.endpoint)

    def test_update_subscription(self, tools: dict[str, ApiTool]) -> None:
        api_call = call(tools, "update_org_subscription", {"passwordManager": {"seats": 10, "maxAutoscaleSeats": 20}})
        assert api_call.body == {"passwordManager": {"seats": 10, "maxAutoscaleSeats": 20}}

    def test_import(self, tools: dict[str, ApiTool]) -> None:
        raw = {
            "groups": [{"name": "Eng", "externalId": "g-eng", "memberExternalIds": ["u1"]}],
            "members": [{"email": "u1@example.com", "externalId": "u1"}],
            "overwriteExisting": True,
        }
        api_call = call(tools, "import_org_users_and_groups", raw)
        assert (api_call.method, api_call.endpoint) == ("POST", "/public/organization/import")
        assert api_call.body == {
            "groups": [{"name": "Eng", "externalId": "g-eng", "memberExternalIds": ["u1"]}],
            "members": [{"email": "u1@example.com", "externalId": "u1", "deleted": False}],
            "overwriteExisting": True,
            "largeImport": False,
        }


class TestValidation:
    @pytest.mark.parametrize(
        "name,raw",
        [
            ("get_org_collection", {"collectionId": "not-a-uuid"}),
            ("get_org_collection", {"collectionId": "../../admin"}),
            ("get_org_policy", {"policyType": 16}),
            ("get_org_policy", {"policyType": -1}),
            ("invite_org_member", {"email": "not-an-email", "type": 2}),
            ("invite_org_member", {"email": "a@example.com", "type": 9}),
            ("get_org_events", {"itemId": "abc"}),
        ],
    )
    def test_rejected(self, tools: dict[str, ApiTool], name: str, raw: dict[str, Any]) -> None:
        with pytest.raises(ValidationError):
            tools[name].args_model.model_validate(raw)


class TestExecution:
    @pytest.mark.asyncio
    async def test_execute_normalizes_result(self) -> None:
        client = RecordingClient(ApiResult(status=200, data={"object": "list", "data": []}))
        tool = next(t for t in organization_tools(client) if t.name == "list_org_members")

        response = await tool.execute(tool.args_model.model_validate({}))

        assert client.calls == [("/public/members", "GET", None)]
        assert response.is_error is False
        assert response.content[0].text == '{\n  "object": "list",\n  "data": []\n}'

    @pytest.mark.asyncio
    async def test_fallback_on_empty_body(self) -> None:
        client = RecordingClient(ApiResult(status=200))
        tool = next(t for t in organization_tools(client) if t.name == "delete_org_group")

        response = await tool.execute(tool.args_model.model_validate({"groupId": GROUP_ID}))
        assert response.content[0].text == f"Group {GROUP_ID} deleted successfully"

    @pytest.mark.asyncio
    async def test_error_result(self) -> None:
        client = RecordingClient(ApiResult(status=404, error_message="API request failed: 404 Not Found"))
        tool = next(t for t in organization_tools(client) if t.name == "get_org_group")

        response = await tool.execute(tool.args_model.model_validate({"groupId": GROUP_ID}))
        assert response.is_error is True
        assert response.content[0].text == "API request failed: 404 Not Found"
