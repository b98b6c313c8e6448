"""Organization API tool catalog.

Paths are built from validated UUIDs and policy type integers, then
checked against the endpoint allowlist again by the API client.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any
from urllib.parse import urlencode

import structlog

from vaultbridge.schemas import organization as schemas
from vaultbridge.tools.api import ApiCall, ApiTool, OrganizationApiClient
from vaultbridge.tools.base import BaseTool

if TYPE_CHECKING:
    from vaultbridge.tools.registry import ToolRegistry

logger = structlog.get_logger()


def _body(args: Any, *path_fields: str) -> dict[str, Any]:
    """Request body: every set field except the ones used in the path."""
    return args.model_dump(
        mode="json", by_alias=True, exclude_none=True, exclude=set(path_fields)
    )


# -- collections ----------------------------------------------------------


def build_list_collections(args: schemas.NoArgs) -> ApiCall:
    return ApiCall("GET", "/public/collections")


def build_get_collection(args: schemas.CollectionIdArgs) -> ApiCall:
    return ApiCall("GET", f"/public/collections/{args.collection_id}")


def build_update_collection(args: schemas.UpdateCollectionArgs) -> ApiCall:
    return ApiCall(
        "PUT",
        f"/public/collections/{args.collection_id}",
        body=_body(args, "collection_id"),
        fallback=f"Collection {args.collection_id} updated successfully",
    )


def build_delete_collection(args: schemas.CollectionIdArgs) -> ApiCall:
    return ApiCall(
        "DELETE",
        f"/public/collections/{args.collection_id}",
        fallback=f"Collection {args.collection_id} deleted successfully",
    )


# -- members --------------------------------------------------------------


def build_list_members(args: schemas.NoArgs) -> ApiCall:
    return ApiCall("GET", "/public/members")


def build_get_member(args: schemas.MemberIdArgs) -> ApiCall:
    return ApiCall("GET", f"/public/members/{args.member_id}")


def build_invite_member(args: schemas.InviteMemberArgs) -> ApiCall:
    return ApiCall(
        "POST",
        "/public/members",
        body=_body(args),
        fallback=f"Invitation sent to {args.email}",
    )


def build_update_member(args: schemas.UpdateMemberArgs) -> ApiCall:
    return ApiCall(
        "PUT",
        f"/public/members/{args.member_id}",
        body=_body(args, "member_id"),
        fallback=f"Member {args.member_id} updated successfully",
    )


def build_remove_member(args: schemas.MemberIdArgs) -> ApiCall:
    return ApiCall(
        "DELETE",
        f"/public/members/{args.member_id}",
        fallback=f"Member {args.member_id} removed successfully",
    )


def build_get_member_groups(args: schemas.MemberIdArgs) -> ApiCall:
    return ApiCall("GET", f"/public/members/{args.member_id}/group-ids")


def build_update_member_groups(args: schemas.UpdateMemberGroupsArgs) -> ApiCall:
    return ApiCall(
        "PUT",
        f"/public/members/{args.member_id}/group-ids",
        body=_body(args, "member_id"),
        fallback=f"Member {args.member_id} groups updated successfully",
    )


def build_reinvite_member(args: schemas.MemberIdArgs) -> ApiCall:
    return ApiCall(
        "POST",
        f"/public/members/{args.member_id}/reinvite",
        fallback=f"Invitation resent to member {args.member_id}",
    )


# -- groups ---------------------------------------------------------------


def build_list_groups(args: schemas.NoArgs) -> ApiCall:
    return ApiCall("GET", "/public/groups")


def build_get_group(args: schemas.GroupIdArgs) -> ApiCall:
    return ApiCall("GET", f"/public/groups/{args.group_id}")


def build_create_group(args: schemas.CreateGroupArgs) -> ApiCall:
    return ApiCall("POST", "/public/groups", body=_body(args), fallback="Group created successfully")


def build_update_group(args: schemas.UpdateGroupArgs) -> ApiCall:
    return ApiCall(
        "PUT",
        f"/public/groups/{args.group_id}",
        body=_body(args, "group_id"),
        fallback=f"Group {args.group_id} updated successfully",
    )


def build_delete_group(args: schemas.GroupIdArgs) -> ApiCall:
    return ApiCall(
        "DELETE",
        f"/public/groups/{args.group_id}",
        fallback=f"Group {args.group_id} deleted successfully",
    )


def build_get_group_members(args: schemas.GroupIdArgs) -> ApiCall:
    return ApiCall("GET", f"/public/groups/{args.group_id}/member-ids")


def build_update_group_members(args: schemas.UpdateGroupMembersArgs) -> ApiCall:
    return ApiCall(
        "PUT",
        f"/public/groups/{args.group_id}/member-ids",
        body=_body(args, "group_id"),
        fallback=f"Group {args.group_id} members updated successfully",
    )


# -- policies and events --------------------------------------------------


def build_list_policies(args: schemas.NoArgs) -> ApiCall:
    return ApiCall("GET", "/public/policies")


def build_get_policy(args: schemas.PolicyTypeArgs) -> ApiCall:
    return ApiCall("GET", f"/public/policies/{args.policy_type}")


def build_update_policy(args: schemas.UpdatePolicyArgs) -> ApiCall:
    return ApiCall(
        "PUT",
        f"/public/policies/{args.policy_type}",
        body=_body(args, "policy_type"),
        fallback=f"Policy {args.policy_type} updated successfully",
    )


def build_get_events(args: schemas.EventsArgs) -> ApiCall:
    query = urlencode(_body(args))
    return ApiCall("GET", f"/public/events?{query}" if query else "/public/events")


# -- organization ---------------------------------------------------------


def build_get_subscription(args: schemas.NoArgs) -> ApiCall:
    return ApiCall("GET", "/public/organization/subscription")


def build_update_subscription(args: schemas.UpdateSubscriptionArgs) -> ApiCall:
    return ApiCall(
        "PUT",
        "/public/organization/subscription",
        body=_body(args),
        fallback="Subscription updated successfully",
    )


def build_import(args: schemas.ImportArgs) -> ApiCall:
    return ApiCall(
        "POST",
        "/public/organization/import",
        body=_body(args),
        fallback="Import completed successfully",
    )


_CATALOG: tuple[tuple[str, str, type, Any], ...] = (
    ("list_org_collections", "List all collections in the organization", schemas.NoArgs, build_list_collections),
    ("get_org_collection", "Get a collection by id", schemas.CollectionIdArgs, build_get_collection),
    ("update_org_collection", "Update a collection's external id and group access",
     schemas.UpdateCollectionArgs, build_update_collection),
    ("delete_org_collection", "Delete a collection", schemas.CollectionIdArgs, build_delete_collection),
    ("list_org_members", "List all members of the organization", schemas.NoArgs, build_list_members),
    ("get_org_member", "Get a member by id", schemas.MemberIdArgs, build_get_member),
    ("invite_org_member", "Invite a user to the organization", schemas.InviteMemberArgs, build_invite_member),
    ("update_org_member", "Update a member's role and access", schemas.UpdateMemberArgs, build_update_member),
    ("remove_org_member", "Remove a member from the organization", schemas.MemberIdArgs, build_remove_member),
    ("get_org_member_groups", "Get the group ids a member belongs to", schemas.MemberIdArgs, build_get_member_groups),
    ("update_org_member_groups", "Set the groups a member belongs to",
     schemas.UpdateMemberGroupsArgs, build_update_member_groups),
    ("reinvite_org_member", "Resend the invitation to a member", schemas.MemberIdArgs, build_reinvite_member),
    ("list_org_groups", "List all groups in the organization", schemas.NoArgs, build_list_groups),
    ("get_org_group", "Get a group by id", schemas.GroupIdArgs, build_get_group),
    ("create_org_group", "Create a group", schemas.CreateGroupArgs, build_create_group),
    ("update_org_group", "Update a group", schemas.UpdateGroupArgs, build_update_group),
    ("delete_org_group", "Delete a group", schemas.GroupIdArgs, build_delete_group),
    ("get_org_group_members", "Get the member ids of a group", schemas.GroupIdArgs, build_get_group_members),
    ("update_org_group_members", "Set the members of a group",
     schemas.UpdateGroupMembersArgs, build_update_group_members),
    ("list_org_policies", "List all organization policies", schemas.NoArgs, build_list_policies),
    ("get_org_policy", "Get a policy by type", schemas.PolicyTypeArgs, build_get_policy),
    ("update_org_policy", "Enable, disable or configure a policy", schemas.UpdatePolicyArgs, build_update_policy),
    ("get_org_events", "Get organization event logs", schemas.EventsArgs, build_get_events),
    ("get_org_subscription", "Get the organization subscription", schemas.NoArgs, build_get_subscription),
    ("update_org_subscription", "Update seat and storage limits",
     schemas.UpdateSubscriptionArgs, build_update_subscription),
    ("import_org_users_and_groups", "Import members and groups from a directory",
     schemas.ImportArgs, build_import),
)


def organization_tools(client: OrganizationApiClient) -> list[BaseTool]:
    """Build every organization API tool bound to ``client``."""
    return [
        ApiTool(name, description, model, build, client)
        for name, description, model, build in _CATALOG
    ]


def register_organization_tools(registry: ToolRegistry, client: OrganizationApiClient) -> None:
    """Register the organization API tools with ``registry``."""
    tools = organization_tools(client)
    for t in tools:
        registry.register(t)
    logger.info("organization_tools_registered", count=len(tools))
