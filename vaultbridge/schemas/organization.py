"""Argument models for the organization API tools.

The API token is scoped to one organization, so no model carries an
organization id. Resource ids are UUIDs and are rendered in canonical
lowercase form when they are placed in a path.
"""

from __future__ import annotations

from typing import Any, Literal
from uuid import UUID

from pydantic import Field

from vaultbridge.schemas.base import ToolArgs

_EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"

# 0 owner, 1 admin, 2 user, 4 custom (3 was manager)
MemberType = Literal[0, 1, 2, 3, 4]


class CollectionAccess(ToolArgs):
    id: UUID
    read_only: bool | None = None
    hide_passwords: bool | None = None
    manage: bool | None = None


class NoArgs(ToolArgs):
    """Listing endpoints take no arguments."""


class CollectionIdArgs(ToolArgs):
    collection_id: UUID


class UpdateCollectionArgs(ToolArgs):
    collection_id: UUID
    external_id: str | None = None
    groups: list[CollectionAccess] | None = None


class MemberIdArgs(ToolArgs):
    member_id: UUID


class InviteMemberArgs(ToolArgs):
    email: str = Field(pattern=_EMAIL_PATTERN)
    type: MemberType
    external_id: str | None = None
    collections: list[CollectionAccess] | None = None
    groups: list[UUID] | None = None


class UpdateMemberArgs(ToolArgs):
    member_id: UUID
    type: MemberType
    external_id: str | None = None
    collections: list[CollectionAccess] | None = None
    groups: list[UUID] | None = None


class UpdateMemberGroupsArgs(ToolArgs):
    member_id: UUID
    group_ids: list[UUID]


class GroupIdArgs(ToolArgs):
    group_id: UUID


class CreateGroupArgs(ToolArgs):
    name: str = Field(min_length=1, max_length=100)
    external_id: str | None = None
    collections: list[CollectionAccess] | None = None


class UpdateGroupArgs(CreateGroupArgs):
    group_id: UUID


class UpdateGroupMembersArgs(ToolArgs):
    group_id: UUID
    member_ids: list[UUID]


class PolicyTypeArgs(ToolArgs):
    policy_type: int = Field(ge=0, le=15)


class UpdatePolicyArgs(ToolArgs):
    policy_type: int = Field(ge=0, le=15)
    enabled: bool
    data: dict[str, Any] | None = None


class EventsArgs(ToolArgs):
    start: str | None = None
    end: str | None = None
    acting_user_id: UUID | None = None
    item_id: UUID | None = None
    continuation_token: str | None = None


class PasswordManagerSubscription(ToolArgs):
    seats: int | None = Field(default=None, ge=0)
    max_autoscale_seats: int | None = Field(default=None, ge=0)
    storage: int | None = Field(default=None, ge=0)


class SecretsManagerSubscription(ToolArgs):
    seats: int | None = Field(default=None, ge=0)
    max_autoscale_seats: int | None = Field(default=None, ge=0)
    service_accounts: int | None = Field(default=None, ge=0)
    max_autoscale_service_accounts: int | None = Field(default=None, ge=0)


class UpdateSubscriptionArgs(ToolArgs):
    password_manager: PasswordManagerSubscription | None = None
    secrets_manager: SecretsManagerSubscription | None = None


class ImportGroup(ToolArgs):
    name: str = Field(min_length=1, max_length=100)
    external_id: str = Field(min_length=1)
    member_external_ids: list[str] | None = None


class ImportMember(ToolArgs):
    email: str | None = Field(default=None, pattern=_EMAIL_PATTERN)
    external_id: str = Field(min_length=1)
    deleted: bool = False


class ImportArgs(ToolArgs):
    groups: list[ImportGroup] = Field(default_factory=list)
    members: list[ImportMember] = Field(default_factory=list)
    overwrite_existing: bool = False
    large_import: bool = False
