"""Argument models for the vault CLI tools."""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Literal

from pydantic import AfterValidator, Field, model_validator

from vaultbridge.schemas.base import ToolArgs

# URI match detection: 0 domain, 1 host, 2 starts with, 3 exact, 4 regex, 5 never
UriMatch = Literal[0, 1, 2, 3, 4, 5]


def _not_an_option(value: str) -> str:
    if value.startswith("-"):
        raise ValueError("must not start with '-'")
    return value


# A value placed in the argv on its own, where a leading dash would read as a flag
CliValue = Annotated[str, Field(min_length=1), AfterValidator(_not_an_option)]


class NoArgs(ToolArgs):
    """Tools that take no arguments (lock, sync, status, list_send)."""


class UnlockArgs(ToolArgs):
    # Handed to the child through its environment, which cannot hold NUL
    password: str = Field(min_length=1, pattern=r"^[^\x00]+$", description="Master password")


class ListArgs(ToolArgs):
    type: Literal[
        "items",
        "folders",
        "collections",
        "organizations",
        "org-collections",
        "org-members",
    ]
    search: CliValue | None = None
    organizationid: CliValue | None = None

    @model_validator(mode="after")
    def _org_scoped_types_need_organization(self) -> ListArgs:
        if self.type in ("org-collections", "org-members") and not self.organizationid:
            raise ValueError(
                "organizationid is required when listing org-collections or org-members"
            )
        return self


class GetArgs(ToolArgs):
    object: Literal[
        "item",
        "username",
        "password",
        "uri",
        "totp",
        "notes",
        "exposed",
        "attachment",
        "folder",
        "collection",
        "organization",
        "org-collection",
    ]
    id: CliValue = Field(description="Object id or search term")
    organizationid: CliValue | None = None

    @model_validator(mode="after")
    def _org_collection_needs_organization(self) -> GetArgs:
        if self.object == "org-collection" and not self.organizationid:
            raise ValueError("organizationid is required when getting org-collection")
        return self


class GenerateArgs(ToolArgs):
    """Password or passphrase generation options.

    With ``passphrase`` set only words, separator and capitalize apply;
    otherwise only length and the character class switches apply.
    """

    length: int | None = Field(default=None, ge=5, le=128)
    uppercase: bool | None = None
    lowercase: bool | None = None
    number: bool | None = None
    special: bool | None = None
    passphrase: bool | None = None
    words: int | None = Field(default=None, ge=3, le=20)
    separator: str | None = Field(default=None, max_length=1)
    capitalize: bool | None = None


class Uri(ToolArgs):
    uri: str = Field(min_length=1)
    match: UriMatch | None = None


class Login(ToolArgs):
    username: str | None = None
    password: str | None = None
    uris: list[Uri] | None = None
    totp: str | None = None


class CreateItemArgs(ToolArgs):
    name: str = Field(min_length=1)
    # 1 login, 2 secure note
    type: Literal[1, 2] = 1
    notes: str | None = None
    login: Login | None = None
    folder_id: str | None = None
    organization_id: str | None = None
    favorite: bool = False


class CreateFolderArgs(ToolArgs):
    name: str = Field(min_length=1)


class EditItemArgs(ToolArgs):
    id: CliValue
    name: str | None = Field(default=None, min_length=1)
    notes: str | None = None
    login: Login | None = None
    folder_id: str | None = None
    favorite: bool | None = None


class EditFolderArgs(ToolArgs):
    id: CliValue
    name: str = Field(min_length=1)


class DeleteArgs(ToolArgs):
    object: Literal["item", "attachment", "folder", "org-collection"]
    id: CliValue
    permanent: bool = False
    organizationid: CliValue | None = None

    @model_validator(mode="after")
    def _org_collection_needs_organization(self) -> DeleteArgs:
        if self.object == "org-collection" and not self.organizationid:
            raise ValueError("organizationid is required when deleting org-collection")
        return self


class RestoreArgs(ToolArgs):
    object: Literal["item"] = "item"
    id: CliValue


class ConfirmArgs(ToolArgs):
    organization_id: CliValue
    member_id: CliValue


class CollectionGroup(ToolArgs):
    id: str = Field(min_length=1)
    read_only: bool | None = None
    hide_passwords: bool | None = None
    manage: bool | None = None


class CreateOrgCollectionArgs(ToolArgs):
    organization_id: CliValue
    name: str = Field(min_length=1)
    external_id: str | None = None
    groups: list[CollectionGroup] | None = None


class EditOrgCollectionArgs(ToolArgs):
    organization_id: CliValue
    collection_id: CliValue
    name: str = Field(min_length=1)
    external_id: str | None = None
    groups: list[CollectionGroup] | None = None


class EditItemCollectionsArgs(ToolArgs):
    item_id: CliValue
    organization_id: CliValue
    collection_ids: list[str] = Field(min_length=1)


class MoveArgs(ToolArgs):
    item_id: CliValue
    organization_id: CliValue
    collection_ids: list[str] = Field(min_length=1)


class OrganizationArgs(ToolArgs):
    organization_id: CliValue


class DeviceRequestArgs(ToolArgs):
    organization_id: CliValue
    request_id: CliValue


class SendIdArgs(ToolArgs):
    id: CliValue


class CreateTextSendArgs(ToolArgs):
    name: str = Field(min_length=1)
    text: str = Field(min_length=1)
    hidden: bool = False
    notes: str | None = None
    max_access_count: int | None = Field(default=None, ge=1)
    deletion_date: datetime | None = None
    expiration_date: datetime | None = None
    disabled: bool = False
