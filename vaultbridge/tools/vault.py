"""Vault CLI tool catalog.

Each tool pairs an argument model with a function that turns validated
arguments into a CliInvocation. JSON payloads for create/edit are passed
base64-encoded, as the CLI expects.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

import structlog

from vaultbridge.schemas import vault as schemas
from vaultbridge.security.encoder import build_safe_command, encode_json_argument
from vaultbridge.tools.base import BaseTool, CliResult
from vaultbridge.tools.cli import CliInvocation, CliRunner, CliTool, CompositeCliTool

if TYPE_CHECKING:
    from vaultbridge.tools.registry import ToolRegistry

logger = structlog.get_logger()

UNLOCK_PASSWORD_ENV = "VAULTBRIDGE_UNLOCK_PASSWORD"


def _org_flag(organization_id: str | None) -> list[str]:
    return ["--organizationid", organization_id] if organization_id else []


def _dump(model: Any) -> Any:
    """Dump a nested argument model with caller-facing (camelCase) keys."""
    return model.model_dump(mode="json", by_alias=True, exclude_none=True)


# -- session and listing --------------------------------------------------


def build_lock(args: schemas.NoArgs) -> CliInvocation:
    return CliInvocation("lock", fallback="Vault locked successfully")


def build_unlock(args: schemas.UnlockArgs) -> CliInvocation:
    """``unlock --raw`` with the password read from the child's environment."""
    return CliInvocation(
        "unlock",
        ["--passwordenv", UNLOCK_PASSWORD_ENV, "--raw"],
        fallback="Vault unlocked successfully",
        env={UNLOCK_PASSWORD_ENV: args.password},
    )


async def unlock_steps(args: schemas.UnlockArgs, runner: CliRunner) -> tuple[CliResult, str]:
    """Unlock and hand the new session key to later invocations.

    A lock invalidates the session the runner started with.
    """
    invocation = build_unlock(args)
    result = await runner.run(invocation.argv(), env=invocation.env)
    if result.output and not result.error_output:
        runner.use_session(result.output)
    return result, invocation.fallback


def build_sync(args: schemas.NoArgs) -> CliInvocation:
    return CliInvocation("sync", fallback="Vault synced successfully")


def build_status(args: schemas.NoArgs) -> CliInvocation:
    return CliInvocation("status")


def build_list(args: schemas.ListArgs) -> CliInvocation:
    params = [args.type]
    if args.search:
        params += ["--search", args.search]
    params += _org_flag(args.organizationid)
    return CliInvocation("list", params)


def build_get(args: schemas.GetArgs) -> CliInvocation:
    return CliInvocation("get", [args.object, args.id, *_org_flag(args.organizationid)])


def build_generate(args: schemas.GenerateArgs) -> CliInvocation:
    """Translate generator options into CLI flags.

    Passphrase options and password options are mutually exclusive on the
    CLI; the ones that do not apply to the selected mode are ignored.
    """
    params: list[str] = []
    if args.passphrase:
        params.append("--passphrase")
        if args.words is not None:
            params += ["--words", str(args.words)]
        if args.separator:
            params += ["--separator", args.separator]
        if args.capitalize:
            params.append("--capitalize")
    else:
        if args.length is not None:
            params += ["--length", str(args.length)]
        if args.uppercase is False:
            params.append("--noUppercase")
        if args.lowercase is False:
            params.append("--noLowercase")
        if args.number is False:
            params.append("--noNumbers")
        if args.special is False:
            params.append("--noSpecial")
    return CliInvocation("generate", params)


# -- items and folders ----------------------------------------------------


def item_payload(args: schemas.CreateItemArgs) -> dict[str, Any]:
    """The item JSON sent to ``create item``."""
    item: dict[str, Any] = {
        "organizationId": args.organization_id,
        "folderId": args.folder_id,
        "type": args.type,
        "name": args.name,
        "notes": args.notes,
        "favorite": args.favorite,
    }
    if args.type == 1:
        item["login"] = _dump(args.login) if args.login else {}
    else:
        item["secureNote"] = {"type": 0}
    return item


def build_create_item(args: schemas.CreateItemArgs) -> CliInvocation:
    return CliInvocation(
        "create",
        ["item", encode_json_argument(item_payload(args))],
        fallback="Item created successfully",
    )


def build_create_folder(args: schemas.CreateFolderArgs) -> CliInvocation:
    return CliInvocation(
        "create",
        ["folder", encode_json_argument({"name": args.name})],
        fallback="Folder created successfully",
    )


def merge_item(current: dict[str, Any], args: schemas.EditItemArgs) -> dict[str, Any]:
    """Apply the provided edit fields on top of the stored item.

    Fields left unset keep their stored values. Login fields are merged
    one by one so that changing the password keeps the username.
    """
    merged = dict(current)
    if args.name is not None:
        merged["name"] = args.name
    if args.notes is not None:
        merged["notes"] = args.notes
    if args.folder_id is not None:
        merged["folderId"] = args.folder_id
    if args.favorite is not None:
        merged["favorite"] = args.favorite
    if args.login is not None:
        login = dict(merged.get("login") or {})
        login.update(_dump(args.login))
        merged["login"] = login
    return merged


async def edit_item_steps(args: schemas.EditItemArgs, runner: CliRunner) -> tuple[CliResult, str]:
    """Fetch the item, merge the edits, write it back."""
    fallback = f"Item {args.id} updated successfully"

    current = await runner.run(build_safe_command("get", ["item", args.id]))
    if current.output is None:
        return CliResult(error_output=current.error_output or f"Item {args.id} not found"), fallback

    try:
        stored = json.loads(current.output)
    except ValueError as e:
        return CliResult(error_output=f"Failed to parse item {args.id}: {e}"), fallback
    if not isinstance(stored, dict):
        return CliResult(error_output=f"Failed to parse item {args.id}: not an object"), fallback

    encoded = encode_json_argument(merge_item(stored, args))
    result = await runner.run(build_safe_command("edit", ["item", args.id, encoded]))
    return result, fallback


def build_edit_folder(args: schemas.EditFolderArgs) -> CliInvocation:
    return CliInvocation(
        "edit",
        ["folder", args.id, encode_json_argument({"name": args.name})],
        fallback=f"Folder {args.id} updated successfully",
    )


def build_delete(args: schemas.DeleteArgs) -> CliInvocation:
    params = [args.object, args.id]
    if args.permanent:
        params.append("--permanent")
    params += _org_flag(args.organizationid)
    return CliInvocation("delete", params, fallback=f"{args.object} {args.id} deleted successfully")


def build_restore(args: schemas.RestoreArgs) -> CliInvocation:
    return CliInvocation(
        "restore",
        [args.object, args.id],
        fallback=f"{args.object} {args.id} restored successfully",
    )


# -- organizations --------------------------------------------------------


def build_confirm(args: schemas.ConfirmArgs) -> CliInvocation:
    return CliInvocation(
        "confirm",
        ["org-member", args.member_id, *_org_flag(args.organization_id)],
        fallback=f"Member {args.member_id} confirmed successfully",
    )


def _collection_payload(
    args: schemas.CreateOrgCollectionArgs | schemas.EditOrgCollectionArgs,
) -> dict[str, Any]:
    return {
        "organizationId": args.organization_id,
        "name": args.name,
        "externalId": args.external_id,
        "groups": [_dump(group) for group in args.groups or []],
    }


def build_create_org_collection(args: schemas.CreateOrgCollectionArgs) -> CliInvocation:
    return CliInvocation(
        "create",
        [
            "org-collection",
            encode_json_argument(_collection_payload(args)),
            *_org_flag(args.organization_id),
        ],
        fallback="Collection created successfully",
    )


def build_edit_org_collection(args: schemas.EditOrgCollectionArgs) -> CliInvocation:
    return CliInvocation(
        "edit",
        [
            "org-collection",
            args.collection_id,
            encode_json_argument(_collection_payload(args)),
            *_org_flag(args.organization_id),
        ],
        fallback=f"Collection {args.collection_id} updated successfully",
    )


def build_edit_item_collections(args: schemas.EditItemCollectionsArgs) -> CliInvocation:
    return CliInvocation(
        "edit",
        [
            "item-collections",
            args.item_id,
            encode_json_argument(args.collection_ids),
            *_org_flag(args.organization_id),
        ],
        fallback="Item collections updated successfully",
    )


def build_move(args: schemas.MoveArgs) -> CliInvocation:
    return CliInvocation(
        "move",
        [args.item_id, args.organization_id, encode_json_argument(args.collection_ids)],
        fallback="Item moved successfully",
    )


def build_device_approval_list(args: schemas.OrganizationArgs) -> CliInvocation:
    return CliInvocation("device-approval", ["list", *_org_flag(args.organization_id)])


def _device_request(action: str, past: str):
    def build(args: schemas.DeviceRequestArgs) -> CliInvocation:
        return CliInvocation(
            "device-approval",
            [action, args.request_id, *_org_flag(args.organization_id)],
            fallback=f"Device request {args.request_id} {past}",
        )
    return build


def _device_all(action: str, past: str):
    def build(args: schemas.OrganizationArgs) -> CliInvocation:
        return CliInvocation(
            "device-approval",
            [action, *_org_flag(args.organization_id)],
            fallback=f"All pending device requests {past}",
        )
    return build


# -- sends ----------------------------------------------------------------


def build_list_send(args: schemas.NoArgs) -> CliInvocation:
    return CliInvocation("send", ["list"])


def build_get_send(args: schemas.SendIdArgs) -> CliInvocation:
    return CliInvocation("send", ["get", args.id])


def text_send_payload(args: schemas.CreateTextSendArgs) -> dict[str, Any]:
    """The send JSON for a text send (type 0)."""
    payload: dict[str, Any] = {
        "name": args.name,
        "notes": args.notes,
        "type": 0,
        "text": {"text": args.text, "hidden": args.hidden},
        "maxAccessCount": args.max_access_count,
        "deletionDate": args.deletion_date.isoformat() if args.deletion_date else None,
        "expirationDate": args.expiration_date.isoformat() if args.expiration_date else None,
        "disabled": args.disabled,
    }
    return {k: v for k, v in payload.items() if v is not None}


def build_create_text_send(args: schemas.CreateTextSendArgs) -> CliInvocation:
    return CliInvocation(
        "send",
        ["create", encode_json_argument(text_send_payload(args))],
        fallback="Send created successfully",
    )


def build_delete_send(args: schemas.SendIdArgs) -> CliInvocation:
    return CliInvocation("send", ["delete", args.id], fallback=f"Send {args.id} deleted successfully")


def build_remove_send_password(args: schemas.SendIdArgs) -> CliInvocation:
    return CliInvocation(
        "send",
        ["remove-password", args.id],
        fallback=f"Password removed from send {args.id}",
    )


def vault_tools(runner: CliRunner) -> list[BaseTool]:
    """Build every vault CLI tool bound to ``runner``."""

    def tool(name: str, description: str, model: type, build) -> CliTool:
        return CliTool(name, description, model, build, runner)

    return [
        tool("lock", "Lock the vault", schemas.NoArgs, build_lock),
        CompositeCliTool(
            "unlock",
            "Unlock the vault with the master password and return the session key",
            schemas.UnlockArgs,
            unlock_steps,
            runner,
        ),
        tool("sync", "Sync the vault with the server", schemas.NoArgs, build_sync),
        tool("status", "Check the vault status", schemas.NoArgs, build_status),
        tool("list", "List items, folders, collections or organizations", schemas.ListArgs, build_list),
        tool("get", "Get an item, field or object by id or search term", schemas.GetArgs, build_get),
        tool("generate", "Generate a password or passphrase", schemas.GenerateArgs, build_generate),
        tool("create_item", "Create a login or secure note item", schemas.CreateItemArgs, build_create_item),
        tool("create_folder", "Create a folder", schemas.CreateFolderArgs, build_create_folder),
        CompositeCliTool(
            "edit_item",
            "Edit an existing item; fields not given keep their values",
            schemas.EditItemArgs,
            edit_item_steps,
            runner,
        ),
        tool("edit_folder", "Rename a folder", schemas.EditFolderArgs, build_edit_folder),
        tool("delete", "Delete an item, attachment, folder or org collection", schemas.DeleteArgs, build_delete),
        tool("restore", "Restore an item from the trash", schemas.RestoreArgs, build_restore),
        tool("confirm", "Confirm an accepted organization member", schemas.ConfirmArgs, build_confirm),
        tool(
            "create_org_collection",
            "Create an organization collection",
            schemas.CreateOrgCollectionArgs,
            build_create_org_collection,
        ),
        tool(
            "edit_org_collection",
            "Edit an organization collection",
            schemas.EditOrgCollectionArgs,
            build_edit_org_collection,
        ),
        tool(
            "edit_item_collections",
            "Set the collections an organization item belongs to",
            schemas.EditItemCollectionsArgs,
            build_edit_item_collections,
        ),
        tool("move", "Move an item to an organization", schemas.MoveArgs, build_move),
        tool(
            "device_approval_list",
            "List pending device approval requests",
            schemas.OrganizationArgs,
            build_device_approval_list,
        ),
        tool(
            "device_approval_approve",
            "Approve a device request",
            schemas.DeviceRequestArgs,
            _device_request("approve", "approved"),
        ),
        tool(
            "device_approval_approve_all",
            "Approve all pending device requests",
            schemas.OrganizationArgs,
            _device_all("approve-all", "approved"),
        ),
        tool(
            "device_approval_deny",
            "Deny a device request",
            schemas.DeviceRequestArgs,
            _device_request("deny", "denied"),
        ),
        tool(
            "device_approval_deny_all",
            "Deny all pending device requests",
            schemas.OrganizationArgs,
            _device_all("deny-all", "denied"),
        ),
        tool("list_send", "List all sends", schemas.NoArgs, build_list_send),
        tool("get_send", "Get a send by id", schemas.SendIdArgs, build_get_send),
        tool("create_text_send", "Create a text send", schemas.CreateTextSendArgs, build_create_text_send),
        tool("delete_send", "Delete a send", schemas.SendIdArgs, build_delete_send),
        tool(
            "remove_send_password",
            "Remove the access password from a send",
            schemas.SendIdArgs,
            build_remove_send_password,
        ),
    ]


def register_vault_tools(registry: ToolRegistry, runner: CliRunner) -> None:
    """Register the vault CLI tools with ``registry``."""
    tools = vault_tools(runner)
    for t in tools:
        registry.register(t)
    logger.info("vault_tools_registered", count=len(tools))
