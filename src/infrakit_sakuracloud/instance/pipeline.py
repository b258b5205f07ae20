"""
Server build pipeline.

A ServerBuildRequest is seeded from the selected strategy and filled in by a
fixed sequence of handlers. Each handler only touches the request when the
strategy has the matching capability, and the network and disk edit handlers
re-check their rules against those capabilities before writing anything.
"""

import logging
from typing import Callable, List

from filecache import FCPath

from infrakit_sakuracloud.common.errors import (
    CapabilityError,
    CloudAPIError,
    RemoteOperationError,
    ValidationError,
)
from infrakit_sakuracloud.instance.client import (
    TAG_KEYBOARD_US,
    CloudClient,
    DiskBuildEvent,
    NetworkInterface,
    NICKind,
    Server,
    ServerBuildEvent,
    ServerBuildRequest,
)
from infrakit_sakuracloud.instance.rules import (
    validate_disk_edit_params,
    validate_network_params,
    validate_properties,
)
from infrakit_sakuracloud.instance.strategy import ServerStrategy, select_strategy
from infrakit_sakuracloud.instance.types import Properties

LOGGER = logging.getLogger(__name__)

BuildHandler = Callable[[ServerStrategy, Properties, ServerBuildRequest], None]


def new_build_request(strategy: ServerStrategy) -> ServerBuildRequest:
    return ServerBuildRequest(
        strategy=strategy.kind.label,
        name=strategy.name,
        source_disk_id=strategy.source_disk_id,
        source_archive_id=strategy.source_archive_id,
        os_type=strategy.os_type.value if strategy.os_type is not None else None,
        disk_id=strategy.disk_id,
        password=strategy.password,
    )


def handle_network_params(
    strategy: ServerStrategy, params: Properties, request: ServerBuildRequest
) -> None:
    capabilities = strategy.capabilities
    errs = validate_network_params(capabilities, params)
    if errs:
        raise ValidationError(errs)

    if not capabilities.network:
        return

    match params.network_mode:
        case "shared":
            request.nics.append(NetworkInterface(kind=NICKind.SHARED))
        case "switch":
            if capabilities.simple_switch:
                request.nics.append(
                    NetworkInterface(kind=NICKind.SWITCH, switch_id=str(params.switch_id))
                )
            else:
                request.nics.append(
                    NetworkInterface(
                        kind=NICKind.SWITCH,
                        switch_id=str(params.switch_id),
                        ip_address=params.ip_address,
                        nw_masklen=params.nw_masklen,
                        default_route=params.default_route,
                    )
                )
        case "disconnect":
            request.nics.append(NetworkInterface(kind=NICKind.DISCONNECTED))
        case "none":
            pass
        case _:
            raise CapabilityError(f"Unknown NetworkMode : {params.network_mode}")

    request.use_virtio_net_pci = params.use_nic_virtio
    if params.packet_filter_id != 0:
        request.packet_filter_ids = [params.packet_filter_id]


def handle_disk_edit_params(
    strategy: ServerStrategy, params: Properties, request: ServerBuildRequest
) -> None:
    capabilities = strategy.capabilities
    errs = validate_disk_edit_params(capabilities, params)
    if errs:
        raise ValidationError(errs)

    if not capabilities.disk_edit:
        return

    request.hostname = params.hostname
    request.password = params.password
    request.disable_pw_auth = params.disable_password_auth

    request.note_ids.extend(params.startup_script_ids)
    request.notes.extend(params.startup_scripts)
    request.notes_ephemeral = params.startup_scripts_ephemeral

    request.ssh_key_ids.extend(params.ssh_key_ids)
    request.ssh_keys.extend(params.ssh_key_public_keys)
    for key_file in params.ssh_key_public_key_files:
        try:
            request.ssh_keys.append(FCPath(key_file).read_text())
        except OSError as e:
            raise RemoteOperationError("CreateInstance", e) from e
    request.ssh_keys_ephemeral = params.ssh_key_ephemeral


def handle_disk_params(
    strategy: ServerStrategy, params: Properties, request: ServerBuildRequest
) -> None:
    if not strategy.capabilities.disk:
        return

    request.disk_plan = params.disk_plan
    request.disk_connection = params.disk_connection
    request.disk_size = params.disk_size
    request.distant_from = list(params.distant_from)


def handle_server_common_params(
    strategy: ServerStrategy, params: Properties, request: ServerBuildRequest
) -> None:
    if not strategy.capabilities.common:
        raise CapabilityError(
            f"CreateInstance is failed: {strategy.kind} strategy does not support "
            "common properties"
        )

    tags = list(params.tags)
    if params.us_keyboard:
        tags.append(TAG_KEYBOARD_US)

    request.core = params.core
    request.memory = params.memory
    request.name = params.name
    request.description = params.description
    request.tags = tags
    request.icon_id = params.icon_id
    request.iso_image_id = params.iso_image_id


def _log_event(message: str) -> Callable[..., None]:
    def handler(*args, **kwargs) -> None:
        LOGGER.debug(message)

    return handler


def handle_disk_events(
    strategy: ServerStrategy, params: Properties, request: ServerBuildRequest
) -> None:
    if not strategy.capabilities.disk_events:
        return

    request.disk_event_handlers.update(
        {
            DiskBuildEvent.CREATE_DISK_BEFORE: _log_event("CreateDisk:start"),
            DiskBuildEvent.CREATE_DISK_AFTER: _log_event("CreateDisk:finish"),
            DiskBuildEvent.EDIT_DISK_BEFORE: _log_event("EditDisk:start"),
            DiskBuildEvent.EDIT_DISK_AFTER: _log_event("EditDisk:finish"),
            DiskBuildEvent.CLEANUP_NOTE_BEFORE: _log_event("Cleanup StartupScript:start"),
            DiskBuildEvent.CLEANUP_NOTE_AFTER: _log_event("Cleanup StartupScript:finish"),
            DiskBuildEvent.CLEANUP_SSH_KEY_BEFORE: _log_event("Cleanup SSHKey:start"),
            DiskBuildEvent.CLEANUP_SSH_KEY_AFTER: _log_event("Cleanup SSHKey:finish"),
        }
    )


def handle_server_events(
    strategy: ServerStrategy, params: Properties, request: ServerBuildRequest
) -> None:
    if not strategy.capabilities.server_events:
        return

    request.server_event_handlers.update(
        {
            ServerBuildEvent.CREATE_SERVER_BEFORE: _log_event("Create Server:start"),
            ServerBuildEvent.CREATE_SERVER_AFTER: _log_event("Create Server:finish"),
            ServerBuildEvent.BOOT_BEFORE: _log_event("Boot Server:start"),
            ServerBuildEvent.BOOT_AFTER: _log_event("Boot Server:finish"),
        }
    )


SERVER_BUILD_HANDLERS: List[BuildHandler] = [
    handle_network_params,
    handle_disk_edit_params,
    handle_disk_params,
    handle_server_common_params,
    handle_disk_events,
    handle_server_events,
]


def prepare_build_request(strategy: ServerStrategy, params: Properties) -> ServerBuildRequest:
    """Run every build handler for strategy and return the filled-in request."""
    request = new_build_request(strategy)
    for handler in SERVER_BUILD_HANDLERS:
        handler(strategy, params, request)
    return request


def create_instance(client: CloudClient, params: Properties) -> Server:
    """Validate params, then build and boot the server they describe.

    Args:
        client: API client
        params: Instance properties with the final server name set

    Returns:
        The created server

    Raises:
        ValidationError: If params are inconsistent
        RemoteOperationError: If a key file cannot be read or the build fails
        CapabilityError: If the selected strategy cannot be built at all
    """
    validate_properties(params)

    strategy = select_strategy(params)
    request = prepare_build_request(strategy, params)

    LOGGER.info(f"Creating server {params.name!r} with {strategy.kind} strategy")
    try:
        server = client.build_server(request)
    except CloudAPIError as e:
        raise RemoteOperationError("CreateInstance", e) from e

    LOGGER.info(f"Created server {server.id} ({params.name!r})")
    return server
