"""
Validation rules for instance properties.

Rules are grouped by what they depend on: the base rules need only the
properties, the disk mode rules need the DiskMode branch, and the network and
disk edit rules need the capabilities of the dispatched strategy.
"""

from typing import List

from infrakit_sakuracloud.common.errors import FieldError, ValidationError
from infrakit_sakuracloud.instance.strategy import Capabilities, select_strategy
from infrakit_sakuracloud.instance.types import (
    DISK_CONNECTIONS,
    DISK_MODES,
    DISK_PLANS,
    NETWORK_MODES,
    Properties,
)
from infrakit_sakuracloud.instance.validators import (
    is_empty,
    validate_conflicts,
    validate_in_values,
    validate_prohibited,
    validate_required,
)


def _conflict_if_set(
    base_field: str, base_value: object, target_field: str, target_value: object
) -> List[FieldError]:
    if is_empty(target_value):
        return []
    return validate_conflicts(base_field, base_value, {target_field: target_value})


def _explicit(params: Properties, attr: str) -> object:
    # The ephemeral flags default to true, so only an explicit value counts as set
    if attr in params.model_fields_set:
        return getattr(params, attr)
    return None


def validate_base_params(params: Properties) -> List[FieldError]:
    errs: List[FieldError] = []
    errs += validate_in_values("DiskMode", params.disk_mode, *DISK_MODES)
    errs += validate_in_values("NetworkMode", params.network_mode, *NETWORK_MODES)
    errs += validate_in_values("DiskPlan", params.disk_plan, *DISK_PLANS)
    errs += validate_in_values("DiskConnection", params.disk_connection, *DISK_CONNECTIONS)
    if params.disk_mode == "":
        errs += validate_required("DiskMode", params.disk_mode)
    return errs


def validate_disk_mode_params(params: Properties) -> List[FieldError]:
    errs: List[FieldError] = []
    mode = params.disk_mode

    match mode:
        case "create":
            errs += validate_required("DiskPlan", params.disk_plan)
            errs += validate_required("DiskConnection", params.disk_connection)
            errs += validate_required("DiskSize", params.disk_size)

            # A source disk or archive replaces the public archive chosen by OSType
            errs += _conflict_if_set(
                "SourceDiskID", params.source_disk_id, "SourceArchiveID", params.source_archive_id
            )
            errs += _conflict_if_set("SourceDiskID", params.source_disk_id, "OSType", params.os_type)
            errs += _conflict_if_set(
                "SourceArchiveID", params.source_archive_id, "OSType", params.os_type
            )

            errs += _conflict_if_set("DiskMode", mode, "DiskID", params.disk_id)

        case "connect":
            errs += validate_required("DiskID", params.disk_id)
            errs += _conflict_if_set("DiskMode", mode, "DiskPlan", params.disk_plan)
            errs += _conflict_if_set("DiskMode", mode, "DiskConnection", params.disk_connection)
            errs += _conflict_if_set("DiskMode", mode, "DiskSize", params.disk_size)
            errs += _conflict_if_set("DiskMode", mode, "OSType", params.os_type)

        case "diskless":
            errs += _conflict_if_set("DiskMode", mode, "DiskID", params.disk_id)
            errs += _conflict_if_set("DiskMode", mode, "DiskPlan", params.disk_plan)
            errs += _conflict_if_set("DiskMode", mode, "DiskConnection", params.disk_connection)
            errs += _conflict_if_set("DiskMode", mode, "DiskSize", params.disk_size)
            errs += _conflict_if_set("DiskMode", mode, "OSType", params.os_type)

    return errs


def validate_network_params(capabilities: Capabilities, params: Properties) -> List[FieldError]:
    errs: List[FieldError] = []
    mode = params.network_mode

    if not capabilities.network:
        errs += validate_prohibited("NetworkMode", mode)
        errs += validate_prohibited("SwitchID", params.switch_id)
        errs += validate_prohibited("IPAddress", params.ip_address)
        errs += validate_prohibited("NwMasklen", params.nw_masklen)
        errs += validate_prohibited("DefaultRoute", params.default_route)
        errs += validate_prohibited("UseNicVirtIO", params.use_nic_virtio)
        errs += validate_prohibited("PacketFilterID", params.packet_filter_id)
        return errs

    match mode:
        case "shared" | "disconnect" | "none":
            errs += _conflict_if_set("NetworkMode", mode, "SwitchID", params.switch_id)
            errs += _conflict_if_set("NetworkMode", mode, "IPAddress", params.ip_address)
            errs += _conflict_if_set("NetworkMode", mode, "NwMasklen", params.nw_masklen)
            errs += _conflict_if_set("NetworkMode", mode, "DefaultRoute", params.default_route)

            if mode == "none":
                errs += _conflict_if_set("NetworkMode", mode, "UseNicVirtIO", params.use_nic_virtio)
                errs += _conflict_if_set(
                    "NetworkMode", mode, "PacketFilterID", params.packet_filter_id
                )

        case "switch":
            errs += validate_required("SwitchID", params.switch_id)
            if capabilities.simple_switch:
                errs += validate_prohibited("IPAddress", params.ip_address)
                errs += validate_prohibited("NwMasklen", params.nw_masklen)
                errs += validate_prohibited("DefaultRoute", params.default_route)

    return errs


def validate_disk_edit_params(capabilities: Capabilities, params: Properties) -> List[FieldError]:
    if capabilities.disk_edit:
        return []

    errs: List[FieldError] = []
    errs += validate_prohibited("Hostname", params.hostname)
    errs += validate_prohibited("Password", params.password)
    errs += validate_prohibited("DisablePasswordAuth", params.disable_password_auth)
    errs += validate_prohibited("StartupScriptIDs", params.startup_script_ids)
    errs += validate_prohibited("StartupScripts", params.startup_scripts)
    errs += validate_prohibited(
        "StartupScriptsEphemeral", _explicit(params, "startup_scripts_ephemeral")
    )
    errs += validate_prohibited("SSHKeyIDs", params.ssh_key_ids)
    errs += validate_prohibited("SSHKeyPublicKeys", params.ssh_key_public_keys)
    errs += validate_prohibited("SSHKeyPublicKeyFiles", params.ssh_key_public_key_files)
    errs += validate_prohibited("SSHKeyEphemeral", _explicit(params, "ssh_key_ephemeral"))
    return errs


def validate_properties(params: Properties) -> None:
    """Run every rule against params and the strategy it dispatches to.

    Raises:
        ValidationError: With every violation found, if there are any
    """
    errs = validate_base_params(params)
    if params.disk_mode not in DISK_MODES:
        # Without a disk mode there is no strategy to check the rest against
        raise ValidationError(errs)

    errs += validate_disk_mode_params(params)

    capabilities = select_strategy(params).capabilities
    errs += validate_network_params(capabilities, params)
    errs += validate_disk_edit_params(capabilities, params)

    if errs:
        raise ValidationError(errs)
