"""
Data types exchanged with the host orchestrator.
"""

import json
from typing import Any, Dict, List, Mapping, Optional

import pydantic
import yaml
from pydantic import BaseModel, ConfigDict, Field

from infrakit_sakuracloud.common.errors import DecodeError

# Metadata key used to tag instances created with a logical ID
LOGICAL_ID_TAG = "infrakit-logical-id"

# Metadata key recording which version of the plugin created the instance
PLUGIN_VERSION_TAG = "infrakit-sakuracloud-version"

# Incremented each time the plugin introduces incompatibilities with previous versions
PLUGIN_CURRENT_VERSION = "1"

DISK_MODES = ("create", "connect", "diskless")
NETWORK_MODES = ("shared", "switch", "disconnect", "none")
DISK_PLANS = ("ssd", "hdd")
DISK_CONNECTIONS = ("virtio", "ide")


class Properties(BaseModel):
    """Configuration schema for one instance, provided in InstanceSpec.properties.

    Field aliases are the keys used in the properties document. Unset fields
    carry the zero value of their type so that "set" always means "non-empty".
    """

    model_config = ConfigDict(extra="forbid", strict=True, populate_by_name=True)

    # Identity
    name_prefix: str = Field("", alias="NamePrefix")
    name: str = Field("", alias="Name")
    description: str = Field("", alias="Description")
    tags: List[str] = Field(default_factory=list, alias="Tags")
    icon_id: int = Field(0, alias="IconID")

    # Compute shape
    core: int = Field(1, alias="Core")
    memory: int = Field(1, alias="Memory")

    # Disk sourcing
    disk_mode: str = Field("create", alias="DiskMode")
    os_type: str = Field("", alias="OSType")
    disk_plan: str = Field("ssd", alias="DiskPlan")
    disk_connection: str = Field("virtio", alias="DiskConnection")
    disk_size: int = Field(20, alias="DiskSize")
    source_archive_id: int = Field(0, alias="SourceArchiveID")
    source_disk_id: int = Field(0, alias="SourceDiskID")
    distant_from: List[int] = Field(default_factory=list, alias="DistantFrom")
    disk_id: int = Field(0, alias="DiskID")

    # Disk edit
    hostname: str = Field("", alias="Hostname")
    password: str = Field("", alias="Password")
    disable_password_auth: bool = Field(False, alias="DisablePasswordAuth")
    startup_scripts: List[str] = Field(default_factory=list, alias="StartupScripts")
    startup_script_ids: List[int] = Field(default_factory=list, alias="StartupScriptIDs")
    startup_scripts_ephemeral: bool = Field(True, alias="StartupScriptsEphemeral")
    ssh_key_ids: List[int] = Field(default_factory=list, alias="SSHKeyIDs")
    ssh_key_public_keys: List[str] = Field(default_factory=list, alias="SSHKeyPublicKeys")
    ssh_key_public_key_files: List[str] = Field(
        default_factory=list, alias="SSHKeyPublicKeyFiles"
    )
    ssh_key_ephemeral: bool = Field(True, alias="SSHKeyEphemeral")

    # Networking
    network_mode: str = Field("shared", alias="NetworkMode")
    switch_id: int = Field(0, alias="SwitchID")
    ip_address: str = Field("", alias="IPAddress")
    nw_masklen: int = Field(0, alias="NwMasklen")
    default_route: str = Field("", alias="DefaultRoute")
    use_nic_virtio: bool = Field(True, alias="UseNicVirtIO")
    packet_filter_id: int = Field(0, alias="PacketFilterID")

    # Misc
    iso_image_id: int = Field(0, alias="ISOImageID")
    us_keyboard: bool = Field(False, alias="UsKeyboard")


class InstanceSpec(BaseModel):
    """A provision request from the host orchestrator."""

    properties: Any = None
    tags: Dict[str, str] = Field(default_factory=dict)
    init: str = ""
    logical_id: Optional[str] = None


class InstanceDescription(BaseModel):
    """A managed instance as reported back to the host orchestrator."""

    id: str
    tags: Dict[str, str] = Field(default_factory=dict)
    properties: Optional[Dict[str, Any]] = None


def _load_document(raw: Any) -> Any:
    if isinstance(raw, bytes):
        raw = raw.decode("utf-8")
    if not isinstance(raw, str):
        return raw
    if raw.strip() == "":
        return {}
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        # Not JSON; properties files may also be written in YAML
        return yaml.safe_load(raw)


def parse_properties(raw: Any) -> Properties:
    """Decode instance properties.

    Args:
        raw: JSON or YAML text (str or bytes), an already decoded mapping,
            a Properties object, or None for all defaults

    Returns:
        The decoded Properties with defaults applied

    Raises:
        DecodeError: If the document is malformed or does not match the schema
    """
    if isinstance(raw, Properties):
        return raw.model_copy(deep=True)
    if raw is None:
        return Properties()
    try:
        document = _load_document(raw)
    except (UnicodeDecodeError, yaml.YAMLError) as e:
        raise DecodeError(f"invalid properties: {e}") from e
    if document is None:
        document = {}
    if not isinstance(document, Mapping):
        raise DecodeError(
            f"invalid properties: expected a mapping, got {type(document).__name__}"
        )
    try:
        return Properties.model_validate(dict(document))
    except pydantic.ValidationError as e:
        raise DecodeError(f"invalid properties: {e}") from e


def parse_tags(spec: InstanceSpec) -> Dict[str, str]:
    """Return the tags requested by spec plus the plugin-injected tags."""
    tags = dict(spec.tags)

    if spec.logical_id is not None:
        tags[LOGICAL_ID_TAG] = spec.logical_id

    tags[PLUGIN_VERSION_TAG] = PLUGIN_CURRENT_VERSION

    return tags
