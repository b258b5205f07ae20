"""
Server construction strategies and the capabilities each one supports.

A strategy is chosen from the disk mode, the disk source fields and the OS
type. Which configuration steps apply to it, and therefore which properties
may be set, follows from its fixed Capabilities record.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from infrakit_sakuracloud.instance.ostype import OS_TYPE_SHORT_NAMES, ArchiveOSType
from infrakit_sakuracloud.instance.types import Properties

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class Capabilities:
    """Configuration steps a strategy supports."""

    common: bool = True
    disk: bool = False
    disk_edit: bool = False
    network: bool = False
    # Switch NICs take an IP address, mask length and default route, which are
    # written into the disk by the disk edit
    switch_with_editable_disk: bool = False
    disk_events: bool = False
    server_events: bool = False

    @property
    def simple_switch(self) -> bool:
        return self.network and not self.switch_with_editable_disk


_EDITABLE_DISK = Capabilities(
    disk=True,
    disk_edit=True,
    network=True,
    switch_with_editable_disk=True,
    disk_events=True,
    server_events=True,
)
_FIXED_DISK = Capabilities(
    disk=True,
    network=True,
    disk_events=True,
    server_events=True,
)
_NO_NEW_DISK = Capabilities(
    network=True,
    server_events=True,
)


class StrategyKind(Enum):
    FROM_DISK = ("from-disk", _EDITABLE_DISK)
    FROM_ARCHIVE = ("from-archive", _EDITABLE_DISK)
    BLANK_DISK = ("blank-disk", _FIXED_DISK)
    PUBLIC_IMAGE_WINDOWS = ("public-image-windows", _FIXED_DISK)
    PUBLIC_IMAGE_UNIX = ("public-image-unix", _EDITABLE_DISK)
    FROM_EXISTING_DISK = ("from-existing-disk", _NO_NEW_DISK)
    DISKLESS = ("diskless", _NO_NEW_DISK)

    def __init__(self, label: str, capabilities: Capabilities) -> None:
        self.label = label
        self.capabilities = capabilities

    def __str__(self) -> str:
        return self.label


@dataclass(frozen=True)
class ServerStrategy:
    """The construction plan for one server."""

    kind: StrategyKind
    name: str
    source_disk_id: int = 0
    source_archive_id: int = 0
    disk_id: int = 0
    os_type: Optional[ArchiveOSType] = None
    # Only forwarded for Unix public archives, where it sets the admin password
    password: Optional[str] = None
    capabilities: Optional[Capabilities] = None

    def __post_init__(self) -> None:
        if self.capabilities is None:
            object.__setattr__(self, "capabilities", self.kind.capabilities)


def select_strategy(properties: Properties) -> ServerStrategy:
    """Choose the construction strategy for properties.

    Args:
        properties: Decoded instance properties; DiskMode must be valid

    Returns:
        The selected ServerStrategy

    Raises:
        ValueError: If DiskMode is not one of create, connect or diskless
    """
    name = properties.name

    match properties.disk_mode:
        case "create":
            if properties.source_disk_id > 0:
                strategy = ServerStrategy(
                    StrategyKind.FROM_DISK, name, source_disk_id=properties.source_disk_id
                )
            elif properties.source_archive_id > 0:
                strategy = ServerStrategy(
                    StrategyKind.FROM_ARCHIVE,
                    name,
                    source_archive_id=properties.source_archive_id,
                )
            elif properties.os_type == "":
                strategy = ServerStrategy(StrategyKind.BLANK_DISK, name)
            else:
                os_type = ArchiveOSType.from_str(properties.os_type)
                if properties.os_type not in OS_TYPE_SHORT_NAMES:
                    LOGGER.warning(
                        f"Unknown OSType {properties.os_type!r}; treating it as custom"
                    )
                if os_type.is_windows:
                    strategy = ServerStrategy(
                        StrategyKind.PUBLIC_IMAGE_WINDOWS, name, os_type=os_type
                    )
                else:
                    strategy = ServerStrategy(
                        StrategyKind.PUBLIC_IMAGE_UNIX,
                        name,
                        os_type=os_type,
                        password=properties.password,
                    )
        case "connect":
            strategy = ServerStrategy(
                StrategyKind.FROM_EXISTING_DISK, name, disk_id=properties.disk_id
            )
        case "diskless":
            strategy = ServerStrategy(StrategyKind.DISKLESS, name)
        case _:
            raise ValueError(f"Unknown DiskMode: {properties.disk_mode}")

    LOGGER.debug(f"Selected {strategy.kind} strategy for server {name!r}")
    return strategy
