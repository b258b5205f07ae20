"""
Boundary to the SakuraCloud API.

The plugin consumes the API through CloudClient. Implementations perform the
HTTP calls; the build of a server from a ServerBuildRequest (disk creation,
disk edit, server creation and boot) is delegated to them as a single call.
"""

import logging
import time
from abc import ABC, abstractmethod
from enum import Enum
from typing import Callable, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from infrakit_sakuracloud.common.config import ClientConfig
from infrakit_sakuracloud.common.errors import PowerStateTimeoutError

LOGGER = logging.getLogger(__name__)

# Tag that makes the server use a US keyboard layout
TAG_KEYBOARD_US = "@keyboard-us"


class PowerState(str, Enum):
    UP = "up"
    DOWN = "down"


class Server(BaseModel):
    """A server as returned by the API."""

    model_config = ConfigDict(extra="allow")

    id: int
    name: str = ""
    description: str = ""
    tags: List[str] = Field(default_factory=list)
    instance_status: PowerState = PowerState.DOWN
    disks: List[int] = Field(default_factory=list)

    @property
    def str_id(self) -> str:
        return str(self.id)

    def is_up(self) -> bool:
        return self.instance_status == PowerState.UP


class NICKind(str, Enum):
    SHARED = "shared"
    SWITCH = "switch"
    DISCONNECTED = "disconnected"


class NetworkInterface(BaseModel):
    kind: NICKind
    switch_id: Optional[str] = None
    ip_address: Optional[str] = None
    nw_masklen: Optional[int] = None
    default_route: Optional[str] = None


class DiskBuildEvent(str, Enum):
    CREATE_DISK_BEFORE = "create-disk-before"
    CREATE_DISK_AFTER = "create-disk-after"
    EDIT_DISK_BEFORE = "edit-disk-before"
    EDIT_DISK_AFTER = "edit-disk-after"
    CLEANUP_NOTE_BEFORE = "cleanup-note-before"
    CLEANUP_NOTE_AFTER = "cleanup-note-after"
    CLEANUP_SSH_KEY_BEFORE = "cleanup-ssh-key-before"
    CLEANUP_SSH_KEY_AFTER = "cleanup-ssh-key-after"


class ServerBuildEvent(str, Enum):
    CREATE_SERVER_BEFORE = "create-server-before"
    CREATE_SERVER_AFTER = "create-server-after"
    BOOT_BEFORE = "boot-before"
    BOOT_AFTER = "boot-after"


EventHandler = Callable[..., None]


class ServerBuildRequest(BaseModel):
    """Everything the API needs to create and boot one server."""

    strategy: str
    name: str = ""

    # Common
    core: int = 1
    memory: int = 1
    description: str = ""
    tags: List[str] = Field(default_factory=list)
    icon_id: int = 0
    iso_image_id: int = 0
    boot_after_create: bool = True

    # Disk source
    source_disk_id: int = 0
    source_archive_id: int = 0
    os_type: Optional[str] = None
    disk_id: int = 0

    # Disk
    disk_plan: Optional[str] = None
    disk_connection: Optional[str] = None
    disk_size: Optional[int] = None
    distant_from: List[int] = Field(default_factory=list)

    # Network
    nics: List[NetworkInterface] = Field(default_factory=list)
    use_virtio_net_pci: Optional[bool] = None
    packet_filter_ids: List[int] = Field(default_factory=list)

    # Disk edit
    hostname: Optional[str] = None
    password: Optional[str] = None
    disable_pw_auth: Optional[bool] = None
    notes: List[str] = Field(default_factory=list)
    note_ids: List[int] = Field(default_factory=list)
    notes_ephemeral: Optional[bool] = None
    ssh_keys: List[str] = Field(default_factory=list)
    ssh_key_ids: List[int] = Field(default_factory=list)
    ssh_keys_ephemeral: Optional[bool] = None

    # Progress callbacks, called by the client as the build goes along
    disk_event_handlers: Dict[DiskBuildEvent, EventHandler] = Field(default_factory=dict)
    server_event_handlers: Dict[ServerBuildEvent, EventHandler] = Field(default_factory=dict)


class CloudClient(ABC):
    """Base interface for SakuraCloud server operations."""

    def __init__(self, config: ClientConfig) -> None:
        """Initialize the client with configuration.

        Raises:
            ValueError: If credentials are missing
        """
        config.validate_credentials()
        self.config = config

    @property
    def default_timeout(self) -> float:
        """Seconds to wait for long running operations."""
        return float(self.config.timeout)

    @abstractmethod
    def read_server(self, server_id: int) -> Server:
        """Fetch one server.

        Raises:
            ResourceNotFoundError: If there is no such server
        """
        pass

    @abstractmethod
    def find_servers(self) -> List[Server]:
        """List every server in the zone."""
        pass

    @abstractmethod
    def update_server(self, server_id: int, server: Server) -> Server:
        pass

    @abstractmethod
    def delete_server(self, server_id: int) -> Server:
        pass

    @abstractmethod
    def delete_server_with_disks(self, server_id: int, disk_ids: List[int]) -> Server:
        """Delete a server together with the given connected disks."""
        pass

    @abstractmethod
    def stop_server(self, server_id: int) -> None:
        """Request a shutdown; does not wait for it to complete."""
        pass

    @abstractmethod
    def build_server(self, request: ServerBuildRequest) -> Server:
        """Create the disk (if any) and the server described by request, then boot it."""
        pass

    def wait_until_power_state(
        self, server_id: int, state: PowerState, timeout: Optional[float] = None
    ) -> Server:
        """Poll a server until it reaches the given power state.

        Args:
            server_id: Server to poll
            state: Power state to wait for
            timeout: Seconds to wait in total; defaults to default_timeout

        Returns:
            The server as last read

        Raises:
            PowerStateTimeoutError: If the state is not reached within timeout
        """
        if timeout is None:
            timeout = self.default_timeout
        deadline = time.monotonic() + timeout

        while True:
            server = self.read_server(server_id)
            if server.instance_status == state:
                return server
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                raise PowerStateTimeoutError(
                    f"server {server_id} did not become {state.value} within {timeout} seconds"
                )
            LOGGER.debug(
                f"Waiting for server {server_id} to become {state.value} "
                f"(currently {server.instance_status.value})"
            )
            time.sleep(min(self.config.poll_interval, remaining))
