"""
Configuration for pytest.

Provides an in-memory CloudClient that records every call made to it, so tests
can check which API paths an operation took without any network access.
"""
import sys
from pathlib import Path
from typing import Dict, List, Optional

import pytest

# Add the src directory to the Python path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from infrakit_sakuracloud.common.config import ClientConfig  # noqa: E402
from infrakit_sakuracloud.common.errors import CloudAPIError, ResourceNotFoundError  # noqa: E402
from infrakit_sakuracloud.instance.client import (  # noqa: E402
    CloudClient,
    PowerState,
    Server,
    ServerBuildRequest,
)


class FakeCloudClient(CloudClient):
    """CloudClient keeping servers in a dict."""

    def __init__(self, config: Optional[ClientConfig] = None) -> None:
        if config is None:
            config = ClientConfig(token="token", secret="secret", timeout=5, poll_interval=0.01)
        super().__init__(config)
        self.servers: Dict[int, Server] = {}
        self.calls: List[tuple] = []
        self.build_requests: List[ServerBuildRequest] = []
        self.fail_on: Dict[str, Exception] = {}
        # Number of reads after stop_server before the server reports DOWN
        self.reads_until_down = 0
        self._next_id = 112233445566

    def add_server(self, **kwargs) -> Server:
        if "id" not in kwargs:
            kwargs["id"] = self._next_id
            self._next_id += 1
        server = Server(**kwargs)
        self.servers[server.id] = server
        return server

    def _record(self, name: str, *args) -> None:
        self.calls.append((name, *args))
        if name in self.fail_on:
            raise self.fail_on[name]

    def _get(self, server_id: int) -> Server:
        if server_id not in self.servers:
            raise ResourceNotFoundError(f"server {server_id} not found")
        return self.servers[server_id]

    def read_server(self, server_id: int) -> Server:
        self._record("read_server", server_id)
        server = self._get(server_id)
        if server.instance_status == PowerState.UP and ("stop_server", server_id) in self.calls:
            if self.reads_until_down <= 0:
                server.instance_status = PowerState.DOWN
            else:
                self.reads_until_down -= 1
        return server.model_copy(deep=True)

    def find_servers(self) -> List[Server]:
        self._record("find_servers")
        return [s.model_copy(deep=True) for s in self.servers.values()]

    def update_server(self, server_id: int, server: Server) -> Server:
        self._record("update_server", server_id)
        self._get(server_id)
        self.servers[server_id] = server.model_copy(deep=True)
        return server

    def delete_server(self, server_id: int) -> Server:
        self._record("delete_server", server_id)
        return self.servers.pop(self._get(server_id).id)

    def delete_server_with_disks(self, server_id: int, disk_ids: List[int]) -> Server:
        self._record("delete_server_with_disks", server_id, tuple(disk_ids))
        return self.servers.pop(self._get(server_id).id)

    def stop_server(self, server_id: int) -> None:
        self._record("stop_server", server_id)
        self._get(server_id)

    def build_server(self, request: ServerBuildRequest) -> Server:
        self._record("build_server", request.name)
        self.build_requests.append(request)
        return self.add_server(
            name=request.name,
            description=request.description,
            tags=list(request.tags),
            instance_status=PowerState.UP,
            disks=[] if request.strategy == "diskless" else [998877665544],
        )


@pytest.fixture
def fake_client() -> FakeCloudClient:
    return FakeCloudClient()


@pytest.fixture
def api_error() -> CloudAPIError:
    return CloudAPIError("API returned 503")
