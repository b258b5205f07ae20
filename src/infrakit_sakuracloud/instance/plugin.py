"""
SakuraCloud instance plugin.

Every operation is self-contained: it re-reads whatever it needs from the API
and shares nothing with other calls except the client, the namespace tags and
the random source used for server names, all fixed at construction.
"""

import logging
import random
from typing import Any, Dict, List, Mapping, Optional

from infrakit_sakuracloud import PLUGIN_NAME, PLUGIN_URL, __version__
from infrakit_sakuracloud.common.errors import (
    CloudAPIError,
    DecodeError,
    RemoteOperationError,
)
from infrakit_sakuracloud.instance.client import CloudClient, PowerState
from infrakit_sakuracloud.instance.pipeline import create_instance
from infrakit_sakuracloud.instance.rules import validate_properties
from infrakit_sakuracloud.instance.tags import (
    decode_tags,
    encode_tags,
    has_different_tag,
    merge_tags,
    random_suffix,
    tokens_to_map,
)
from infrakit_sakuracloud.instance.types import (
    InstanceDescription,
    InstanceSpec,
    parse_properties,
    parse_tags,
)

NAME_SUFFIX_LENGTH = 6

STARTUP_SCRIPT_TEMPLATE = f"""#!/bin/sh
# @sacloud-once
# @sacloud-desc provisioning by {PLUGIN_NAME}
{{init}}
exit 0"""


def parse_instance_id(instance_id: str) -> int:
    try:
        return int(instance_id, 10)
    except (TypeError, ValueError) as e:
        raise DecodeError(f"invalid instance ID {instance_id!r}") from e


def startup_script(init: str) -> str:
    """Wrap an init script so that it runs once at first boot."""
    return STARTUP_SCRIPT_TEMPLATE.format(init=init)


class SakuraCloudInstancePlugin:
    """Instance plugin backed by SakuraCloud servers."""

    def __init__(
        self,
        client: CloudClient,
        namespace_tags: Optional[Mapping[str, str]] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        """Initialize the plugin.

        Args:
            client: API client
            namespace_tags: Tags applied to every server this plugin creates and
                required of every server it describes
            rng: Random source for server name suffixes
        """
        self._logger = logging.getLogger(__name__)
        self._client = client
        self._namespace_tags = dict(namespace_tags or {})
        self._rng = rng if rng is not None else random.Random()

    @property
    def namespace_tags(self) -> Dict[str, str]:
        return dict(self._namespace_tags)

    def vendor_info(self) -> Dict[str, Any]:
        return {
            "interface_spec": {"name": PLUGIN_NAME, "version": __version__},
            "url": PLUGIN_URL,
        }

    def validate(self, properties: Any) -> None:
        """Perform local validation on a provision request.

        Raises:
            DecodeError: If properties cannot be decoded
            ValidationError: With every rule violation found
        """
        self._logger.debug(f"validate {properties!r}")

        parsed = parse_properties(properties)
        validate_properties(parsed)

        self._logger.debug(f"Validated: {parsed.model_dump(by_alias=True)}")

    def provision(self, spec: InstanceSpec) -> str:
        """Create a new server based on spec.

        Returns:
            The ID of the new server

        Raises:
            DecodeError: If the properties cannot be decoded
            ValidationError: If the properties are inconsistent
            RemoteOperationError: If the server cannot be built
        """
        properties = parse_properties(spec.properties)

        name = f"{properties.name_prefix}-{random_suffix(NAME_SUFFIX_LENGTH, self._rng)}"

        # Request tags, then property tags, then namespace tags, which always win
        _, tags = merge_tags(
            parse_tags(spec), tokens_to_map(properties.tags), self._namespace_tags
        )

        startup_scripts = list(properties.startup_scripts)
        if spec.init != "":
            startup_scripts.append(startup_script(spec.init))

        properties = properties.model_copy(
            update={
                "name": name,
                "description": encode_tags(tags),
                "startup_scripts": startup_scripts,
            }
        )

        server = create_instance(self._client, properties)
        return server.str_id

    def destroy(self, instance_id: str) -> None:
        """Stop (if running) and delete a server and its disks.

        Raises:
            DecodeError: If instance_id is not a server ID
            RemoteOperationError: If any step fails; nothing is retried
        """
        server_id = parse_instance_id(instance_id)

        try:
            server = self._client.read_server(server_id)

            if server.is_up():
                self._logger.debug(f"Stopping server {server_id}")
                self._client.stop_server(server_id)
                self._client.wait_until_power_state(
                    server_id, PowerState.DOWN, self._client.default_timeout
                )

            if server.disks:
                self._client.delete_server_with_disks(server_id, list(server.disks))
            else:
                self._client.delete_server(server_id)
        except CloudAPIError as e:
            raise RemoteOperationError("Destroy", e) from e

        self._logger.info(f"Destroyed server {server_id}")

    def describe_instances(
        self, tags: Optional[Mapping[str, str]] = None, properties: bool = False
    ) -> List[InstanceDescription]:
        """Return descriptions of all servers matching the given tags.

        Args:
            tags: Tag filter; the namespace tags are added to it
            properties: Whether to include the full server record

        Raises:
            RemoteOperationError: If the servers cannot be listed
        """
        self._logger.debug(f"describe-instances {tags}")

        _, tags = merge_tags(tags, self._namespace_tags)

        try:
            servers = self._client.find_servers()
        except CloudAPIError as e:
            raise RemoteOperationError("DescribeInstances", e) from e

        self._logger.debug(f"total count: {len(servers)}")

        result = []
        for server in servers:
            server_tags = decode_tags(server.description)
            if has_different_tag(tags, server_tags):
                self._logger.debug(f"Skipping {server.name}")
                continue

            description = InstanceDescription(id=server.str_id, tags=server_tags)
            if properties:
                description.properties = server.model_dump(mode="json")

            result.append(description)

        return result

    def label(self, instance_id: str, labels: Mapping[str, str]) -> None:
        """Replace the tags of a server with labels.

        Unlike provision, nothing is merged: the existing tags, including the
        namespace and logical ID tags, are overwritten by exactly labels.

        Raises:
            DecodeError: If instance_id is not a server ID
            RemoteOperationError: If the server cannot be read or updated
        """
        self._logger.debug(f"label instance {instance_id} with {labels}")
        server_id = parse_instance_id(instance_id)

        try:
            server = self._client.read_server(server_id)
            server.description = encode_tags(labels)
            self._client.update_server(server_id, server)
        except CloudAPIError as e:
            raise RemoteOperationError("Label", e) from e
