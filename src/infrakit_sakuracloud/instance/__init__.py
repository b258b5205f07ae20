"""
Instance plugin module and factory function
"""

import random
from typing import Optional

from .client import CloudClient
from .plugin import SakuraCloudInstancePlugin
from infrakit_sakuracloud.common.config import PluginConfig


def create_instance_plugin(
    config: PluginConfig, client: CloudClient, rng: Optional[random.Random] = None
) -> SakuraCloudInstancePlugin:
    """
    Create the instance plugin for a configured client.

    Args:
        config: Configuration
        client: API client built from config.client
        rng: Random source for server name suffixes

    Returns:
        A SakuraCloudInstancePlugin scoped by the configured namespace tags

    Raises:
        ValueError: If the namespace tags are malformed
    """
    return SakuraCloudInstancePlugin(client, config.namespace(), rng=rng)
