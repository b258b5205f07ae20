"""
Configuration handling for the SakuraCloud instance plugin.
"""

import logging
import os
from typing import Any, Dict, List, Mapping, Optional

import yaml
from filecache import FCPath
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    PositiveFloat,
    PositiveInt,
    conint,
    constr,
    field_validator,
)

from infrakit_sakuracloud import PLUGIN_NAME, __version__

LOGGER = logging.getLogger(__name__)

DEFAULT_ZONE = "is1b"
DEFAULT_VERBOSITY = 4

# Environment variables consulted when the config file and command line are silent
ENV_ACCESS_TOKEN = "SAKURACLOUD_ACCESS_TOKEN"
ENV_ACCESS_TOKEN_SECRET = "SAKURACLOUD_ACCESS_TOKEN_SECRET"
ENV_ZONE = "SAKURACLOUD_ZONE"


class ClientConfig(BaseModel, validate_assignment=True):
    """Config options for the SakuraCloud API client"""

    model_config = ConfigDict(extra="forbid")

    token: Optional[str] = None
    secret: Optional[str] = None
    zone: Optional[constr(min_length=1)] = DEFAULT_ZONE

    # Seconds
    timeout: Optional[PositiveInt] = 20 * 60
    poll_interval: Optional[PositiveFloat] = 5.0

    user_agent: str = f"{PLUGIN_NAME}:{__version__}"

    def validate_credentials(self) -> None:
        """Check that everything needed to talk to the API is present.

        Raises:
            ValueError: If token, secret or zone is missing
        """
        missing = [
            name for name in ("token", "secret", "zone") if not getattr(self, name)
        ]
        if missing:
            raise ValueError(
                "\n".join(f'"{name}" is required' for name in missing)
            )


class PluginConfig(BaseModel, validate_assignment=True):
    """Main configuration object.

    Must be created and populated like::

        config = load_config(args.config)
        config.overload_from_cli(vars(args))
        config.overload_from_env(os.environ)
    """

    model_config = ConfigDict(extra="forbid")

    name: constr(min_length=1) = "instance-sakuracloud"
    log: conint(ge=0, le=5) = DEFAULT_VERBOSITY
    namespace_tags: List[str] = []
    client: ClientConfig = Field(default_factory=ClientConfig)

    @field_validator("namespace_tags", mode="before")
    @classmethod
    def split_namespace_tags(cls, value: Any) -> Any:
        # Each entry may itself hold several comma-separated tags
        if isinstance(value, str):
            value = [value]
        if isinstance(value, (list, tuple)):
            tags = []
            for item in value:
                if isinstance(item, str):
                    tags.extend(v.strip() for v in item.split(",") if v.strip())
                else:
                    tags.append(item)
            return tags
        return value

    def namespace(self) -> Dict[str, str]:
        """Parse the namespace tags into a mapping.

        Returns:
            Dictionary of tag key to tag value

        Raises:
            ValueError: If an entry is not formatted as key=value
        """
        namespace = {}
        for tag_kv in self.namespace_tags:
            kv = tag_kv.split("=")
            if len(kv) != 2:
                raise ValueError(
                    f"Namespace tags must be formatted as key=value: {tag_kv!r}"
                )
            namespace[kv[0]] = kv[1]
        return namespace

    def overload_from_env(self, environ: Optional[Mapping[str, str]] = None) -> None:
        """Fill client settings not given explicitly from the environment.

        Args:
            environ: Environment mapping; defaults to os.environ
        """
        if environ is None:
            environ = os.environ
        for attr_name, env_name in (
            ("token", ENV_ACCESS_TOKEN),
            ("secret", ENV_ACCESS_TOKEN_SECRET),
            ("zone", ENV_ZONE),
        ):
            if attr_name not in self.client.model_fields_set and environ.get(env_name):
                setattr(self.client, attr_name, environ[env_name])

    def overload_from_cli(self, cli_args: Optional[Dict[str, Any]] = None) -> None:
        """Overload PluginConfig object with command line arguments.

        Args:
            cli_args: Command line arguments as a dictionary
        """
        if cli_args is None:
            return
        for attr_name in ("name", "log", "namespace_tags"):
            if attr_name in cli_args and cli_args[attr_name] is not None:
                val = getattr(self, attr_name)
                if val and val != cli_args[attr_name]:
                    LOGGER.warning(
                        f"Overloading {attr_name}={val} with CLI={cli_args[attr_name]}"
                    )
                setattr(self, attr_name, cli_args[attr_name])
        for attr_name in ("token", "secret", "zone"):
            if attr_name in cli_args and cli_args[attr_name] is not None:
                val = getattr(self.client, attr_name)
                if val is not None and val != cli_args[attr_name]:
                    LOGGER.warning(
                        f"Overloading client.{attr_name} with CLI value"
                    )
                setattr(self.client, attr_name, cli_args[attr_name])


def load_config(config_file: Optional[str] = None) -> PluginConfig:
    """Load configuration from a YAML file.

    Args:
        config_file: Path to the configuration file

    Returns:
        PluginConfig object containing the configuration

    Raises:
        FileNotFoundError: If the file cannot be found
        ValueError: If the file cannot be loaded or is invalid
    """
    if config_file:
        if not os.path.exists(config_file):
            raise FileNotFoundError(f"Configuration file not found: {config_file}")

        with FCPath(config_file).open(mode="r") as f:
            config_dict = yaml.safe_load(f)

        if config_dict is None:
            config_dict = {}
        if not isinstance(config_dict, dict):
            raise ValueError("Configuration file must contain a YAML dictionary")
    else:
        config_dict = {}

    # Let the user omit the client section entirely
    if "client" not in config_dict or config_dict["client"] is None:
        config_dict["client"] = {}

    return PluginConfig(**config_dict)
