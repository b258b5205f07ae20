"""
Command-line interface for the SakuraCloud instance plugin.

These commands work offline: they check a properties document and show how it
would be built without talking to the API.
"""

import argparse
import logging
import sys
from dataclasses import asdict
from typing import List, Optional

import pydantic
import yaml
from filecache import FCPath

from infrakit_sakuracloud import PLUGIN_NAME, __version__
from infrakit_sakuracloud.common.config import PluginConfig, load_config
from infrakit_sakuracloud.common.errors import PluginError
from infrakit_sakuracloud.common.logging_config import (
    configure_logging,
    log_level_from_verbosity,
)
from infrakit_sakuracloud.instance.pipeline import prepare_build_request
from infrakit_sakuracloud.instance.rules import validate_properties
from infrakit_sakuracloud.instance.strategy import select_strategy
from infrakit_sakuracloud.instance.types import parse_properties

logger = logging.getLogger(__name__)


def read_properties_file(path: str) -> str:
    with FCPath(path).open(mode="r") as fp:
        return fp.read()


def validate_cmd(args: argparse.Namespace, config: PluginConfig) -> int:
    """
    Validate a properties document.

    Parameters:
        args: Command-line arguments
        config: Configuration
    """
    try:
        properties = parse_properties(read_properties_file(args.properties))
        validate_properties(properties)
    except (PluginError, OSError) as e:
        print(f"{args.properties}: invalid", file=sys.stderr)
        print(e, file=sys.stderr)
        return 1

    print(f"{args.properties}: OK")
    return 0


def plan_cmd(args: argparse.Namespace, config: PluginConfig) -> int:
    """
    Show the strategy selected for a properties document and the request it builds.

    Parameters:
        args: Command-line arguments
        config: Configuration
    """
    try:
        properties = parse_properties(read_properties_file(args.properties))
        validate_properties(properties)
        strategy = select_strategy(properties)
        request = prepare_build_request(strategy, properties)
    except (PluginError, OSError) as e:
        print(e, file=sys.stderr)
        return 1

    plan = {
        "strategy": strategy.kind.label,
        "capabilities": asdict(strategy.capabilities),
        "namespace_tags": config.namespace(),
        "request": request.model_dump(
            mode="json", exclude={"disk_event_handlers", "server_event_handlers"}
        ),
    }
    print(yaml.safe_dump(plan, sort_keys=False), end="")
    return 0


def version_cmd(args: argparse.Namespace, config: PluginConfig) -> int:
    print(f"{PLUGIN_NAME} {__version__}")
    return 0


def add_common_args(parser: argparse.ArgumentParser) -> None:
    """Add common arguments to all command parsers."""
    parser.add_argument("--config", help="Path to configuration file")
    parser.add_argument("--name", help="Plugin name to advertise for discovery")
    parser.add_argument(
        "--log",
        type=int,
        choices=range(0, 6),
        help="Logging level. 0 is least verbose. Max is 5",
    )
    parser.add_argument(
        "--namespace-tags",
        action="append",
        help="key=value resource tags to namespace all resources created "
        "(comma-separated, repeatable)",
    )
    parser.add_argument("--token", help="SakuraCloud token")
    parser.add_argument("--secret", help="SakuraCloud secret")
    parser.add_argument("--zone", help="SakuraCloud zone (default: is1b)")


def main(argv: Optional[List[str]] = None) -> None:
    """Main entry point for the CLI."""
    parser = argparse.ArgumentParser(description="SakuraCloud instance plugin")
    subparsers = parser.add_subparsers(dest="command", help="Command to run")
    subparsers.required = True

    validate_parser = subparsers.add_parser(
        "validate", help="Check a properties document for consistency"
    )
    add_common_args(validate_parser)
    validate_parser.add_argument("properties", help="Path to properties file (JSON or YAML)")
    validate_parser.set_defaults(func=validate_cmd)

    plan_parser = subparsers.add_parser(
        "plan", help="Show how a properties document would be built"
    )
    add_common_args(plan_parser)
    plan_parser.add_argument("properties", help="Path to properties file (JSON or YAML)")
    plan_parser.set_defaults(func=plan_cmd)

    version_parser = subparsers.add_parser("version", help="Print the plugin version")
    add_common_args(version_parser)
    version_parser.set_defaults(func=version_cmd)

    args = parser.parse_args(argv)

    try:
        config = load_config(args.config)
        config.overload_from_cli(vars(args))
        config.overload_from_env()
        config.namespace()
    except (pydantic.ValidationError, ValueError, FileNotFoundError) as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        sys.exit(1)

    configure_logging(level=log_level_from_verbosity(config.log))
    logger.debug(f"Running {args.command}")

    sys.exit(args.func(args, config))


if __name__ == "__main__":
    main()
