import logging

import pytest

from infrakit_sakuracloud.instance.ostype import OS_TYPE_SHORT_NAMES, ArchiveOSType
from infrakit_sakuracloud.instance.pipeline import new_build_request
from infrakit_sakuracloud.instance.strategy import (
    Capabilities,
    ServerStrategy,
    StrategyKind,
    select_strategy,
)
from infrakit_sakuracloud.instance.types import Properties, parse_properties


def test_create_from_source_disk():
    strategy = select_strategy(
        parse_properties({"Name": "web-abc123", "SourceDiskID": 123456789012})
    )
    assert strategy.kind is StrategyKind.FROM_DISK
    assert strategy.name == "web-abc123"
    assert strategy.source_disk_id == 123456789012
    assert strategy.capabilities.disk_edit


def test_source_disk_takes_precedence_over_archive():
    strategy = select_strategy(
        parse_properties({"SourceDiskID": 1, "SourceArchiveID": 2, "OSType": "centos"})
    )
    assert strategy.kind is StrategyKind.FROM_DISK


def test_create_from_source_archive():
    strategy = select_strategy(parse_properties({"SourceArchiveID": 123456789012}))
    assert strategy.kind is StrategyKind.FROM_ARCHIVE
    assert strategy.source_archive_id == 123456789012


def test_create_blank_disk():
    strategy = select_strategy(Properties())
    assert strategy.kind is StrategyKind.BLANK_DISK
    assert strategy.capabilities.disk
    assert not strategy.capabilities.disk_edit
    assert strategy.capabilities.simple_switch


@pytest.mark.parametrize("os_type", ["centos", "ubuntu", "debian", "freebsd", "site-guard"])
def test_create_public_image_unix(os_type):
    strategy = select_strategy(parse_properties({"OSType": os_type, "Password": "secret"}))
    assert strategy.kind is StrategyKind.PUBLIC_IMAGE_UNIX
    assert strategy.os_type is ArchiveOSType(os_type)
    assert strategy.password == "secret"
    assert new_build_request(strategy).password == "secret"


@pytest.mark.parametrize("os_type", [t for t in OS_TYPE_SHORT_NAMES if t.startswith("windows")])
def test_create_public_image_windows(os_type):
    strategy = select_strategy(parse_properties({"OSType": os_type, "Password": "secret"}))
    assert strategy.kind is StrategyKind.PUBLIC_IMAGE_WINDOWS
    assert strategy.os_type.is_windows
    assert strategy.password is None
    assert new_build_request(strategy).password is None
    assert not strategy.capabilities.disk_edit


def test_unknown_os_type_is_custom(caplog):
    with caplog.at_level(logging.WARNING):
        strategy = select_strategy(parse_properties({"OSType": "plan9"}))
    assert strategy.kind is StrategyKind.PUBLIC_IMAGE_UNIX
    assert strategy.os_type is ArchiveOSType.CUSTOM
    assert "Unknown OSType 'plan9'" in caplog.text


def test_connect_existing_disk():
    strategy = select_strategy(
        parse_properties({"DiskMode": "connect", "DiskID": 123456789012})
    )
    assert strategy.kind is StrategyKind.FROM_EXISTING_DISK
    assert strategy.disk_id == 123456789012
    assert not strategy.capabilities.disk
    assert strategy.capabilities.network


def test_diskless():
    strategy = select_strategy(parse_properties({"DiskMode": "diskless"}))
    assert strategy.kind is StrategyKind.DISKLESS
    assert strategy.capabilities == Capabilities(network=True, server_events=True)


def test_unknown_disk_mode():
    with pytest.raises(ValueError, match="Unknown DiskMode: attach"):
        select_strategy(parse_properties({"DiskMode": "attach"}))


def test_capability_table():
    editable = {
        kind for kind in StrategyKind if kind.capabilities.switch_with_editable_disk
    }
    assert editable == {
        StrategyKind.FROM_DISK,
        StrategyKind.FROM_ARCHIVE,
        StrategyKind.PUBLIC_IMAGE_UNIX,
    }
    for kind in StrategyKind:
        assert kind.capabilities.common
        assert kind.capabilities.network
        assert kind.capabilities.server_events
        assert kind.capabilities.disk_events == kind.capabilities.disk
        assert kind.capabilities.disk_edit == kind.capabilities.switch_with_editable_disk


def test_strategy_capabilities_override():
    caps = Capabilities(common=False)
    strategy = ServerStrategy(StrategyKind.DISKLESS, "name", capabilities=caps)
    assert strategy.capabilities is caps
    assert str(strategy.kind) == "diskless"


def test_os_type_from_str():
    assert ArchiveOSType.from_str("ubuntu") is ArchiveOSType.UBUNTU
    assert ArchiveOSType.from_str("windows2016-sql-web").is_windows
    assert ArchiveOSType.from_str("") is ArchiveOSType.CUSTOM
    assert "custom" not in OS_TYPE_SHORT_NAMES
