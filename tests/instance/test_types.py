import json

import pytest

from infrakit_sakuracloud.common.errors import DecodeError
from infrakit_sakuracloud.instance.types import (
    LOGICAL_ID_TAG,
    PLUGIN_CURRENT_VERSION,
    PLUGIN_VERSION_TAG,
    InstanceSpec,
    Properties,
    parse_properties,
    parse_tags,
)


def test_parse_properties_defaults():
    props = parse_properties("{}")
    assert props.core == 1
    assert props.memory == 1
    assert props.disk_mode == "create"
    assert props.disk_plan == "ssd"
    assert props.disk_connection == "virtio"
    assert props.disk_size == 20
    assert props.network_mode == "shared"
    assert props.use_nic_virtio is True
    assert props.startup_scripts_ephemeral is True
    assert props.ssh_key_ephemeral is True
    assert props.os_type == ""
    assert props.tags == []


def test_parse_properties_json_keys():
    raw = json.dumps(
        {
            "NamePrefix": "web",
            "Core": 2,
            "Memory": 4,
            "OSType": "ubuntu",
            "SSHKeyPublicKeys": ["ssh-ed25519 AAAA"],
            "NwMasklen": 24,
            "IPAddress": "192.168.0.11",
            "Tags": ["role:web", "@group=a"],
        }
    ).encode()
    props = parse_properties(raw)
    assert props.name_prefix == "web"
    assert props.core == 2
    assert props.memory == 4
    assert props.os_type == "ubuntu"
    assert props.ssh_key_public_keys == ["ssh-ed25519 AAAA"]
    assert props.nw_masklen == 24
    assert props.ip_address == "192.168.0.11"
    assert props.tags == ["role:web", "@group=a"]


def test_parse_properties_yaml():
    props = parse_properties("DiskMode: diskless\nDiskPlan: ''\nNetworkMode: disconnect\n")
    assert props.disk_mode == "diskless"
    assert props.disk_plan == ""
    assert props.network_mode == "disconnect"


def test_parse_properties_mapping_and_none():
    assert parse_properties({"Core": 3}).core == 3
    assert parse_properties(None) == Properties()


def test_parse_properties_fail():
    raw = """{
	  "NamePrefix": "bar",
	  "tags": {
	    "foo": "bar",
	  }
	}"""
    with pytest.raises(DecodeError, match="invalid properties"):
        parse_properties(raw)


def test_parse_properties_unknown_field():
    with pytest.raises(DecodeError):
        parse_properties({"NamePrefix": "bar", "Flavor": "large"})


@pytest.mark.parametrize(
    "document",
    [
        {"Core": "2"},
        {"DiskSize": 20.5},
        {"UseNicVirtIO": "yes"},
        {"Tags": "role:web"},
        {"SSHKeyIDs": ["1"]},
    ],
)
def test_parse_properties_type_mismatch(document):
    with pytest.raises(DecodeError):
        parse_properties(document)


def test_parse_properties_not_a_mapping():
    with pytest.raises(DecodeError, match="expected a mapping"):
        parse_properties("[1, 2]")


def test_parse_properties_explicit_fields_are_tracked():
    props = parse_properties({"StartupScriptsEphemeral": True})
    assert "startup_scripts_ephemeral" in props.model_fields_set
    assert "ssh_key_ephemeral" not in props.model_fields_set


def test_parse_tags():
    spec = InstanceSpec(tags={"foo": "bar", "banana": ""}, logical_id="foo")
    assert parse_tags(spec) == {
        "foo": "bar",
        "banana": "",
        LOGICAL_ID_TAG: "foo",
        PLUGIN_VERSION_TAG: PLUGIN_CURRENT_VERSION,
    }


def test_parse_tags_without_logical_id():
    spec = InstanceSpec(tags={PLUGIN_VERSION_TAG: "0"})
    assert parse_tags(spec) == {PLUGIN_VERSION_TAG: PLUGIN_CURRENT_VERSION}
