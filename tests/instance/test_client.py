import pytest

from infrakit_sakuracloud.common.config import ClientConfig
from infrakit_sakuracloud.common.errors import PowerStateTimeoutError
from infrakit_sakuracloud.instance.client import PowerState, Server


def test_credentials_required(fake_client):
    with pytest.raises(ValueError) as exc_info:
        type(fake_client)(ClientConfig(token="token"))
    assert str(exc_info.value) == '"secret" is required'


def test_default_timeout(fake_client):
    assert fake_client.default_timeout == 5.0


def test_server_state():
    server = Server(id=123456789012, instance_status="up")
    assert server.is_up()
    assert server.str_id == "123456789012"
    assert not Server(id=1).is_up()


def test_wait_until_power_state(fake_client):
    server = fake_client.add_server(instance_status=PowerState.UP)
    fake_client.reads_until_down = 3
    fake_client.stop_server(server.id)

    result = fake_client.wait_until_power_state(server.id, PowerState.DOWN, timeout=5)

    assert result.instance_status == PowerState.DOWN
    reads = [c for c in fake_client.calls if c[0] == "read_server"]
    assert len(reads) == 4


def test_wait_until_power_state_already_reached(fake_client):
    server = fake_client.add_server(instance_status=PowerState.DOWN)
    fake_client.wait_until_power_state(server.id, PowerState.DOWN)
    assert fake_client.calls == [("read_server", server.id)]


def test_wait_until_power_state_timeout(fake_client):
    server = fake_client.add_server(instance_status=PowerState.UP)
    with pytest.raises(PowerStateTimeoutError, match="did not become down"):
        fake_client.wait_until_power_state(server.id, PowerState.DOWN, timeout=0.05)
