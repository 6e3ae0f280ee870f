import pytest

from udpcorrelate import ClientConfig, ClientConst, UdpConfigurationError, load_config


def write(tmp_path, text):
    path = tmp_path / "config.yaml"
    path.write_text(text, encoding="utf-8")
    return str(path)


def test_load_config(tmp_path):
    path = write(tmp_path, """
servers:
  - name: echo
    host: 127.0.0.1
    port: 9999
    timeout: 2.5
    print_traffic: true
  - host: 10.0.0.2
    port: 5108
""")

    first, second = load_config(path)

    assert first == ClientConfig(host="127.0.0.1", port=9999, timeout=2.5, print_traffic=True, name="echo")
    assert second.timeout == ClientConst.DEFAULT_TIMEOUT
    assert second.print_traffic is False
    assert second.name is None


def test_zero_timeout_is_allowed():
    assert ClientConfig(host="127.0.0.1", port=1, timeout=0).timeout == 0


@pytest.mark.parametrize("text", [
    "servers: {}",
    "something_else: []",
    "servers:\n  - host: 127.0.0.1",
    "servers:\n  - 127.0.0.1",
    "servers:\n  - host: 127.0.0.1\n    port: 70000",
    "servers:\n  - host: 127.0.0.1\n    port: '9999'",
    "servers:\n  - host: 127.0.0.1\n    port: 9999\n    timeout: -1",
    "servers: [unclosed",
    "servers:\n  - host: 127.0.0.1\n    port: 9999\n    print_traffic: 'false'",
])
def test_invalid_config(tmp_path, text):
    with pytest.raises(UdpConfigurationError):
        load_config(write(tmp_path, text))


def test_missing_file(tmp_path):
    with pytest.raises(UdpConfigurationError):
        load_config(str(tmp_path / "missing.yaml"))


def test_print_traffic_must_be_bool():
    with pytest.raises(UdpConfigurationError):
        ClientConfig(host="127.0.0.1", port=9999, print_traffic="false")
