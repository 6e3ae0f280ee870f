"""
Client configuration.

Configuration is read from a YAML file with a list of servers, e.g.:

    servers:
      - name: echo
        host: 127.0.0.1
        port: 9999
        timeout: 2.5
        print_traffic: true
"""

from dataclasses import dataclass
from typing import Optional

import yaml

from .exceptions import UdpConfigurationError
from .io.client import ClientConst


class ConfigConst:
    """Constants for configuration"""
    MIN_PORT = 1
    MAX_PORT = 65535


@dataclass(frozen=True)
class ClientConfig:
    """Settings for a single CorrelatingDatagramClient"""
    host: str
    port: int
    timeout: float = ClientConst.DEFAULT_TIMEOUT
    print_traffic: bool = False
    name: Optional[str] = None

    def __post_init__(self):
        if not isinstance(self.host, str) or not self.host:
            raise UdpConfigurationError(f"host must be a non-empty string, got {self.host!r}")
        if isinstance(self.port, bool) or not isinstance(self.port, int):
            raise UdpConfigurationError(f"port must be an integer, got {self.port!r}")
        if not ConfigConst.MIN_PORT <= self.port <= ConfigConst.MAX_PORT:
            raise UdpConfigurationError(f"port must be between {ConfigConst.MIN_PORT} and {ConfigConst.MAX_PORT}, got {self.port}")
        if isinstance(self.timeout, bool) or not isinstance(self.timeout, (int, float)):
            raise UdpConfigurationError(f"timeout must be a number of seconds, got {self.timeout!r}")
        if self.timeout < 0:
            raise UdpConfigurationError(f"timeout must not be negative, got {self.timeout}")
        if not isinstance(self.print_traffic, bool):
            raise UdpConfigurationError(f"print_traffic must be true or false, got {self.print_traffic!r}")


def load_config(path: str) -> list[ClientConfig]:
    """Load a list of client configurations from a YAML file"""
    try:
        with open(path, "r", encoding="utf-8") as f:
            config = yaml.safe_load(f)
    except OSError as e:
        raise UdpConfigurationError(f"Cannot read config file {path}: {e}") from e
    except yaml.YAMLError as e:
        raise UdpConfigurationError(f"Invalid YAML in {path}: {e}") from e

    if not isinstance(config, dict) or 'servers' not in config:
        raise UdpConfigurationError(f"{path} has no 'servers' section")
    if not isinstance(config['servers'], list):
        raise UdpConfigurationError("'servers' must be a list")

    configs = []
    for i, server in enumerate(config['servers']):
        if not isinstance(server, dict):
            raise UdpConfigurationError(f"servers[{i}] must be a mapping")
        missing = [f for f in ('host', 'port') if f not in server]
        if missing:
            raise UdpConfigurationError(f"servers[{i}] is missing {', '.join(missing)}")
        configs.append(ClientConfig(
            host=server['host'],
            port=server['port'],
            timeout=server.get('timeout', ClientConst.DEFAULT_TIMEOUT),
            print_traffic=server.get('print_traffic', False),
            name=server.get('name'),
        ))
    return configs
