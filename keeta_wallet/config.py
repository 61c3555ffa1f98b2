"""Per-invocation configuration: keystore location and target network."""

from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional
import os

from keeta_network.client import DEFAULT_TIMEOUT, NetworkConfig, network_config

from .keystore import FileKeyStore, default_keyfile

ENV_NETWORK = "KEETA_NETWORK"
ENV_KEYFILE = "KEETA_KEYFILE"
ENV_API_URL = "KEETA_API_URL"

DEFAULT_NETWORK = "test"


@dataclass(frozen=True)
class WalletConfig:
    keyfile: Path
    network: str = DEFAULT_NETWORK
    api_url: Optional[str] = None
    timeout: float = DEFAULT_TIMEOUT

    def keystore(self) -> FileKeyStore:
        return FileKeyStore(self.keyfile)

    def network_config(self) -> NetworkConfig:
        return network_config(self.network, api_url=self.api_url, timeout=self.timeout)


def load_config(
    keyfile: Optional[str] = None,
    network: Optional[str] = None,
    environ: Optional[Mapping[str, str]] = None,
    home: Optional[Path] = None,
) -> WalletConfig:
    """Build a config from explicit values, then environment, then defaults."""

    env = os.environ if environ is None else environ
    path = keyfile or env.get(ENV_KEYFILE)
    return WalletConfig(
        keyfile=Path(path).expanduser() if path else default_keyfile(home),
        network=network or env.get(ENV_NETWORK) or DEFAULT_NETWORK,
        api_url=env.get(ENV_API_URL) or None,
    )
