"""HTTP client for a Keeta representative node.

The request paths and JSON shapes below are this package's own node
interface. The preset hosts are the public Keeta representatives, which
serve a different API; point ``KEETA_API_URL`` at a compatible node before
publishing blocks.
"""

from __future__ import annotations

import http.client
import json
import logging
import urllib.error
import urllib.parse
import urllib.request
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional, Sequence, Type, TypeVar

from pydantic import BaseModel, ValidationError

from .accounts import Account
from .models import AccountState, Block, HistoryEntry, NetworkInfo

if TYPE_CHECKING:
    from .builder import BlockBuilder

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10.0

Transport = Callable[[str, str, Optional[Dict[str, Any]], float], Any]

_ModelT = TypeVar("_ModelT", bound=BaseModel)


class NetworkError(RuntimeError):
    """Raised when the node cannot be reached or returns an unusable response."""

    def __init__(self, message: str, status: Optional[int] = None) -> None:
        super().__init__(message)
        self.status = status


class AccountNotActivatedError(NetworkError):
    """Raised when the ledger has no record of the requested account."""


@dataclass(frozen=True)
class NetworkConfig:
    name: str
    api_url: str
    timeout: float = DEFAULT_TIMEOUT


PRESET_NETWORKS: Dict[str, NetworkConfig] = {
    "test": NetworkConfig(name="test", api_url="https://rep1.test.network.api.keeta.com/api"),
    "main": NetworkConfig(name="main", api_url="https://rep1.main.network.api.keeta.com/api"),
}


def network_config(
    name: str, api_url: Optional[str] = None, timeout: float = DEFAULT_TIMEOUT
) -> NetworkConfig:
    normalized = name.strip().lower()
    if normalized not in PRESET_NETWORKS:
        raise ValueError(
            f"Unknown network: {name}. Use {', '.join(sorted(PRESET_NETWORKS))}."
        )
    preset = PRESET_NETWORKS[normalized]
    return NetworkConfig(
        name=preset.name,
        api_url=api_url or preset.api_url,
        timeout=timeout,
    )


def urllib_transport(
    method: str, url: str, body: Optional[Dict[str, Any]], timeout: float
) -> Any:
    data = json.dumps(body).encode("utf-8") if body is not None else None
    request = urllib.request.Request(
        url,
        data=data,
        headers={"Accept": "application/json", "Content-Type": "application/json"},
        method=method,
    )

    try:
        with urllib.request.urlopen(request, timeout=timeout) as response:
            raw = response.read().decode("utf-8")
    except urllib.error.HTTPError as exc:
        raise NetworkError(f"{method} {url} failed with HTTP {exc.code}.", status=exc.code) from exc
    except (OSError, http.client.HTTPException) as exc:
        raise NetworkError(f"{method} {url} failed: {exc}") from exc
    except UnicodeDecodeError as exc:
        raise NetworkError(f"{method} {url} returned a body that is not UTF-8.") from exc

    if not raw:
        return None
    try:
        return json.loads(raw)
    except json.JSONDecodeError as exc:
        raise NetworkError(f"{method} {url} returned invalid JSON.") from exc


class NetworkClient:
    """Read ledger state and publish blocks, optionally on behalf of an account."""

    def __init__(
        self,
        config: NetworkConfig,
        account: Optional[Account] = None,
        transport: Optional[Transport] = None,
    ) -> None:
        self._config = config
        self._account = account
        self._transport = transport or urllib_transport
        self._network_info: Optional[NetworkInfo] = None

    @property
    def network(self) -> str:
        return self._config.name

    @property
    def account(self) -> Optional[Account]:
        return self._account

    def account_state(self, account: Optional[Account] = None) -> AccountState:
        return self._parse(AccountState, self.account_payload(account))

    def account_payload(self, account: Optional[Account] = None) -> Any:
        """Return the node's account state response without validation."""

        target = self._target(account)
        try:
            payload = self._request("GET", f"/node/ledger/account/{target.address}")
        except NetworkError as exc:
            if exc.status == 404:
                raise AccountNotActivatedError(
                    f"Account {target.address} is not activated on {self.network}.",
                    status=404,
                ) from exc
            raise
        return payload

    def all_balances(self, account: Optional[Account] = None) -> Dict[str, int]:
        return self.account_state(account).balance_map()

    def balance(self, token: str, account: Optional[Account] = None) -> int:
        return self.all_balances(account).get(token, 0)

    def history(self, depth: int = 10, account: Optional[Account] = None) -> List[HistoryEntry]:
        target = self._target(account)
        payload = self._request(
            "GET", f"/node/ledger/account/{target.address}/history?{_query(limit=depth)}"
        )
        return [self._parse(HistoryEntry, item) for item in _field(payload, "history")]

    def chain(self, depth: int = 10, account: Optional[Account] = None) -> List[Block]:
        target = self._target(account)
        payload = self._request(
            "GET", f"/node/ledger/account/{target.address}/chain?{_query(limit=depth)}"
        )
        return [self._parse(Block, item) for item in _field(payload, "blocks")]

    def network_info(self) -> NetworkInfo:
        if self._network_info is None:
            self._network_info = self._parse(
                NetworkInfo, self._request("GET", "/node/ledger/network")
            )
        return self._network_info

    def base_token(self) -> str:
        return self.network_info().base_token

    def publish(self, blocks: Sequence[Block]) -> List[str]:
        if not blocks:
            raise ValueError("Nothing to publish.")
        logger.info("Publishing %d block(s) to %s", len(blocks), self.network)
        self._request("POST", "/node/publish", {"blocks": [block.to_wire() for block in blocks]})
        return [block.hash for block in blocks]

    def recover(self) -> int:
        """Republish blocks the node holds as pending for this account."""

        target = self._target(None)
        payload = self._request("GET", f"/node/ledger/account/{target.address}/pending")
        pending = [self._parse(Block, item) for item in _field(payload, "blocks")]
        if pending:
            self.publish(pending)
        return len(pending)

    def init_builder(self, account: Optional[Account] = None) -> "BlockBuilder":
        from .builder import BlockBuilder

        return BlockBuilder(client=self, signer=self._require_signer(), account=account)

    def generate_identifier(self) -> Account:
        builder = self.init_builder()
        identifier = builder.create_identifier()
        builder.publish()
        return identifier

    def _require_signer(self) -> Account:
        if self._account is None or not self._account.has_private_key:
            raise NetworkError("A signing account is required for this operation.")
        return self._account

    def _target(self, account: Optional[Account]) -> Account:
        target = account or self._account
        if target is None:
            raise ValueError("No account given for the ledger query.")
        return target

    def _request(self, method: str, path: str, body: Optional[Dict[str, Any]] = None) -> Any:
        url = self._config.api_url.rstrip("/") + path
        logger.debug("%s %s", method, url)
        return self._transport(method, url, body, self._config.timeout)

    def _parse(self, model: Type[_ModelT], payload: Any) -> _ModelT:
        try:
            return model.model_validate(payload)
        except ValidationError as exc:
            raise NetworkError(f"Unexpected {model.__name__} response: {exc}") from exc


def _query(**params: Any) -> str:
    return urllib.parse.urlencode(params)


def _field(payload: Any, name: str) -> List[Any]:
    if not isinstance(payload, dict) or not isinstance(payload.get(name, []), list):
        raise NetworkError(f"Response is missing the {name!r} list.")
    return payload.get(name, [])
