"""Text formatting for CLI output.

Lookups here are cosmetic: when a token name cannot be fetched the output
falls back to the shortened address instead of failing the command.
"""

from typing import Optional, Tuple

from keeta_network.accounts import InvalidAddressError, account_from_address
from keeta_network.client import NetworkClient, NetworkError
from keeta_wallet.search import ProbeResult, ProbeStatus

BASE_TOKEN_NAME = "KEETA"


def short(value: Optional[str], length: int = 12) -> str:
    if not value:
        return "unknown"
    if len(value) <= length:
        return value
    return value[:length] + "..."


def format_amount(amount: int, decimals: Optional[int]) -> str:
    """Render base units as a decimal string without float rounding."""

    if not decimals:
        return str(amount)
    sign = "-" if amount < 0 else ""
    whole, fraction = divmod(abs(amount), 10 ** decimals)
    fraction_text = f"{fraction:0{decimals}d}".rstrip("0")
    if not fraction_text:
        return f"{sign}{whole}"
    return f"{sign}{whole}.{fraction_text}"


def token_details(client: NetworkClient, token: str, base_token: str) -> Tuple[str, str, str]:
    """Return (name, description, kind) for a token, degrading to placeholders."""

    if token == base_token:
        return BASE_TOKEN_NAME, "Base token of the Keeta network", "Base Token"
    try:
        state = client.account_state(account_from_address(token))
    except (NetworkError, InvalidAddressError):
        return "Unknown Token", "Could not fetch token metadata", "Custom Token"
    name = state.info.name or "Unknown Token"
    description = state.info.description or "No description available"
    return name, description, "Custom Token"


def token_label(client: NetworkClient, token: str, base_token: str) -> str:
    if token == base_token:
        return f"{BASE_TOKEN_NAME} (Base Token)"
    name, _, _ = token_details(client, token, base_token)
    if name == "Unknown Token":
        return short(token)
    return f"{name} ({short(token)})"


def probe_line(result: ProbeResult) -> str:
    prefix = f"  {result.algorithm.value} [{result.index}] {short(result.address, 20)}"
    if result.status is ProbeStatus.FOUND:
        return f"{prefix} ({len(result.balances)} token(s), balance: {result.total})"
    if result.status is ProbeStatus.NO_BALANCE:
        return f"{prefix} (no balance)"
    return f"{prefix} (error: {result.error})"
