"""Wire models for ledger responses and published blocks."""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator


def decode_amount(value: Any) -> int:
    """Decode a ledger amount given as an int, a decimal string or a 0x hex string."""

    if isinstance(value, bool):
        raise ValueError("Amount must be an integer, not a boolean.")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        text = value.strip()
        negative = text.startswith("-")
        if negative:
            text = text[1:]
        if text[:2].lower() == "0x":
            magnitude = int(text[2:], 16)
        else:
            magnitude = int(text, 10)
        return -magnitude if negative else magnitude
    raise ValueError(f"Unsupported amount value: {value!r}")


class _WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class TokenBalance(_WireModel):
    token: str
    balance: int

    @field_validator("balance", mode="before")
    @classmethod
    def _decode_balance(cls, value: Any) -> int:
        return decode_amount(value)


class AccountInfo(_WireModel):
    name: str = ""
    description: str = ""
    metadata: str = ""
    default_permission: Optional[str] = Field(default=None, alias="defaultPermission")


class AccountState(_WireModel):
    account: str
    head_block: Optional[str] = Field(default=None, alias="currentHeadBlock")
    representative: Optional[str] = None
    info: AccountInfo = Field(default_factory=AccountInfo)
    balances: List[TokenBalance] = Field(default_factory=list)

    def balance_map(self) -> Dict[str, int]:
        totals: Dict[str, int] = {}
        for entry in self.balances:
            totals[entry.token] = totals.get(entry.token, 0) + entry.balance
        return totals


class Operation(_WireModel):
    type: str
    amount: Optional[int] = None
    token: Optional[str] = None
    to: Optional[str] = None
    from_: Optional[str] = Field(default=None, alias="from")
    identifier: Optional[str] = None
    name: Optional[str] = None
    description: Optional[str] = None
    metadata: Optional[str] = None
    default_permission: Optional[str] = Field(default=None, alias="defaultPermission")

    @field_validator("amount", mode="before")
    @classmethod
    def _decode_amount(cls, value: Any) -> Optional[int]:
        if value is None:
            return None
        return decode_amount(value)

    @field_serializer("amount")
    def _encode_amount(self, value: Optional[int]) -> Optional[str]:
        return None if value is None else str(value)


class Block(_WireModel):
    hash: str = ""
    account: str
    signer: Optional[str] = None
    previous: Optional[str] = None
    timestamp: Optional[int] = None
    operations: List[Operation] = Field(default_factory=list)
    signature: Optional[str] = None

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class VoteStaple(_WireModel):
    blocks_hash: str = Field(alias="blocksHash")
    blocks: List[Block] = Field(default_factory=list)


class HistoryEntry(_WireModel):
    vote_staple: VoteStaple = Field(alias="voteStaple")


class NetworkInfo(_WireModel):
    base_token: str = Field(alias="baseToken")
    network_address: Optional[str] = Field(default=None, alias="networkAddress")
