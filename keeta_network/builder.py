"""Assemble, sign and publish ledger blocks."""

from __future__ import annotations

import hashlib
import json
import time
from enum import Enum
from typing import Callable, List, Optional, Tuple

from .accounts import Account, token_identifier
from .client import AccountNotActivatedError, NetworkClient
from .models import Block, Operation


class BuilderError(ValueError):
    """Raised when a block cannot be assembled from the queued operations."""


class OperationType(Enum):
    SEND = "SEND"
    SET_INFO = "SET_INFO"
    TOKEN_ADMIN_SUPPLY = "TOKEN_ADMIN_SUPPLY"
    TOKEN_ADMIN_MODIFY_BALANCE = "TOKEN_ADMIN_MODIFY_BALANCE"
    CREATE_IDENTIFIER = "CREATE_IDENTIFIER"


class AccessMode(Enum):
    PUBLIC = "public"
    PRIVATE = "private"


class BlockBuilder:
    """Queue operations for one account and publish them as a signed block.

    ``signer`` holds the private key; ``account`` is the ledger account the
    block is appended to and defaults to the signer. Token administration
    blocks are appended to the token account but signed by its owner.
    """

    def __init__(
        self,
        client: NetworkClient,
        signer: Account,
        account: Optional[Account] = None,
        time_provider: Optional[Callable[[], int]] = None,
    ) -> None:
        self._client = client
        self._signer = signer
        self._account = account or signer
        self._time_provider = time_provider or _unix_timestamp
        self._operations: List[Operation] = []
        self._head_loaded = False
        self._head: Optional[str] = None

    @property
    def account(self) -> Account:
        return self._account

    @property
    def operations(self) -> Tuple[Operation, ...]:
        return tuple(self._operations)

    def send(self, to: Account, amount: int, token: str) -> None:
        if amount <= 0:
            raise BuilderError("Send amount must be positive.")
        self._operations.append(
            Operation(
                type=OperationType.SEND.value,
                to=to.address,
                amount=amount,
                token=token,
            )
        )

    def modify_token_supply(self, delta: int) -> None:
        if delta == 0:
            raise BuilderError("Supply change must be non-zero.")
        self._operations.append(
            Operation(type=OperationType.TOKEN_ADMIN_SUPPLY.value, amount=delta)
        )

    def modify_token_balance(self, token: str, delta: int, account: Account) -> None:
        if delta == 0:
            raise BuilderError("Balance change must be non-zero.")
        self._operations.append(
            Operation(
                type=OperationType.TOKEN_ADMIN_MODIFY_BALANCE.value,
                token=token,
                amount=delta,
                to=account.address,
            )
        )

    def set_info(
        self,
        name: str,
        description: str = "",
        metadata: str = "",
        access: AccessMode = AccessMode.PUBLIC,
    ) -> None:
        self._operations.append(
            Operation(
                type=OperationType.SET_INFO.value,
                name=name,
                description=description,
                metadata=metadata,
                default_permission=access.value,
            )
        )

    def create_identifier(self) -> Account:
        previous = self._previous_hash() or ""
        anchor = hashlib.sha3_256(
            f"{previous}:{len(self._operations)}".encode("utf-8")
        ).digest()
        identifier = token_identifier(self._account, anchor)
        self._operations.append(
            Operation(
                type=OperationType.CREATE_IDENTIFIER.value,
                identifier=identifier.address,
            )
        )
        return identifier

    def build(self) -> Block:
        if not self._operations:
            raise BuilderError("No operations to publish.")
        unsigned = Block(
            account=self._account.address,
            signer=self._signer.address,
            previous=self._previous_hash(),
            timestamp=self._time_provider(),
            operations=list(self._operations),
        )
        block_hash = hashlib.sha3_256(_canonical(unsigned)).hexdigest()
        signature = self._signer.sign(bytes.fromhex(block_hash))
        return unsigned.model_copy(update={"hash": block_hash, "signature": signature.hex()})

    def publish(self) -> List[str]:
        block = self.build()
        published = self._client.publish([block])
        self._operations = []
        self._head = block.hash
        self._head_loaded = True
        return published

    def _previous_hash(self) -> Optional[str]:
        if not self._head_loaded:
            try:
                self._head = self._client.account_state(self._account).head_block
            except AccountNotActivatedError:
                self._head = None
            self._head_loaded = True
        return self._head


def _canonical(block: Block) -> bytes:
    payload = block.to_wire()
    payload.pop("hash", None)
    payload.pop("signature", None)
    return json.dumps(payload, sort_keys=True, separators=(",", ":")).encode("utf-8")


def _unix_timestamp() -> int:
    return int(time.time())
