from .accounts import (
    Account,
    InvalidAddressError,
    InvalidKeyError,
    InvalidSeedError,
    KeyAlgorithm,
    account_from_address,
    account_from_private_key,
    decode_seed,
    derive_account,
    generate_seed,
)
from .builder import AccessMode, BlockBuilder, BuilderError, OperationType
from .client import (
    PRESET_NETWORKS,
    AccountNotActivatedError,
    NetworkClient,
    NetworkConfig,
    NetworkError,
    network_config,
)
from .models import AccountState, Block, HistoryEntry, NetworkInfo, Operation, TokenBalance

__all__ = [
    "AccessMode",
    "Account",
    "AccountNotActivatedError",
    "AccountState",
    "Block",
    "BlockBuilder",
    "BuilderError",
    "HistoryEntry",
    "InvalidAddressError",
    "InvalidKeyError",
    "InvalidSeedError",
    "KeyAlgorithm",
    "NetworkClient",
    "NetworkConfig",
    "NetworkError",
    "NetworkInfo",
    "Operation",
    "OperationType",
    "PRESET_NETWORKS",
    "TokenBalance",
    "account_from_address",
    "account_from_private_key",
    "decode_seed",
    "derive_account",
    "generate_seed",
    "network_config",
]
