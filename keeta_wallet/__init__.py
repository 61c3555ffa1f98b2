from .config import WalletConfig, load_config
from .keystore import (
    FileKeyStore,
    KeyStore,
    KeystoreIOError,
    KeystoreParseError,
    WalletNotFoundError,
    default_keyfile,
)
from .mnemonic import MnemonicError, mnemonic_from_seed, seed_from_mnemonic
from .models import Algorithm, PrivateKeyWallet, SeedWallet, UnknownAlgorithmError, WalletRecord
from .resolver import resolve
from .search import (
    BestMatch,
    ProbeResult,
    ProbeStatus,
    ScanRangeError,
    auto_detect,
    derive_candidates,
    scan,
)

__all__ = [
    "Algorithm",
    "BestMatch",
    "FileKeyStore",
    "KeyStore",
    "KeystoreIOError",
    "KeystoreParseError",
    "MnemonicError",
    "PrivateKeyWallet",
    "ProbeResult",
    "ProbeStatus",
    "ScanRangeError",
    "SeedWallet",
    "UnknownAlgorithmError",
    "WalletConfig",
    "WalletNotFoundError",
    "WalletRecord",
    "auto_detect",
    "default_keyfile",
    "derive_candidates",
    "load_config",
    "mnemonic_from_seed",
    "resolve",
    "scan",
    "seed_from_mnemonic",
]
