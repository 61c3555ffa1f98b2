"""Domain models for the persisted wallet record."""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Union

from keeta_network.accounts import KeyAlgorithm


class UnknownAlgorithmError(ValueError):
    """Raised when an algorithm name is outside the supported set."""

    def __init__(self, value: object) -> None:
        super().__init__(
            f"Unknown algorithm: {value}. Use ed25519, secp256k1, or secp256r1."
        )
        self.value = value


class Algorithm(Enum):
    ED25519 = "ed25519"
    SECP256K1 = "secp256k1"
    SECP256R1 = "secp256r1"

    @property
    def key_algorithm(self) -> KeyAlgorithm:
        return _KEY_ALGORITHMS[self]

    @staticmethod
    def parse(value: Union[str, "Algorithm"]) -> "Algorithm":
        if isinstance(value, Algorithm):
            return value
        if not isinstance(value, str):
            raise UnknownAlgorithmError(value)
        normalized = value.strip().lower()
        for algorithm in Algorithm:
            if algorithm.value == normalized:
                return algorithm
        raise UnknownAlgorithmError(value)


_KEY_ALGORITHMS: Dict[Algorithm, KeyAlgorithm] = {
    Algorithm.ED25519: KeyAlgorithm.ED25519,
    Algorithm.SECP256K1: KeyAlgorithm.ECDSA_SECP256K1,
    Algorithm.SECP256R1: KeyAlgorithm.ECDSA_SECP256R1,
}

DEFAULT_ALGORITHM = Algorithm.ED25519


@dataclass(frozen=True)
class SeedWallet:
    """Wallet whose account is derived from ``seed`` at ``index``.

    ``index`` and ``algorithm`` are kept as ``None`` when the keystore file
    omitted them, so that a load/save cycle writes back the same keys.
    """

    seed: str
    index: Optional[int] = None
    algorithm: Optional[Algorithm] = None

    @property
    def effective_index(self) -> int:
        return 0 if self.index is None else self.index

    @property
    def effective_algorithm(self) -> Algorithm:
        return self.algorithm or DEFAULT_ALGORITHM

    def to_dict(self) -> Dict[str, object]:
        data: Dict[str, object] = {"seed": self.seed}
        if self.index is not None:
            data["index"] = self.index
        if self.algorithm is not None:
            data["algo"] = self.algorithm.value
        return data


@dataclass(frozen=True)
class PrivateKeyWallet:
    """Wallet imported from a raw secp256k1 private key.

    A record that also carries ``seed``/``index``/``algorithm`` keeps them for
    round-trip fidelity; the private key always wins when resolving the
    account, so the effective algorithm is always secp256k1.
    """

    private_key: str
    algorithm: Optional[Algorithm] = None
    seed: Optional[str] = None
    index: Optional[int] = None

    @property
    def effective_algorithm(self) -> Algorithm:
        return Algorithm.SECP256K1

    def to_dict(self) -> Dict[str, object]:
        data: Dict[str, object] = {}
        if self.seed is not None:
            data["seed"] = self.seed
        if self.index is not None:
            data["index"] = self.index
        if self.algorithm is not None:
            data["algo"] = self.algorithm.value
        data["privateKeySecp256k1"] = self.private_key
        return data


WalletRecord = Union[SeedWallet, PrivateKeyWallet]


def record_from_dict(data: object) -> WalletRecord:
    if not isinstance(data, dict):
        raise ValueError("Wallet record must be a JSON object.")

    seed = _optional_str(data, "seed")
    private_key = _optional_str(data, "privateKeySecp256k1")
    index = data.get("index")
    if index is not None and (isinstance(index, bool) or not isinstance(index, int) or index < 0):
        raise ValueError(f"Wallet index must be a non-negative integer, got {index!r}.")
    algo = data.get("algo")
    algorithm = Algorithm.parse(algo) if algo is not None else None

    if private_key:
        return PrivateKeyWallet(
            private_key=private_key,
            algorithm=algorithm,
            seed=seed,
            index=index,
        )
    if seed:
        return SeedWallet(seed=seed, index=index, algorithm=algorithm)
    raise ValueError("Wallet record requires a seed or a private key.")


def _optional_str(data: Dict[str, object], key: str) -> Optional[str]:
    value = data.get(key)
    if value is not None and not isinstance(value, str):
        raise ValueError(f"Wallet field {key!r} must be a string.")
    return value
