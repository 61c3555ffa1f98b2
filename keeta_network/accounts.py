"""Account identities: key derivation, signing and address encoding."""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Optional, Tuple
import base64
import binascii
import hashlib
import secrets

from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from nacl.signing import SigningKey

ADDRESS_PREFIX = "keeta_"
SEED_LENGTH = 32
PRIVATE_KEY_LENGTH = 32
MAX_DERIVATION_INDEX = 0xFFFFFFFF

_CHECKSUM_LENGTH = 5


class InvalidSeedError(ValueError):
    """Raised when a seed is not valid hex of the expected length."""


class InvalidKeyError(ValueError):
    """Raised when private key material cannot produce an account."""


class InvalidAddressError(ValueError):
    """Raised when an address string cannot be decoded."""


class KeyAlgorithm(IntEnum):
    ED25519 = 0
    ECDSA_SECP256K1 = 1
    TOKEN = 5
    ECDSA_SECP256R1 = 6


_CURVES = {
    KeyAlgorithm.ECDSA_SECP256K1: ec.SECP256K1,
    KeyAlgorithm.ECDSA_SECP256R1: ec.SECP256R1,
}

_PUBLIC_KEY_LENGTHS = {
    KeyAlgorithm.ED25519: 32,
    KeyAlgorithm.ECDSA_SECP256K1: 33,
    KeyAlgorithm.ECDSA_SECP256R1: 33,
    KeyAlgorithm.TOKEN: 32,
}


@dataclass(frozen=True)
class Account:
    """Public identity of a ledger account, optionally able to sign."""

    algorithm: KeyAlgorithm
    public_key: bytes
    private_key: Optional[bytes] = field(default=None, repr=False, compare=False)

    @property
    def address(self) -> str:
        return encode_address(self.algorithm, self.public_key)

    @property
    def has_private_key(self) -> bool:
        return self.private_key is not None

    def public_only(self) -> "Account":
        return Account(algorithm=self.algorithm, public_key=self.public_key)

    def sign(self, payload: bytes) -> bytes:
        if self.private_key is None:
            raise InvalidKeyError("Account has no private key.")
        if self.algorithm == KeyAlgorithm.ED25519:
            return bytes(SigningKey(self.private_key).sign(payload).signature)
        key = _ec_private_key(self.private_key, self.algorithm)
        return key.sign(payload, ec.ECDSA(hashes.SHA3_256()))

    def __str__(self) -> str:
        return self.address


def generate_seed() -> str:
    return secrets.token_bytes(SEED_LENGTH).hex()


def decode_seed(seed: str) -> bytes:
    """Decode a hex seed, accepting an optional ``0x`` prefix."""

    if not isinstance(seed, str):
        raise InvalidSeedError("Seed must be a hex string.")
    try:
        raw = bytes.fromhex(_strip_hex_prefix(seed))
    except ValueError as exc:
        raise InvalidSeedError("Seed is not valid hex.") from exc
    if len(raw) != SEED_LENGTH:
        raise InvalidSeedError(
            f"Seed must be {SEED_LENGTH} bytes, got {len(raw)}."
        )
    return raw


def derive_account(seed: str, index: int, algorithm: KeyAlgorithm) -> Account:
    """Deterministically derive the child account ``index`` under ``seed``."""

    seed_bytes = decode_seed(seed)
    if index < 0 or index > MAX_DERIVATION_INDEX:
        raise InvalidSeedError(f"Derivation index out of range: {index}")
    private_key = hashlib.sha3_256(seed_bytes + index.to_bytes(4, "big")).digest()
    return _account_from_secret(private_key, KeyAlgorithm(algorithm))


def account_from_private_key(private_key_hex: str) -> Account:
    """Build a secp256k1 account from a raw 32-byte private key."""

    if not isinstance(private_key_hex, str):
        raise InvalidKeyError("Private key must be a hex string.")
    try:
        raw = bytes.fromhex(_strip_hex_prefix(private_key_hex))
    except ValueError as exc:
        raise InvalidKeyError("Private key is not valid hex.") from exc
    if len(raw) != PRIVATE_KEY_LENGTH:
        raise InvalidKeyError(
            f"Private key must be {PRIVATE_KEY_LENGTH} bytes, got {len(raw)}."
        )
    return _account_from_secret(raw, KeyAlgorithm.ECDSA_SECP256K1)


def account_from_address(address: str) -> Account:
    algorithm, public_key = decode_address(address)
    return Account(algorithm=algorithm, public_key=public_key)


def token_identifier(owner: Account, anchor: bytes) -> Account:
    """Identifier account for a token created by ``owner`` at ``anchor``."""

    digest = hashlib.sha3_256(owner.public_key + anchor).digest()
    return Account(algorithm=KeyAlgorithm.TOKEN, public_key=digest)


def encode_address(algorithm: KeyAlgorithm, public_key: bytes) -> str:
    body = bytes([int(algorithm)]) + public_key
    checksum = hashlib.sha3_256(body).digest()[:_CHECKSUM_LENGTH]
    encoded = base64.b32encode(body + checksum).decode("ascii")
    return ADDRESS_PREFIX + encoded.rstrip("=").lower()


def decode_address(address: str) -> Tuple[KeyAlgorithm, bytes]:
    if not isinstance(address, str) or not address.startswith(ADDRESS_PREFIX):
        raise InvalidAddressError(f"Address must start with {ADDRESS_PREFIX!r}.")
    encoded = address[len(ADDRESS_PREFIX):].upper()
    padding = "=" * (-len(encoded) % 8)
    try:
        raw = base64.b32decode(encoded + padding)
    except (binascii.Error, ValueError) as exc:
        raise InvalidAddressError(f"Address is not valid base32: {address}") from exc

    if len(raw) <= 1 + _CHECKSUM_LENGTH:
        raise InvalidAddressError(f"Address is too short: {address}")
    body, checksum = raw[:-_CHECKSUM_LENGTH], raw[-_CHECKSUM_LENGTH:]
    if hashlib.sha3_256(body).digest()[:_CHECKSUM_LENGTH] != checksum:
        raise InvalidAddressError(f"Address checksum mismatch: {address}")

    try:
        algorithm = KeyAlgorithm(body[0])
    except ValueError as exc:
        raise InvalidAddressError(f"Unknown key type {body[0]} in address.") from exc
    public_key = body[1:]
    if len(public_key) != _PUBLIC_KEY_LENGTHS[algorithm]:
        raise InvalidAddressError(f"Public key has the wrong length: {address}")
    return algorithm, public_key


def _account_from_secret(private_key: bytes, algorithm: KeyAlgorithm) -> Account:
    if algorithm == KeyAlgorithm.ED25519:
        public_key = SigningKey(private_key).verify_key.encode()
    elif algorithm in _CURVES:
        public_key = (
            _ec_private_key(private_key, algorithm)
            .public_key()
            .public_bytes(
                serialization.Encoding.X962,
                serialization.PublicFormat.CompressedPoint,
            )
        )
    else:
        raise InvalidKeyError(f"Cannot derive a signing account for {algorithm.name}.")
    return Account(algorithm=algorithm, public_key=public_key, private_key=private_key)


def _ec_private_key(private_key: bytes, algorithm: KeyAlgorithm) -> ec.EllipticCurvePrivateKey:
    value = int.from_bytes(private_key, "big")
    try:
        return ec.derive_private_key(value, _CURVES[algorithm]())
    except ValueError as exc:
        raise InvalidKeyError(f"Private key is out of range for {algorithm.name}.") from exc


def _strip_hex_prefix(value: str) -> str:
    value = value.strip()
    if value[:2].lower() == "0x":
        return value[2:]
    return value
