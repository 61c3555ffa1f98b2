"""24-word mnemonic handling for wallet import and backup."""

from mnemonic import Mnemonic

from keeta_network.accounts import SEED_LENGTH, decode_seed

MNEMONIC_WORD_COUNT = 24

_WORDLIST = Mnemonic("english")


class MnemonicError(ValueError):
    """Raised when a mnemonic phrase is malformed or fails its checksum."""


def normalize_mnemonic(phrase: str) -> str:
    words = phrase.split()
    if len(words) != MNEMONIC_WORD_COUNT:
        raise MnemonicError(f"Mnemonic must be exactly {MNEMONIC_WORD_COUNT} words")
    return " ".join(word.lower() for word in words)


def seed_from_mnemonic(phrase: str) -> str:
    """Return the hex seed encoded by a 24-word phrase (its BIP-39 entropy)."""

    normalized = normalize_mnemonic(phrase)
    if not _WORDLIST.check(normalized):
        raise MnemonicError("Mnemonic contains unknown words or fails its checksum.")
    entropy = bytes(_WORDLIST.to_entropy(normalized))
    if len(entropy) != SEED_LENGTH:
        raise MnemonicError(f"Mnemonic must encode {SEED_LENGTH} bytes.")
    return entropy.hex()


def mnemonic_from_seed(seed: str) -> str:
    return _WORDLIST.to_mnemonic(decode_seed(seed))
