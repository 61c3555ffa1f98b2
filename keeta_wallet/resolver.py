"""Map a wallet record to the ledger account it controls."""

from keeta_network.accounts import Account, account_from_private_key, derive_account

from .models import Algorithm, PrivateKeyWallet, SeedWallet, WalletRecord


def resolve(record: WalletRecord) -> Account:
    """Return the account for ``record``; identical records give identical accounts.

    A stored private key always resolves to its secp256k1 account, ignoring
    any seed, index or algorithm kept alongside it.
    Raises ``InvalidKeyError`` or ``InvalidSeedError`` for malformed material.
    """

    if isinstance(record, PrivateKeyWallet):
        return account_from_private_key(record.private_key)
    return derive_account(
        record.seed,
        record.effective_index,
        record.effective_algorithm.key_algorithm,
    )


def derive_candidate(seed: str, index: int, algorithm: Algorithm) -> Account:
    return resolve(SeedWallet(seed=seed, index=index, algorithm=algorithm))
