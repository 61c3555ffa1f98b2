"""Local keystore persistence for the wallet record.

The keystore is a plain JSON file: it is neither encrypted nor locked.
Anyone who can read the file controls the wallet. The format is shared with
other Keeta tools, so its keys (``seed``, ``index``, ``algo``,
``privateKeySecp256k1``) must not change.
"""

from pathlib import Path
from typing import Optional, Protocol
import json
import logging
import os
import tempfile

from .models import WalletRecord, record_from_dict

logger = logging.getLogger(__name__)


class KeystoreParseError(ValueError):
    """Raised when the keystore file exists but does not hold a valid record."""


class KeystoreIOError(OSError):
    """Raised when the keystore file cannot be read or written."""


class WalletNotFoundError(LookupError):
    """Raised when a command needs a wallet and the keystore file is missing."""


class KeyStore(Protocol):
    def load(self) -> Optional[WalletRecord]:
        ...

    def save(self, record: WalletRecord) -> None:
        ...


def default_keyfile(home: Optional[Path] = None) -> Path:
    return (home or Path.home()) / ".keeta" / "wallet.json"


class FileKeyStore:
    def __init__(self, path: Path) -> None:
        self._path = Path(path).expanduser()

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> Optional[WalletRecord]:
        if not self._path.exists():
            return None
        try:
            raw = self._path.read_text(encoding="utf-8")
        except OSError as exc:
            raise KeystoreIOError(f"Cannot read keystore {self._path}: {exc}") from exc
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise KeystoreParseError(f"Keystore {self._path} is not valid JSON: {exc}") from exc
        try:
            return record_from_dict(data)
        except ValueError as exc:
            raise KeystoreParseError(f"Keystore {self._path} is invalid: {exc}") from exc

    def require(self) -> WalletRecord:
        record = self.load()
        if record is None:
            raise WalletNotFoundError(f"No wallet found at {self._path}.")
        return record

    def save(self, record: WalletRecord) -> None:
        payload = json.dumps(record.to_dict(), indent=2)
        tmp_name = None
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "w", encoding="utf-8", delete=False, dir=str(self._path.parent), suffix=".tmp"
            ) as tmp:
                tmp_name = tmp.name
                tmp.write(payload)
                tmp.flush()
                os.fsync(tmp.fileno())
            os.replace(tmp_name, self._path)
        except OSError as exc:
            if tmp_name is not None and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise KeystoreIOError(f"Cannot write keystore {self._path}: {exc}") from exc
        logger.debug("Wrote wallet record to %s", self._path)
