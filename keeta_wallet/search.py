"""Derivation search: find which (algorithm, index) pairs under a seed hold funds.

Probes run one at a time in algorithm-major, index-minor order. A probe that
fails, whether while deriving or while querying the network, is reported with
``ProbeStatus.ERROR`` and the search moves on. Zero balances and errors are
never conflated.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, Iterable, Iterator, Mapping, Optional, Protocol, Sequence, Tuple, Union
import logging

from keeta_network.accounts import Account, InvalidKeyError, InvalidSeedError, decode_seed
from keeta_network.client import NetworkError

from .models import Algorithm, SeedWallet
from .resolver import derive_candidate

logger = logging.getLogger(__name__)

AUTO_DETECT_ALGORITHMS: Tuple[Algorithm, ...] = (
    Algorithm.ED25519,
    Algorithm.SECP256K1,
    Algorithm.SECP256R1,
)
AUTO_DETECT_INDICES = range(0, 6)


class ScanRangeError(ValueError):
    """Raised when a scan range is not 0 <= start <= end."""


class BalanceReader(Protocol):
    def all_balances(self, account: Account) -> Mapping[str, int]:
        ...


class ProbeStatus(Enum):
    FOUND = "FOUND"
    NO_BALANCE = "NO_BALANCE"
    ERROR = "ERROR"


@dataclass(frozen=True)
class ProbeResult:
    algorithm: Algorithm
    index: int
    status: ProbeStatus
    account: Optional[Account] = None
    balances: Dict[str, int] = field(default_factory=dict)
    total: int = 0
    error: Optional[str] = None

    @property
    def address(self) -> Optional[str]:
        return self.account.address if self.account is not None else None


@dataclass(frozen=True)
class BestMatch:
    wallet: SeedWallet
    account: Account
    total: int
    balances: Dict[str, int]


@dataclass(frozen=True)
class DerivedCandidate:
    algorithm: Algorithm
    index: int
    account: Optional[Account]
    error: Optional[str] = None


AlgorithmInput = Union[str, Algorithm]


def auto_detect(
    seed: str,
    reader: BalanceReader,
    algorithms: Sequence[AlgorithmInput] = AUTO_DETECT_ALGORITHMS,
    indices: Iterable[int] = AUTO_DETECT_INDICES,
    on_probe: Optional[Callable[[ProbeResult], None]] = None,
) -> Optional[BestMatch]:
    """Return the pair with the strictly greatest total balance, or ``None``.

    Ties keep the earliest pair in probe order. Pairs with a zero total or an
    error never win.
    """

    parsed = _parse_algorithms(algorithms)
    decode_seed(seed)
    indices = tuple(indices)

    best: Optional[ProbeResult] = None
    for algorithm in parsed:
        for index in indices:
            result = _probe(seed, algorithm, index, reader)
            if on_probe is not None:
                on_probe(result)
            if result.status is ProbeStatus.FOUND and (best is None or result.total > best.total):
                best = result

    if best is None or best.account is None:
        logger.info("Auto-detect found no funded account")
        return None
    logger.info("Auto-detect selected %s index %d", best.algorithm.value, best.index)
    return BestMatch(
        wallet=SeedWallet(seed=seed, index=best.index, algorithm=best.algorithm),
        account=best.account,
        total=best.total,
        balances=best.balances,
    )


def scan(
    seed: str,
    algorithms: Sequence[AlgorithmInput],
    start: int,
    end: int,
    reader: BalanceReader,
    include_zero: bool = False,
) -> Iterator[ProbeResult]:
    """Validate the request, then lazily probe every pair in the range.

    Validation happens at call time, so a bad range or algorithm raises
    before any network call. ``NO_BALANCE`` results are yielded only when
    ``include_zero`` is set; ``ERROR`` results are always yielded.
    """

    parsed = _parse_algorithms(algorithms)
    validate_range(start, end)
    decode_seed(seed)
    return _scan(seed, parsed, range(start, end + 1), reader, include_zero)


def validate_range(start: int, end: int) -> None:
    if start < 0 or end < start:
        raise ScanRangeError(
            f"Invalid range {start}..{end}. Use 0 <= start <= end."
        )


def derive_candidates(
    seed: str,
    algorithms: Sequence[AlgorithmInput] = AUTO_DETECT_ALGORITHMS,
    indices: Iterable[int] = AUTO_DETECT_INDICES,
) -> Iterator[DerivedCandidate]:
    """Enumerate derived accounts without touching the network."""

    parsed = _parse_algorithms(algorithms)
    decode_seed(seed)
    return _derive(seed, parsed, tuple(indices))


def _derive(
    seed: str, algorithms: Tuple[Algorithm, ...], indices: Tuple[int, ...]
) -> Iterator[DerivedCandidate]:
    for algorithm in algorithms:
        for index in indices:
            try:
                account = derive_candidate(seed, index, algorithm)
            except (InvalidSeedError, InvalidKeyError) as exc:
                yield DerivedCandidate(algorithm=algorithm, index=index, account=None, error=str(exc))
                continue
            yield DerivedCandidate(algorithm=algorithm, index=index, account=account)


def _scan(
    seed: str,
    algorithms: Tuple[Algorithm, ...],
    indices: range,
    reader: BalanceReader,
    include_zero: bool,
) -> Iterator[ProbeResult]:
    for algorithm in algorithms:
        for index in indices:
            result = _probe(seed, algorithm, index, reader)
            if result.status is ProbeStatus.NO_BALANCE and not include_zero:
                continue
            yield result


def _probe(seed: str, algorithm: Algorithm, index: int, reader: BalanceReader) -> ProbeResult:
    try:
        account = derive_candidate(seed, index, algorithm)
    except (InvalidSeedError, InvalidKeyError) as exc:
        logger.warning("Derivation failed for %s index %d: %s", algorithm.value, index, exc)
        return ProbeResult(algorithm=algorithm, index=index, status=ProbeStatus.ERROR, error=str(exc))

    try:
        balances = dict(reader.all_balances(account))
    except NetworkError as exc:
        logger.info("Balance query failed for %s index %d: %s", algorithm.value, index, exc)
        return ProbeResult(
            algorithm=algorithm,
            index=index,
            status=ProbeStatus.ERROR,
            account=account,
            error=str(exc),
        )

    total = sum(abs(amount) for amount in balances.values())
    status = ProbeStatus.FOUND if total > 0 else ProbeStatus.NO_BALANCE
    return ProbeResult(
        algorithm=algorithm,
        index=index,
        status=status,
        account=account,
        balances=balances,
        total=total,
    )


def _parse_algorithms(algorithms: Sequence[AlgorithmInput]) -> Tuple[Algorithm, ...]:
    parsed = tuple(Algorithm.parse(value) for value in algorithms)
    if not parsed:
        raise ValueError("At least one algorithm is required.")
    return parsed
