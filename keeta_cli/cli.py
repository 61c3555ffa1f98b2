"""Keeta command-line client."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from datetime import datetime, timezone
from typing import List, Optional, Tuple

from keeta_network.accounts import (
    Account,
    InvalidAddressError,
    InvalidKeyError,
    InvalidSeedError,
    account_from_address,
    decode_seed,
    generate_seed,
)
from keeta_network.builder import AccessMode, BuilderError
from keeta_network.client import NetworkClient, NetworkError
from keeta_network.models import HistoryEntry, decode_amount
from keeta_wallet.config import WalletConfig, load_config
from keeta_wallet.keystore import KeystoreIOError, KeystoreParseError, WalletNotFoundError
from keeta_wallet.mnemonic import MnemonicError, mnemonic_from_seed, seed_from_mnemonic
from keeta_wallet.models import (
    Algorithm,
    PrivateKeyWallet,
    SeedWallet,
    UnknownAlgorithmError,
    WalletRecord,
)
from keeta_wallet.resolver import resolve
from keeta_wallet.search import (
    AUTO_DETECT_ALGORITHMS,
    ProbeStatus,
    ScanRangeError,
    auto_detect,
    derive_candidates,
    scan,
    validate_range,
)

from . import display

_client_factory = NetworkClient

_TOP_RESULTS = 10


def main(argv: Optional[List[str]] = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.debug)

    try:
        return args.func(args)
    except (
        ValueError,
        WalletNotFoundError,
        KeystoreParseError,
        KeystoreIOError,
        InvalidSeedError,
        InvalidKeyError,
        InvalidAddressError,
        UnknownAlgorithmError,
        MnemonicError,
        ScanRangeError,
        BuilderError,
        NetworkError,
    ) as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 1


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="keeta",
        description=(
            "Keeta CLI - wallet management and network operations. Network commands "
            "speak this tool's own node interface; set KEETA_API_URL to a compatible node."
        ),
    )
    parser.add_argument("--debug", action="store_true", help="enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    wallet_parser = subparsers.add_parser("wallet", help="manage the local wallet")
    wallet_sub = wallet_parser.add_subparsers(dest="wallet_command", required=True)

    wallet_new = wallet_sub.add_parser("new", help="generate a new wallet")
    wallet_new.add_argument("--algo", default=Algorithm.ED25519.value)
    _add_keyfile_arg(wallet_new)
    wallet_new.set_defaults(func=_wallet_new)

    wallet_import = wallet_sub.add_parser("import", help="import from seed, mnemonic or private key")
    wallet_import.add_argument("--seed", help="hex seed (0x...)")
    wallet_import.add_argument("--priv", help="secp256k1 private key (0x...)")
    wallet_import.add_argument("--mnemonic", help="24-word mnemonic phrase")
    wallet_import.add_argument("--algo")
    wallet_import.add_argument("--index", type=int)
    wallet_import.add_argument("--auto-detect", action="store_true")
    _add_network_args(wallet_import)
    wallet_import.set_defaults(func=_wallet_import)

    wallet_address = wallet_sub.add_parser("address", help="show the wallet address")
    _add_keyfile_arg(wallet_address)
    wallet_address.set_defaults(func=_wallet_address)

    wallet_export = wallet_sub.add_parser("export", help="print the wallet secret")
    _add_keyfile_arg(wallet_export)
    wallet_export.set_defaults(func=_wallet_export)

    wallet_debug = wallet_sub.add_parser("debug", help="show wallet derivation details")
    _add_keyfile_arg(wallet_debug)
    wallet_debug.set_defaults(func=_wallet_debug)

    wallet_derive = wallet_sub.add_parser("test-derivations", help="list derived addresses")
    wallet_derive.add_argument("--mnemonic", required=True)
    wallet_derive.add_argument(
        "--algos", default=",".join(algorithm.value for algorithm in AUTO_DETECT_ALGORITHMS)
    )
    wallet_derive.add_argument("--start", type=int, default=0)
    wallet_derive.add_argument("--end", type=int, default=5)
    wallet_derive.set_defaults(func=_wallet_test_derivations)

    wallet_scan = wallet_sub.add_parser("scan-balances", help="scan derived accounts for balances")
    wallet_scan.add_argument("--mnemonic")
    wallet_scan.add_argument("--algos", default="")
    wallet_scan.add_argument("--start", type=int, default=0)
    wallet_scan.add_argument("--end", type=int, default=10)
    wallet_scan.add_argument("--verbose", action="store_true", help="include zero-balance accounts")
    _add_network_args(wallet_scan)
    wallet_scan.set_defaults(func=_wallet_scan_balances)

    balance_parser = subparsers.add_parser("balance", help="check account balances")
    balance_parser.add_argument("--token")
    balance_parser.add_argument("--address")
    balance_parser.add_argument("--json", action="store_true")
    _add_network_args(balance_parser)
    balance_parser.set_defaults(func=_balance)

    info_parser = subparsers.add_parser("info", help="show account state")
    info_parser.add_argument("--json", action="store_true")
    info_parser.add_argument("--raw", action="store_true", help="print the unparsed node response")
    _add_network_args(info_parser)
    info_parser.set_defaults(func=_info)

    history_parser = subparsers.add_parser("history", help="show transaction history")
    history_parser.add_argument("--limit", type=int, default=10)
    history_parser.add_argument("--detailed", action="store_true")
    _add_network_args(history_parser)
    history_parser.set_defaults(func=_history)

    chain_parser = subparsers.add_parser("chain", help="show the account block chain")
    chain_parser.add_argument("--limit", type=int, default=10)
    _add_network_args(chain_parser)
    chain_parser.set_defaults(func=_chain)

    recover_parser = subparsers.add_parser("recover", help="republish pending blocks")
    _add_network_args(recover_parser)
    recover_parser.set_defaults(func=_recover)

    send_parser = subparsers.add_parser("send", help="send tokens")
    send_parser.add_argument("--token", required=True)
    send_parser.add_argument("--to", required=True)
    send_parser.add_argument("--amount", required=True, help="amount in base units")
    send_parser.add_argument("--decimals", type=int)
    _add_network_args(send_parser)
    send_parser.set_defaults(func=_send)

    token_parser = subparsers.add_parser("token", help="token administration")
    token_sub = token_parser.add_subparsers(dest="token_command", required=True)

    token_supply = token_sub.add_parser("supply", help="adjust total supply")
    token_supply.add_argument("--token", required=True)
    token_supply.add_argument("--add")
    token_supply.add_argument("--sub")
    _add_network_args(token_supply)
    token_supply.set_defaults(func=_token_supply)

    token_mint = token_sub.add_parser("mint", help="mint and credit a recipient")
    token_mint.add_argument("--token", required=True)
    token_mint.add_argument("--to", required=True)
    token_mint.add_argument("--amount", required=True)
    _add_network_args(token_mint)
    token_mint.set_defaults(func=_token_mint)

    token_burn = token_sub.add_parser("burn", help="burn tokens")
    token_burn.add_argument("--token", required=True)
    token_burn.add_argument("--amount", required=True)
    token_burn.add_argument("--from", dest="from_address")
    _add_network_args(token_burn)
    token_burn.set_defaults(func=_token_burn)

    token_create = token_sub.add_parser("create", help="create a new token")
    token_create.add_argument("--name")
    token_create.add_argument("--symbol")
    token_create.add_argument("--supply", default="1000000")
    token_create.add_argument("--decimals", type=int, default=0)
    token_create.add_argument("--mode", default=AccessMode.PUBLIC.value)
    _add_network_args(token_create)
    token_create.set_defaults(func=_token_create)

    tokens_parser = subparsers.add_parser("tokens", help="list held tokens")
    tokens_sub = tokens_parser.add_subparsers(dest="tokens_command", required=True)
    tokens_list = tokens_sub.add_parser("list")
    _add_network_args(tokens_list)
    tokens_list.set_defaults(func=_tokens_list)

    return parser


def _wallet_new(args: argparse.Namespace) -> int:
    config = _config(args)
    algorithm = Algorithm.parse(args.algo)
    record = SeedWallet(seed=generate_seed(), algorithm=algorithm)
    account = resolve(record)
    config.keystore().save(record)
    print("New wallet created")
    print(f"Address: {account.address}")
    print(f"Saved to: {config.keyfile}")
    return 0


def _wallet_import(args: argparse.Namespace) -> int:
    config = _config(args)
    sources = [name for name in ("seed", "priv", "mnemonic") if getattr(args, name)]
    if len(sources) != 1:
        raise ValueError("Provide exactly one of --seed, --priv, or --mnemonic.")
    if args.index is not None and args.index < 0:
        raise ValueError("--index must be non-negative.")
    if args.auto_detect and not args.mnemonic:
        raise ValueError("--auto-detect requires --mnemonic.")
    if args.auto_detect and (args.algo is not None or args.index is not None):
        raise ValueError("--auto-detect chooses the algorithm and index; drop --algo and --index.")

    record: WalletRecord
    if args.mnemonic:
        seed = seed_from_mnemonic(args.mnemonic)
        if args.auto_detect:
            detected = _auto_detect_wallet(seed, config)
            if detected is None:
                return 1
            record = detected
        else:
            algorithm = Algorithm.parse(args.algo or Algorithm.ED25519.value)
            record = SeedWallet(seed=seed, index=args.index or 0, algorithm=algorithm)
    elif args.seed:
        seed = _strip_hex(args.seed)
        decode_seed(seed)
        algorithm = Algorithm.parse(args.algo or Algorithm.ED25519.value)
        record = SeedWallet(seed=seed, index=args.index, algorithm=algorithm)
    else:
        algorithm = Algorithm.parse(args.algo or Algorithm.SECP256K1.value)
        if algorithm is not Algorithm.SECP256K1:
            raise InvalidKeyError("Private key import only supports secp256k1.")
        record = PrivateKeyWallet(private_key=_strip_hex(args.priv), algorithm=algorithm)

    account = resolve(record)
    config.keystore().save(record)
    print("Wallet imported")
    print(f"Address: {account.address}")
    print(f"Saved to: {config.keyfile}")
    return 0


def _auto_detect_wallet(seed: str, config: WalletConfig) -> Optional[SeedWallet]:
    print(f"Auto-detecting funded account on {config.network}...")
    client = _client(config)
    match = auto_detect(seed, client, on_probe=lambda result: print(display.probe_line(result)))
    if match is None:
        print("No wallet with balance found on this network.", file=sys.stderr)
        print("Try a different network or import with --algo and --index.", file=sys.stderr)
        return None
    print(
        f"Selected {match.wallet.effective_algorithm.value} index {match.wallet.effective_index}"
        f" (total balance {match.total})"
    )
    return match.wallet


def _wallet_address(args: argparse.Namespace) -> int:
    _, account = _load_wallet(_config(args))
    print(account.address)
    return 0


def _wallet_export(args: argparse.Namespace) -> int:
    record = _config(args).keystore().require()
    print("WARNING: never share these values.")
    if record.seed:
        print(f"Seed: {record.seed}")
    if isinstance(record, SeedWallet):
        print(f"Mnemonic: {mnemonic_from_seed(record.seed)}")
    if isinstance(record, PrivateKeyWallet):
        print(f"Private key: {record.private_key}")
    print(f"Algorithm: {record.effective_algorithm.value}")
    return 0


def _wallet_debug(args: argparse.Namespace) -> int:
    config = _config(args)
    record = config.keystore().require()
    print(f"Keyfile: {config.keyfile}")
    print(f"Seed: {'present' if record.seed else 'none'}")
    print(f"Algorithm: {record.effective_algorithm.value}")
    print(f"Index: {record.index or 0}")
    if isinstance(record, PrivateKeyWallet):
        print("Has secp256k1 private key")
    account = resolve(record)
    print(f"Address: {account.address}")
    print(f"Key type: {account.algorithm.name}")
    return 0


def _wallet_test_derivations(args: argparse.Namespace) -> int:
    seed = seed_from_mnemonic(args.mnemonic)
    validate_range(args.start, args.end)
    current: Optional[Algorithm] = None
    for candidate in derive_candidates(
        seed, _parse_algos(args.algos), range(args.start, args.end + 1)
    ):
        if candidate.algorithm is not current:
            current = candidate.algorithm
            print(f"Algorithm: {current.value}")
        if candidate.account is None:
            print(f"  Index {candidate.index}: error: {candidate.error}")
        else:
            print(f"  Index {candidate.index}: {candidate.account.address}")
    return 0


def _wallet_scan_balances(args: argparse.Namespace) -> int:
    config = _config(args)
    if args.mnemonic:
        seed = seed_from_mnemonic(args.mnemonic)
        default_algorithm = Algorithm.ED25519
    else:
        record = config.keystore().require()
        if isinstance(record, PrivateKeyWallet):
            raise ValueError(
                "Scanning requires a seed-based wallet; a private key cannot derive indices."
            )
        seed = record.seed
        default_algorithm = record.effective_algorithm

    algorithms = _parse_algos(args.algos) or [default_algorithm.value]
    results = scan(seed, algorithms, args.start, args.end, _client(config), include_zero=args.verbose)
    print(
        f"Scanning balances on {config.network} for indices {args.start}..{args.end}"
        f" across algos: {', '.join(algorithms)}"
    )

    found = []
    errors = 0
    for result in results:
        if result.status is ProbeStatus.ERROR:
            errors += 1
            print(f"{result.algorithm.value} [{result.index}] error: {result.error}")
            continue
        print(f"{result.algorithm.value} [{result.index}] {result.address}")
        if result.status is ProbeStatus.NO_BALANCE:
            print("  No balances")
            continue
        for token, amount in sorted(result.balances.items()):
            print(f"  {display.short(token)}: {amount}")
        found.append(result)

    print(f"Scan complete. Matches with balances: {len(found)}, errors: {errors}")
    for result in found[:_TOP_RESULTS]:
        print(
            f" - {result.algorithm.value} [{result.index}] {display.short(result.address, 24)}"
            f" {len(result.balances)} token(s)"
        )
    return 0


def _balance(args: argparse.Namespace) -> int:
    config = _config(args)
    if args.address:
        account = account_from_address(args.address)
    else:
        _, account = _load_wallet(config)
    client = _client(config, account)

    if args.token:
        amount = client.balance(args.token)
        if args.json:
            print(json.dumps({"account": account.address, "token": args.token, "balance": str(amount)}))
        else:
            print(amount)
        return 0

    balances = client.all_balances()
    if args.json:
        payload = {
            "account": account.address,
            "network": config.network,
            "balances": {token: str(amount) for token, amount in balances.items()},
        }
        print(json.dumps(payload, indent=2))
        return 0

    print(f"Account: {account.address}")
    print(f"Network: {config.network}")
    if not balances:
        print("No balances found")
        return 0
    base_token = client.base_token()
    for token, amount in balances.items():
        print(f"  {display.token_label(client, token, base_token)}: {amount}")
    return 0


def _info(args: argparse.Namespace) -> int:
    config = _config(args)
    _, account = _load_wallet(config)
    client = _client(config, account)
    if args.raw:
        print(json.dumps(client.account_payload(), indent=2, sort_keys=True))
        return 0
    state = client.account_state()
    if args.json:
        print(json.dumps(state.model_dump(mode="json", by_alias=True), indent=2))
        return 0
    print(f"Account: {account.address}")
    print(f"Network: {config.network}")
    print(f"Balances: {len(state.balances)}")
    print(f"Representative: {state.representative or 'none'}")
    if state.info.name:
        print(f"Name: {state.info.name}")
    return 0


def _history(args: argparse.Namespace) -> int:
    config = _config(args)
    _, account = _load_wallet(config)
    client = _client(config, account)
    entries = client.history(depth=args.limit)
    print(f"Last {len(entries)} transactions:")
    if args.detailed:
        base_token = client.base_token()
        for position, entry in enumerate(entries, start=1):
            _print_history_detail(client, position, entry, base_token)
    else:
        for entry in entries:
            print(_history_summary(entry))
    return 0


def _history_summary(entry: HistoryEntry) -> str:
    staple = entry.vote_staple
    line = f"  {display.short(staple.blocks_hash)} ({len(staple.blocks)} blocks)"
    if staple.blocks and staple.blocks[0].operations:
        operation = staple.blocks[0].operations[0]
        line += f" [{operation.type}]"
        if operation.amount is not None:
            line += f" ({operation.amount})"
    return line


def _print_history_detail(
    client: NetworkClient, position: int, entry: HistoryEntry, base_token: str
) -> None:
    staple = entry.vote_staple
    print(f"[{position}] Transaction {display.short(staple.blocks_hash, 16)}")
    print(f"    Blocks: {len(staple.blocks)}")
    for block in staple.blocks:
        for operation in block.operations:
            print(f"    Operation: {operation.type}")
            if operation.amount is not None:
                print(f"    Amount: {operation.amount}")
            if operation.token:
                print(f"    Token: {display.token_label(client, operation.token, base_token)}")
            if operation.to:
                print(f"    To: {display.short(operation.to, 16)}")
            if operation.from_:
                print(f"    From: {display.short(operation.from_, 16)}")
        if block.timestamp is not None:
            when = datetime.fromtimestamp(block.timestamp, tz=timezone.utc)
            print(f"    Time: {when.isoformat()}")
    print("")


def _chain(args: argparse.Namespace) -> int:
    config = _config(args)
    _, account = _load_wallet(config)
    blocks = _client(config, account).chain(depth=args.limit)
    print(f"Last {len(blocks)} blocks:")
    for block in blocks:
        print(f"  {display.short(block.hash)}")
    return 0


def _recover(args: argparse.Namespace) -> int:
    config = _config(args)
    _, account = _load_wallet(config)
    count = _client(config, account).recover()
    print(f"Recovery complete ({count} pending block(s) republished)")
    return 0


def _send(args: argparse.Namespace) -> int:
    amount = _parse_amount(args.amount, "--amount", positive=True)
    recipient = account_from_address(args.to)
    account_from_address(args.token)
    config = _config(args)
    _, account = _load_wallet(config)
    client = _client(config, account)

    builder = client.init_builder()
    builder.send(recipient, amount, args.token)
    published = builder.publish()

    print(f"From: {account.address}")
    print(f"To: {recipient.address}")
    print(f"Token: {args.token}")
    print(f"Amount: {amount} base units")
    if args.decimals is not None:
        print(f"Human-readable: {display.format_amount(amount, args.decimals)}")
    print(f"Published block: {published[0]}")
    return 0


def _token_supply(args: argparse.Namespace) -> int:
    if args.add is None and args.sub is None:
        raise ValueError("Use --add or --sub.")
    delta = _parse_amount(args.add or "0", "--add") - _parse_amount(args.sub or "0", "--sub")
    if delta == 0:
        raise ValueError("Supply change is a no-op.")
    token = account_from_address(args.token)
    config = _config(args)
    _, account = _load_wallet(config)

    builder = _client(config, account).init_builder(token)
    builder.modify_token_supply(delta)
    published = builder.publish()
    print(f"Supply adjusted by {delta} for token {args.token} (block {published[0]})")
    return 0


def _token_mint(args: argparse.Namespace) -> int:
    amount = _parse_amount(args.amount, "--amount", positive=True)
    token = account_from_address(args.token)
    recipient = account_from_address(args.to)
    config = _config(args)
    _, account = _load_wallet(config)

    builder = _client(config, account).init_builder(token)
    builder.modify_token_supply(amount)
    builder.modify_token_balance(args.token, amount, recipient)
    published = builder.publish()
    print(f"Minted {amount} to {recipient.address} (block {published[0]})")
    return 0


def _token_burn(args: argparse.Namespace) -> int:
    amount = _parse_amount(args.amount, "--amount", positive=True)
    token = account_from_address(args.token)
    config = _config(args)
    _, account = _load_wallet(config)
    source = account_from_address(args.from_address) if args.from_address else account

    builder = _client(config, account).init_builder(token)
    builder.modify_token_supply(-amount)
    builder.modify_token_balance(args.token, -amount, source)
    published = builder.publish()
    print(f"Burned {amount} from {source.address} (block {published[0]})")
    return 0


def _token_create(args: argparse.Namespace) -> int:
    symbol = args.symbol.upper() if args.symbol else None
    if symbol and len(symbol) > 4:
        raise ValueError("Token symbol must be 4 letters maximum.")
    try:
        access = AccessMode(args.mode.strip().lower())
    except ValueError as exc:
        raise ValueError('Access mode must be "private" or "public".') from exc
    supply = _parse_amount(args.supply, "--supply")
    if args.decimals < 0:
        raise ValueError("--decimals must be non-negative.")

    config = _config(args)
    _, account = _load_wallet(config)
    client = _client(config, account)

    token = client.generate_identifier()
    print(f"Token address: {token.address}")
    print(f"Network: {config.network}")

    builder = client.init_builder(token)
    builder.set_info(
        name=symbol or args.name or "",
        description=args.name or "",
        metadata=json.dumps({"decimals": args.decimals, "symbol": symbol}, sort_keys=True),
        access=access,
    )
    if supply > 0:
        builder.modify_token_supply(supply)
    try:
        builder.publish()
    except NetworkError:
        print(
            f"Token {token.address} exists but was not configured; retry with "
            f"'keeta token supply --token {token.address} --add {supply}'.",
            file=sys.stderr,
        )
        raise

    print(f"Supply: {supply}")
    print(f"Decimals: {args.decimals}")
    print(f"Access mode: {access.value}")
    if access is AccessMode.PRIVATE:
        print("Only approved accounts can receive this token.")
    return 0


def _tokens_list(args: argparse.Namespace) -> int:
    config = _config(args)
    _, account = _load_wallet(config)
    client = _client(config, account)
    balances = client.all_balances()
    if not balances:
        print("No tokens found")
        return 0

    base_token = client.base_token()
    for token, amount in balances.items():
        name, description, kind = display.token_details(client, token, base_token)
        print(f"Address: {token}")
        print(f"Name: {name}")
        print(f"Description: {description}")
        print(f"Type: {kind}")
        print(f"Balance: {amount}")
        print("")
    print(f"Total tokens: {len(balances)}")
    return 0


def _add_keyfile_arg(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--keyfile", help="keystore file path (default: ~/.keeta/wallet.json)")


def _add_network_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--network", help="network: test or main")
    _add_keyfile_arg(parser)


def _config(args: argparse.Namespace) -> WalletConfig:
    return load_config(
        keyfile=getattr(args, "keyfile", None),
        network=getattr(args, "network", None),
    )


def _load_wallet(config: WalletConfig) -> Tuple[WalletRecord, Account]:
    record = config.keystore().require()
    return record, resolve(record)


def _client(config: WalletConfig, account: Optional[Account] = None) -> NetworkClient:
    return _client_factory(config.network_config(), account=account)


def _parse_algos(value: str) -> List[str]:
    return [item.strip().lower() for item in value.split(",") if item.strip()]


def _parse_amount(value: str, option: str, positive: bool = False) -> int:
    try:
        amount = decode_amount(value)
    except ValueError as exc:
        raise ValueError(f"{option} must be an integer amount, got {value!r}.") from exc
    if amount < 0 or (positive and amount == 0):
        qualifier = "positive" if positive else "non-negative"
        raise ValueError(f"{option} must be {qualifier}.")
    return amount


def _strip_hex(value: str) -> str:
    value = value.strip()
    return value[2:] if value[:2].lower() == "0x" else value


def _configure_logging(debug: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


if __name__ == "__main__":
    raise SystemExit(main())
