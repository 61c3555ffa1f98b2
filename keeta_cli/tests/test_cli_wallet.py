"""CLI tests for the wallet commands."""

import json
import tempfile
import unittest
from contextlib import redirect_stderr, redirect_stdout
from io import StringIO
from pathlib import Path

from keeta_cli import cli
from keeta_network.client import NetworkError
from keeta_wallet.keystore import FileKeyStore
from keeta_wallet.mnemonic import mnemonic_from_seed
from keeta_wallet.models import Algorithm, PrivateKeyWallet, SeedWallet
from keeta_wallet.resolver import derive_candidate

SEED = "8b" * 32
MNEMONIC = mnemonic_from_seed(SEED)


class FakeClient:
    funded = {}
    created = []

    def __init__(self, config, account=None) -> None:
        self.config = config
        self.account = account
        FakeClient.created.append(self)

    def all_balances(self, account=None):
        value = self.funded.get((account or self.account).address, {})
        if isinstance(value, Exception):
            raise value
        return value


class WalletCliTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self._tmp.cleanup)
        self.keyfile = str(Path(self._tmp.name) / "wallet.json")

        FakeClient.funded = {}
        FakeClient.created = []
        original = cli._client_factory
        cli._client_factory = FakeClient
        self.addCleanup(setattr, cli, "_client_factory", original)

    def _run(self, args):
        out, err = StringIO(), StringIO()
        with redirect_stdout(out), redirect_stderr(err):
            code = cli.main(args)
        return code, out.getvalue(), err.getvalue()

    def _fund(self, algorithm, index, balances) -> None:
        FakeClient.funded[derive_candidate(SEED, index, algorithm).address] = balances

    def test_new_then_address_agree(self) -> None:
        code, output, _ = self._run(["wallet", "new", "--keyfile", self.keyfile])
        self.assertEqual(code, 0)
        created = [line for line in output.splitlines() if line.startswith("Address: ")][0]

        code, output, _ = self._run(["wallet", "address", "--keyfile", self.keyfile])
        self.assertEqual(code, 0)
        self.assertEqual(output.strip(), created[len("Address: "):])

    def test_new_with_algorithm(self) -> None:
        code, _, _ = self._run(["wallet", "new", "--algo", "secp256r1", "--keyfile", self.keyfile])
        self.assertEqual(code, 0)
        record = FileKeyStore(Path(self.keyfile)).require()
        self.assertIs(record.algorithm, Algorithm.SECP256R1)

    def test_new_with_unknown_algorithm_fails(self) -> None:
        code, _, err = self._run(["wallet", "new", "--algo", "rsa", "--keyfile", self.keyfile])
        self.assertEqual(code, 1)
        self.assertIn("ERROR: Unknown algorithm", err)
        self.assertFalse(Path(self.keyfile).exists())

    def test_missing_wallet_exits_one(self) -> None:
        code, output, err = self._run(["wallet", "address", "--keyfile", self.keyfile])
        self.assertEqual(code, 1)
        self.assertEqual(output, "")
        self.assertIn("No wallet found", err)

    def test_import_seed(self) -> None:
        code, _, _ = self._run(
            ["wallet", "import", "--seed", "0x" + SEED, "--index", "3", "--keyfile", self.keyfile]
        )
        self.assertEqual(code, 0)
        self.assertEqual(
            FileKeyStore(Path(self.keyfile)).require(),
            SeedWallet(seed=SEED, index=3, algorithm=Algorithm.ED25519),
        )

    def test_import_private_key(self) -> None:
        code, _, _ = self._run(["wallet", "import", "--priv", "0x" + "09" * 32, "--keyfile", self.keyfile])
        self.assertEqual(code, 0)
        record = FileKeyStore(Path(self.keyfile)).require()
        self.assertIsInstance(record, PrivateKeyWallet)
        self.assertEqual(record.private_key, "09" * 32)

    def test_import_private_key_with_other_algorithm_fails(self) -> None:
        code, _, err = self._run(
            ["wallet", "import", "--priv", "09" * 32, "--algo", "ed25519", "--keyfile", self.keyfile]
        )
        self.assertEqual(code, 1)
        self.assertIn("secp256k1", err)

    def test_import_requires_exactly_one_source(self) -> None:
        code, _, _ = self._run(
            ["wallet", "import", "--seed", SEED, "--priv", "09" * 32, "--keyfile", self.keyfile]
        )
        self.assertEqual(code, 1)
        code, _, _ = self._run(["wallet", "import", "--keyfile", self.keyfile])
        self.assertEqual(code, 1)

    def test_import_mnemonic_without_detection(self) -> None:
        code, _, _ = self._run(
            ["wallet", "import", "--mnemonic", MNEMONIC, "--algo", "secp256k1", "--keyfile", self.keyfile]
        )
        self.assertEqual(code, 0)
        self.assertEqual(
            FileKeyStore(Path(self.keyfile)).require(),
            SeedWallet(seed=SEED, index=0, algorithm=Algorithm.SECP256K1),
        )
        self.assertEqual(FakeClient.created, [])

    def test_bad_mnemonic_fails_before_network(self) -> None:
        code, _, err = self._run(
            [
                "wallet",
                "import",
                "--mnemonic",
                " ".join(MNEMONIC.split()[:12]),
                "--auto-detect",
                "--keyfile",
                self.keyfile,
            ]
        )
        self.assertEqual(code, 1)
        self.assertIn("Mnemonic must be exactly 24 words", err)
        self.assertEqual(FakeClient.created, [])
        self.assertFalse(Path(self.keyfile).exists())

    def test_auto_detect_saves_best_match(self) -> None:
        self._fund(Algorithm.ED25519, 1, NetworkError("timeout"))
        self._fund(Algorithm.SECP256R1, 3, {"keeta_tok": 50})
        code, output, _ = self._run(
            [
                "wallet",
                "import",
                "--mnemonic",
                MNEMONIC,
                "--auto-detect",
                "--network",
                "test",
                "--keyfile",
                self.keyfile,
            ]
        )
        self.assertEqual(code, 0)
        self.assertIn("Selected secp256r1 index 3", output)
        self.assertIn("(error: timeout)", output)
        self.assertEqual(
            FileKeyStore(Path(self.keyfile)).require(),
            SeedWallet(seed=SEED, index=3, algorithm=Algorithm.SECP256R1),
        )

    def test_auto_detect_without_funds_does_not_save(self) -> None:
        code, _, err = self._run(
            ["wallet", "import", "--mnemonic", MNEMONIC, "--auto-detect", "--keyfile", self.keyfile]
        )
        self.assertEqual(code, 1)
        self.assertIn("No wallet with balance found", err)
        self.assertFalse(Path(self.keyfile).exists())

    def test_auto_detect_rejects_explicit_algorithm_or_index(self) -> None:
        for extra in (["--algo", "secp256k1"], ["--index", "2"]):
            with self.subTest(args=extra):
                code, _, err = self._run(
                    ["wallet", "import", "--mnemonic", MNEMONIC, "--auto-detect", "--keyfile", self.keyfile]
                    + extra
                )
                self.assertEqual(code, 1)
                self.assertIn("--auto-detect", err)
        self.assertEqual(FakeClient.created, [])
        self.assertFalse(Path(self.keyfile).exists())

    def test_export_shows_seed_and_mnemonic(self) -> None:
        FileKeyStore(Path(self.keyfile)).save(SeedWallet(seed=SEED))
        code, output, _ = self._run(["wallet", "export", "--keyfile", self.keyfile])
        self.assertEqual(code, 0)
        self.assertIn(f"Seed: {SEED}", output)
        self.assertIn(f"Mnemonic: {MNEMONIC}", output)
        self.assertIn("Algorithm: ed25519", output)

    def test_debug_shows_address(self) -> None:
        FileKeyStore(Path(self.keyfile)).save(SeedWallet(seed=SEED, index=2, algorithm=Algorithm.SECP256K1))
        code, output, _ = self._run(["wallet", "debug", "--keyfile", self.keyfile])
        self.assertEqual(code, 0)
        self.assertIn("Index: 2", output)
        self.assertIn(derive_candidate(SEED, 2, Algorithm.SECP256K1).address, output)
        self.assertIn("Key type: ECDSA_SECP256K1", output)
        self.assertIn("Seed: present", output)
        self.assertNotIn(SEED[:16], output)

    def test_corrupt_keystore_exits_one(self) -> None:
        Path(self.keyfile).write_text(json.dumps({"index": 1}), encoding="utf-8")
        code, _, err = self._run(["wallet", "address", "--keyfile", self.keyfile])
        self.assertEqual(code, 1)
        self.assertIn("ERROR:", err)

    def test_test_derivations_lists_addresses(self) -> None:
        code, output, _ = self._run(
            ["wallet", "test-derivations", "--mnemonic", MNEMONIC, "--algos", "ed25519", "--end", "2"]
        )
        self.assertEqual(code, 0)
        self.assertIn("Algorithm: ed25519", output)
        self.assertIn(f"Index 2: {derive_candidate(SEED, 2, Algorithm.ED25519).address}", output)
        self.assertEqual(FakeClient.created, [])

    def test_test_derivations_rejects_bad_range(self) -> None:
        code, _, err = self._run(
            ["wallet", "test-derivations", "--mnemonic", MNEMONIC, "--start", "4", "--end", "1"]
        )
        self.assertEqual(code, 1)
        self.assertIn("Invalid range", err)

    def test_scan_balances_reports_matches_and_errors(self) -> None:
        self._fund(Algorithm.ED25519, 1, {"keeta_tok": 7})
        self._fund(Algorithm.SECP256K1, 0, NetworkError("unreachable"))
        code, output, _ = self._run(
            [
                "wallet",
                "scan-balances",
                "--mnemonic",
                MNEMONIC,
                "--algos",
                "ed25519,secp256k1",
                "--start",
                "0",
                "--end",
                "2",
                "--keyfile",
                self.keyfile,
            ]
        )
        self.assertEqual(code, 0)
        self.assertIn("secp256k1 [0] error: unreachable", output)
        self.assertIn("Scan complete. Matches with balances: 1, errors: 1", output)
        self.assertIn(derive_candidate(SEED, 1, Algorithm.ED25519).address, output)

    def test_scan_balances_uses_stored_seed(self) -> None:
        FileKeyStore(Path(self.keyfile)).save(SeedWallet(seed=SEED, algorithm=Algorithm.SECP256R1))
        self._fund(Algorithm.SECP256R1, 4, {"keeta_tok": 1})
        code, output, _ = self._run(["wallet", "scan-balances", "--keyfile", self.keyfile])
        self.assertEqual(code, 0)
        self.assertIn("across algos: secp256r1", output)
        self.assertIn("Matches with balances: 1", output)

    def test_scan_balances_rejects_private_key_wallet(self) -> None:
        FileKeyStore(Path(self.keyfile)).save(PrivateKeyWallet(private_key="09" * 32))
        code, _, err = self._run(["wallet", "scan-balances", "--keyfile", self.keyfile])
        self.assertEqual(code, 1)
        self.assertIn("seed-based wallet", err)
        self.assertEqual(FakeClient.created, [])


if __name__ == "__main__":
    unittest.main()
