import unittest

from keeta_cli.display import format_amount, probe_line, short
from keeta_network.accounts import KeyAlgorithm, derive_account
from keeta_wallet.models import Algorithm
from keeta_wallet.search import ProbeResult, ProbeStatus


class DisplayTests(unittest.TestCase):
    def test_format_amount_is_exact(self) -> None:
        self.assertEqual(format_amount(1500, 3), "1.5")
        self.assertEqual(format_amount(10 ** 30 + 1, 18), "1000000000000.000000000000000001")
        self.assertEqual(format_amount(-250, 2), "-2.5")
        self.assertEqual(format_amount(300, 2), "3")
        self.assertEqual(format_amount(7, None), "7")

    def test_short(self) -> None:
        self.assertEqual(short("abcdef", 3), "abc...")
        self.assertEqual(short("abc", 3), "abc")
        self.assertEqual(short(None), "unknown")

    def test_probe_line_distinguishes_zero_from_error(self) -> None:
        account = derive_account("aa" * 32, 0, KeyAlgorithm.ED25519)
        found = ProbeResult(
            Algorithm.ED25519, 0, ProbeStatus.FOUND, account=account, balances={"t": 3}, total=3
        )
        empty = ProbeResult(Algorithm.ED25519, 1, ProbeStatus.NO_BALANCE, account=account)
        failed = ProbeResult(Algorithm.ED25519, 2, ProbeStatus.ERROR, error="timeout")

        self.assertIn("(1 token(s), balance: 3)", probe_line(found))
        self.assertIn("(no balance)", probe_line(empty))
        self.assertIn("(error: timeout)", probe_line(failed))
        self.assertIn("unknown", probe_line(failed))


if __name__ == "__main__":
    unittest.main()
