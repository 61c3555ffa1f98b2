import unittest
from pathlib import Path

from keeta_wallet.config import ENV_API_URL, ENV_KEYFILE, ENV_NETWORK, load_config


class LoadConfigTests(unittest.TestCase):
    def test_defaults(self) -> None:
        config = load_config(environ={}, home=Path("/home/user"))
        self.assertEqual(config.network, "test")
        self.assertEqual(config.keyfile, Path("/home/user/.keeta/wallet.json"))
        self.assertIn("test.network", config.network_config().api_url)

    def test_environment_overrides_defaults(self) -> None:
        config = load_config(
            environ={
                ENV_NETWORK: "main",
                ENV_KEYFILE: "/tmp/keeta.json",
                ENV_API_URL: "http://localhost:9000/api",
            }
        )
        self.assertEqual(config.keyfile, Path("/tmp/keeta.json"))
        self.assertEqual(config.network_config().name, "main")
        self.assertEqual(config.network_config().api_url, "http://localhost:9000/api")
        self.assertEqual(config.keystore().path, Path("/tmp/keeta.json"))

    def test_explicit_values_win(self) -> None:
        config = load_config(
            keyfile="/tmp/other.json",
            network="test",
            environ={ENV_NETWORK: "main", ENV_KEYFILE: "/tmp/keeta.json"},
        )
        self.assertEqual(config.keyfile, Path("/tmp/other.json"))
        self.assertEqual(config.network, "test")

    def test_unknown_network_fails_on_use(self) -> None:
        config = load_config(network="staging", environ={})
        with self.assertRaises(ValueError):
            config.network_config()


if __name__ == "__main__":
    unittest.main()
