"""Tests for the urllib transport against local misbehaving servers."""

import socketserver
import threading
import unittest
from http.server import BaseHTTPRequestHandler, HTTPServer

from keeta_network.client import NetworkClient, NetworkError, network_config, urllib_transport
from keeta_wallet.search import ProbeStatus, auto_detect

SEED = "6f" * 32


class GarbledBodyHandler(BaseHTTPRequestHandler):
    def do_GET(self) -> None:
        body = b"\xff\xfe\xfa"
        self.send_response(200)
        self.send_header("Content-Type", "application/json")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def log_message(self, format, *args) -> None:
        pass


class NotHttpHandler(socketserver.StreamRequestHandler):
    def handle(self) -> None:
        self.rfile.readline()
        self.wfile.write(b"not http at all\r\n\r\n")


class _ReusableTCPServer(socketserver.TCPServer):
    allow_reuse_address = True


class UrllibTransportTests(unittest.TestCase):
    def _serve(self, server) -> str:
        thread = threading.Thread(target=server.serve_forever, daemon=True)
        thread.start()
        self.addCleanup(server.server_close)
        self.addCleanup(server.shutdown)
        host, port = server.server_address[:2]
        return f"http://{host}:{port}"

    def test_non_utf8_body_is_network_error(self) -> None:
        base = self._serve(HTTPServer(("127.0.0.1", 0), GarbledBodyHandler))
        with self.assertRaises(NetworkError):
            urllib_transport("GET", base + "/node/ledger/network", None, 5.0)

    def test_non_http_peer_is_network_error(self) -> None:
        base = self._serve(_ReusableTCPServer(("127.0.0.1", 0), NotHttpHandler))
        with self.assertRaises(NetworkError):
            urllib_transport("GET", base + "/node/ledger/network", None, 5.0)

    def test_unreachable_node_is_network_error(self) -> None:
        server = HTTPServer(("127.0.0.1", 0), GarbledBodyHandler)
        host, port = server.server_address[:2]
        server.server_close()
        with self.assertRaises(NetworkError):
            urllib_transport("GET", f"http://{host}:{port}/", None, 5.0)

    def test_auto_detect_records_garbled_responses_as_errors(self) -> None:
        base = self._serve(HTTPServer(("127.0.0.1", 0), GarbledBodyHandler))
        client = NetworkClient(network_config("test", api_url=base + "/api"))
        seen = []

        self.assertIsNone(auto_detect(SEED, client, on_probe=seen.append))
        self.assertEqual(len(seen), 18)
        self.assertTrue(all(result.status is ProbeStatus.ERROR for result in seen))


if __name__ == "__main__":
    unittest.main()
