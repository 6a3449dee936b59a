import tempfile
import unittest
from pathlib import Path

from fastapi.testclient import TestClient

from fakes import SECRET, FakeEngine, make_context


class TestStatusPage(unittest.TestCase):
    def setUp(self) -> None:
        self._td = tempfile.TemporaryDirectory()
        self.root = Path(self._td.name)
        self.engine = FakeEngine()
        self.ctx = make_context(self.root, self.engine)

    def tearDown(self) -> None:
        self._td.cleanup()

    def _client(self) -> TestClient:
        from remote_dl.ports.web.app import create_app

        return TestClient(create_app(self.ctx))

    def test_health(self) -> None:
        resp = self._client().get("/api/v1/health")
        self.assertEqual(resp.status_code, 200)
        body = resp.json()
        self.assertTrue(body["ok"])
        self.assertEqual(body["result"]["version"], "9.9.9")
        self.assertEqual(body["result"]["engine"], "running")

    def test_health_engine_down(self) -> None:
        self.engine.down = True
        body = self._client().get("/api/v1/health").json()
        self.assertEqual(body["result"]["engine"], "unreachable")

    def test_dashboard_renders(self) -> None:
        self.ctx.set_enabled("telegram", True)
        self.ctx.set_identity("telegram_username", "dl_bot")
        self.ctx.gate.try_authorize("telegram", "1", SECRET)
        self.engine.put({
            "gid": "g1",
            "status": "active",
            "completedLength": "1",
            "totalLength": "2",
            "files": [{"path": "/x/a&b<c>.mkv"}],
        })
        f = self.root / "u" / "old.bin"
        f.parent.mkdir()
        f.write_bytes(b"x" * 10)

        resp = self._client().get("/")
        self.assertEqual(resp.status_code, 200)
        html = resp.text
        self.assertIn('<meta http-equiv="refresh" content="20">', html)
        self.assertIn(SECRET, html)
        self.assertIn("@dl_bot", html)
        self.assertIn("a&amp;b&lt;c&gt;.mkv", html)
        self.assertIn("50.0%", html)
        self.assertIn("old.bin", html)

    def test_dashboard_engine_down(self) -> None:
        self.engine.down = True
        resp = self._client().get("/")
        self.assertEqual(resp.status_code, 200)
        self.assertIn("offline", resp.text)
        self.assertIn("No ongoing downloads", resp.text)

    def test_no_mutating_routes(self) -> None:
        client = self._client()
        self.assertEqual(client.post("/").status_code, 405)
        self.assertEqual(client.delete("/api/v1/health").status_code, 405)


class TestOldestFileEta(unittest.TestCase):
    def test_eta(self) -> None:
        from remote_dl.ports.web.dashboard import oldest_file_eta
        from remote_dl.util.time import DAY_MS

        now = 1_700_000_000_000
        self.assertEqual(oldest_file_eta(now - 28 * DAY_MS - 3_600_000, 30, at_ms=now), "1d 23h")
        self.assertEqual(oldest_file_eta(now - 31 * DAY_MS, 30, at_ms=now), "Overdue")
        self.assertEqual(oldest_file_eta(0, 30, at_ms=now), "N/A")


if __name__ == "__main__":
    unittest.main()
