import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

from fakes import SECRET, FakeAdapter, FakeEngine, make_context


class TestBridgeFlow(unittest.TestCase):
    def setUp(self) -> None:
        self._td = tempfile.TemporaryDirectory()
        self.engine = FakeEngine()
        self.ctx = make_context(Path(self._td.name), self.engine)

    def tearDown(self) -> None:
        self._td.cleanup()

    def _bridge(self, adapter: FakeAdapter):
        from remote_dl.ports.im.bridge import IMBridge

        bridge = IMBridge(self.ctx, adapter)
        self.assertTrue(bridge.start())
        return bridge

    def test_authorize_then_download(self) -> None:
        from remote_dl.ports.im.formatting import ACCESS_GRANTED, AUTH_REQUIRED

        adapter = FakeAdapter("telegram")
        bridge = self._bridge(adapter)

        adapter.push("100", "hello")
        bridge.run_once()
        self.assertEqual(adapter.replies_to("100"), [AUTH_REQUIRED])
        self.assertFalse(self.ctx.gate.is_authorized("telegram", "100"))

        adapter.push("100", f"  {SECRET}\n")
        bridge.run_once()
        self.assertEqual(adapter.replies_to("100")[-1], ACCESS_GRANTED)
        self.assertTrue(self.ctx.gate.is_authorized("telegram", "100"))

        adapter.push("100", "download magnet:?xt=urn:btih:ABCD123")
        bridge.run_once()
        self.assertEqual(self.engine.added, [("100", "magnet:?xt=urn:btih:ABCD123")])
        gid = next(iter(self.engine.jobs))
        self.assertIn(f"/status_{gid}", adapter.replies_to("100")[-1])

    def test_unauthorized_commands_are_never_parsed(self) -> None:
        from remote_dl.ports.im.formatting import AUTH_REQUIRED

        adapter = FakeAdapter("telegram")
        bridge = self._bridge(adapter)
        adapter.push("7", "download magnet:?xt=urn:btih:ABCD123")
        bridge.run_once()
        self.assertEqual(self.engine.added, [])
        self.assertEqual(adapter.replies_to("7"), [AUTH_REQUIRED])

    def test_grant_does_not_cross_transports(self) -> None:
        from remote_dl.ports.im.formatting import AUTH_REQUIRED

        tg = FakeAdapter("telegram")
        ns = FakeAdapter("nostr", dedup_required=True)
        tg_bridge = self._bridge(tg)
        ns_bridge = self._bridge(ns)

        tg.push("same", SECRET)
        tg_bridge.run_once()
        ns.push("same", "help", event_id="ev1")
        ns_bridge.run_once()
        self.assertEqual(ns.replies_to("same"), [AUTH_REQUIRED])

    def test_duplicate_events_handled_once(self) -> None:
        adapter = FakeAdapter("nostr", dedup_required=True)
        bridge = self._bridge(adapter)
        self.ctx.gate.try_authorize("nostr", "npubkey", SECRET)

        adapter.push("npubkey", "download http://example.com/a.iso", event_id="ev-1")
        adapter.push("npubkey", "download http://example.com/a.iso", event_id="ev-1")
        self.assertEqual(bridge.run_once(), 1)
        adapter.push("npubkey", "download http://example.com/a.iso", event_id="ev-1")
        self.assertEqual(bridge.run_once(), 0)

        self.assertEqual(len(self.engine.added), 1)
        self.assertEqual(len(adapter.replies_to("npubkey")), 1)
        self.assertTrue(self.ctx.dedup.seen("ev-1"))

    def test_telegram_does_not_dedup(self) -> None:
        adapter = FakeAdapter("telegram")
        bridge = self._bridge(adapter)
        self.ctx.gate.try_authorize("telegram", "1", SECRET)
        adapter.push("1", "time", event_id="5")
        adapter.push("1", "time", event_id="5")
        self.assertEqual(bridge.run_once(), 2)
        self.assertEqual(len(self.ctx.dedup), 0)

    def test_empty_text_ignored(self) -> None:
        adapter = FakeAdapter("telegram")
        bridge = self._bridge(adapter)
        adapter.push("1", "   ")
        self.assertEqual(bridge.run_once(), 0)
        self.assertEqual(adapter.sent, [])

    def test_unexpected_failure_replies_generic_error(self) -> None:
        from remote_dl.ports.im.formatting import GENERIC_ERROR

        adapter = FakeAdapter("telegram")
        bridge = self._bridge(adapter)
        self.ctx.gate.try_authorize("telegram", "1", SECRET)
        adapter.push("1", "help")
        with patch("remote_dl.ports.im.bridge.dispatch", side_effect=RuntimeError("boom")):
            bridge.run_once()
        self.assertEqual(adapter.replies_to("1"), [GENERIC_ERROR])

    def test_start_publishes_identity(self) -> None:
        adapter = FakeAdapter("telegram")
        self._bridge(adapter)
        self.assertTrue(self.ctx.enabled("telegram"))
        self.assertEqual(self.ctx.identity("telegram_username"), "fake_bot")

    def test_stop_disconnects(self) -> None:
        adapter = FakeAdapter("telegram")
        bridge = self._bridge(adapter)
        bridge.stop()
        self.assertFalse(adapter.connected)
        self.assertFalse(bridge.running)


if __name__ == "__main__":
    unittest.main()
