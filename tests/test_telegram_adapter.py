import unittest
from unittest.mock import patch


class TestTelegramAdapter(unittest.TestCase):
    def _adapter(self):
        from remote_dl.ports.im.adapters.telegram import TelegramAdapter

        return TelegramAdapter("123:abc")

    def test_connect_reads_bot_username(self) -> None:
        a = self._adapter()
        with patch.object(a, "_api", return_value={"ok": True, "result": {"username": "dl_bot"}}):
            self.assertTrue(a.connect())
        self.assertEqual(a.bot_username, "dl_bot")
        self.assertEqual(a.identity()["link"], "https://t.me/dl_bot")

    def test_connect_failure(self) -> None:
        a = self._adapter()
        with patch.object(a, "_api", return_value={"ok": False, "error": "401 Unauthorized"}):
            self.assertFalse(a.connect())
        self.assertEqual(a.poll(), [])

    def test_poll_normalizes_text_messages_and_advances_offset(self) -> None:
        a = self._adapter()
        updates = {
            "ok": True,
            "result": [
                {"update_id": 10, "message": {"chat": {"id": 555}, "from": {"username": "alice"}, "text": "help"}},
                {"update_id": 11, "message": {"chat": {"id": 555}, "photo": [{"file_id": "x"}]}},
                {"update_id": 12, "edited_message": {"chat": {"id": 555}, "text": "stats"}},
                {"update_id": 13, "message": {"chat": {"id": -100}, "from": {"first_name": "Bob"}, "text": "time"}},
            ],
        }
        with patch.object(a, "_api", side_effect=[{"ok": True, "result": {"username": "b"}}, updates]) as api:
            a.connect()
            msgs = a.poll()
            poll_params = api.call_args_list[1].args[1]

        self.assertEqual(poll_params["offset"], 0)
        self.assertEqual(poll_params["allowed_updates"], ["message"])
        self.assertEqual([(m.sender_id, m.text, m.from_user) for m in msgs], [("555", "help", "alice"), ("-100", "time", "Bob")])
        self.assertEqual(msgs[0].transport, "telegram")
        self.assertEqual(msgs[0].event_id, "10")
        self.assertEqual(a._offset, 14)

    def test_reply_sends_to_chat(self) -> None:
        a = self._adapter()
        with patch.object(a, "_api", return_value={"ok": True, "result": {}}) as api:
            msg = a.make_inbound("555", "help")
            self.assertTrue(msg.reply("hello"))
        method, params = api.call_args.args[0], api.call_args.args[1]
        self.assertEqual(method, "sendMessage")
        self.assertEqual(params["chat_id"], "555")
        self.assertEqual(params["text"], "hello")

    def test_send_retries_once(self) -> None:
        a = self._adapter()
        with patch.object(a, "_api", side_effect=[{"ok": False, "error": "x"}, {"ok": True}]) as api, \
                patch("remote_dl.ports.im.adapters.telegram.time.sleep"):
            self.assertTrue(a.send_message("1", "hi"))
        self.assertEqual(api.call_count, 2)

    def test_long_messages_are_truncated(self) -> None:
        from remote_dl.ports.im.adapters.telegram import TELEGRAM_MAX_MESSAGE_LENGTH

        a = self._adapter()
        text = a._compose_safe("x" * 10000)
        self.assertEqual(len(text), TELEGRAM_MAX_MESSAGE_LENGTH)
        self.assertTrue(text.endswith("…"))


class TestSummarize(unittest.TestCase):
    def test_collapses_blank_runs_and_limits_lines(self) -> None:
        from remote_dl.ports.im.adapters.telegram import TelegramAdapter

        a = TelegramAdapter("t")
        text = "\r\n\nline1  \r\n\n\n\nline2\n" + "\n".join(f"x{i}" for i in range(10))
        self.assertEqual(a.summarize(text, max_chars=100, max_lines=4), "line1\n\nline2\nx0")
        self.assertEqual(a.summarize("abcdef", max_chars=4), "abc…")
        self.assertEqual(a.summarize(""), "")


class TestChatThrottle(unittest.TestCase):
    def test_second_send_to_same_chat_must_wait(self) -> None:
        from remote_dl.ports.im.adapters.telegram import ChatThrottle

        th = ChatThrottle(min_interval_s=1.0)
        self.assertEqual(th.reserve("1"), 0.0)
        self.assertGreater(th.reserve("1"), 0.0)
        self.assertEqual(th.reserve("2"), 0.0)

    def test_slots_queue_up(self) -> None:
        from remote_dl.ports.im.adapters.telegram import ChatThrottle

        th = ChatThrottle(min_interval_s=1.0)
        th.reserve("1")
        th.reserve("1")
        self.assertGreater(th.reserve("1"), 1.0)

    def test_expired_slots_are_forgotten(self) -> None:
        from remote_dl.ports.im.adapters.telegram import ChatThrottle

        th = ChatThrottle(min_interval_s=0.5)
        with patch("remote_dl.ports.im.adapters.telegram.time.monotonic", return_value=100.0):
            for chat in ("1", "2", "3"):
                th.reserve(chat)
        with patch("remote_dl.ports.im.adapters.telegram.time.monotonic", return_value=200.0):
            self.assertEqual(th.reserve("4"), 0.0)
        self.assertEqual(list(th._next_ok), ["4"])


if __name__ == "__main__":
    unittest.main()
