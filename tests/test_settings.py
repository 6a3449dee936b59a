import os
import tempfile
import unittest
from pathlib import Path


class TestLoadSettings(unittest.TestCase):
    def test_defaults(self) -> None:
        from remote_dl.kernel.settings import DEFAULT_ARIA2_RPC_URL, DEFAULT_RELAYS, load_settings

        with tempfile.TemporaryDirectory() as td:
            s = load_settings(env={}, path=Path(td) / "settings.yaml")
        self.assertEqual(s.auth_code, "")
        self.assertFalse(s.telegram_enabled)
        self.assertTrue(s.nostr_enabled)
        self.assertEqual(s.nostr_relays, DEFAULT_RELAYS)
        self.assertEqual(s.aria2_rpc_url, DEFAULT_ARIA2_RPC_URL)
        self.assertEqual(s.auto_clean_days, 30)
        self.assertEqual(s.auto_clean_interval_seconds, 36000.0)
        self.assertEqual(s.web_port, 6798)
        self.assertEqual(s.save_dir.name, "streambox")

    def test_env_overrides_file(self) -> None:
        from remote_dl.kernel.settings import load_settings, save_settings_file

        with tempfile.TemporaryDirectory() as td:
            p = Path(td) / "settings.yaml"
            save_settings_file(
                {"auth_code": "fromfile", "auto_clean_days": 7, "save_dir": str(Path(td) / "dl")},
                p,
            )
            s = load_settings(env={"AUTHCODE": "fromenv", "TELEGRAMBOT": "123:abc", "AUTO_CLEAN_DAYS": ""}, path=p)
        self.assertEqual(s.auth_code, "fromenv")
        self.assertEqual(s.auto_clean_days, 7)
        self.assertTrue(s.telegram_enabled)
        self.assertEqual(s.save_dir, Path(td) / "dl")

    def test_relays_and_flags_from_env(self) -> None:
        from remote_dl.kernel.settings import load_settings

        with tempfile.TemporaryDirectory() as td:
            s = load_settings(
                env={"NOSTR_RELAYS": "wss://a.example, wss://b.example", "NOSTR_ENABLED": "false"},
                path=Path(td) / "none.yaml",
            )
        self.assertEqual(s.nostr_relays, ["wss://a.example", "wss://b.example"])
        self.assertFalse(s.nostr_enabled)

    def test_invalid_values_raise_config_error(self) -> None:
        from remote_dl.kernel.errors import ConfigError
        from remote_dl.kernel.settings import load_settings

        bad = (
            {"AUTO_CLEAN_DAYS": "thirty"},
            {"AUTO_CLEAN_DAYS": "-1"},
            {"AUTO_CLEAN_INTERVAL_HOURS": "0"},
            {"NOSTR_RELAYS": "http://not-a-relay"},
            {"WEB_PORT": "0"},
        )
        with tempfile.TemporaryDirectory() as td:
            for env in bad:
                with self.subTest(env=env):
                    with self.assertRaises(ConfigError):
                        load_settings(env=env, path=Path(td) / "none.yaml")

    def test_bad_yaml_raises_config_error(self) -> None:
        from remote_dl.kernel.errors import ConfigError
        from remote_dl.kernel.settings import load_settings_file

        with tempfile.TemporaryDirectory() as td:
            p = Path(td) / "settings.yaml"
            p.write_text("- just\n- a list\n", encoding="utf-8")
            with self.assertRaises(ConfigError):
                load_settings_file(p)

    def test_settings_path_follows_home(self) -> None:
        from remote_dl.kernel.settings import settings_path

        old_home = os.environ.get("REMOTE_DL_HOME")
        try:
            with tempfile.TemporaryDirectory() as td:
                os.environ["REMOTE_DL_HOME"] = td
                self.assertEqual(settings_path(), Path(td).resolve() / "settings.yaml")
        finally:
            if old_home is None:
                os.environ.pop("REMOTE_DL_HOME", None)
            else:
                os.environ["REMOTE_DL_HOME"] = old_home


if __name__ == "__main__":
    unittest.main()
