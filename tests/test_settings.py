from __future__ import annotations

import os
import unittest
from pathlib import Path
from unittest import mock

from prizepool.config import Settings
from prizepool.config.settings import DEFAULT_DATABASE_URL, DEFAULT_STATE_KEY


class SettingsLoadTests(unittest.TestCase):
    def load(self, **env: str) -> Settings:
        with mock.patch("prizepool.config.settings.load_dotenv"):
            with mock.patch.dict(os.environ, env, clear=True):
                return Settings.load()

    def test_defaults(self) -> None:
        settings = self.load(BOT_TOKEN="123:abc")
        self.assertEqual(settings.bot_token, "123:abc")
        self.assertEqual(settings.database_url, DEFAULT_DATABASE_URL)
        self.assertEqual(settings.state_backend, "database")
        self.assertEqual(settings.state_key, DEFAULT_STATE_KEY)
        self.assertEqual(settings.owner_ids, ())
        self.assertEqual(settings.public_history_limit, 20)
        self.assertFalse(settings.is_dev)
        self.assertEqual(settings.items_config_seed_path, Path("./data") / "items-config.txt")

    def test_missing_token_fails_fast(self) -> None:
        with self.assertRaises(RuntimeError):
            self.load()

    def test_owner_ids_accept_several_formats(self) -> None:
        settings = self.load(BOT_TOKEN="t", OWNER_IDS="[951258732, 123 '456']")
        self.assertEqual(settings.owner_ids, (951258732, 123, 456))

    def test_invalid_values_are_rejected(self) -> None:
        with self.assertRaises(RuntimeError):
            self.load(BOT_TOKEN="t", STATE_BACKEND="redis")
        with self.assertRaises(RuntimeError):
            self.load(BOT_TOKEN="t", OWNER_IDS="abc")
        with self.assertRaises(RuntimeError):
            self.load(BOT_TOKEN="t", PUBLIC_HISTORY_LIMIT="0")

    def test_backend_and_environment(self) -> None:
        settings = self.load(
            BOT_TOKEN="t", STATE_BACKEND="FILE", DATA_DIR="/tmp/pool", ENVIRONMENT="development"
        )
        self.assertEqual(settings.state_backend, "file")
        self.assertEqual(settings.data_dir, Path("/tmp/pool"))
        self.assertTrue(settings.is_dev)


if __name__ == "__main__":
    unittest.main()
