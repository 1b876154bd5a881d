# prizepool/config/settings.py
from __future__ import annotations

import os
import re
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

STATE_BACKENDS = ("database", "file", "memory")

DEFAULT_DATABASE_URL = "sqlite+aiosqlite:///./prizepool.db"
DEFAULT_STATE_KEY = "prize_pool_spin_state_v1"
DEFAULT_ITEMS_CONFIG_KEY = "prize_pool_items_config_v1"
DEFAULT_STAFF_CATALOG_KEY = "prize_pool_staff_catalog_v1"
DEFAULT_PUBLIC_HISTORY_LIMIT = 20


def _require(env: dict[str, str], key: str) -> str:
    v = env.get(key)
    if v is None or not v.strip():
        raise RuntimeError(f"Missing required environment variable: {key}")
    return v.strip()


def _to_int(value: str, key_name: str) -> int:
    try:
        return int(value)
    except ValueError as e:
        raise RuntimeError(f"Invalid integer for {key_name}: {value!r}") from e


def _parse_int_list(raw: str | None, key_name: str) -> list[int]:
    """
    Parses comma/space/newline separated ints.
    Accepts:
      "951258732"
      "951258732,123"
      "951258732 123"
      "[951258732, 123]"  (brackets ignored)
    """
    if not raw:
        return []

    cleaned = raw.strip().strip("[](){}").strip()
    if not cleaned:
        return []

    parts = [p for p in re.split(r"[,\s]+", cleaned) if p]

    out: list[int] = []
    for p in parts:
        p2 = p.strip().strip("'\"")
        if not p2:
            continue
        out.append(_to_int(p2, key_name))
    return out


@dataclass(frozen=True, slots=True)
class Settings:
    # --- required ---
    bot_token: str

    # --- storage ---
    database_url: str = DEFAULT_DATABASE_URL
    state_backend: str = "database"  # database | file | memory
    data_dir: Path = Path("./data")

    # --- store keys ---
    state_key: str = DEFAULT_STATE_KEY
    items_config_key: str = DEFAULT_ITEMS_CONFIG_KEY
    staff_catalog_key: str = DEFAULT_STAFF_CATALOG_KEY

    # --- security ---
    owner_ids: tuple[int, ...] = ()

    # --- presentation ---
    public_history_limit: int = DEFAULT_PUBLIC_HISTORY_LIMIT

    # --- environment ---
    environment: str = "production"  # production | development

    @property
    def is_dev(self) -> bool:
        return self.environment.lower() in {"dev", "development", "local"}

    @property
    def items_config_seed_path(self) -> Path:
        return self.data_dir / "items-config.txt"

    @classmethod
    def load(cls) -> "Settings":
        """
        Loads from process env (and .env if present).
        Fails fast for required or malformed fields.
        """
        load_dotenv()
        env = os.environ

        bot_token = _require(env, "BOT_TOKEN")

        database_url = (env.get("DATABASE_URL") or DEFAULT_DATABASE_URL).strip()

        state_backend = (env.get("STATE_BACKEND") or "database").strip().lower()
        if state_backend not in STATE_BACKENDS:
            raise RuntimeError(
                f"Invalid STATE_BACKEND: {state_backend!r} (expected one of {', '.join(STATE_BACKENDS)})"
            )

        data_dir = Path((env.get("DATA_DIR") or "./data").strip() or "./data")

        owner_ids = tuple(_parse_int_list(env.get("OWNER_IDS"), "OWNER_IDS"))

        limit_raw = (env.get("PUBLIC_HISTORY_LIMIT") or "").strip()
        public_history_limit = (
            _to_int(limit_raw, "PUBLIC_HISTORY_LIMIT") if limit_raw else DEFAULT_PUBLIC_HISTORY_LIMIT
        )
        if public_history_limit < 1:
            raise RuntimeError("PUBLIC_HISTORY_LIMIT must be at least 1")

        environment = (env.get("ENVIRONMENT") or "production").strip() or "production"

        return cls(
            bot_token=bot_token,
            database_url=database_url,
            state_backend=state_backend,
            data_dir=data_dir,
            state_key=(env.get("STATE_KEY") or DEFAULT_STATE_KEY).strip(),
            items_config_key=(env.get("ITEMS_CONFIG_KEY") or DEFAULT_ITEMS_CONFIG_KEY).strip(),
            staff_catalog_key=(env.get("STAFF_CATALOG_KEY") or DEFAULT_STAFF_CATALOG_KEY).strip(),
            owner_ids=owner_ids,
            public_history_limit=public_history_limit,
            environment=environment,
        )
