"""load_config: TOML + environment layering."""

from __future__ import annotations

import pytest

from pool_watcher.config import load_config
from pool_watcher.errors import ConfigurationError
from pool_watcher.models.config import SinkBackend

ENV_VARS = [
    "ALCHEMY_API_KEY", "SUPABASE_URL", "SUPABASE_KEY",
    "POOL_WATCHER_TARGETS", "POOL_WATCHER_DB_PATH",
    "POOL_WATCHER_BACKEND", "POOL_WATCHER_POLL_INTERVAL",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def write_toml(tmp_path, text: str):
    path = tmp_path / "watcher.toml"
    path.write_text(text, encoding="utf-8")
    return path


def test_defaults_without_file():
    cfg = load_config(None)
    assert cfg.targets_path == "events.csv"
    assert cfg.max_concurrent_networks == 1
    assert cfg.max_block_range is None
    assert cfg.storage.backend is SinkBackend.SQLITE
    assert cfg.storage.persist_cursors is False
    assert cfg.schedule.poll_interval == 5.0
    assert cfg.log_file == "process.log"


def test_missing_file_falls_back_to_defaults(tmp_path):
    cfg = load_config(tmp_path / "absent.toml")
    assert cfg.targets_path == "events.csv"


def test_toml_sections(tmp_path):
    path = write_toml(tmp_path, """
[watcher]
targets_path = "targets/events.csv"
poll_interval = 2
error_backoff = 1.5
max_backoff = 60
jitter = 0
max_concurrent_networks = 3
max_block_range = 2000
log_file = ""

[rpc]
alchemy_api_key = "from-file"
timeout = 12

[rpc.endpoints]
ethereum = "http://localhost:8545"

[events]
Swap = "0xd78ad95fa46c994b6551d0da85fc275fe613ce37657fb8d5e3d130840159d822"

[storage]
backend = "supabase"
db_path = "/tmp/pw.db"
persist_cursors = true
supabase_url = "https://project.supabase.co"
supabase_key = "file-key"
supabase_table = "pool_logs"
""")

    cfg = load_config(path)

    assert cfg.targets_path == "targets/events.csv"
    assert cfg.schedule.poll_interval == 2.0
    assert cfg.schedule.error_backoff == 1.5
    assert cfg.schedule.max_backoff == 60.0
    assert cfg.schedule.jitter == 0.0
    assert cfg.max_concurrent_networks == 3
    assert cfg.max_block_range == 2000
    assert cfg.log_file is None
    assert cfg.rpc.alchemy_api_key == "from-file"
    assert cfg.rpc.timeout == 12.0
    assert cfg.rpc.endpoints == {"ethereum": "http://localhost:8545"}
    assert "Swap" in cfg.events
    assert cfg.storage.backend is SinkBackend.SUPABASE
    assert cfg.storage.db_path == "/tmp/pw.db"
    assert cfg.storage.persist_cursors is True
    assert cfg.storage.supabase_table == "pool_logs"


def test_env_overrides_file(tmp_path, monkeypatch):
    path = write_toml(tmp_path, """
[rpc]
alchemy_api_key = "from-file"
[storage]
supabase_key = "file-key"
""")
    monkeypatch.setenv("ALCHEMY_API_KEY", "from-env")
    monkeypatch.setenv("SUPABASE_URL", "https://env.supabase.co")
    monkeypatch.setenv("SUPABASE_KEY", "env-key")
    monkeypatch.setenv("POOL_WATCHER_TARGETS", "/data/events.csv")
    monkeypatch.setenv("POOL_WATCHER_BACKEND", "supabase")
    monkeypatch.setenv("POOL_WATCHER_POLL_INTERVAL", "0.5")

    cfg = load_config(path)

    assert cfg.rpc.alchemy_api_key == "from-env"
    assert cfg.storage.supabase_url == "https://env.supabase.co"
    assert cfg.storage.supabase_key == "env-key"
    assert cfg.targets_path == "/data/events.csv"
    assert cfg.storage.backend is SinkBackend.SUPABASE
    assert cfg.schedule.poll_interval == 0.5


def test_db_path_tilde_expanded(tmp_path, monkeypatch):
    monkeypatch.setenv("HOME", str(tmp_path))
    cfg = load_config(None)
    assert cfg.storage.db_path == str(tmp_path / ".pool_watcher" / "logs.db")


@pytest.mark.parametrize("text", [
    '[storage]\nbackend = "postgres"\n',
    '[watcher]\nmax_concurrent_networks = 0\n',
    '[watcher]\npoll_interval = -1\n',
    '[watcher]\npoll_interval = "soon"\n',
    '[watcher]\nlog_level = "verbose"\n',
    '[storage]\npersist_cursors = "maybe"\n',
    '[events]\nSwap = 1\n[events.nested]\n',
    'not toml at all [',
])
def test_invalid_values_rejected(tmp_path, text):
    with pytest.raises(ConfigurationError):
        load_config(write_toml(tmp_path, text))


def test_log_level_case_insensitive(tmp_path):
    cfg = load_config(write_toml(tmp_path, '[watcher]\nlog_level = "WARNING"\n'))
    assert cfg.log_level == "warning"
