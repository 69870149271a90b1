import pytest

from query_bridge.config.settings import load_settings
from query_bridge.db import get_adapter
from query_bridge.db.adapters import AthenaAdapter, BeelineAdapter
from query_bridge.db.connection import AthenaConnection, BeelineConnection
from query_bridge.db.framing import FRAMED_PROFILE, PLAIN_PROFILE
from query_bridge.exceptions.errors import ConfigurationError
from query_bridge.logging.logger import REDACTED, redact, scrub

CONFIG = """
app:
  log_level: DEBUG
database:
  db_type: beeline
  beeline:
    binary: /opt/hive/bin/beeline
    profile: plain
    url: jdbc:hive2://hive:10000/default
    username: analyst
  athena:
    region: eu-west-1
    database: sales
    output_location: s3://bucket/results/
    query_timeout_ms: 20000
"""

ENV_KEYS = [
    "APP_ENV", "LOG_LEVEL", "LOG_FILE", "DB_TYPE", "BEELINE_BINARY", "BEELINE_PROFILE", "BEELINE_URL",
    "BEELINE_USERNAME", "BEELINE_PASSWORD", "BEELINE_TIMEOUT_S", "AWS_REGION", "AWS_ACCESS_KEY_ID",
    "AWS_SECRET_ACCESS_KEY", "ATHENA_SSL_ENABLED", "ATHENA_DATABASE", "ATHENA_OUTPUT_LOCATION",
    "ATHENA_WORKGROUP", "ATHENA_CATALOG", "ATHENA_QUERY_TIMEOUT_MS", "ATHENA_RETRY_COUNT",
    "ATHENA_POLL_FLOOR_MS",
]


@pytest.fixture
def config_dir(tmp_path, monkeypatch):
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("APP_ENV", "test")
    (tmp_path / "test.yaml").write_text(CONFIG, encoding="utf-8")
    return str(tmp_path)


def test_load_settings_from_yaml(config_dir):
    s = load_settings(config_dir)
    assert s.env == "test"
    assert s.log_level == "DEBUG"
    assert s.db_type == "beeline"
    assert s.beeline_profile == "plain"
    assert s.beeline_timeout_s is None
    assert s.athena_query_timeout_ms == 20000
    assert s.athena_retry_count == 5
    assert s.athena_poll_floor_ms == 1000
    assert s.athena_catalog == "AwsDataCatalog"


def test_env_overrides_yaml(config_dir, monkeypatch):
    monkeypatch.setenv("DB_TYPE", "ATHENA")
    monkeypatch.setenv("ATHENA_RETRY_COUNT", "3")
    monkeypatch.setenv("ATHENA_SSL_ENABLED", "false")
    monkeypatch.setenv("BEELINE_PASSWORD", "pw")
    s = load_settings(config_dir)
    assert s.db_type == "athena"
    assert s.athena_retry_count == 3
    assert s.athena_ssl_enabled is False
    assert "pw" not in repr(s)


def test_missing_config_file(tmp_path, monkeypatch):
    monkeypatch.setenv("APP_ENV", "nope")
    with pytest.raises(FileNotFoundError):
        load_settings(str(tmp_path))


def test_get_adapter_beeline(config_dir, monkeypatch):
    monkeypatch.setenv("BEELINE_PASSWORD", "pw")
    adapter, conn = get_adapter(load_settings(config_dir))
    assert isinstance(adapter, BeelineAdapter)
    assert adapter.profile is PLAIN_PROFILE
    assert adapter.command == ("/opt/hive/bin/beeline",)
    assert conn == BeelineConnection(url="jdbc:hive2://hive:10000/default", username="analyst", password="pw")


def test_get_adapter_athena(config_dir, monkeypatch):
    monkeypatch.setenv("DB_TYPE", "athena")
    monkeypatch.setenv("ATHENA_POLL_FLOOR_MS", "250")
    adapter, conn = get_adapter(load_settings(config_dir))
    assert isinstance(adapter, AthenaAdapter)
    assert adapter.poll_config.floor_ms == 250
    assert isinstance(conn, AthenaConnection)
    assert conn.region == "eu-west-1"
    assert conn.query_timeout_ms == 20000


def test_get_adapter_rejects_unknown(config_dir, monkeypatch):
    monkeypatch.setenv("DB_TYPE", "oracle")
    with pytest.raises(ConfigurationError):
        get_adapter(load_settings(config_dir))


def test_get_adapter_rejects_unknown_profile(config_dir, monkeypatch):
    monkeypatch.setenv("BEELINE_PROFILE", "chatty")
    with pytest.raises(ConfigurationError):
        get_adapter(load_settings(config_dir))


def test_get_adapter_defaults_to_framed_profile(config_dir, monkeypatch):
    monkeypatch.setenv("BEELINE_PROFILE", "")
    adapter, _ = get_adapter(load_settings(config_dir))
    assert adapter.profile is FRAMED_PROFILE


def test_get_adapter_rejects_zero_retry_count(config_dir, monkeypatch):
    monkeypatch.setenv("DB_TYPE", "athena")
    monkeypatch.setenv("ATHENA_RETRY_COUNT", "0")
    with pytest.raises(ConfigurationError, match="retry_count"):
        get_adapter(load_settings(config_dir))


def test_redact_nested():
    payload = {"url": "jdbc:x", "password": "p", "nested": [{"Secret_Access_Key": "k"}]}
    assert redact(payload) == {"url": "jdbc:x", "password": REDACTED, "nested": [{"Secret_Access_Key": REDACTED}]}


def test_scrub_ignores_empty_secrets():
    assert scrub("login failed for pw=hunter2", ["hunter2", "", None]) == f"login failed for pw={REDACTED}"
