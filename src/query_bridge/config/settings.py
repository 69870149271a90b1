from __future__ import annotations
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional
import yaml
from dotenv import load_dotenv

load_dotenv()

def _env(key: str, default: Optional[str] = None) -> Optional[str]:
    return os.environ.get(key, default)

def _env_bool(key: str, default: bool = False) -> bool:
    val = os.environ.get(key)
    if val is None:
        return default
    return val.strip().lower() in ("1", "true", "yes", "y", "on")

def _env_int(key: str, default: Optional[int]) -> Optional[int]:
    val = os.environ.get(key)
    if val is None or not val.strip():
        return default
    return int(val)

def _opt_int(val: Any) -> Optional[int]:
    if val is None or val == "":
        return None
    return int(val)

def _opt_float(val: Any) -> Optional[float]:
    if val is None or val == "":
        return None
    return float(val)

@dataclass(frozen=True)
class Settings:
    env: str
    log_level: str
    log_file: str

    # ------------------------------------------------------------------
    # Query backend (beeline / athena)
    # ------------------------------------------------------------------
    db_type: str

    # Beeline (Hive / Spark Thrift via the beeline CLI)
    beeline_binary: str
    beeline_profile: str
    beeline_url: str
    beeline_username: str
    beeline_password: str
    beeline_timeout_s: Optional[float]

    # Athena
    aws_region: str
    aws_access_key_id: str
    aws_secret_access_key: str
    athena_ssl_enabled: bool
    athena_database: str
    athena_output_location: str
    athena_workgroup: str
    athena_catalog: str
    athena_query_timeout_ms: Optional[int]
    athena_retry_count: int
    athena_poll_floor_ms: int

    def __repr__(self) -> str:
        return f"Settings(env={self.env!r}, db_type={self.db_type!r}, log_level={self.log_level!r})"

def load_settings(config_dir: str = "config") -> Settings:
    app_env = _env("APP_ENV", "dev")
    cfg_path = Path(config_dir) / f"{app_env}.yaml"
    if not cfg_path.exists():
        raise FileNotFoundError(f"Config not found: {cfg_path}")

    cfg: Dict[str, Any] = yaml.safe_load(cfg_path.read_text(encoding="utf-8")) or {}

    app_cfg = cfg.get("app") or {}
    log_level = _env("LOG_LEVEL", str(app_cfg.get("log_level", "INFO")))
    log_file = _env("LOG_FILE", str(app_cfg.get("log_file", "logs/query_bridge.log")))

    db_cfg = (cfg.get("database") or {})
    db_type = (_env("DB_TYPE", str(db_cfg.get("db_type", "beeline"))) or "beeline").strip().lower()

    bl_cfg = (db_cfg.get("beeline") or {})
    beeline_binary = _env("BEELINE_BINARY", str(bl_cfg.get("binary", "beeline"))) or "beeline"
    beeline_profile = (_env("BEELINE_PROFILE", str(bl_cfg.get("profile", "framed"))) or "framed").strip().lower()
    beeline_url = _env("BEELINE_URL", str(bl_cfg.get("url", ""))) or ""
    beeline_username = _env("BEELINE_USERNAME", str(bl_cfg.get("username", ""))) or ""
    # Secrets come from the environment (.env) only, never from the YAML file.
    beeline_password = _env("BEELINE_PASSWORD", "") or ""
    beeline_timeout_s = _opt_float(_env("BEELINE_TIMEOUT_S", bl_cfg.get("timeout_s")))

    ath_cfg = (db_cfg.get("athena") or {})
    aws_region = _env("AWS_REGION", str(ath_cfg.get("region", "us-east-1"))) or "us-east-1"
    aws_access_key_id = _env("AWS_ACCESS_KEY_ID", "") or ""
    aws_secret_access_key = _env("AWS_SECRET_ACCESS_KEY", "") or ""
    athena_ssl_enabled = _env_bool("ATHENA_SSL_ENABLED", bool(ath_cfg.get("ssl_enabled", True)))
    athena_database = _env("ATHENA_DATABASE", str(ath_cfg.get("database", ""))) or ""
    athena_output_location = _env("ATHENA_OUTPUT_LOCATION", str(ath_cfg.get("output_location", ""))) or ""
    athena_workgroup = _env("ATHENA_WORKGROUP", str(ath_cfg.get("workgroup", ""))) or ""
    athena_catalog = _env("ATHENA_CATALOG", str(ath_cfg.get("catalog", "AwsDataCatalog"))) or "AwsDataCatalog"
    athena_query_timeout_ms = _env_int("ATHENA_QUERY_TIMEOUT_MS", _opt_int(ath_cfg.get("query_timeout_ms")))
    athena_retry_count = _env_int("ATHENA_RETRY_COUNT", int(ath_cfg.get("retry_count", 5)))
    athena_poll_floor_ms = _env_int("ATHENA_POLL_FLOOR_MS", int(ath_cfg.get("poll_floor_ms", 1000)))

    return Settings(
        env=app_env,
        log_level=log_level,
        log_file=log_file,
        db_type=db_type,
        beeline_binary=beeline_binary,
        beeline_profile=beeline_profile,
        beeline_url=beeline_url,
        beeline_username=beeline_username,
        beeline_password=beeline_password,
        beeline_timeout_s=beeline_timeout_s,
        aws_region=aws_region,
        aws_access_key_id=aws_access_key_id,
        aws_secret_access_key=aws_secret_access_key,
        athena_ssl_enabled=athena_ssl_enabled,
        athena_database=athena_database,
        athena_output_location=athena_output_location,
        athena_workgroup=athena_workgroup,
        athena_catalog=athena_catalog,
        athena_query_timeout_ms=athena_query_timeout_ms,
        athena_retry_count=athena_retry_count,
        athena_poll_floor_ms=athena_poll_floor_ms,
    )
