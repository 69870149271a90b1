import logging
import os
import glob
from datetime import datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Iterable, Optional

_INITIALIZED = False

REDACTED = "***REDACTED***"

SENSITIVE_KEYS = frozenset(
    {"password", "secret", "secret_access_key", "access_key", "api_key", "authorization"}
)


class SizeTimestampRotatingFileHandler(RotatingFileHandler):
    """Rotate a single log file once it reaches maxBytes.

    - Current log always stays at the configured log_file path (e.g. logs/query_bridge.log)
    - When rotation happens, the previous file is renamed with a timestamp, e.g.:
        logs/query_bridge_20260124_153012.log
    - backupCount=0 keeps all rotated logs; backupCount > 0 keeps only the newest N.
    """

    def doRollover(self) -> None:
        if self.stream:
            try:
                self.stream.close()
            finally:
                self.stream = None

        base_path = Path(self.baseFilename)
        log_dir = str(base_path.parent)
        stem = base_path.stem
        suffix = base_path.suffix or ".log"

        ts = datetime.now().strftime("%Y%m%d_%H%M%S")
        rotated = os.path.join(log_dir, f"{stem}_{ts}{suffix}")
        i = 1
        while os.path.exists(rotated):
            rotated = os.path.join(log_dir, f"{stem}_{ts}_{i}{suffix}")
            i += 1

        if os.path.exists(self.baseFilename):
            try:
                os.replace(self.baseFilename, rotated)
            except OSError:
                # Keep logging into the current file rather than failing the caller
                pass

        if self.backupCount and self.backupCount > 0:
            pattern = os.path.join(log_dir, f"{stem}_*{suffix}")
            files = sorted(glob.glob(pattern), key=lambda p: os.path.getmtime(p), reverse=True)
            for f in files[self.backupCount:]:
                try:
                    os.remove(f)
                except OSError:
                    pass

        if not self.delay:
            self.stream = self._open()


def init_logging(
    log_level: str = "INFO",
    log_file: Optional[str] = "logs/query_bridge.log",
    max_bytes: int = 5 * 1024 * 1024,  # 5 MB
    backup_count: int = 0,             # 0 = keep all rotated logs
) -> None:
    global _INITIALIZED
    if _INITIALIZED:
        return

    level = getattr(logging, log_level.upper(), logging.INFO)
    fmt = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"

    handlers: list = [logging.StreamHandler()]
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handlers.insert(
            0,
            SizeTimestampRotatingFileHandler(
                log_file,
                maxBytes=max_bytes,
                backupCount=backup_count,
                encoding="utf-8",
            ),
        )

    logging.basicConfig(level=level, format=fmt, handlers=handlers)
    _INITIALIZED = True


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(f"query_bridge.{name}")


def redact(data: Any, keys: Iterable[str] = SENSITIVE_KEYS) -> Any:
    """Recursively mask sensitive keys in dicts and lists.

    Matching is on the lower-cased key; values are replaced by ``***REDACTED***``.
    """
    keys = {k.lower() for k in keys}
    if isinstance(data, dict):
        return {
            k: (REDACTED if str(k).lower() in keys else redact(v, keys))
            for k, v in data.items()
        }
    if isinstance(data, (list, tuple)):
        return [redact(item, keys) for item in data]
    return data


def scrub(text: str, secrets: Iterable[Optional[str]]) -> str:
    """Replace every occurrence of each non-empty secret in ``text``."""
    out = text or ""
    for s in secrets:
        if s:
            out = out.replace(s, REDACTED)
    return out
