from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional

from query_bridge.logging.logger import redact


@dataclass(frozen=True)
class BeelineConnection:
    """JDBC url + principal for the beeline CLI. The password is only ever written to stdin."""

    url: str
    username: str
    password: str = field(default="", repr=False)

    def secrets(self) -> List[str]:
        return [self.password]

    def redacted(self) -> Dict[str, Any]:
        return redact(asdict(self))


@dataclass(frozen=True)
class AthenaConnection:
    access_key: str = field(repr=False)
    secret_access_key: str = field(repr=False)
    region: str
    database: str
    output_location: str
    workgroup: str = ""
    catalog: str = "AwsDataCatalog"
    ssl_enabled: bool = True
    query_timeout_ms: Optional[int] = None

    def secrets(self) -> List[str]:
        return [self.access_key, self.secret_access_key]

    def redacted(self) -> Dict[str, Any]:
        return redact(asdict(self))
