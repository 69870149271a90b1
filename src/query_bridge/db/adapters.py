from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional, Sequence

from botocore.exceptions import BotoCoreError, ClientError

from query_bridge.data.result import TabularResult
from query_bridge.db.athena import PollConfig, create_athena_client, executor_for
from query_bridge.db.beeline import BeelineChannel
from query_bridge.db.connection import AthenaConnection, BeelineConnection
from query_bridge.db.decoder import decode
from query_bridge.db.framing import FRAMED_PROFILE, BeelineProfile, frame
from query_bridge.exceptions.errors import BackendUnavailable
from query_bridge.logging.logger import get_logger, scrub

log = get_logger("db.adapters")


def sorted_table_names(result: TabularResult, column: str) -> List[str]:
    """Values of ``column`` sorted ascending; [] when the column is absent."""
    values = result.column(column)
    if values is None:
        log.warning("Table listing has no expected column", extra={"column": column, "columns": result.columns})
        return []
    return sorted(v for v in values if v is not None)


class DatastoreAdapter(ABC):
    """Uniform surface shared by every backend."""

    TABLE_COLUMN: str = ""
    LIST_TABLES_SQL: str = ""

    @abstractmethod
    async def connect(self, connection: Any) -> None:
        ...

    @abstractmethod
    async def query(self, text: str, connection: Any) -> TabularResult:
        ...

    async def list_tables(self, connection: Any) -> List[str]:
        result = await self.query(self.LIST_TABLES_SQL, connection)
        return sorted_table_names(result, self.TABLE_COLUMN)


@dataclass
class BeelineAdapter(DatastoreAdapter):
    command: Sequence[str] = ("beeline",)
    profile: BeelineProfile = field(default=FRAMED_PROFILE)
    timeout: Optional[float] = None

    TABLE_COLUMN = "tableName"
    LIST_TABLES_SQL = "show tables;"

    @property
    def channel(self) -> BeelineChannel:
        return BeelineChannel(command=self.command, profile=self.profile)

    async def connect(self, connection: BeelineConnection) -> None:
        log.info(
            "Attempting to authenticate with connection (password omitted)",
            extra={"connection": connection.redacted()},
        )
        await self.channel.execute("", connection, timeout=self.timeout)

    async def query(self, text: str, connection: BeelineConnection) -> TabularResult:
        raw = await self.channel.execute(text, connection, timeout=self.timeout)
        return decode(frame(raw, self.profile.frame_policy))


@dataclass
class AthenaAdapter(DatastoreAdapter):
    poll_config: PollConfig = field(default_factory=PollConfig)
    client_factory: Callable[[AthenaConnection], Any] = create_athena_client

    TABLE_COLUMN = "tab_name"
    LIST_TABLES_SQL = "SHOW TABLES"

    async def connect(self, connection: AthenaConnection) -> None:
        log.info(
            "Attempting to authenticate with connection (secret omitted)",
            extra={"connection": connection.redacted()},
        )
        try:
            client = self.client_factory(connection)
            await asyncio.to_thread(client.list_work_groups, MaxResults=1)
        except (BotoCoreError, ClientError) as e:
            msg = scrub(str(e), connection.secrets())
            log.error("Athena connection check failed", extra={"region": connection.region, "error": msg})
            # Unchained: the botocore error may echo the request, keys included.
            raise BackendUnavailable(f"Athena is not reachable in {connection.region}: {msg}") from None

    async def query(self, text: str, connection: AthenaConnection) -> TabularResult:
        executor = executor_for(connection, self.poll_config, self.client_factory)
        return await executor.run(text, timeout_ms=connection.query_timeout_ms)
