"""Poll-based query execution against AWS Athena.

Athena never blocks on a query: we submit it, poll its status on a fixed
interval derived from the caller's timeout budget, then page through the
results once it has succeeded.

State machine:
  submitted -> {QUEUED, RUNNING} -> {SUCCEEDED, FAILED, CANCELLED}
"""
from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, NewType, Optional

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from query_bridge.data.result import Cell, TabularResult
from query_bridge.db.connection import AthenaConnection
from query_bridge.db.decoder import rows_from_athena
from query_bridge.exceptions.errors import ConfigurationError, ExecutionError, QueryTimeout, SubmissionError
from query_bridge.logging.logger import get_logger

log = get_logger("db.athena")

ExecutionHandle = NewType("ExecutionHandle", str)

AWS_ERRORS = (BotoCoreError, ClientError)


class Outcome(Enum):
    PENDING = "pending"
    SUCCEEDED = "succeeded"
    ERRORED = "errored"


class ExecutionState(Enum):
    QUEUED = "QUEUED"
    RUNNING = "RUNNING"
    SUCCEEDED = "SUCCEEDED"
    FAILED = "FAILED"
    CANCELLED = "CANCELLED"

    @classmethod
    def from_status(cls, status: Optional[str]) -> "ExecutionState":
        """Map Athena's status vocabulary; anything unknown counts as FAILED."""
        try:
            return cls((status or "").strip().upper())
        except ValueError:
            return cls.FAILED

    @property
    def outcome(self) -> Outcome:
        if self in (ExecutionState.QUEUED, ExecutionState.RUNNING):
            return Outcome.PENDING
        if self is ExecutionState.SUCCEEDED:
            return Outcome.SUCCEEDED
        return Outcome.ERRORED


@dataclass(frozen=True)
class PollConfig:
    retry_count: int = 5
    floor_ms: int = 1000

    def __post_init__(self) -> None:
        if self.retry_count < 1:
            raise ConfigurationError(f"retry_count must be at least 1, got {self.retry_count}")
        if self.floor_ms < 0:
            raise ConfigurationError(f"floor_ms must not be negative, got {self.floor_ms}")

    def interval_ms(self, timeout_ms: Optional[float]) -> float:
        if not timeout_ms or timeout_ms <= 0:
            return float(self.floor_ms)
        return max(timeout_ms / self.retry_count, float(self.floor_ms))

    @property
    def max_polls(self) -> int:
        # The initial check plus retry_count retries.
        return self.retry_count + 1


def create_athena_client(connection: AthenaConnection):
    return boto3.client(
        "athena",
        region_name=connection.region or None,
        aws_access_key_id=connection.access_key or None,
        aws_secret_access_key=connection.secret_access_key or None,
        use_ssl=connection.ssl_enabled,
        config=Config(retries={"max_attempts": 5}),
    )


@dataclass
class AthenaApi:
    """The four remote operations, one request/response each."""

    client: Any
    connection: AthenaConnection

    def start(self, sql: str) -> str:
        c = self.connection
        start_args: Dict[str, Any] = {
            "QueryString": sql,
            "QueryExecutionContext": {"Database": c.database, "Catalog": c.catalog or "AwsDataCatalog"},
            "ResultConfiguration": {
                "OutputLocation": c.output_location,
                "EncryptionConfiguration": {"EncryptionOption": "SSE_S3"},
            },
        }
        if c.workgroup:
            start_args["WorkGroup"] = c.workgroup
        return self.client.start_query_execution(**start_args)["QueryExecutionId"]

    def status(self, qid: str) -> Dict[str, Any]:
        resp = self.client.get_query_execution(QueryExecutionId=qid)
        return resp.get("QueryExecution", {}).get("Status", {})

    def results(self, qid: str, next_token: Optional[str] = None) -> Dict[str, Any]:
        args: Dict[str, Any] = {"QueryExecutionId": qid}
        if next_token:
            args["NextToken"] = next_token
        return self.client.get_query_results(**args)

    def stop(self, qid: str) -> None:
        self.client.stop_query_execution(QueryExecutionId=qid)


@dataclass
class PollingQueryExecutor:
    api: AthenaApi
    config: PollConfig = field(default_factory=PollConfig)

    async def submit(self, sql: str) -> ExecutionHandle:
        log.info(
            "Athena start_query_execution",
            extra={
                "database": self.api.connection.database,
                "workgroup": self.api.connection.workgroup,
                "output": self.api.connection.output_location,
                "sql_head": sql[:300],
            },
        )
        try:
            qid = await asyncio.to_thread(self.api.start, sql)
        except AWS_ERRORS as e:
            log.error("Unexpected error starting Athena query", extra={"error": str(e)})
            raise SubmissionError(f"Athena rejected the query: {e}") from e
        return ExecutionHandle(qid)

    async def poll(self, handle: ExecutionHandle) -> ExecutionState:
        status = await self._status(handle)
        return ExecutionState.from_status(status.get("State"))

    async def _status(self, handle: ExecutionHandle) -> Dict[str, Any]:
        try:
            return await asyncio.to_thread(self.api.status, handle)
        except AWS_ERRORS as e:
            log.error("Unexpected error getting Athena query status", extra={"qid": handle, "error": str(e)})
            raise ExecutionError(f"Could not get status of {handle}: {e}") from e

    async def fetch(self, handle: ExecutionHandle) -> TabularResult:
        columns: List[str] = []
        rows: List[List[Cell]] = []
        next_token: Optional[str] = None
        first = True
        while True:
            try:
                page = await asyncio.to_thread(self.api.results, handle, next_token)
            except AWS_ERRORS as e:
                raise ExecutionError(f"Could not fetch results of {handle}: {e}") from e

            result_set = (page or {}).get("ResultSet")
            if first:
                part = rows_from_athena(result_set)
                columns = part.columns
                first = False
            else:
                part = rows_from_athena(result_set, columns=columns)
            rows.extend(part.rows)

            next_token = (page or {}).get("NextToken")
            if not next_token:
                break

        if not columns and not rows:
            return TabularResult.empty()
        return TabularResult(columns=columns, rows=rows)

    async def cancel(self, handle: ExecutionHandle) -> bool:
        """Best effort. A failed stop is logged, never raised."""
        try:
            await asyncio.to_thread(self.api.stop, handle)
        except AWS_ERRORS as e:
            log.warning("Could not stop Athena query", extra={"qid": handle, "error": str(e)})
            return False
        log.info("Stopped Athena query", extra={"qid": handle})
        return True

    async def _cancel_once_submitted(self, submit_task: "asyncio.Future[ExecutionHandle]") -> None:
        try:
            handle = await submit_task
        except SubmissionError:
            return
        await self.cancel(handle)

    async def run(self, sql: str, timeout_ms: Optional[float] = None) -> TabularResult:
        interval_s = self.config.interval_ms(timeout_ms) / 1000.0

        # Own task: a cancel that lands while start_query_execution is in flight
        # must still get the handle back to stop the query.
        submit_task = asyncio.ensure_future(self.submit(sql))
        try:
            handle = await asyncio.shield(submit_task)
        except asyncio.CancelledError:
            await asyncio.shield(self._cancel_once_submitted(submit_task))
            raise

        try:
            for attempt in range(1, self.config.max_polls + 1):
                try:
                    status = await self._status(handle)
                except ExecutionError:
                    await self.cancel(handle)
                    raise
                state = ExecutionState.from_status(status.get("State"))

                if state.outcome is Outcome.SUCCEEDED:
                    return await self.fetch(handle)
                if state.outcome is Outcome.ERRORED:
                    reason = status.get("StateChangeReason", "") or ""
                    msg = f"Athena query {state.value}" + (f": {reason}" if reason else "")
                    raise ExecutionError(msg)
                if attempt < self.config.max_polls:
                    await asyncio.sleep(interval_s)
        except asyncio.CancelledError:
            await asyncio.shield(self.cancel(handle))
            raise

        await self.cancel(handle)
        raise QueryTimeout(
            f"Timeout. Athena did not respond before the query timeout ({self.config.max_polls} polls)."
        )


def executor_for(
    connection: AthenaConnection,
    config: Optional[PollConfig] = None,
    client_factory: Callable[[AthenaConnection], Any] = create_athena_client,
) -> PollingQueryExecutor:
    """New client per query; boto3 clients are cheap and hold no query state."""
    api = AthenaApi(client=client_factory(connection), connection=connection)
    return PollingQueryExecutor(api=api, config=config or PollConfig())
