"""Query execution backends.

Backends supported:
  - Beeline : Hive / Spark Thrift through the beeline CLI (one subprocess per query)
  - Athena  : serverless SQL on S3, submit -> poll -> fetch via boto3
"""
from __future__ import annotations

import shlex
from typing import Tuple, Union

from query_bridge.config.settings import Settings
from query_bridge.db.adapters import AthenaAdapter, BeelineAdapter, DatastoreAdapter
from query_bridge.db.athena import PollConfig
from query_bridge.db.connection import AthenaConnection, BeelineConnection
from query_bridge.db.framing import PROFILES
from query_bridge.exceptions.errors import ConfigurationError

Connection = Union[BeelineConnection, AthenaConnection]


def get_adapter(settings: Settings) -> Tuple[DatastoreAdapter, Connection]:
    db_type = (settings.db_type or "").strip().lower()

    if db_type == "beeline":
        profile = PROFILES.get(settings.beeline_profile)
        if profile is None:
            raise ConfigurationError(
                f"Unknown BEELINE_PROFILE: {settings.beeline_profile} (expected one of {sorted(PROFILES)})"
            )
        if not settings.beeline_url:
            raise ConfigurationError("BEELINE_URL is required when DB_TYPE=beeline")
        adapter = BeelineAdapter(
            command=tuple(shlex.split(settings.beeline_binary)),
            profile=profile,
            timeout=settings.beeline_timeout_s,
        )
        conn = BeelineConnection(
            url=settings.beeline_url,
            username=settings.beeline_username,
            password=settings.beeline_password,
        )
        return adapter, conn

    if db_type == "athena":
        if not settings.athena_database:
            raise ConfigurationError("ATHENA_DATABASE is required when DB_TYPE=athena")
        if not settings.athena_output_location:
            raise ConfigurationError("ATHENA_OUTPUT_LOCATION is required when DB_TYPE=athena")
        adapter = AthenaAdapter(
            poll_config=PollConfig(
                retry_count=settings.athena_retry_count,
                floor_ms=settings.athena_poll_floor_ms,
            )
        )
        conn = AthenaConnection(
            access_key=settings.aws_access_key_id,
            secret_access_key=settings.aws_secret_access_key,
            region=settings.aws_region,
            database=settings.athena_database,
            output_location=settings.athena_output_location,
            workgroup=settings.athena_workgroup,
            catalog=settings.athena_catalog,
            ssl_enabled=settings.athena_ssl_enabled,
            query_timeout_ms=settings.athena_query_timeout_ms,
        )
        return adapter, conn

    raise ConfigurationError(f"Unknown DB_TYPE: {settings.db_type}")
