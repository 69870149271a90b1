"""Subprocess query channel for the beeline CLI.

The client reads its whole script from stdin: the ``!connect`` line, the
principal, the password, the query and ``!quit``. Nothing secret is ever put on
the command line, so credentials do not show up in process listings.
"""
from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Optional, Sequence

from query_bridge.db.connection import BeelineConnection
from query_bridge.db.framing import FRAMED_PROFILE, BeelineProfile
from query_bridge.exceptions.errors import BackendUnavailable, QueryTimeout
from query_bridge.logging.logger import get_logger, scrub

log = get_logger("db.beeline")

QUIT_DIRECTIVE = "!quit"


def build_script(query: str, connection: BeelineConnection) -> bytes:
    script = (
        f"!connect {connection.url}\n"
        f"{connection.username}\n"
        f"{connection.password}\n"
        f"{query}\n"
        f"{QUIT_DIRECTIVE}\n"
    )
    return script.encode("utf-8")


async def _terminate(proc: asyncio.subprocess.Process) -> None:
    if proc.returncode is None:
        try:
            proc.kill()
        except ProcessLookupError:
            pass
    await proc.wait()


@dataclass
class BeelineChannel:
    """Runs one beeline process per query and returns its raw stdout.

    ``command`` is the executable (plus any leading arguments) used to start the
    client; the profile's flags are appended to it.
    """

    command: Sequence[str] = ("beeline",)
    profile: BeelineProfile = field(default=FRAMED_PROFILE)

    def argv(self) -> list:
        return [*self.command, *self.profile.flags]

    async def execute(
        self,
        query: str,
        connection: BeelineConnection,
        timeout: Optional[float] = None,
    ) -> str:
        argv = self.argv()
        log.info(
            "beeline execute",
            extra={"argv": argv, "url": connection.url, "profile": self.profile.name, "sql_head": query[:300]},
        )

        try:
            proc = await asyncio.create_subprocess_exec(
                *argv,
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise BackendUnavailable(f"Could not start {argv[0]}: {e}") from e

        script = build_script(query, connection)
        try:
            if timeout is None:
                stdout, stderr = await proc.communicate(script)
            else:
                stdout, stderr = await asyncio.wait_for(proc.communicate(script), timeout)
        except asyncio.TimeoutError as e:
            await _terminate(proc)
            log.warning("beeline killed after timeout", extra={"timeout_s": timeout, "pid": proc.pid})
            raise QueryTimeout(f"beeline did not finish within {timeout}s") from e
        except asyncio.CancelledError:
            await _terminate(proc)
            log.warning("beeline killed on cancellation", extra={"pid": proc.pid})
            raise

        if proc.returncode != 0:
            err = scrub(stderr.decode("utf-8", errors="replace").strip(), connection.secrets())
            log.error("beeline exited non-zero", extra={"returncode": proc.returncode, "stderr": err[:500]})
            raise BackendUnavailable(f"beeline exited with code {proc.returncode}: {err}")

        return stdout.decode("utf-8", errors="replace")
