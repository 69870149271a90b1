"""Output framing for line-oriented CLI clients.

Fed a script on stdin, beeline prints connection chatter before the result
and a prompt after it. The number of those lines is stable for a given client
version and flag combination while their length is not, so framing counts
newline boundaries instead of bytes.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Tuple


@dataclass(frozen=True)
class FramePolicy:
    leading_lines: int = 0
    trailing_lines: int = 0
    trim: bool = False


# `beeline --silent=true --outputformat=csv2` reading its script from stdin:
#   three lines of connect chatter (driver scan, username and password prompts),
#   then the CSV, then the closing prompt.
STDIN_SCRIPT_LEADING_LINES = 3
STDIN_SCRIPT_TRAILING_LINES = 1

STDIN_SCRIPT_FRAME = FramePolicy(
    leading_lines=STDIN_SCRIPT_LEADING_LINES,
    trailing_lines=STDIN_SCRIPT_TRAILING_LINES,
    trim=True,
)

# Output is already pure CSV; nothing to strip.
PLAIN_FRAME = FramePolicy()


@dataclass(frozen=True)
class BeelineProfile:
    name: str
    flags: Tuple[str, ...]
    frame_policy: FramePolicy


FRAMED_PROFILE = BeelineProfile(
    name="framed",
    flags=("--silent=true", "--outputformat=csv2"),
    frame_policy=STDIN_SCRIPT_FRAME,
)

PLAIN_PROFILE = BeelineProfile(
    name="plain",
    flags=("--silent=true", "--outputformat=csv2", "--verbose=false", "--showWarnings=false"),
    frame_policy=PLAIN_FRAME,
)

PROFILES: Dict[str, BeelineProfile] = {p.name: p for p in (FRAMED_PROFILE, PLAIN_PROFILE)}


def frame(raw: str, policy: FramePolicy) -> str:
    """Strip the policy's leading and trailing lines from ``raw``.

    Never raises. Text with fewer lines than the policy strips frames to "".
    When no newline is left for the trailing strip, the remaining line is
    itself the footer and the frame is empty.
    """
    text = raw or ""
    if policy.trim:
        text = text.strip()

    for _ in range(policy.leading_lines):
        nl = text.find("\n")
        if nl == -1:
            return ""
        text = text[nl + 1:]

    for _ in range(policy.trailing_lines):
        nl = text.rfind("\n")
        if nl == -1:
            return ""
        text = text[:nl]

    return text
