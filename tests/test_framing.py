import pytest

from query_bridge.db.decoder import decode
from query_bridge.db.framing import (
    FRAMED_PROFILE,
    PLAIN_FRAME,
    PLAIN_PROFILE,
    PROFILES,
    STDIN_SCRIPT_FRAME,
    FramePolicy,
    frame,
)

URL = "jdbc:hive2://hive.internal:10000/default"

# `beeline --silent=true --outputformat=csv2` fed !connect, user, password, query, !quit
STDIN_SCRIPT_OUTPUT = (
    "\n"
    "scan complete in 2ms\n"
    f"Enter username for {URL}: \n"
    f"Enter password for {URL}: \n"
    "id,name\n"
    "1,alpha\n"
    "2,beta\n"
    f"0: {URL}> \n"
)


def test_stdin_script_frame_strips_prompts():
    assert frame(STDIN_SCRIPT_OUTPUT, STDIN_SCRIPT_FRAME) == "id,name\n1,alpha\n2,beta"


def test_framed_profile_uses_named_line_counts():
    assert STDIN_SCRIPT_FRAME.leading_lines == 3
    assert STDIN_SCRIPT_FRAME.trailing_lines == 1
    assert FRAMED_PROFILE.frame_policy is STDIN_SCRIPT_FRAME
    assert set(PROFILES) == {"framed", "plain"}


def test_framed_profile_runs_silent():
    # the 3/1 line counts only hold for silent csv2 output
    assert FRAMED_PROFILE.flags == ("--silent=true", "--outputformat=csv2")


def test_plain_frame_is_identity():
    raw = "id,name\n1,alpha\n"
    assert frame(raw, PLAIN_FRAME) == raw
    assert PLAIN_PROFILE.frame_policy is PLAIN_FRAME
    assert "--silent=true" in PLAIN_PROFILE.flags
    assert "--verbose=false" in PLAIN_PROFILE.flags


@pytest.mark.parametrize(
    "raw",
    [
        "",
        "only one line",
        "one\ntwo",
        "one\ntwo\nthree",
        "\n\n\n",
    ],
)
def test_short_output_clamps_to_empty(raw):
    assert frame(raw, STDIN_SCRIPT_FRAME) == ""


def test_missing_trailing_newline_means_footer_only():
    # three chatter lines then a lone prompt: nothing tabular in between
    raw = "a\nb\nc\nprompt>"
    assert frame(raw, STDIN_SCRIPT_FRAME) == ""


def test_frame_counts_lines_not_bytes():
    long_prompt = "Enter username for " + "x" * 500 + ":"
    raw = f"scan complete in 2ms\n{long_prompt}\nEnter password:\ncol\nv\nprompt>"
    assert frame(raw, STDIN_SCRIPT_FRAME) == "col\nv"


def test_custom_policy_without_trim_keeps_whitespace():
    policy = FramePolicy(leading_lines=1, trailing_lines=0, trim=False)
    assert frame("banner\n  a,b\n", policy) == "  a,b\n"


def test_framed_output_decodes():
    result = decode(frame(STDIN_SCRIPT_OUTPUT, STDIN_SCRIPT_FRAME))
    assert result.columns == ["id", "name"]
    assert result.rows == [["1", "alpha"], ["2", "beta"]]
