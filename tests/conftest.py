import sys
import textwrap

import boto3
import pytest
from botocore.stub import Stubber

from query_bridge.db.connection import AthenaConnection, BeelineConnection

SECRET = "s3cr3t-Pa55word"
ACCESS_KEY = "AKIAEXAMPLEKEY123456"
SECRET_KEY = "wJalrXUtnFEMI/K7MDENG/bPxRfiCYEXAMPLEKEY"

# Behaves like `beeline` reading its script from stdin. Controlled through env:
#   FAKE_BEELINE_MODE    echo (default) | fail | hang
#   FAKE_BEELINE_OUTPUT  CSV body printed between connect chatter and prompt
#   FAKE_BEELINE_DUMP    file receiving argv + stdin for inspection
#   FAKE_BEELINE_PIDFILE file receiving the pid (hang mode)
FAKE_BEELINE = textwrap.dedent(
    '''
    import json, os, sys, time

    mode = os.environ.get("FAKE_BEELINE_MODE", "echo")
    plain = "--verbose=false" in sys.argv

    if mode == "hang":
        with open(os.environ["FAKE_BEELINE_PIDFILE"], "w") as f:
            f.write(str(os.getpid()))
        time.sleep(60)
        sys.exit(0)

    script = sys.stdin.read()
    lines = script.splitlines()
    dump = os.environ.get("FAKE_BEELINE_DUMP")
    if dump:
        with open(dump, "w") as f:
            json.dump({"argv": sys.argv[1:], "stdin": script}, f)

    if mode == "fail":
        sys.stderr.write("Error: Could not open client transport with JDBC Uri: "
                         + lines[0].split(" ", 1)[1] + " password=" + lines[2] + "\\n")
        sys.exit(2)

    url = lines[0].split(" ", 1)[1]
    body = os.environ.get("FAKE_BEELINE_OUTPUT", "")
    if plain:
        sys.stdout.write(body + "\\n" if body else "")
    else:
        # --silent=true still reports the driver scan and the credential
        # prompts it answers from stdin, then the closing prompt.
        sys.stdout.write("\\n")
        sys.stdout.write("scan complete in 2ms\\n")
        sys.stdout.write("Enter username for " + url + ": \\n")
        sys.stdout.write("Enter password for " + url + ": \\n")
        if body:
            sys.stdout.write(body + "\\n")
        sys.stdout.write("0: " + url + "> \\n")
    '''
)


@pytest.fixture
def fake_beeline(tmp_path):
    path = tmp_path / "fake_beeline.py"
    path.write_text(FAKE_BEELINE, encoding="utf-8")
    return (sys.executable, str(path))


@pytest.fixture
def beeline_conn():
    return BeelineConnection(url="jdbc:hive2://hive.internal:10000/default", username="analyst", password=SECRET)


@pytest.fixture
def athena_conn():
    return AthenaConnection(
        access_key=ACCESS_KEY,
        secret_access_key=SECRET_KEY,
        region="us-east-1",
        database="sales",
        output_location="s3://athena-results/query-bridge/",
        workgroup="primary",
    )


@pytest.fixture
def athena_stub():
    client = boto3.client(
        "athena",
        region_name="us-east-1",
        aws_access_key_id=ACCESS_KEY,
        aws_secret_access_key=SECRET_KEY,
    )
    with Stubber(client) as stubber:
        yield client, stubber
