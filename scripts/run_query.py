from __future__ import annotations
import sys
from pathlib import Path as _Path

_ROOT = _Path(__file__).resolve().parents[1]
_SRC = _ROOT / "src"
if str(_SRC) not in sys.path:
    sys.path.insert(0, str(_SRC))

from query_bridge.tools.run_query import main  # noqa: E402

if __name__ == "__main__":
    raise SystemExit(main())
