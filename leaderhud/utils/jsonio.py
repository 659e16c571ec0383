"""orjson helpers for the static JSON tree."""
from __future__ import annotations

import os
import tempfile
from pathlib import Path
from typing import Any

import orjson
from pydantic import BaseModel

# naive datetimes are UTC; written as 2024-01-15T12:00:00Z
JSON_OPTIONS = orjson.OPT_INDENT_2 | orjson.OPT_NAIVE_UTC | orjson.OPT_UTC_Z | orjson.OPT_APPEND_NEWLINE


def _default(obj: Any):
    if isinstance(obj, BaseModel):
        return obj.model_dump(by_alias=True)
    raise TypeError(f"Type is not JSON serializable: {type(obj).__name__}")


def dumps(data: Any) -> bytes:
    return orjson.dumps(data, default=_default, option=JSON_OPTIONS)


def write_json_atomic(path: Path, data: Any) -> int:
    """Serialize `data` and replace `path` with it in one step.

    The payload is written to a temporary file next to the target and moved
    into place, so readers see either the old file or the complete new one.
    Returns the number of bytes written.
    """
    payload = dumps(data)
    fd, tmp = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(payload)
        os.chmod(tmp, 0o644)
        os.replace(tmp, path)
    except BaseException:
        if os.path.exists(tmp):
            os.unlink(tmp)
        raise
    return len(payload)


def read_json(path: Path) -> Any:
    with open(path, "rb") as f:
        return orjson.loads(f.read())
