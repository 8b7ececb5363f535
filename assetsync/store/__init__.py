"""On-disk JSON stores."""

from __future__ import annotations

import contextlib
import json
import os
import pathlib
from typing import Any

from assetsync.errors import PersistError, StoreCorruptError


def read_json(path: pathlib.Path) -> Any | None:
    """Return parsed JSON, ``None`` if the file is absent."""
    if not path.exists():
        return None
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise StoreCorruptError(path, f"invalid JSON ({exc.msg} at line {exc.lineno})") from exc
    except UnicodeDecodeError as exc:
        raise StoreCorruptError(path, "not UTF-8 text") from exc


def write_json(path: pathlib.Path, data: Any) -> None:
    """Rewrite ``path`` in full with stable key order and indentation."""
    payload = json.dumps(data, indent=4, sort_keys=True, ensure_ascii=False)
    tmp = path.with_name(f".{path.name}.tmp")
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp.write_text(payload, encoding="utf-8")
        os.replace(tmp, path)
    except OSError as exc:
        with contextlib.suppress(OSError):
            tmp.unlink()
        raise PersistError(path, exc) from exc
