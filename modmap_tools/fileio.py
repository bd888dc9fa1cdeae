from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any

from .errors import MalformedInputError, ModmapIOError

logger = logging.getLogger(__name__)


class _DuplicateKeyError(ValueError):
    pass


def _reject_duplicate_keys(pairs: list[tuple[str, Any]]) -> dict[str, Any]:
    obj: dict[str, Any] = {}
    for key, value in pairs:
        if key in obj and obj[key] != value:
            raise _DuplicateKeyError(
                f"key '{key}' appears twice with different values: {obj[key]!r} vs {value!r}"
            )
        obj[key] = value
    return obj


def read_json(path: str | Path) -> Any:
    path = Path(path)
    try:
        with path.open("r", encoding="utf-8") as fp:
            payload = json.load(fp, object_pairs_hook=_reject_duplicate_keys)
    except _DuplicateKeyError as exc:
        raise MalformedInputError(str(exc), source=str(path)) from exc
    except json.JSONDecodeError as exc:
        raise MalformedInputError(f"invalid JSON: {exc}", source=str(path)) from exc
    except OSError as exc:
        raise ModmapIOError(str(path), exc) from exc

    logger.debug("read %s", path)
    return payload


def write_text_atomic(path: str | Path, text: str) -> None:
    """Write ``text`` to ``path`` so that readers never observe a partial file.

    The content goes to a sibling temporary file first and is renamed over the
    destination only after it has been flushed to disk.
    """
    path = Path(path)
    tmp = path.with_name(path.name + f".tmp.{os.getpid()}")
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with tmp.open("w", encoding="utf-8", newline="\n") as fp:
            fp.write(text)
            fp.flush()
            os.fsync(fp.fileno())
        os.replace(tmp, path)
    except OSError as exc:
        tmp.unlink(missing_ok=True)
        raise ModmapIOError(str(path), exc) from exc

    logger.debug("wrote %d bytes to %s", len(text), path)
