from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import yaml

from guru_insight.core.errors import TableLoadError


DATA_DIR = Path(__file__).resolve().parent.parent.parent / "data"
DEFAULT_TABLE_PATH = DATA_DIR / "alerts.yaml"


def load_table(path: str | Path | None = None) -> dict[str, Any]:
    """Load a YAML/JSON alert table file (the bundled one when *path* is None).

    Returns a dict with keys: schema_version, token_table_version, entries.
    Does not coerce types; validator owns shape checking.
    """

    p = Path(path) if path is not None else DEFAULT_TABLE_PATH
    if not p.exists():
        raise TableLoadError(
            code="E_FILE_NOT_FOUND",
            message="file does not exist",
            file=str(p),
        )

    suffix = p.suffix.lower()
    try:
        raw_text = p.read_text(encoding="utf-8")
    except Exception as e:  # pragma: no cover
        raise TableLoadError(code="E_FILE_READ", message=str(e), file=str(p)) from e

    try:
        if suffix in {".yaml", ".yml"}:
            data = yaml.safe_load(raw_text)
        elif suffix == ".json":
            data = json.loads(raw_text)
        else:
            raise TableLoadError(
                code="E_UNSUPPORTED_FORMAT",
                message="supported formats are .yaml/.yml and .json",
                file=str(p),
            )
    except TableLoadError:
        raise
    except Exception as e:
        code = "E_YAML_PARSE" if suffix in {".yaml", ".yml"} else "E_JSON_PARSE"
        raise TableLoadError(code=code, message=str(e), file=str(p)) from e

    if not isinstance(data, dict):
        raise TableLoadError(
            code="E_INVALID_TOP_LEVEL",
            message="top-level document must be a mapping/object",
            file=str(p),
        )

    normalized: dict[str, Any] = {
        "schema_version": data.get("schema_version"),
        "token_table_version": data.get("token_table_version"),
        "entries": data.get("entries"),
    }
    normalized["__file__"] = str(p)
    return normalized
