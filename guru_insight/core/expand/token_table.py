from __future__ import annotations

import re
from pathlib import Path
from types import MappingProxyType
from typing import Any

import yaml

from guru_insight.core.model import TokenTable


TOKEN_TABLE_VERSION = "1.0.0"

DEFAULT_TOKENS: dict[str, str] = {
    "01": "Check for memory leaks",
    "02": "Check for memory leaks in",
    "03": "memory allocation failure",
    "04": "is the likely cause. A",
    "05": "debugger to trace the",
    "06": "Use a debugger to trace",
    "07": "a debugger to trace the",
    "08": "Use a debugger to trace the",
    "09": "debugger to trace the cause.",
    "10": "a debugger to trace the cause.",
    "11": "Use a debugger to trace the cause.",
    "12": "A resource conflict or",
    "13": "for missing interrupt",
    "14": "trace the cause. Check",
    "15": "to trace the cause. Check",
    "16": "memory leak or a large",
    "17": "debugger to trace the cause. Check",
    "18": "a debugger to trace the cause. Check",
    "19": "Use a debugger to trace the cause. Check",
    "20": "interrupt vector table",
    "21": "defect in the driver's",
    "22": "in the driver's code.",
    "23": "A memory allocation failure",
    "24": "caused a memory shortage.",
    "25": "Look for missing interrupt",
}

# Names the expander can ever extract: 1..7 digits/underscores.
TOKEN_NAME_RE = re.compile(r"[0-9_]{1,7}")


class TokenConfigError(ValueError):
    pass


def load_token_file(path: str | Path) -> tuple[str | None, dict[str, str]]:
    """Load token overrides from a YAML file.

    Format:
      version: "1.1.0"      # optional
      tokens:
        "26": "replacement phrase"

    Returns (version, mapping of name -> phrase).
    """
    p = Path(path)
    try:
        text = p.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise
    except (OSError, UnicodeDecodeError) as e:
        raise TokenConfigError(f"cannot read token file: {e}") from e
    try:
        raw = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise TokenConfigError(f"token file is not valid YAML: {e}") from e
    if raw is None:
        return None, {}
    if not isinstance(raw, dict):
        raise TokenConfigError("token file must be a mapping with a 'tokens' key")

    version = raw.get("version")
    if version is not None and (not isinstance(version, str) or not version.strip()):
        raise TokenConfigError("token file 'version' must be a non-empty string")

    tokens_raw: Any = raw.get("tokens", {})
    if tokens_raw is None:
        tokens_raw = {}
    if not isinstance(tokens_raw, dict):
        raise TokenConfigError("'tokens' must be a mapping of name -> phrase")

    out: dict[str, str] = {}
    for k, v in tokens_raw.items():
        # Unquoted 01 or 1_0 load as ints (1, 10), so the written name is lost.
        if not isinstance(k, str):
            raise TokenConfigError(
                f"token name {k!r} must be quoted, e.g. \"01\": \"phrase\""
            )
        name = k
        if not TOKEN_NAME_RE.fullmatch(name):
            raise TokenConfigError(
                f"token name {k!r} must be 1-7 characters of digits or underscore"
            )
        if not isinstance(v, str) or not v:
            raise TokenConfigError(f"token '{name}' must map to a non-empty string")
        out[name] = v
    return (version.strip() if version else None), out


def merged_tokens(
    overrides: dict[str, str] | None = None, version: str | None = None
) -> TokenTable:
    """Return DEFAULT_TOKENS merged with optional overrides.

    Overrides replace tokens of the same name, and may add new ones.
    """
    merged = dict(DEFAULT_TOKENS)
    if overrides:
        merged.update(overrides)
    return TokenTable(version=version or TOKEN_TABLE_VERSION, tokens=MappingProxyType(merged))


def load_and_merge(token_file: str | None) -> TokenTable:
    if not token_file:
        return merged_tokens()
    version, overrides = load_token_file(token_file)
    return merged_tokens(overrides, version)
