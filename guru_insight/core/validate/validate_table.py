from __future__ import annotations

from typing import Any, Iterable, Optional, cast

from guru_insight.core.codes import MAX_CODE, is_fatal
from guru_insight.core.errors import TableValidationError
from guru_insight.core.model import AlertEntry, AlertTable


SENTINEL_CODE = MAX_CODE


def _coerce_code(v: Any) -> Optional[int]:
    """Accept YAML/JSON ints and "0x..." strings; None when neither."""
    if isinstance(v, bool):
        return None
    if isinstance(v, int):
        return v
    if isinstance(v, str):
        text = v.strip()
        if text[:2] in ("0x", "0X"):
            text = text[2:]
        try:
            return int(text, 16)
        except ValueError:
            return None
    return None


def validate_table(raw: dict[str, Any]) -> tuple[Optional[AlertTable], list[TableValidationError]]:
    """Validate an alert table document.

    Returns (table, errors). Table is None when errors exist.
    """

    file = cast(Optional[str], raw.get("__file__"))
    errors: list[TableValidationError] = []

    schema_version = raw.get("schema_version")
    if not isinstance(schema_version, str) or not schema_version.strip():
        errors.append(
            TableValidationError(
                code="E_REQUIRED_FIELD",
                message="schema_version is required and must be a non-empty string",
                file=file,
                path="schema_version",
            )
        )

    token_table_version = raw.get("token_table_version")
    if token_table_version is not None and not isinstance(token_table_version, str):
        errors.append(
            TableValidationError(
                code="E_INVALID_TYPE",
                message="token_table_version must be a string",
                file=file,
                path="token_table_version",
            )
        )

    entries = raw.get("entries")
    if not isinstance(entries, list):
        errors.append(
            TableValidationError(
                code="E_REQUIRED_FIELD",
                message="entries is required and must be an array",
                file=file,
                path="entries",
            )
        )
        return None, _sorted(errors)

    rows: list[AlertEntry] = []
    sentinel: Optional[AlertEntry] = None
    sentinel_index: Optional[int] = None

    for i, item in enumerate(entries):
        entry_path = f"entries[{i}]"
        if not isinstance(item, dict):
            errors.append(
                TableValidationError(
                    code="E_INVALID_TYPE",
                    message="entry must be an object",
                    file=file,
                    path=entry_path,
                )
            )
            continue

        code = _coerce_code(item.get("code"))
        if code is None:
            errors.append(
                TableValidationError(
                    code="E_REQUIRED_FIELD",
                    message="code is required and must be an integer or hex string",
                    file=file,
                    path=f"{entry_path}.code",
                )
            )
            continue
        if code < 0 or code > MAX_CODE:
            errors.append(
                TableValidationError(
                    code="E_CODE_RANGE",
                    message=f"code {code} is outside the unsigned 32-bit range",
                    file=file,
                    path=f"{entry_path}.code",
                )
            )
            continue

        description = item.get("description")
        if not isinstance(description, str) or not description.strip():
            errors.append(
                TableValidationError(
                    code="E_REQUIRED_FIELD",
                    message="description is required and must be a non-empty string",
                    file=file,
                    path=f"{entry_path}.description",
                )
            )
            continue

        hint = item.get("hint")
        if not isinstance(hint, str):
            errors.append(
                TableValidationError(
                    code="E_REQUIRED_FIELD",
                    message="hint is required and must be a string",
                    file=file,
                    path=f"{entry_path}.hint",
                )
            )
            continue

        is_sentinel = item.get("sentinel", False)
        if not isinstance(is_sentinel, bool):
            errors.append(
                TableValidationError(
                    code="E_INVALID_TYPE",
                    message="sentinel must be a boolean",
                    file=file,
                    path=f"{entry_path}.sentinel",
                )
            )
            continue

        entry = AlertEntry(code=code, description=description, hint=hint)
        if not is_sentinel:
            rows.append(entry)
            continue

        if sentinel is not None:
            errors.append(
                TableValidationError(
                    code="E_SENTINEL_DUPLICATE",
                    message=f"only one sentinel entry is allowed (first at entries[{sentinel_index}])",
                    file=file,
                    path=f"{entry_path}.sentinel",
                )
            )
            continue
        if code != SENTINEL_CODE:
            errors.append(
                TableValidationError(
                    code="E_SENTINEL_CODE",
                    message=f"sentinel entry must use code 0x{SENTINEL_CODE:08X}",
                    file=file,
                    path=f"{entry_path}.code",
                )
            )
        sentinel = entry
        sentinel_index = i

    if sentinel is None:
        errors.append(
            TableValidationError(
                code="E_SENTINEL_MISSING",
                message="the last entry must be the end-of-table sentinel (sentinel: true)",
                file=file,
                path="entries",
            )
        )
    elif sentinel_index != len(entries) - 1:
        errors.append(
            TableValidationError(
                code="E_SENTINEL_NOT_LAST",
                message="the sentinel entry must be the last entry of the table",
                file=file,
                path=f"entries[{sentinel_index}]",
            )
        )

    if errors:
        return None, _sorted(errors)

    table = AlertTable(
        schema_version=cast(str, schema_version),
        token_table_version=cast(Optional[str], token_table_version),
        entries=tuple(rows),
        sentinel=cast(AlertEntry, sentinel),
        source=file,
    )
    return table, []


def summarize_table(table: AlertTable) -> str:
    fatal = sum(1 for e in table.entries if is_fatal(e.code))
    distinct = len({e.code for e in table.entries})
    return (
        f"OK: {len(table.entries)} entries "
        f"(distinct codes={distinct}, recoverable={len(table.entries) - fatal}, fatal={fatal})\n"
        f"Schema: {table.schema_version}\n"
        f"Token table: {table.token_table_version or '-'}"
    )


def _sorted(errors: Iterable[TableValidationError]) -> list[TableValidationError]:
    return sorted(
        list(errors),
        key=lambda e: (
            e.file or "",
            e.path or "",
            e.code,
        ),
    )
