from __future__ import annotations

from guru_insight.core.codes import format_code
from guru_insight.core.errors import TableValidationError
from guru_insight.core.expand.expand_hint import TOKEN_PREFIX, iter_token_refs
from guru_insight.core.model import AlertTable, TokenTable


# Alert table data-quality rules:
# - L_DUPLICATE_CODE (warning): a later row repeats an earlier code with the same text
# - L_CONFLICTING_DUPLICATE (error): a later row repeats a code with different text;
#   first match wins, so the later row can never be returned
# - L_UNRESOLVED_TOKEN (error): TOK_<name> with no entry in the token table
# - L_MALFORMED_TOKEN (warning): TOK_ with no digits/underscores after it
# - L_TOKEN_VERSION_MISMATCH (warning): hints compressed against another token table


def lint_table(table: AlertTable, tokens: TokenTable) -> list[TableValidationError]:
    """Lint a validated alert table against a token table.

    Duplicates are reported, never removed; row order is what lookups see.
    """

    file = table.source
    errors: list[TableValidationError] = []

    # Rule: duplicate codes
    first_index: dict[int, int] = {}
    for i, entry in enumerate(table.entries):
        j = first_index.setdefault(entry.code, i)
        if j == i:
            continue
        first = table.entries[j]
        same = first.description == entry.description and first.hint == entry.hint
        errors.append(
            TableValidationError(
                code="L_DUPLICATE_CODE" if same else "L_CONFLICTING_DUPLICATE",
                message=(
                    f"code {format_code(entry.code)} repeats entries[{j}]"
                    + ("" if same else " with different text; this row is unreachable")
                ),
                file=file,
                path=f"entries[{i}].code",
                severity="warning" if same else "error",
            )
        )

    # Rule: token references resolve
    for i, entry in enumerate(table.entries):
        for offset, name in iter_token_refs(entry.hint):
            if not name:
                errors.append(
                    TableValidationError(
                        code="L_MALFORMED_TOKEN",
                        message=f"{TOKEN_PREFIX} at offset {offset} has no token name",
                        file=file,
                        path=f"entries[{i}].hint",
                        severity="warning",
                    )
                )
            elif name not in tokens:
                errors.append(
                    TableValidationError(
                        code="L_UNRESOLVED_TOKEN",
                        message=f"{TOKEN_PREFIX}{name} is not defined in token table {tokens.version}",
                        file=file,
                        path=f"entries[{i}].hint",
                    )
                )

    # Rule: token table version drift
    if table.token_table_version and table.token_table_version != tokens.version:
        errors.append(
            TableValidationError(
                code="L_TOKEN_VERSION_MISMATCH",
                message=(
                    f"table was compressed against token table {table.token_table_version}, "
                    f"loaded token table is {tokens.version}"
                ),
                file=file,
                path="token_table_version",
                severity="warning",
            )
        )

    return _sorted(errors)


def has_errors(findings: list[TableValidationError], *, strict: bool = False) -> bool:
    return any(strict or f.severity == "error" for f in findings)


def _sorted(errors: list[TableValidationError]) -> list[TableValidationError]:
    return sorted(errors, key=lambda e: (e.file or "", e.path or "", e.code))
