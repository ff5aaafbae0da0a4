from guru_insight.core.expand.expand_hint import iter_token_refs
from guru_insight.core.expand.token_table import load_and_merge, merged_tokens
from guru_insight.core.io.load_table import load_table
from guru_insight.core.lint.lint_table import has_errors, lint_table
from guru_insight.core.validate.validate_table import validate_table


def _table(path=None):
    table, errors = validate_table(load_table(path))
    assert errors == []
    assert table is not None
    return table


def test_bundled_table_has_no_lint_errors():
    findings = lint_table(_table(), merged_tokens())
    assert not has_errors(findings)


def test_bundled_table_duplicates_are_flagged_not_removed():
    table = _table()
    findings = lint_table(table, merged_tokens())
    dupes = [f for f in findings if f.code == "L_DUPLICATE_CODE"]
    assert len(dupes) == 1
    assert dupes[0].severity == "warning"
    assert "0x0A000001" in dupes[0].message
    assert [e.code for e in table.entries].count(0x0A000001) == 2


def test_every_token_reference_in_bundled_table_resolves():
    tokens = merged_tokens()
    refs = [name for e in _table().entries for _, name in iter_token_refs(e.hint)]
    assert refs, "bundled table should carry compressed hints"
    assert all(name and name in tokens for name in refs)


def test_duplicate_and_conflicting_codes():
    findings = lint_table(_table("examples/duplicate-codes.yaml"), merged_tokens())
    got = {(f.path, f.code, f.severity) for f in findings}
    assert got == {
        ("entries[1].code", "L_DUPLICATE_CODE", "warning"),
        ("entries[3].code", "L_CONFLICTING_DUPLICATE", "error"),
    }
    assert has_errors(findings)


def test_unresolved_and_malformed_tokens():
    findings = lint_table(_table("examples/unresolved-token.yaml"), merged_tokens())
    got = {(f.path, f.code, f.severity) for f in findings}
    assert got == {
        ("entries[0].hint", "L_UNRESOLVED_TOKEN", "error"),
        ("entries[1].hint", "L_MALFORMED_TOKEN", "warning"),
        ("token_table_version", "L_TOKEN_VERSION_MISMATCH", "warning"),
    }
    unresolved = [f for f in findings if f.code == "L_UNRESOLVED_TOKEN"][0]
    assert "TOK_99" in unresolved.message


def test_token_override_can_resolve_references(tmp_path):
    p = tmp_path / "tokens.yaml"
    p.write_text('version: "0.9.0"\ntokens:\n  "99": "Check for"\n', encoding="utf-8")
    findings = lint_table(_table("examples/unresolved-token.yaml"), load_and_merge(str(p)))
    assert [f.code for f in findings] == ["L_MALFORMED_TOKEN"]


def test_version_drift_against_bundled_table():
    findings = lint_table(_table(), load_and_merge("examples/custom-tokens.yaml"))
    assert "L_TOKEN_VERSION_MISMATCH" in [f.code for f in findings]
    assert not has_errors(findings)
    assert has_errors(findings, strict=True)
