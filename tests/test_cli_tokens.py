from typer.testing import CliRunner

from guru_insight.cli import app


runner = CliRunner()


def test_tokens_command_lists_tokens():
    r = runner.invoke(app, ["tokens"])
    assert r.exit_code == 0, r.stdout + r.stderr
    out = r.stdout

    assert "Hint tokens (version 1.0.0)" in out
    assert "TOK_01" in out
    assert "Check for memory leaks" in out
    assert "TOK_25" in out
    assert "TOK_26" not in out


def test_tokens_command_accepts_token_file():
    r = runner.invoke(app, ["tokens", "--token-file", "examples/custom-tokens.yaml"])
    assert r.exit_code == 0, r.stdout + r.stderr
    out = r.stdout

    assert "Hint tokens (version 1.1.0)" in out
    assert "TOK_26" in out
    assert "Debug the Copper list for" in out
    assert "Look for memory leaks" in out


def test_expand_command():
    r = runner.invoke(app, ["expand", "TOK_01 memory."])
    assert r.exit_code == 0, r.stdout + r.stderr
    assert r.stdout == "Check for memory leaks memory.\n"


def test_expand_command_leaves_unknown_tokens():
    r = runner.invoke(app, ["expand", "TOK_99 and TOK_X stay"])
    assert r.exit_code == 0
    assert r.stdout == "TOK_99 and TOK_X stay\n"


def test_expand_command_respects_buffer_env():
    r = runner.invoke(app, ["expand", "TOK_01 memory."], env={"GURU_INSIGHT_BUFFER": "11"})
    assert r.exit_code == 0
    assert r.stdout == "Check for \n"


def test_info_command():
    r = runner.invoke(app, ["info"])
    assert r.exit_code == 0, r.stdout + r.stderr
    assert "OK: 539 entries" in r.stdout
    assert "Token table: 1.0.0" in r.stdout
    assert "Tokens: 25 (version 1.0.0)" in r.stdout


def test_info_command_with_token_file():
    r = runner.invoke(app, ["info", "--token-file", "examples/custom-tokens.yaml"])
    assert r.exit_code == 0
    assert "Tokens: 26 (version 1.1.0)" in r.stdout

