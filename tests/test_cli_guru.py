import json

from typer.testing import CliRunner

from guru_insight.cli import app


runner = CliRunner()


def test_cli_guru_picks_a_catalogued_alert():
    r = runner.invoke(app, ["guru", "--seed", "42"])
    assert r.exit_code == 0, r.stdout + r.stderr
    lines = r.stdout.splitlines()
    assert lines[0].startswith("Error Code: 0x")
    assert lines[0] != "Error Code: 0xFFFFFFFF"
    assert lines[1] != "Error: Unknown Error"


def test_cli_guru_seed_is_repeatable():
    a = runner.invoke(app, ["guru", "--seed", "7"])
    b = runner.invoke(app, ["guru", "--seed", "7"])
    assert a.exit_code == 0 and b.exit_code == 0
    assert a.stdout == b.stdout


def test_cli_guru_json_round_trips_through_lookup():
    r = runner.invoke(app, ["guru", "--seed", "3", "--format", "json"])
    assert r.exit_code == 0
    payload = json.loads(r.stdout)
    assert payload["command"] == "guru"
    assert payload["found"] is True

    again = runner.invoke(app, ["lookup", payload["code"], "--format", "json"])
    assert again.exit_code == 0
    assert json.loads(again.stdout)["description"] == payload["description"]


def test_cli_guru_empty_table(tmp_path):
    p = tmp_path / "alerts.yaml"
    p.write_text(
        "schema_version: \"1.0.0\"\n"
        "entries:\n"
        "  - code: 0xFFFFFFFF\n"
        "    description: End of table\n"
        "    hint: End marker.\n"
        "    sentinel: true\n",
        encoding="utf-8",
    )
    r = runner.invoke(app, ["guru", "--table-file", str(p)])
    assert r.exit_code == 2
    assert "E_GURU_EMPTY_TABLE" in (r.stdout + r.stderr)
