import json

from guru_insight.core.errors import TableLoadError
from guru_insight.core.io.load_table import DEFAULT_TABLE_PATH, load_table


def test_load_bundled_table():
    raw = load_table()
    assert raw["schema_version"] == "1.0.0"
    assert raw["token_table_version"] == "1.0.0"
    assert isinstance(raw["entries"], list)
    assert len(raw["entries"]) == 540
    assert raw["__file__"] == str(DEFAULT_TABLE_PATH)


def test_yaml_hex_codes_load_as_ints():
    raw = load_table()
    assert raw["entries"][0]["code"] == 0
    assert raw["entries"][-1]["code"] == 0xFFFFFFFF
    assert raw["entries"][-1]["sentinel"] is True


def test_load_json_table(tmp_path):
    p = tmp_path / "alerts.json"
    p.write_text(
        json.dumps(
            {
                "schema_version": "1.0.0",
                "entries": [
                    {"code": "0x00000005", "description": "Zero divide", "hint": "TOK_11"},
                    {"code": "0xFFFFFFFF", "description": "End", "hint": "", "sentinel": True},
                ],
            }
        ),
        encoding="utf-8",
    )
    raw = load_table(str(p))
    assert raw["entries"][0]["code"] == "0x00000005"
    assert raw["token_table_version"] is None


def test_load_missing_file():
    try:
        load_table("examples/does-not-exist.yaml")
        assert False, "expected TableLoadError"
    except TableLoadError as e:
        assert e.code == "E_FILE_NOT_FOUND"


def test_load_unsupported_format(tmp_path):
    p = tmp_path / "alerts.txt"
    p.write_text("hello", encoding="utf-8")
    try:
        load_table(str(p))
        assert False, "expected TableLoadError"
    except TableLoadError as e:
        assert e.code == "E_UNSUPPORTED_FORMAT"


def test_load_yaml_parse_error(tmp_path):
    p = tmp_path / "alerts.yaml"
    p.write_text("entries: [\n", encoding="utf-8")
    try:
        load_table(str(p))
        assert False, "expected TableLoadError"
    except TableLoadError as e:
        assert e.code == "E_YAML_PARSE"
        assert e.file == str(p)


def test_load_json_parse_error(tmp_path):
    p = tmp_path / "alerts.json"
    p.write_text("{not json", encoding="utf-8")
    try:
        load_table(str(p))
        assert False, "expected TableLoadError"
    except TableLoadError as e:
        assert e.code == "E_JSON_PARSE"


def test_load_non_mapping_top_level(tmp_path):
    p = tmp_path / "alerts.yaml"
    p.write_text("- 1\n- 2\n", encoding="utf-8")
    try:
        load_table(str(p))
        assert False, "expected TableLoadError"
    except TableLoadError as e:
        assert e.code == "E_INVALID_TOP_LEVEL"
