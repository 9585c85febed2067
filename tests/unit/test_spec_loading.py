import json

import pytest
import requests

from sqlgram_gen import io as sg_io
from sqlgram_gen.exceptions import ConfigError, LoadError, ParseError
from sqlgram_gen.io import load_resource, load_specs
from sqlgram_gen.spec_model import Filter, StmtSpec, index_specs
from sqlgram_gen.validate import validate_specs_issues


def write_spec(tmp_path, doc, name="spec.json"):
    path = tmp_path / name
    path.write_text(json.dumps(doc), encoding="utf-8")
    return str(path)


def test_empty_location_yields_no_specs():
    assert load_specs("") == []


def test_json_spec_loads_in_document_order(tmp_path):
    location = write_spec(
        tmp_path,
        [
            {"name": "select", "stmt": "select_stmt", "replace": {"IDENT": "column_name"}},
            {"name": "insert_stmt", "match": ["^INSERT"], "nosplit": True, "unlink": None},
        ],
    )
    specs = load_specs(location)

    assert [s.name for s in specs] == ["select", "insert_stmt"]
    assert specs[0].target == "select_stmt"
    assert specs[0].replace == {"IDENT": "column_name"}
    assert specs[1].target == "insert_stmt"
    assert specs[1].nosplit is True
    assert specs[1].unlink == ()
    assert specs[1].match[0].pattern == "^INSERT"


def test_yaml_spec_loads(tmp_path):
    path = tmp_path / "spec.yaml"
    path.write_text("- name: a\n  inline: [b, c]\n  relink: {x: y}\n", encoding="utf-8")
    (spec,) = load_specs(str(path))
    assert spec.inline == ("b", "c")
    assert spec.relink == {"x": "y"}


def test_duplicate_names_are_config_errors(tmp_path):
    location = write_spec(tmp_path, [{"name": "a"}, {"name": "b"}, {"name": "a"}])
    with pytest.raises(ConfigError, match="duplicate"):
        load_specs(location)


@pytest.mark.parametrize("field", ["match", "exclude"])
def test_bad_patterns_are_config_errors(tmp_path, field):
    location = write_spec(tmp_path, [{"name": "a", field: ["(unclosed"]}])
    with pytest.raises(ConfigError, match="does not compile"):
        load_specs(location)


def test_bad_regreplace_key_is_config_error(tmp_path):
    location = write_spec(tmp_path, [{"name": "a", "regreplace": {"[z-a]": "x"}}])
    with pytest.raises(ConfigError):
        load_specs(location)


@pytest.mark.parametrize(
    "doc",
    [
        {"name": "a"},
        [{"stmt": "x"}],
        [{"name": "a", "replace": ["not", "a", "map"]}],
        [{"name": "a", "nosplit": "yes"}],
        ["a"],
    ],
)
def test_structural_errors_are_parse_errors(tmp_path, doc):
    with pytest.raises(ParseError):
        load_specs(write_spec(tmp_path, doc))


def test_malformed_document_is_parse_error(tmp_path):
    path = tmp_path / "spec.json"
    path.write_text("[{", encoding="utf-8")
    with pytest.raises(ParseError):
        load_specs(str(path))


def test_unknown_field_warns(tmp_path, capsys):
    location = write_spec(tmp_path, [{"name": "a", "colour": "red"}])
    assert [s.name for s in load_specs(location)] == ["a"]
    assert "unknown field 'colour'" in capsys.readouterr().err


def test_validate_issue_codes():
    issues = validate_specs_issues([{"name": "a"}, {"name": "a"}, {"name": "../x"}])
    assert [i.code for i in issues] == ["E_SPEC_DUPLICATE_NAME", "E_SPEC_NAME_NOT_FILE_SAFE"]
    assert issues[0].path == "/1/name"


def test_missing_file_is_load_error(tmp_path):
    with pytest.raises(LoadError):
        load_resource(str(tmp_path / "missing.json"))


def test_remote_location_uses_requests(monkeypatch):
    calls = []

    class FakeResponse:
        content = b'[{"name": "a"}]'

        def raise_for_status(self):
            pass

    def fake_get(url, timeout):
        calls.append(url)
        return FakeResponse()

    monkeypatch.setattr(sg_io.requests, "get", fake_get)
    specs = load_specs("https://example.com/spec.json")
    assert calls == ["https://example.com/spec.json"]
    assert specs[0].name == "a"


def test_remote_failure_is_load_error(monkeypatch):
    def fake_get(url, timeout):
        raise requests.ConnectionError("unreachable")

    monkeypatch.setattr(sg_io.requests, "get", fake_get)
    with pytest.raises(LoadError, match="unreachable"):
        load_resource("http://example.com/parser.y")


def test_filter_selection():
    normal = Filter.compile("^select")
    inverted = Filter.compile("^select", invert=True)
    assert normal.selects("select_stmt")
    assert not normal.selects("insert_stmt")
    assert not inverted.selects("select_stmt")
    assert inverted.selects("insert_stmt")


def test_filter_rejects_bad_pattern():
    with pytest.raises(ConfigError):
        Filter.compile("(")


def test_index_specs_rejects_duplicates():
    with pytest.raises(ConfigError):
        index_specs([StmtSpec(name="a"), StmtSpec(name="a")])


def test_replacements_are_sorted_by_key():
    spec = StmtSpec(name="a", replace={"b": "1", "a": "2"}, regreplace={"z": "1", "y": "2"})
    assert spec.sorted_replace() == [("a", "2"), ("b", "1")]
    assert [p.pattern for p, _ in spec.sorted_regreplace()] == ["y", "z"]


def test_unknown_field_is_a_warning_issue():
    (issue,) = validate_specs_issues([{"name": "a", "colour": "red"}])
    assert issue.severity == "warning"
    assert issue.code == "W_SPEC_UNKNOWN_FIELD"
    assert issue.path == "/0/colour"
