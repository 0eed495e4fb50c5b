import io
import json
from pathlib import Path

import pytest

from strictconf.cli.strictconf import build_parser, load_schema, main, run_check, run_describe
from tests.fixtures.fixtures import APP_SCHEMA, write_yaml

SCHEMA_TARGET = "tests.fixtures.fixtures:APP_SCHEMA"


def test_build_parser():
    p = build_parser()
    assert p.prog == "strictconf"
    test = p.parse_args(
        [
            "describe",
            "--schema",
            SCHEMA_TARGET,
            "--env-prefix",
            "MYAPP",
            "--json",
        ]
    )
    assert test.command == "describe"
    assert test.schema == SCHEMA_TARGET
    assert test.env_prefix == "MYAPP"
    assert test.file is None
    assert test.json is True
    assert test.separator == "_"


def test_describe_sources_are_exclusive():
    with pytest.raises(SystemExit):
        build_parser().parse_args(
            ["describe", "--schema", SCHEMA_TARGET, "--env-prefix", "X", "--file", "c.yml"]
        )


def test_load_schema_variants():
    assert load_schema(SCHEMA_TARGET) == APP_SCHEMA
    assert list(load_schema("tests.fixtures.fixtures:APP_DEFAULTS")) == list(APP_SCHEMA)
    assert "timeout_s" in load_schema("tests.fixtures.fixtures:AppSettings")


def test_load_schema_requires_colon():
    with pytest.raises(ValueError):
        load_schema("tests.fixtures.fixtures")


def test_describe_text_output(tmp_path: Path):
    path = write_yaml(tmp_path, "lang: pt\n")
    out = io.StringIO()

    assert run_describe(APP_SCHEMA, file=path, out=out) == 0

    lines = out.getvalue().splitlines()
    assert lines[0] == "lang      = 'pt'  (default: 'en')  # UI language code"
    assert lines[1] == "debug     = 'false'"
    assert lines[3] == "api_token = <unset>"


def test_describe_json_from_env(monkeypatch):
    monkeypatch.setenv("MYAPP_WORKERS", "12")
    out = io.StringIO()

    run_describe(APP_SCHEMA, env_prefix="MYAPP", as_json=True, out=out)

    rows = {row["key"]: row for row in json.loads(out.getvalue())}
    assert rows["workers"]["value"] == "12"
    assert rows["workers"]["default"] == "4"
    assert rows["workers"]["description"] == "Number of worker processes"
    assert rows["api_token"]["value"] is None


def test_check_reports_undeclared(monkeypatch, tmp_path: Path):
    monkeypatch.setenv("MYAPP_LNAG", "pt")
    path = write_yaml(tmp_path, "lang: pt\nworkerz: 3\n")
    out = io.StringIO()

    code = run_check(APP_SCHEMA, env_prefix="MYAPP", file=path, out=out)

    assert code == 1
    assert "env: undeclared 'MYAPP_LNAG'" in out.getvalue()
    assert "undeclared 'workerz'" in out.getvalue()


def test_check_clean(tmp_path: Path):
    path = write_yaml(tmp_path, "lang: pt\n")
    out = io.StringIO()

    assert run_check(APP_SCHEMA, file=path, out=out) == 0
    assert out.getvalue() == ""


def test_check_requires_a_source():
    with pytest.raises(ValueError):
        run_check(APP_SCHEMA)


def test_main_describe(capsys, tmp_path: Path):
    path = write_yaml(tmp_path, "debug: on\n")

    code = main(["describe", "--schema", SCHEMA_TARGET, "--file", str(path), "--json"])

    assert code == 0
    rows = json.loads(capsys.readouterr().out)
    assert rows[1] == {
        "key": "debug",
        "value": "true",
        "default": "false",
        "description": "",
    }


def test_main_reports_errors(capsys, tmp_path: Path):
    code = main(["describe", "--schema", SCHEMA_TARGET, "--file", str(tmp_path / "absent.yml")])

    assert code == 2
    assert "Config file not found" in capsys.readouterr().err


def test_run_check_writes_to_current_stdout(capsys, tmp_path: Path):
    path = write_yaml(tmp_path, "workerz: 3\n")

    assert run_check(APP_SCHEMA, file=path) == 1
    assert "undeclared 'workerz'" in capsys.readouterr().out
