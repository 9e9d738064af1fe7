"""
Unit tests for the condval-eval command line entry point.
"""

import argparse
import json
import subprocess
import sys
from pathlib import Path

import pytest

from cli import tasks
from cli.evaluate import ExitCode, main, parse_parameter

DEMO_CONFIG = str(Path(__file__).resolve().parents[1] / "demo" / "demo.json")


class TestParseParameter:
    @pytest.mark.parametrize(
        "item,expected",
        [
            ("va=1000", ("va", 1000)),
            ("ratio=1.5", ("ratio", 1.5)),
            ("strict=true", ("strict", True)),
            ('country="SG"', ("country", "SG")),
            ("country=SG", ("country", "SG")),
            ("tags=[1,2]", ("tags", [1, 2])),
            ("empty=", ("empty", "")),
            (" va =1", ("va", 1)),
        ],
    )
    def test_values(self, item, expected):
        assert parse_parameter(item) == expected

    @pytest.mark.parametrize("item", ["va", "=1"])
    def test_invalid(self, item):
        with pytest.raises(argparse.ArgumentTypeError):
            parse_parameter(item)


class TestMain:
    def test_match_plain_output(self, capsys):
        code = main([DEMO_CONFIG, "-p", "va=1500", "-p", "va_upper=1200", "-p", "va_lower=800"])
        assert code == ExitCode.MATCHED.value
        out = capsys.readouterr().out
        assert "result: 1400" in out
        assert "trace: 1-0" in out

    def test_match_json_output(self, capsys):
        code = main(
            [DEMO_CONFIG, "-p", "va=1000", "-p", "va_upper=1200", "-p", "va_lower=800", "--json"]
        )
        assert code == 0
        assert json.loads(capsys.readouterr().out) == {"result": 1000, "trace": [3]}

    def test_no_match_exit_code(self, tmp_path, capsys):
        config = tmp_path / "rules.json"
        config.write_text(json.dumps([{"condition": "a > 1", "result": 2}]))
        code = main([str(config), "-p", "a=0", "--json"])
        assert code == ExitCode.NO_MATCH.value
        body = json.loads(capsys.readouterr().out)
        assert body["error"] == "NoMatchError"
        assert body["kind"] == "NO_MATCH"

    def test_missing_file_is_error(self, tmp_path, capsys):
        code = main([str(tmp_path / "missing.json")])
        assert code == ExitCode.ERROR.value
        assert "LoadError" in capsys.readouterr().err

    def test_run_error_is_error(self, tmp_path, capsys):
        config = tmp_path / "rules.json"
        config.write_text(json.dumps([{"condition": "missing > 1", "result": 2}]))
        code = main([str(config)])
        assert code == ExitCode.ERROR.value
        err = capsys.readouterr().err
        assert "RunError: Failed to run condition 0" in err
        assert "source: missing > 1" in err

    def test_invalid_parameter_exits_with_usage_error(self):
        with pytest.raises(SystemExit) as exc_info:
            main([DEMO_CONFIG, "-p", "novalue"])
        assert exc_info.value.code == 2


class TestTasks:
    def test_run_tests_propagates_exit_code(self, monkeypatch):
        calls = []
        monkeypatch.setattr(sys, "argv", ["test", "-k", "builder"])
        monkeypatch.setattr(
            subprocess,
            "run",
            lambda cmd: calls.append(cmd) or subprocess.CompletedProcess(cmd, 3),
        )

        with pytest.raises(SystemExit) as exc_info:
            tasks.run_tests()

        assert exc_info.value.code == 3
        assert calls == [[sys.executable, "-m", "pytest", "-q", "-k", "builder"]]

    def test_run_lint_covers_source_dirs(self, monkeypatch):
        calls = []
        monkeypatch.setattr(sys, "argv", ["lint"])
        monkeypatch.setattr(
            subprocess,
            "run",
            lambda cmd: calls.append(cmd) or subprocess.CompletedProcess(cmd, 0),
        )

        with pytest.raises(SystemExit):
            tasks.run_lint()

        assert calls[0][3:] == ["check", "condval", "cli", "scripts", "tests"]
