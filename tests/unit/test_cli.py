"""
Unit tests for the error-insight command line.
"""

import json
import os
import sys

import pytest

from error_insight import cli
from error_insight.integrations import console


@pytest.fixture(autouse=True)
def quiet_logging(monkeypatch):
    monkeypatch.setattr(cli, "setup_logging", lambda **kwargs: None)


@pytest.fixture
def clean_env(monkeypatch):
    for key in list(os.environ):
        if key.startswith("ERROR_INSIGHT_"):
            monkeypatch.delenv(key)


def test_config_prints_masked_json(monkeypatch, capsys, clean_env):
    monkeypatch.setenv("ERROR_INSIGHT_BACKEND", "openai")
    monkeypatch.setenv("ERROR_INSIGHT_API_KEY", "sk-verysecretvalue")

    assert cli.main(["config"]) == 0

    data = json.loads(capsys.readouterr().out)
    assert data["backend"] == "openai"
    assert data["api_key"] == "sk-v..."
    assert data["problems"] == ["backend 'openai' requires a model"]


def test_run_failing_script(tmp_path, capsys, clean_env):
    script = tmp_path / "broken.py"
    script.write_text("ratio = 1 / 0\n", encoding="utf-8")

    code = cli.main(["run", "--backend", "local", str(script)])

    assert code == 1
    err = capsys.readouterr().err
    assert "ZeroDivisionError" in err
    assert "divided by zero" in err


def test_run_passes_arguments_and_exit_code(tmp_path, capsys, clean_env):
    script = tmp_path / "args.py"
    script.write_text("import sys\nprint(sys.argv[1:])\nsys.exit(3)\n", encoding="utf-8")

    code = cli.main(["run", str(script), "--flag", "value"])

    assert code == 3
    assert "['--flag', 'value']" in capsys.readouterr().out


def test_run_restores_excepthook(tmp_path, clean_env):
    script = tmp_path / "ok.py"
    script.write_text("x = 1\n", encoding="utf-8")
    before = sys.excepthook

    assert cli.main(["run", str(script)]) == 0
    assert sys.excepthook is before
    assert console._installed is None


def test_no_command_prints_help(capsys):
    assert cli.main([]) == 2
    assert "usage: error-insight" in capsys.readouterr().out
