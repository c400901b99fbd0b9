# tests/test_main.py
"""
Tests for the packspec command-line interface.
"""

import pytest

from packspec import __version__
from packspec.main import EXIT_ERROR, EXIT_INFRA, EXIT_OK, main
from tests.conftest import CONSTANT_YAML_SPEC, FAILING_YAML_SPEC, YAML_SPEC


class TestMain:

    def test_version(self, capsys):
        with pytest.raises(SystemExit) as excinfo:
            main(["--version"])
        assert excinfo.value.code == 0
        assert __version__ in capsys.readouterr().out

    def test_passing_run(self, write_doc, capsys):
        path = write_doc("calc.yml", YAML_SPEC)
        assert main([str(path), "--no-color"]) == EXIT_OK
        assert "Calculator: 5/5" in capsys.readouterr().out

    def test_failing_run(self, write_doc, capsys):
        path = write_doc("failing.yml", FAILING_YAML_SPEC)
        assert main([str(path), "--no-color"]) == EXIT_ERROR

    def test_exit_first_flag(self, write_doc, capsys):
        path = write_doc("failing.yml", FAILING_YAML_SPEC)
        assert main([str(path), "--no-color", "-x"]) == EXIT_ERROR
        assert "Scope:" in capsys.readouterr().out

    def test_tag_flag(self, write_doc, capsys):
        path = write_doc("calc.yml", YAML_SPEC)
        assert main([str(path), "--no-color", "--tag", "js"]) == EXIT_ERROR

    def test_fatal_error(self, write_doc, capsys):
        path = write_doc("constants.yml", CONSTANT_YAML_SPEC)
        assert main([str(path), "--no-color"]) == EXIT_INFRA

    def test_bad_config(self, tmp_path, capsys):
        assert main(["--config", str(tmp_path / "missing.yml")]) == EXIT_INFRA

    def test_config_documents(self, tmp_path, write_doc, monkeypatch, capsys):
        write_doc("calc.yml", YAML_SPEC)
        (tmp_path / "packspec.yml").write_text("documents:\n  - main: calc.yml\ncolor: false\n", encoding="utf-8")
        monkeypatch.chdir(tmp_path)
        assert main([]) == EXIT_OK
        assert "Calculator: 5/5" in capsys.readouterr().out
