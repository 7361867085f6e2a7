"""Tests for the command-line interface."""

import json

import pytest
from typer.testing import CliRunner

from mutationmechanic import __version__
from mutationmechanic.cli import app
from mutationmechanic.storage.tiered_cache import reset_default_cache
from mutationmechanic.utils.logging_config import reset_logger

runner = CliRunner()


@pytest.fixture(autouse=True)
def isolated_env(tmp_path, monkeypatch):
    monkeypatch.setenv("MUTATIONMECHANIC_CACHE_DIR", str(tmp_path / "cache"))
    monkeypatch.setenv("MUTATIONMECHANIC_LOG_DIR", str(tmp_path / "logs"))
    monkeypatch.delenv("MUTATIONMECHANIC_DATABASE_URL", raising=False)
    monkeypatch.delenv("ALPHAGENOME_API_URL", raising=False)
    monkeypatch.delenv("ALPHAGENOME_API_KEY", raising=False)
    reset_default_cache()
    reset_logger()
    yield
    reset_default_cache()
    reset_logger()


class TestCli:
    def test_version(self):
        result = runner.invoke(app, ["version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_explain_then_history(self, tmp_path):
        result = runner.invoke(app, ["explain", "sod1", "L144F", "--no-log"])
        assert result.exit_code == 0, result.output
        assert "Risk: HIGH" in result.output
        assert "Recorded as SOD1-L144F-" in result.output

        listed = runner.invoke(app, ["history", "list"])
        assert listed.exit_code == 0
        assert "SOD1 L144F  HIGH" in listed.output

        stats = runner.invoke(app, ["history", "stats"])
        assert json.loads(stats.output)["total"] == 1

        exported = runner.invoke(app, ["history", "export", "--format", "CSV", "-d", str(tmp_path)])
        assert exported.exit_code == 0, exported.output
        assert "(text/csv)" in exported.output
        lines = (tmp_path / "mutation_mechanic_report.csv").read_text().splitlines()
        assert lines[0].startswith("ID,Gene,Variant")
        assert len(lines) == 2

    def test_annotate_to_file(self, tmp_path):
        output = tmp_path / "bundle.json"
        result = runner.invoke(app, ["annotate", "TP53", "R248Q", "-o", str(output)])
        assert result.exit_code == 0, result.output
        assert json.loads(output.read_text())["clinvar"]["stars"] == 4

    def test_compare_missing_file(self, tmp_path):
        result = runner.invoke(app, ["compare", str(tmp_path / "missing.json")])
        assert result.exit_code == 1

    def test_history_clear(self):
        runner.invoke(app, ["explain", "CFTR", "F508del", "--no-log"])
        result = runner.invoke(app, ["history", "clear", "--yes"])
        assert result.exit_code == 0
        assert "No records." in runner.invoke(app, ["history", "list"]).output

    def test_presets_import_list_export(self, tmp_path):
        source = tmp_path / "presets.json"
        source.write_text(json.dumps([
            {"id": "brca2-fs", "title": "BRCA2 frameshift", "hgvs": "BRCA2 c.5946delT", "type": "frameshift"},
        ]))

        imported = runner.invoke(app, ["presets", "import", str(source)])
        assert imported.exit_code == 0, imported.output

        listed = runner.invoke(app, ["presets", "list"])
        assert "brca2-fs  [frameshift] BRCA2 frameshift: BRCA2 c.5946delT" in listed.output

        exported = runner.invoke(app, ["presets", "export"])
        assert json.loads(exported.output)[0]["id"] == "brca2-fs"

        deleted = runner.invoke(app, ["presets", "delete", "brca2-fs"])
        assert "0 presets remaining" in deleted.output

    def test_presets_import_invalid(self, tmp_path):
        source = tmp_path / "presets.json"
        source.write_text("not json")
        result = runner.invoke(app, ["presets", "import", str(source)])
        assert result.exit_code == 1
        assert "Failed to import presets" in result.output
