"""Tests for the typer CLI."""

import json

import pytest
from typer.testing import CliRunner

from bulk_uploader.cli import app
from bulk_uploader.config import ENV_OVERRIDES

runner = CliRunner()


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    for name in ENV_OVERRIDES:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def report_dir(tmp_path):
    return tmp_path / "reports"


@pytest.fixture
def config_file(tmp_path, report_dir):
    path = tmp_path / "config.yaml"
    path.write_text(
        f"""
upload:
  endpoint: http://127.0.0.1:9/upload
retry:
  count: 1
  delay_ms: 0
report:
  directory: {report_dir}
""",
        encoding="utf-8",
    )
    return path


@pytest.fixture
def missing_manifest(tmp_path):
    path = tmp_path / "manifest.json"
    path.write_text(json.dumps([{"filePath": "missing.pdf", "metadata": {}}]), encoding="utf-8")
    return path


class TestRun:
    """Tests for the run command."""

    def test_skipped_only_run_completes(self, config_file, missing_manifest, report_dir):
        result = runner.invoke(app, ["run", str(missing_manifest), "--config", str(config_file)])

        assert result.exit_code == 0, result.output
        assert "COMPLETED" in result.output
        reports = list(report_dir.glob("bulk-upload-report-*.json"))
        assert len(reports) == 1
        data = json.loads(reports[0].read_text(encoding="utf-8"))
        assert data["results"][0]["status"] == "SKIPPED_VALIDATION_ERROR"

    def test_csv_format_and_report_dir_options(self, config_file, missing_manifest, tmp_path):
        other = tmp_path / "elsewhere"
        result = runner.invoke(
            app,
            ["run", str(missing_manifest), "-c", str(config_file), "--format", "csv", "--report-dir", str(other)],
        )

        assert result.exit_code == 0, result.output
        assert len(list(other.glob("*.csv"))) == 1

    def test_inline_payload(self, config_file, report_dir):
        payload = json.dumps({"documents": [{"filePath": "missing.pdf"}]})
        result = runner.invoke(app, ["run", "--payload", payload, "-c", str(config_file)])

        assert result.exit_code == 0, result.output
        assert len(list(report_dir.glob("*.json"))) == 1

    def test_stdin(self, config_file, report_dir):
        result = runner.invoke(app, ["run", "-", "-c", str(config_file)], input='[{"filePath": "missing.pdf"}]')

        assert result.exit_code == 0, result.output
        data = json.loads(next(report_dir.glob("*.json")).read_text(encoding="utf-8"))
        assert data["metadata"]["manifestPath"] == "(stdin)"

    @pytest.mark.parametrize("use_stdin", [False, True])
    def test_inline_manifest_with_secondary(self, config_file, report_dir, tmp_path, use_stdin):
        """--secondary supplies file locations for inline and stdin manifests too."""
        located = tmp_path / "absent.pdf"
        secondary = tmp_path / "locations.json"
        secondary.write_text(
            json.dumps({"locations": [{"documentId": "d1", "filePath": str(located)}]}), encoding="utf-8"
        )
        primary = '[{"documentId": "d1"}]'
        if use_stdin:
            args, stdin = ["run", "-"], primary
        else:
            args, stdin = ["run", "--payload", primary], None

        result = runner.invoke(app, [*args, "-c", str(config_file), "--secondary", str(secondary)], input=stdin)

        assert result.exit_code == 0, result.output
        data = json.loads(next(report_dir.glob("*.json")).read_text(encoding="utf-8"))
        assert data["results"][0]["filePath"] == str(located)
        assert data["metadata"]["secondaryManifestPath"] == str(secondary)

    def test_failed_run_exits_1(self, config_file, report_dir):
        result = runner.invoke(app, ["run", "--payload", '{"nothing": 1}', "-c", str(config_file)])

        assert result.exit_code == 1
        data = json.loads(next(report_dir.glob("*.json")).read_text(encoding="utf-8"))
        assert data["metadata"]["status"] == "FAILED"

    def test_dry_run_writes_nothing(self, config_file, missing_manifest, report_dir):
        result = runner.invoke(app, ["run", str(missing_manifest), "-c", str(config_file), "--dry-run"])

        assert result.exit_code == 0, result.output
        assert "Invalid: 1" in result.output
        assert not report_dir.exists()

    def test_missing_endpoint_exits_2(self, tmp_path, missing_manifest):
        config = tmp_path / "no-endpoint.yaml"
        config.write_text("retry:\n  count: 1\n", encoding="utf-8")
        result = runner.invoke(app, ["run", str(missing_manifest), "-c", str(config)])
        assert result.exit_code == 2

    def test_bad_format_exits_2(self, config_file, missing_manifest):
        result = runner.invoke(app, ["run", str(missing_manifest), "-c", str(config_file), "--format", "xml"])
        assert result.exit_code == 2

    def test_invalid_config_exits_2(self, tmp_path, missing_manifest):
        config = tmp_path / "bad.yaml"
        config.write_text("retry:\n  count: 0\n", encoding="utf-8")
        result = runner.invoke(app, ["run", str(missing_manifest), "-c", str(config)])
        assert result.exit_code == 2

    def test_missing_config_exits_2(self, tmp_path, missing_manifest):
        result = runner.invoke(app, ["run", str(missing_manifest), "-c", str(tmp_path / "absent.yaml")])
        assert result.exit_code == 2


class TestValidate:
    """Tests for the validate command."""

    def test_reports_issues(self, config_file, missing_manifest):
        result = runner.invoke(app, ["validate", str(missing_manifest), "-c", str(config_file)])

        assert result.exit_code == 1
        assert "Task[0]: File not found: missing.pdf" in result.output

    def test_all_valid(self, config_file, tmp_path):
        (tmp_path / "a.pdf").write_bytes(b"pdf")
        manifest = tmp_path / "ok.json"
        manifest.write_text(json.dumps({"files": [{"path": "a.pdf"}]}), encoding="utf-8")

        result = runner.invoke(app, ["validate", str(manifest), "-c", str(config_file)])

        assert result.exit_code == 0, result.output
        assert "All files are valid" in result.output

    def test_malformed_manifest(self, config_file, tmp_path):
        manifest = tmp_path / "bad.json"
        manifest.write_text('{"nothing": 1}', encoding="utf-8")

        result = runner.invoke(app, ["validate", str(manifest), "-c", str(config_file)])

        assert result.exit_code == 1
        assert "BULK-1003" in result.output


class TestInfoCommands:
    def test_show_config(self, config_file):
        result = runner.invoke(app, ["show-config", "-c", str(config_file)])

        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["upload"]["endpoint"] == "http://127.0.0.1:9/upload"
        assert data["retry"]["count"] == 1

    def test_version(self):
        result = runner.invoke(app, ["version"])
        assert result.exit_code == 0
        assert "bulk-uploader version" in result.output

    def test_publish_requires_one_source(self, config_file):
        result = runner.invoke(app, ["publish", "-c", str(config_file)])
        assert result.exit_code == 2
