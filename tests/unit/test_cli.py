"""Tests for the command-line interface."""

import pytest
from click.testing import CliRunner
from sheetcheck.cli import cli, format_outcome
from sheetcheck.models import ValidationOutcome

runner = CliRunner()

A = "https://shop.example/products/a"
B = "https://shop.example/products/b"


@pytest.fixture
def workspace(tmp_path, monkeypatch):
    """Run in an empty directory with logging setup and the batch run stubbed out."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr("sheetcheck.cli.configure_logging", lambda config: None)
    calls = {}

    async def fake_run_batch(urls, config, on_outcome=None):
        calls["urls"] = list(urls)
        calls["config"] = config
        outcomes = [ValidationOutcome.ok(A), ValidationOutcome.ko(B, "safety sheet missing")]
        for outcome in outcomes:
            on_outcome(outcome)
        return outcomes

    monkeypatch.setattr("sheetcheck.cli.run_batch", fake_run_batch)
    (tmp_path / "in.csv").write_text(f"URL;name\n{A};A\n{B};B\n", encoding="utf-8")
    return tmp_path, calls


@pytest.mark.unit
class TestValidateCommand:
    def test_writes_results_and_prints_outcomes(self, workspace):
        tmp_path, calls = workspace

        result = runner.invoke(cli, ["validate", "-i", "in.csv", "-o", "out/results.csv"], obj={})

        assert result.exit_code == 0, result.output
        assert f"[OK] {A}" in result.output
        assert f"[KO] {B} - safety sheet missing" in result.output
        assert "Results saved to" in result.output
        assert calls["urls"] == [A, B]
        assert (tmp_path / "out" / "results.csv").read_text(encoding="utf-8") == (
            f"URL;result;comments\n{A};OK;\n{B};KO;safety sheet missing\n"
        )

    def test_options_override_configuration(self, workspace):
        _, calls = workspace

        result = runner.invoke(
            cli,
            ["validate", "-i", "in.csv", "-o", "r.csv", "-d", "50", "-c", "2", "--skip-pdf-validation"],
            obj={},
        )

        assert result.exit_code == 0, result.output
        config = calls["config"]
        assert config.fetch.delay_ms == 50
        assert config.validation.concurrency == 2
        assert config.validation.validate_pdf_links is False

    def test_pdf_validation_flag_wins_over_skip(self, workspace):
        _, calls = workspace

        result = runner.invoke(
            cli, ["validate", "-i", "in.csv", "-o", "r.csv", "--skip-pdf-validation", "--pdf-validation"], obj={}
        )

        assert result.exit_code == 0, result.output
        assert calls["config"].validation.validate_pdf_links is True

    def test_delay_must_be_positive(self, workspace):
        result = runner.invoke(cli, ["validate", "-i", "in.csv", "--delay=0"], obj={})

        assert result.exit_code == 2
        assert "strictly positive" in result.output

    def test_missing_input_file(self, workspace):
        result = runner.invoke(cli, ["validate", "-i", "missing.csv", "-o", "r.csv"], obj={})

        assert result.exit_code == 1
        assert "Error: Input file not found" in result.output

    def test_non_utf8_input_is_read_with_replacement(self, workspace):
        tmp_path, calls = workspace
        (tmp_path / "latin1.csv").write_bytes(b"URL\nhttps://shop.example/caf\xe9\n")

        result = runner.invoke(cli, ["validate", "-i", "latin1.csv", "-o", "r.csv"], obj={})

        assert result.exit_code == 0, result.output
        assert calls["urls"] == ["https://shop.example/caf\ufffd"]

    def test_csv_without_url_column(self, workspace):
        tmp_path, _ = workspace
        (tmp_path / "bad.csv").write_text("link\nhttps://shop.example/a\n", encoding="utf-8")

        result = runner.invoke(cli, ["validate", "-i", "bad.csv", "-o", "r.csv"], obj={})

        assert result.exit_code == 1
        assert 'Could not find a "URL" column' in result.output

    def test_no_urls_writes_header_only(self, workspace):
        tmp_path, calls = workspace
        (tmp_path / "empty.csv").write_text("URL\n", encoding="utf-8")

        result = runner.invoke(cli, ["validate", "-i", "empty.csv", "-o", "r.csv"], obj={})

        assert result.exit_code == 0, result.output
        assert "No valid URL found" in result.output
        assert "urls" not in calls
        assert (tmp_path / "r.csv").read_text(encoding="utf-8") == "URL;result;comments\n"

    def test_config_file_supplies_defaults(self, workspace):
        tmp_path, calls = workspace
        (tmp_path / "custom.yaml").write_text(
            "fetch:\n  delay_ms: 900\nio:\n  input_path: in.csv\n  output_path: from-config.csv\n", encoding="utf-8"
        )

        result = runner.invoke(cli, ["--config", "custom.yaml", "validate"], obj={})

        assert result.exit_code == 0, result.output
        assert calls["config"].fetch.delay_ms == 900
        assert (tmp_path / "from-config.csv").exists()

    def test_invalid_config_file(self, workspace):
        tmp_path, _ = workspace
        (tmp_path / "bad.yaml").write_text("fetch:\n  delay_ms: 0\n", encoding="utf-8")

        result = runner.invoke(cli, ["--config", "bad.yaml", "validate"], obj={})

        assert result.exit_code == 1
        assert "Invalid configuration" in result.output


@pytest.mark.unit
class TestFormatOutcome:
    def test_ok_line(self):
        line = format_outcome(ValidationOutcome.ok(A))

        assert line.plain == f"[OK] {A}"
        assert line.spans[0].style == "green"

    def test_ko_line_with_comments(self):
        line = format_outcome(ValidationOutcome.ko(B, "safety sheet missing", "technical sheet missing"))

        assert line.plain == f"[KO] {B} - safety sheet missing ; technical sheet missing"
        assert line.spans[0].style == "red"
