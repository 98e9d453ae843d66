"""CLI integration tests."""

import json

from click.testing import CliRunner

from article_fact_checker.cli import main

ARTICLE = "Analyst Lifts Target\nThe analyst raised the price target to $303 on strong demand."
SOURCE = "Price target raised to $303 from $280 on strong demand."


def _write_inputs(article: str = ARTICLE, source: str = SOURCE) -> None:
    with open("article.txt", "w") as f:
        f.write(article)
    with open("source.txt", "w") as f:
        f.write(source)


class TestCLIBasicOperation:
    """Tests for basic CLI functionality."""

    def test_cli_outputs_report_json(self):
        """CLI prints the verification report as JSON."""
        runner = CliRunner()
        with runner.isolated_filesystem():
            _write_inputs()
            result = runner.invoke(main, ["--article", "article.txt", "--source", "source.txt"])

        assert result.exit_code == 0, f"CLI failed: {result.output}"
        output = json.loads(result.output)
        assert output["numbers"]["checks"][0]["number"] == "$303"
        assert output["numbers"]["checks"][0]["status"] == "match"
        assert "lineByLine" not in output

    def test_cli_reads_article_from_stdin(self):
        """'-' reads the article from stdin."""
        runner = CliRunner()
        with runner.isolated_filesystem():
            _write_inputs()
            result = runner.invoke(main, ["--article", "-", "--source", "source.txt"], input=ARTICLE)

        assert result.exit_code == 0
        assert json.loads(result.output)["numbers"]["summary"]["matchRate"] == "100.0"

    def test_cli_handles_empty_article(self):
        """Empty article is an error with a helpful message."""
        runner = CliRunner()
        with runner.isolated_filesystem():
            _write_inputs(article="   ")
            result = runner.invoke(main, ["--article", "article.txt", "--source", "source.txt"])

        assert result.exit_code != 0
        assert "No article text" in result.output

    def test_cli_requires_source(self):
        """--source is mandatory."""
        runner = CliRunner()
        with runner.isolated_filesystem():
            _write_inputs()
            result = runner.invoke(main, ["--article", "article.txt"])

        assert result.exit_code != 0


class TestCLIOptions:
    """Tests for CLI option handling."""

    def test_cli_line_by_line_option(self):
        """--line-by-line adds the lineByLine section."""
        runner = CliRunner()
        with runner.isolated_filesystem():
            _write_inputs()
            result = runner.invoke(main, ["--article", "article.txt", "--source", "source.txt", "--line-by-line"])

        assert result.exit_code == 0
        section = json.loads(result.output)["lineByLine"]
        assert section["aiAvailable"] is False
        assert section["summary"]["total"] >= 1

    def test_cli_output_file(self):
        """--output writes the report to a file."""
        runner = CliRunner()
        with runner.isolated_filesystem():
            _write_inputs()
            result = runner.invoke(main, ["--article", "article.txt", "--source", "source.txt",
                                          "--output", "report.json"])
            with open("report.json") as f:
                report = json.load(f)

        assert result.exit_code == 0
        assert report["quotes"]["summary"]["exactRate"] == "0"

    def test_cli_use_llm_without_key_fails_cleanly(self, monkeypatch):
        """--use-llm without an API key is a usage error, not a traceback."""
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)
        runner = CliRunner()
        with runner.isolated_filesystem():
            _write_inputs()
            result = runner.invoke(main, ["--article", "article.txt", "--source", "source.txt", "--use-llm"])

        assert result.exit_code != 0
        assert "OPENAI_API_KEY" in result.output

    def test_cli_config_option(self):
        """--config loads YAML overrides."""
        runner = CliRunner()
        with runner.isolated_filesystem():
            _write_inputs()
            with open("config.yaml", "w") as f:
                f.write("line_by_line:\n  enabled: false\n")
            result = runner.invoke(main, ["--article", "article.txt", "--source", "source.txt",
                                          "--config", "config.yaml", "--line-by-line"])

        assert result.exit_code == 0
        assert "lineByLine" not in json.loads(result.output)
