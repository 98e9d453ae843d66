"""Command line entry-point for verifying an article against its source."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional, TextIO

import click

from .core.llm import OpenAICompletionClient
from .pipeline import VerificationPipeline
from .utils.config import ConfigManager
from .utils.logging import setup_logging

logger = logging.getLogger("article_fact_checker.cli")


@click.command()
@click.option("--article", "-a", type=click.File("r"), required=True, help="Generated article file ('-' for stdin)")
@click.option("--source", "-s", type=click.File("r"), required=True, help="Source document file")
@click.option("--output", "-o", type=click.File("w"), default="-", help="Output destination (defaults to stdout)")
@click.option("--line-by-line", is_flag=True, help="Also compare every article line with the source")
@click.option("--use-llm", is_flag=True, help="Use the OpenAI API for line-by-line comparison")
@click.option("--model", default=None, help="Model name for --use-llm (overrides config)")
@click.option("--config", "config_path", type=click.Path(dir_okay=False, path_type=Path), default=None,
              help="YAML configuration file")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
def main(
    article: TextIO,
    source: TextIO,
    output: TextIO,
    line_by_line: bool,
    use_llm: bool,
    model: Optional[str],
    config_path: Optional[Path],
    verbose: bool,
) -> None:
    """Check the numbers and quotes of an article against its source."""

    setup_logging(verbose=verbose)

    article_text = article.read()
    source_text = source.read()
    if not article_text.strip():
        raise click.ClickException("No article text supplied")
    if not source_text.strip():
        raise click.ClickException("No source text supplied")

    config = ConfigManager(config_path)
    if model:
        config.set("line_by_line.model", model)

    client = None
    if use_llm:
        try:
            client = OpenAICompletionClient(
                model=config.get("line_by_line.model"),
                timeout_seconds=config.get("line_by_line.per_call_timeout_seconds"),
            )
        except RuntimeError as e:
            raise click.ClickException(str(e)) from e

    pipeline = VerificationPipeline.from_config(config, completion_client=client)

    try:
        report = pipeline.verify(article_text, source_text, line_by_line=line_by_line or use_llm)
    except ValueError as e:
        raise click.ClickException(str(e)) from e

    if verbose:
        summary = report.numbers.summary
        logger.info(f"Numbers matched: {summary.matches}/{summary.total}")

    json.dump(report.to_response(), output, indent=2)
    output.write("\n")


if __name__ == "__main__":  # pragma: no cover
    main()
