"""Entry point: python -m apigen

Reads every schema document in the input directory and writes one
<BaseName>/ folder of TypeScript types and clients per document.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import click

from .codegen import generate, run_formatting
from .config import DEFAULT_INPUT_DIR, DEFAULT_OUTPUT_DIR, GeneratorConfig
from .context_builder import build_context
from .errors import GeneratorError
from .loader import SPEC_SUFFIXES, load_spec
from .naming import to_pascal_identifier

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
DATE_FORMAT = "%Y-%m-%dT%H:%M:%S%z"

logger = logging.getLogger("apigen")


def configure_logging(level: str = "INFO") -> None:
    """Configure application-wide logging."""
    root = logging.getLogger()
    if not root.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
        root.addHandler(handler)
    root.setLevel(level.upper())


def find_documents(input_dir: Path) -> list[Path]:
    """List the schema documents in a directory, sorted by name."""
    return sorted(
        p for p in input_dir.iterdir() if p.is_file() and p.suffix.lower() in SPEC_SUFFIXES
    )


def generate_document(path: Path, config: GeneratorConfig) -> list[Path]:
    """Generate the types and client files for one schema document."""
    base_name = to_pascal_identifier(path.stem)
    spec = load_spec(path)
    context = build_context(spec, base_name)
    written = generate(context, config.output_dir)
    if config.run_formatter:
        run_formatting(config.format_commands, config.output_dir / base_name)
    logger.info("Generated %s from %s", base_name, path.name)
    return written


def run(config: GeneratorConfig) -> int:
    """Process every document in order; stop at the first fatal error."""
    documents = find_documents(config.input_dir)
    if not documents:
        logger.warning("No schema documents found in %s", config.input_dir)
    for path in documents:
        try:
            generate_document(path, config)
        except GeneratorError as exc:
            logger.error("API generation failed for %s: %s", path.name, exc)
            return 1
    return 0


@click.command()
@click.option("-i", "--input-dir", default=DEFAULT_INPUT_DIR, show_default=True,
              type=click.Path(exists=True, file_okay=False, path_type=Path),
              help="Directory containing OpenAPI .json/.yaml documents.")
@click.option("-o", "--output-dir", default=DEFAULT_OUTPUT_DIR, show_default=True,
              type=click.Path(file_okay=False, path_type=Path),
              help="Directory receiving one folder per document.")
@click.option("--format/--no-format", "run_formatter", default=True,
              help="Run eslint and prettier over the generated files.")
@click.option("--log-level", default="INFO", show_default=True,
              type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False))
def main(input_dir: Path, output_dir: Path, run_formatter: bool, log_level: str) -> None:
    """Generate TypeScript types and per-tag API clients from OpenAPI documents."""
    configure_logging(log_level)
    config = GeneratorConfig(
        input_dir=input_dir,
        output_dir=output_dir,
        run_formatter=run_formatter,
    )
    sys.exit(run(config))


if __name__ == "__main__":
    main()
