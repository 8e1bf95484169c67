"""Generator settings.

Defaults mirror the layout of a front-end repo: schema documents in
``swagger/``, generated clients in ``api-generated/<BaseName>/``.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

DEFAULT_INPUT_DIR = Path("swagger")
DEFAULT_OUTPUT_DIR = Path("api-generated")

# Run in order over the output directory; "{output}" is substituted.
DEFAULT_FORMAT_COMMANDS: tuple[tuple[str, ...], ...] = (
    ("npx", "eslint", "{output}/**/*.ts", "--fix"),
    ("npx", "prettier", "{output}/**/*.ts", "--write"),
)


@dataclass(frozen=True)
class GeneratorConfig:
    """Settings for one generator run."""

    input_dir: Path = DEFAULT_INPUT_DIR
    output_dir: Path = DEFAULT_OUTPUT_DIR
    format_commands: tuple[tuple[str, ...], ...] = DEFAULT_FORMAT_COMMANDS
    run_formatter: bool = True
