"""Render templates and write generated output.

Takes the context from context_builder and produces, under
<output>/<BaseName>/, one <BaseName>.types.ts and one <Tag>.api.ts per tag.
"""

from __future__ import annotations

import json
import logging
import re
import subprocess
from pathlib import Path
from typing import Any, Sequence

import jinja2

logger = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).parent / "templates"

_TS_IDENTIFIER_RE = re.compile(r"^[A-Za-z_$][A-Za-z0-9_$]*$")


def ts_key(key: str) -> str:
    """Quote an object key unless it is a bare TypeScript identifier."""
    return key if _TS_IDENTIFIER_RE.match(key) else json.dumps(key)


def make_environment() -> jinja2.Environment:
    env = jinja2.Environment(
        loader=jinja2.FileSystemLoader(str(TEMPLATE_DIR)),
        keep_trailing_newline=True,
        trim_blocks=True,
        lstrip_blocks=True,
    )
    env.filters["ts_key"] = ts_key
    return env


def render_types(context: dict[str, Any], env: jinja2.Environment | None = None) -> str:
    """Render the type declarations file for one document."""
    env = env or make_environment()
    return env.get_template("types.ts.j2").render(**context)


def render_client(client: dict[str, Any], env: jinja2.Environment | None = None) -> str:
    """Render the client class for one tag."""
    env = env or make_environment()
    return env.get_template("client.ts.j2").render(**client)


def generate(context: dict[str, Any], output_dir: Path) -> list[Path]:
    """Write the types file and every client file; return the written paths."""
    env = make_environment()
    base_name = context["baseName"]
    target = output_dir / base_name
    target.mkdir(parents=True, exist_ok=True)

    written = []
    for client in context["clients"]:
        client_path = target / f"{client['fileStem']}.api.ts"
        client_path.write_text(render_client(client, env), encoding="utf-8")
        written.append(client_path)

    types_path = target / f"{base_name}.types.ts"
    types_path.write_text(render_types(context, env), encoding="utf-8")
    written.append(types_path)

    logger.info(
        "Generated %s (%d operations, %d types, %d clients)",
        target,
        context["operation_count"],
        len(context["types"]),
        len(context["clients"]),
    )
    return written


def run_formatting(commands: Sequence[Sequence[str]], output_dir: Path) -> bool:
    """Run the formatter commands over the output directory.

    Failures are logged and reported through the return value only; the
    generated files are left as written.
    """
    for command in commands:
        argv = [part.replace("{output}", str(output_dir)) for part in command]
        try:
            subprocess.run(argv, check=True, capture_output=True, text=True)
        except OSError as exc:
            logger.warning("Formatting skipped: cannot run %s (%s)", argv[0], exc)
            return False
        except subprocess.CalledProcessError as exc:
            logger.warning(
                "Formatting failed: %s exited with %d\n%s",
                " ".join(argv),
                exc.returncode,
                (exc.stderr or exc.stdout or "").strip(),
            )
            return False
    return True
