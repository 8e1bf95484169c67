"""Load an OpenAPI document and bundle its cross-file references.

Reads a .json/.yaml/.yml file and replaces every external ``$ref``
(``common.json#/components/schemas/Error``) with the fragment it points to.
Internal references of the root document (``#/components/schemas/User``)
are left in place; internal references inside a referenced file are inlined.

A referenced schema that refers back to itself
(``common.json#/components/schemas/Node`` containing
``#/components/schemas/Node``) cannot be inlined. The inner reference is
kept as ``#/components/schemas/Node`` and the schema is hoisted into the
root document's ``components.schemas`` under that name. Any other
reference loop between files is a fatal error.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import yaml

from .errors import LoaderError
from .naming import UNKNOWN_REF, schema_ref_name

logger = logging.getLogger(__name__)

SPEC_SUFFIXES = (".json", ".yaml", ".yml")

_SCHEMA_POINTER = "#/components/schemas/"


def read_document(path: Path) -> Any:
    """Parse a single JSON or YAML file without resolving anything."""
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise LoaderError(f"cannot read {path}: {exc}") from exc

    try:
        if path.suffix.lower() in (".yaml", ".yml"):
            return yaml.safe_load(text)
        return json.loads(text)
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise LoaderError(f"malformed document {path}: {exc}") from exc


def resolve_pointer(document: Any, pointer: str) -> Any:
    """Resolve a JSON pointer (``/components/schemas/User``) inside a document."""
    node = document
    if not pointer.strip("/"):
        return node
    for raw in pointer.lstrip("/").split("/"):
        part = raw.replace("~1", "/").replace("~0", "~")
        if isinstance(node, list) and part.isdigit() and int(part) < len(node):
            node = node[int(part)]
        elif isinstance(node, dict) and part in node:
            node = node[part]
        else:
            raise KeyError(pointer)
    return node


class _Bundler:
    """Inline external references, sharing one object per (file, pointer)."""

    def __init__(self, root: Path) -> None:
        self.root = root
        self.hoisted: dict[str, tuple[Path, str]] = {}
        self._documents: dict[Path, Any] = {}
        self._fragments: dict[tuple[Path, str], Any] = {}
        self._active: list[tuple[Path, str]] = []

    def document(self, path: Path) -> Any:
        if path not in self._documents:
            logger.debug("Reading %s", path)
            self._documents[path] = read_document(path)
        return self._documents[path]

    def fragment(self, path: Path, pointer: str) -> Any:
        key = (path, pointer)
        if key in self._fragments:
            return self._fragments[key]
        if key in self._active:
            return self._hoist(key)

        try:
            node = resolve_pointer(self.document(path), pointer)
        except KeyError as exc:
            raise LoaderError(f"unresolvable reference {path}#{pointer}") from exc

        self._active.append(key)
        bundled = self.bundle(node, path)
        self._active.pop()
        self._fragments[key] = bundled
        return bundled

    def _hoist(self, key: tuple[Path, str]) -> dict[str, str]:
        path, pointer = key
        name = schema_ref_name("#" + pointer)
        if name == UNKNOWN_REF or f"/components/schemas/{name}" != pointer:
            raise LoaderError(f"circular external reference {path}#{pointer}")
        if self.hoisted.setdefault(name, key) != key:
            raise LoaderError(f"conflicting recursive schemas named {name!r}")
        logger.debug("Keeping recursive schema %s#%s as %s", path, pointer, name)
        return {"$ref": _SCHEMA_POINTER + name}

    def attach_hoisted(self, spec: dict[str, Any]) -> None:
        """Give every hoisted schema an entry in the root ``components.schemas``."""
        if not self.hoisted:
            return
        components = spec["components"] = spec.get("components") or {}
        schemas = components["schemas"] = components.get("schemas") or {}
        for name, key in self.hoisted.items():
            fragment = self._fragments[key]
            existing = schemas.get(name)
            if existing is None:
                # a copy, so the schema is declared under this name as well
                schemas[name] = dict(fragment)
            elif existing is not fragment:
                raise LoaderError(
                    f"recursive schema {key[0]}#{key[1]} clashes with root schema {name!r}"
                )

    def bundle(self, node: Any, base: Path) -> Any:
        """Return ``node`` with external refs replaced, relative to file ``base``."""
        if isinstance(node, list):
            return [self.bundle(item, base) for item in node]
        if not isinstance(node, dict):
            return node

        ref = node.get("$ref")
        if isinstance(ref, str) and "://" not in ref:
            file_part, _, pointer = ref.partition("#")
            if file_part:
                return self.fragment((base.parent / file_part).resolve(), pointer)
            if base != self.root:
                # Internal pointers of a referenced file point into that file
                return self.fragment(base, pointer)

        return {key: self.bundle(value, base) for key, value in node.items()}


def load_spec(path: Path) -> dict[str, Any]:
    """Load an OpenAPI document from disk with external refs bundled in."""
    path = Path(path).resolve()
    bundler = _Bundler(path)
    spec = bundler.fragment(path, "")
    if not isinstance(spec, dict):
        raise LoaderError(f"{path} does not contain an OpenAPI object")
    bundler.attach_hoisted(spec)
    return spec


def get_paths(spec: dict[str, Any]) -> dict[str, Any]:
    """Extract paths from the document."""
    return spec.get("paths") or {}


def get_schemas(spec: dict[str, Any]) -> dict[str, Any]:
    """Extract component schemas from the document."""
    return (spec.get("components") or {}).get("schemas") or {}
