"""Shared fixtures: small OpenAPI documents written to disk on demand."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Callable

import pytest


# ---------------------------------------------------------------------------
# One schema, one list operation
# ---------------------------------------------------------------------------

USERS_SPEC: dict[str, Any] = {
    "openapi": "3.0.3",
    "info": {"title": "Users", "version": "1.0.0"},
    "paths": {
        "/users": {
            "get": {
                "tags": ["Users"],
                "summary": "Get users",
                "responses": {
                    "200": {
                        "description": "OK",
                        "content": {
                            "application/json": {
                                "schema": {
                                    "type": "array",
                                    "items": {"$ref": "#/components/schemas/User"},
                                },
                            }
                        },
                    }
                },
            }
        }
    },
    "components": {
        "schemas": {
            "User": {
                "type": "object",
                "required": ["id"],
                "properties": {
                    "id": {"type": "string"},
                    "name": {"type": "string"},
                },
            }
        }
    },
}


@pytest.fixture
def users_spec() -> dict[str, Any]:
    """A fresh copy of the single-operation users document."""
    return json.loads(json.dumps(USERS_SPEC))


@pytest.fixture
def write_spec(tmp_path: Path) -> Callable[..., Path]:
    """Return a helper that writes a document into tmp_path/swagger."""
    swagger_dir = tmp_path / "swagger"
    swagger_dir.mkdir()

    def _write(name: str, document: Any) -> Path:
        path = swagger_dir / name
        if isinstance(document, str):
            path.write_text(document, encoding="utf-8")
        else:
            path.write_text(json.dumps(document, indent=2), encoding="utf-8")
        return path

    return _write
