"""Build the template context from a bundled OpenAPI document.

Walks components.schemas into a TypeRegistry, turns every GET/POST/PUT/DELETE
operation into a method descriptor, groups the descriptors by their first tag
and computes the imports each per-tag client file needs.
"""

from __future__ import annotations

import re
from typing import Any

from .loader import get_paths, get_schemas
from .naming import (
    capitalize_first,
    fallback_operation_text,
    lower_first,
    operation_type_name,
    to_camel_identifier,
    to_pascal_identifier,
)
from .schema_parser import (
    ALIAS,
    NESTED,
    NO_TYPE,
    UNKNOWN_TYPE,
    TypeRegistry,
    base_type,
    is_array_schema,
    is_ref,
    is_type_name,
    map_json_schema_type,
    synthesize,
    synthesize_array_alias,
    synthesize_components,
)

# PATCH, HEAD, OPTIONS and TRACE are never generated
HTTP_METHODS = ("get", "post", "put", "delete")

DEFAULT_TAG = "Default"

_JSON_CONTENT = "application/json"
_SUCCESS_STATUSES = ("200", "201")
_PATH_PARAM_RE = re.compile(r"\{([^}]+)\}")


def parse_parameters(
    operation: dict[str, Any],
    shared: list[Any] | None = None,
) -> list[dict[str, Any]]:
    """Parse the path/query/header parameters of an operation.

    ``shared`` holds path-item level parameters; an operation parameter with
    the same name and location replaces the shared one. ``$ref`` parameters
    are dropped.
    """
    merged: dict[tuple[str, str], dict[str, Any]] = {}
    for param in [*(shared or []), *(operation.get("parameters") or [])]:
        if is_ref(param) or not isinstance(param, dict) or not param.get("name"):
            continue
        merged[(param["name"], param.get("in", "query"))] = param

    params: list[dict[str, Any]] = []
    for (name, location), param in merged.items():
        schema = param.get("schema") or {}
        params.append({
            "name": name,
            "arg": to_camel_identifier(name),
            "type": map_json_schema_type(schema.get("type")),
            "required": bool(param.get("required", False)),
            "location": location,
        })
    return params


def get_request_schema(operation: dict[str, Any]) -> dict[str, Any] | None:
    """Return the application/json request body schema, if any."""
    body = operation.get("requestBody") or {}
    media = (body.get("content") or {}).get(_JSON_CONTENT) or {}
    return media.get("schema") or None


def get_response_schema(operation: dict[str, Any]) -> dict[str, Any] | None:
    """Return the application/json schema of the 200 (else 201) response."""
    responses = operation.get("responses") or {}
    for status in _SUCCESS_STATUSES:
        # YAML loads unquoted status codes as integers
        response = responses.get(status) or responses.get(int(status))
        if response:
            break
    else:
        return None
    media = (response.get("content") or {}).get(_JSON_CONTENT) or {}
    return media.get("schema") or None


def _synthesize_body(registry: TypeRegistry, name: str, schema: dict[str, Any]) -> str:
    """Synthesize a request/response wrapper type with every field optional."""
    if is_array_schema(schema):
        return synthesize_array_alias(registry, name, schema, force_optional=True, section=ALIAS)
    return synthesize(registry, name, schema, force_optional=True, section=NESTED)


def _add_import(imports: list[str], type_ref: str) -> None:
    if is_type_name(type_ref) and type_ref not in imports:
        imports.append(type_ref)


def _alias_item(registry: TypeRegistry, type_ref: str) -> str | None:
    """Return the element type name behind an array alias such as ``Users = User[]``."""
    declaration = registry.declarations.get(type_ref)
    if declaration is None or not declaration.is_alias:
        return None
    item = base_type(declaration.alias_of)
    return item if is_type_name(item) else None


def _collect(
    registry: TypeRegistry,
    type_ref: str,
    imports: list[str],
    alias_items: list[str],
    array_body: bool = False,
) -> None:
    # only aliases synthesized for an inline array body carry their element
    item = _alias_item(registry, type_ref) if array_body else None
    if item:
        alias_items.append(item)
        _add_import(imports, item)
    _add_import(imports, type_ref)


def _unique_args(params: list[dict[str, Any]]) -> None:
    """Rename clashing argument names in place.

    The request body keeps ``body``; a later clash first takes its location as
    a suffix (``idQuery``), then a counter (``idQuery2``).
    """
    taken = {p["arg"] for p in params if p["location"] == "body"}
    for param in params:
        if param["location"] == "body":
            continue
        arg = param["arg"]
        if arg in taken:
            arg += capitalize_first(param["location"])
        candidate, counter = arg, 2
        while candidate in taken:
            candidate = f"{arg}{counter}"
            counter += 1
        param["arg"] = candidate
        taken.add(candidate)


def build_operation(
    registry: TypeRegistry,
    path: str,
    method: str,
    operation: dict[str, Any],
    imports: list[str],
    shared: list[Any] | None = None,
) -> dict[str, Any]:
    """Build the descriptor for one (path, method) pair.

    Request and response type names that were generated or referenced are
    appended to ``imports``, preceded by the element type when an inline array body became an alias.
    """
    summary = operation.get("summary") or ""
    fallback = fallback_operation_text(method, path)
    tags = operation.get("tags") or []

    params = parse_parameters(operation, shared)
    response = UNKNOWN_TYPE
    alias_items: list[str] = []

    request_schema = get_request_schema(operation)
    if request_schema:
        type_name = operation_type_name(summary, "Request", fallback)
        request_type = _synthesize_body(registry, type_name, request_schema)
        _collect(registry, request_type, imports, alias_items, is_array_schema(request_schema))
        params.append({
            "name": "body",
            "arg": "body",
            "type": request_type,
            "required": True,
            "location": "body",
        })
    _unique_args(params)

    response_schema = get_response_schema(operation)
    if response_schema:
        type_name = operation_type_name(summary, "Response", fallback)
        response = _synthesize_body(registry, type_name, response_schema)
        _collect(registry, response, imports, alias_items, is_array_schema(response_schema))

    return {
        "operationName": lower_first(operation_type_name(summary, "", fallback)),
        "httpMethod": method,
        "path": path,
        "summary": summary,
        "tag": str(tags[0]) if tags else DEFAULT_TAG,
        "params": params,
        "response": response,
        "aliasItems": alias_items,
    }


def extract_operations(
    registry: TypeRegistry,
    paths: dict[str, Any],
) -> tuple[dict[str, list[dict[str, Any]]], list[str]]:
    """Walk every path item and group the operation descriptors by tag.

    Returns the tag groups and the import candidates collected across all tags.
    """
    groups: dict[str, list[dict[str, Any]]] = {}
    imports: list[str] = []

    for path, path_item in paths.items():
        if not isinstance(path_item, dict):
            continue
        shared = path_item.get("parameters")

        for method in HTTP_METHODS:
            operation = path_item.get(method)
            if not operation:
                continue
            descriptor = build_operation(registry, path, method, operation, imports, shared)
            groups.setdefault(descriptor["tag"], []).append(descriptor)

    return groups, imports


def used_type_names(operations: list[dict[str, Any]]) -> set[str]:
    """Collect the parameter, body and response types a group of operations uses.

    An array alias counts as using its element type too.
    """
    used: set[str] = set()
    for operation in operations:
        for param in operation["params"]:
            if param["type"] not in (UNKNOWN_TYPE, NO_TYPE):
                used.add(param["type"])
        if operation["response"] not in (UNKNOWN_TYPE, NO_TYPE):
            used.add(operation["response"])
        used.update(operation.get("aliasItems", []))
    return used


def filter_imports(candidates: list[str], used: set[str]) -> list[str]:
    """Keep only the candidates a client file references, in candidate order."""
    return [name for name in candidates if name in used]


def _url_template(path: str, path_params: list[dict[str, Any]]) -> str:
    """Turn ``/users/{user-id}`` into ``/users/${encodeURIComponent(String(userId))}``."""
    args = {p["name"]: p["arg"] for p in path_params}

    def replace(match: re.Match) -> str:
        arg = args.get(match.group(1))
        if arg is None:
            return match.group(0)
        return "${encodeURIComponent(String(" + arg + "))}"

    return _PATH_PARAM_RE.sub(replace, path)


def _method_context(operation: dict[str, Any]) -> dict[str, Any]:
    params = operation["params"]
    path_params = [p for p in params if p["location"] == "path"]
    return {
        "operationName": operation["operationName"],
        "httpMethod": operation["httpMethod"],
        "path": operation["path"],
        "url": _url_template(operation["path"], path_params),
        "summary": operation["summary"],
        "pathParams": path_params,
        "queryParams": [p for p in params if p["location"] == "query"],
        "headerParams": [p for p in params if p["location"] == "header"],
        "requestBody": next((p for p in params if p["location"] == "body"), None),
        "response": operation["response"],
        # TypeScript wants required arguments before optional ones
        "args": sorted(params, key=lambda p: not p["required"]),
        "hasParams": bool(params),
    }


def client_file_stems(tags: list[str]) -> dict[str, str]:
    """Map every tag to a distinct file stem.

    ``user-items`` and ``user_items`` both read ``UserItems``; the later tag
    gets ``UserItems2``. A tag with no usable characters reads ``Default``.
    """
    stems: dict[str, str] = {}
    taken: set[str] = set()
    for tag in tags:
        base = to_pascal_identifier(tag) or DEFAULT_TAG
        stem, counter = base, 2
        while stem.lower() in taken:
            stem = f"{base}{counter}"
            counter += 1
        stems[tag] = stem
        taken.add(stem.lower())
    return stems


def build_client_context(
    base_name: str,
    tag: str,
    operations: list[dict[str, Any]],
    candidates: list[str],
    stem: str | None = None,
) -> dict[str, Any]:
    """Assemble the client template context for one tag."""
    stem = stem or to_pascal_identifier(tag) or DEFAULT_TAG
    return {
        "className": f"{base_name}{stem}Api",
        "baseName": base_name,
        "tag": tag,
        "fileStem": stem,
        "imports": filter_imports(candidates, used_type_names(operations)),
        "methods": [_method_context(op) for op in operations],
    }


def build_context(spec: dict[str, Any], base_name: str) -> dict[str, Any]:
    """Build the full template context for one document."""
    registry = TypeRegistry()
    registry.index(spec)
    synthesize_components(registry, get_schemas(spec))

    groups, candidates = extract_operations(registry, get_paths(spec))
    stems = client_file_stems(list(groups))
    clients = [
        build_client_context(base_name, tag, operations, candidates, stems[tag])
        for tag, operations in groups.items()
    ]

    return {
        "baseName": base_name,
        "types": registry.ordered(),
        "clients": clients,
        "operation_count": sum(len(ops) for ops in groups.values()),
        "api_version": (spec.get("info") or {}).get("version", "unknown"),
    }
