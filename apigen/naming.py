"""Derive TypeScript identifiers from file names, summaries and $ref pointers.

Examples:
  to_pascal_identifier("pet-store")               -> PetStore
  schema_ref_name("#/components/schemas/User")    -> User
  schema_ref_name("#/definitions/User")           -> unknown
  operation_type_name("List widgets", "Response") -> ListWidgetsResponse
  operation_type_name(None, "Request")            -> UnnamedRequest
  fallback_operation_text("get", "/users/{id}")   -> get users by id
"""

from __future__ import annotations

import re

UNKNOWN_REF = "unknown"

_SCHEMA_REF_RE = re.compile(r"#/components/schemas/(\w+)")
_SEPARATOR_RE = re.compile(r"(^|[_\-/])(\w)")
_NON_ALNUM_RE = re.compile(r"[^a-zA-Z0-9]")
_NON_WORD_RE = re.compile(r"[^a-zA-Z0-9 ]")
_GAP_RE = re.compile(r"\s+(.)")
_SPLIT_RE = re.compile(r"[^a-zA-Z0-9]+")

# Words TypeScript rejects as parameter names (strict mode included)
TS_RESERVED_WORDS = frozenset({
    "arguments", "await", "break", "case", "catch", "class", "const", "continue",
    "debugger", "default", "delete", "do", "else", "enum", "eval", "export",
    "extends", "false", "finally", "for", "function", "if", "implements",
    "import", "in", "instanceof", "interface", "let", "new", "null", "package",
    "private", "protected", "public", "return", "static", "super", "switch",
    "this", "throw", "true", "try", "typeof", "var", "void", "while", "with",
    "yield",
})


def capitalize_first(text: str) -> str:
    """Uppercase the first character, leave the rest untouched."""
    return text[:1].upper() + text[1:]


def lower_first(text: str) -> str:
    """Lowercase the first character, leave the rest untouched."""
    return text[:1].lower() + text[1:]


def to_pascal_identifier(text: str) -> str:
    """Convert a file or tag name to a PascalCase identifier.

    The character after start-of-string or a ``_``, ``-`` or ``/`` separator
    is uppercased, then every remaining non-alphanumeric character is removed.
    """
    name = _SEPARATOR_RE.sub(lambda m: m.group(2).upper(), text)
    return _NON_ALNUM_RE.sub("", name)


def to_camel_identifier(text: str) -> str:
    """Turn a wire name such as ``X-Request-Id`` into ``xRequestId``.

    Reserved words get a trailing underscore: ``class`` becomes ``class_``.
    """
    parts = [p for p in _SPLIT_RE.split(text) if p]
    if not parts:
        return "arg"
    name = lower_first(parts[0]) + "".join(capitalize_first(p) for p in parts[1:])
    if name[0].isdigit():
        name = f"_{name}"
    elif name in TS_RESERVED_WORDS:
        name = f"{name}_"
    return name


def schema_ref_name(ref: str) -> str:
    """Return the schema name a ``#/components/schemas/<Name>`` pointer targets.

    Pointers of any other shape degrade to ``"unknown"`` instead of failing.
    """
    match = _SCHEMA_REF_RE.search(ref)
    return match.group(1) if match else UNKNOWN_REF


def operation_type_name(
    summary: str | None,
    suffix: str,
    fallback: str | None = None,
) -> str:
    """Build a type name from a human-readable operation summary.

    ``"Get users"`` with suffix ``"Request"`` gives ``"GetUsersRequest"``.
    Without a summary the name is ``"Unnamed" + suffix`` unless a ``fallback``
    text (see :func:`fallback_operation_text`) is supplied.
    """
    for text in (summary, fallback):
        name = _NON_WORD_RE.sub("", text or "").strip()
        if name:
            name = _GAP_RE.sub(lambda m: m.group(1).upper(), name)
            return capitalize_first(name) + suffix
    return f"Unnamed{suffix}"


def fallback_operation_text(method: str, path: str) -> str:
    """Describe an operation by method and path for summary-less operations.

    Path parameters read as ``by <name>`` so ``GET /users/{id}`` and
    ``GET /users`` stay distinct.
    """
    words = [method.lower()]
    for segment in path.split("/"):
        if not segment:
            continue
        if segment.startswith("{"):
            words.append("by")
        words.extend(p for p in _SPLIT_RE.split(segment) if p)
    return " ".join(words)
