"""Synthesize TypeScript type declarations from OpenAPI schema objects.

Handles:
- $ref properties (referenced by name, declared separately from components)
- Inline object properties (child interface <Parent><Key>)
- Arrays of inline objects (child interface <Parent><Key>Item)
- Primitive mapping (integer -> number, object -> Record<string, unknown>, ...)
- Forced optionality for request/response wrapper types
- Dedup of inline schemas reached more than once (identity cache)
- Inline schema cycles (SchemaCycleError instead of unbounded recursion)
- Dependency-first ordering of the emitted declarations
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from .errors import SchemaCycleError
from .naming import capitalize_first, schema_ref_name

UNKNOWN_TYPE = "unknown"
NO_TYPE = "undefined"

_PRIMITIVE_TYPES: dict[str, str] = {
    "string": "string",
    "number": "number",
    "boolean": "boolean",
    "integer": "number",
    "array": "unknown[]",
    "object": "Record<string, unknown>",
}

# Type spellings that never name a declaration
PRIMITIVE_TYPE_NAMES = {*_PRIMITIVE_TYPES.values(), UNKNOWN_TYPE, NO_TYPE}

# Output sections, in file order
NESTED = "nested"
COMPONENT = "component"
ALIAS = "alias"
_SECTION_ORDER = {NESTED: 0, COMPONENT: 1, ALIAS: 2}


def map_json_schema_type(schema_type: Any) -> str:
    """Map a JSON Schema ``type`` keyword to a TypeScript type."""
    if not isinstance(schema_type, str):
        return UNKNOWN_TYPE
    return _PRIMITIVE_TYPES.get(schema_type, UNKNOWN_TYPE)


def is_ref(node: Any) -> bool:
    """Check whether a schema node is a ``$ref`` pointer."""
    return isinstance(node, dict) and "$ref" in node


def base_type(type_ref: str) -> str:
    """Strip array suffixes: ``User[][]`` -> ``User``."""
    while type_ref.endswith("[]"):
        type_ref = type_ref[:-2]
    return type_ref


def is_type_name(type_ref: str) -> bool:
    """Check whether a type string names a declaration rather than a primitive."""
    return bool(type_ref) and type_ref not in PRIMITIVE_TYPE_NAMES and type_ref.isidentifier()


def _is_inline_object(schema: Any) -> bool:
    return (
        isinstance(schema, dict)
        and not is_ref(schema)
        and schema.get("type", "object") == "object"
        and bool(schema.get("properties"))
    )


def is_array_schema(schema: Any) -> bool:
    """Check whether a schema is an inline (non-$ref) array."""
    return isinstance(schema, dict) and not is_ref(schema) and schema.get("type") == "array"


@dataclass
class Field:
    """One property of an interface declaration."""

    key: str
    type_ref: str
    optional: bool


@dataclass
class TypeDeclaration:
    """An ``export interface`` (fields) or ``export type`` (alias_of) declaration."""

    name: str
    fields: list[Field] = field(default_factory=list)
    alias_of: str | None = None
    section: str = NESTED

    @property
    def is_alias(self) -> bool:
        return self.alias_of is not None

    @property
    def dependencies(self) -> list[str]:
        """Names this declaration refers to, in first-use order."""
        refs = [self.alias_of] if self.alias_of else [f.type_ref for f in self.fields]
        names: list[str] = []
        for ref in refs:
            name = base_type(ref)
            if is_type_name(name) and name not in names:
                names.append(name)
        return names


class TypeRegistry:
    """Per-document state for type synthesis.

    Schema nodes are plain dicts, so each node gets a synthetic integer id
    from :meth:`index`. ``inline_names`` maps node ids to the type already
    synthesized for them, ``known`` holds every name that has been walked,
    ``declarations`` holds the emitted declarations keyed by name.
    """

    def __init__(self) -> None:
        self.inline_names: dict[int, str] = {}
        self.known: set[str] = set()
        self.declarations: dict[str, TypeDeclaration] = {}
        self._node_ids: dict[int, int] = {}
        # Indexed nodes stay referenced so their id() cannot be reused
        self._nodes: list[Any] = []
        self.in_progress: set[int] = set()

    def index(self, document: Any) -> None:
        """Assign ids to every dict/list in the document, depth-first."""
        stack = [document]
        while stack:
            node = stack.pop()
            if not isinstance(node, (dict, list)) or id(node) in self._node_ids:
                continue
            self.node_id(node)
            children = node.values() if isinstance(node, dict) else node
            stack.extend(reversed(list(children)))

    def node_id(self, node: Any) -> int:
        """Return the synthetic id of a node, assigning one if it is new."""
        key = id(node)
        if key not in self._node_ids:
            self._node_ids[key] = len(self._nodes)
            self._nodes.append(node)
        return self._node_ids[key]

    def declare(self, declaration: TypeDeclaration) -> bool:
        """Record a declaration; a name is declared at most once."""
        if declaration.name in self.declarations:
            return False
        self.known.add(declaration.name)
        self.declarations[declaration.name] = declaration
        return True

    def __contains__(self, name: str) -> bool:
        return name in self.declarations

    def ordered(self) -> list[TypeDeclaration]:
        """Declarations in output order.

        Sections come nested, component, alias; within that order every
        declaration is preceded by the declarations it depends on. Cycles
        through ``$ref`` are legal TypeScript and fall back to section order.
        """
        base = sorted(self.declarations.values(), key=lambda d: _SECTION_ORDER[d.section])
        result: list[TypeDeclaration] = []
        emitted: set[str] = set()
        visiting: set[str] = set()

        def visit(declaration: TypeDeclaration) -> None:
            if declaration.name in emitted or declaration.name in visiting:
                return
            visiting.add(declaration.name)
            for dep in declaration.dependencies:
                target = self.declarations.get(dep)
                if target is not None:
                    visit(target)
            visiting.discard(declaration.name)
            emitted.add(declaration.name)
            result.append(declaration)

        for declaration in base:
            visit(declaration)
        return result


def synthesize(
    registry: TypeRegistry,
    name: str,
    schema: dict[str, Any],
    force_optional: bool = False,
    section: str = NESTED,
) -> str:
    """Synthesize ``schema`` as interface ``name`` and return the type to use.

    A ``$ref`` returns the referenced name without declaring anything. A node
    that was already synthesized returns its cached type, and a name already
    walked returns immediately. A schema without properties declares nothing
    and returns its primitive mapping instead of a name.
    """
    if is_ref(schema):
        return schema_ref_name(schema["$ref"])
    if not isinstance(schema, dict):
        return UNKNOWN_TYPE

    node = registry.node_id(schema)
    cached = registry.inline_names.get(node)
    if cached is not None:
        return cached
    if node in registry.in_progress:
        raise SchemaCycleError(name)
    if name in registry.known:
        return name if name in registry else map_json_schema_type(schema.get("type"))

    registry.known.add(name)
    registry.in_progress.add(node)
    fields = _synthesize_fields(registry, name, schema, force_optional, section)
    registry.in_progress.discard(node)

    if fields:
        registry.declare(TypeDeclaration(name, fields, section=section))
        result = name
    else:
        result = map_json_schema_type(schema.get("type"))
    registry.inline_names[node] = result
    return result


def _synthesize_fields(
    registry: TypeRegistry,
    name: str,
    schema: dict[str, Any],
    force_optional: bool,
    section: str,
) -> list[Field]:
    required = set(schema.get("required") or [])
    fields = []
    for key, prop in (schema.get("properties") or {}).items():
        optional = force_optional or key not in required
        type_ref = _property_type(registry, name, key, prop, force_optional, section)
        fields.append(Field(key, type_ref, optional))
    return fields


def _property_type(
    registry: TypeRegistry,
    parent: str,
    key: str,
    prop: Any,
    force_optional: bool,
    section: str,
) -> str:
    if is_ref(prop):
        return schema_ref_name(prop["$ref"])
    if not isinstance(prop, dict):
        return UNKNOWN_TYPE
    if prop.get("type") == "array" and prop.get("items"):
        item_name = f"{parent}{capitalize_first(key)}Item"
        return item_type(registry, item_name, prop["items"], force_optional, section) + "[]"
    if _is_inline_object(prop):
        child_name = f"{parent}{capitalize_first(key)}"
        return synthesize(registry, child_name, prop, force_optional, section)
    return map_json_schema_type(prop.get("type"))


def item_type(
    registry: TypeRegistry,
    name: str,
    items: Any,
    force_optional: bool = False,
    section: str = NESTED,
) -> str:
    """Resolve array items to a type: a $ref name, a child interface, or a primitive."""
    if is_ref(items):
        return schema_ref_name(items["$ref"])
    if _is_inline_object(items):
        return synthesize(registry, name, items, force_optional, section)
    if isinstance(items, dict):
        return map_json_schema_type(items.get("type"))
    return UNKNOWN_TYPE


def synthesize_array_alias(
    registry: TypeRegistry,
    name: str,
    schema: dict[str, Any],
    force_optional: bool = False,
    section: str = ALIAS,
) -> str:
    """Declare ``type <name> = <ItemType>[]`` for an inline array schema."""
    node = registry.node_id(schema)
    cached = registry.inline_names.get(node)
    if cached is not None:
        return cached

    child_section = NESTED if section == ALIAS else section
    items = schema.get("items") or {}
    alias_of = item_type(registry, f"{name}Item", items, force_optional, child_section) + "[]"
    registry.declare(TypeDeclaration(name, alias_of=alias_of, section=section))
    registry.inline_names[node] = name
    return name


def synthesize_components(registry: TypeRegistry, schemas: dict[str, Any]) -> None:
    """Declare every ``components.schemas`` entry under its own name."""
    for name, schema in schemas.items():
        if is_array_schema(schema):
            synthesize_array_alias(registry, name, schema, section=COMPONENT)
        else:
            synthesize(registry, name, schema, section=COMPONENT)
