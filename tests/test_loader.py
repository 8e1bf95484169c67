"""Tests for the loader module."""

import pytest

from apigen.errors import LoaderError
from apigen.loader import get_paths, get_schemas, load_spec, resolve_pointer


class TestLoadSpec:
    """Test reading and bundling documents."""

    def test_json(self, write_spec, users_spec):
        spec = load_spec(write_spec("users.json", users_spec))
        assert spec == users_spec

    def test_yaml(self, write_spec):
        path = write_spec("pets.yaml", (
            "openapi: 3.0.3\n"
            "paths:\n"
            "  /pets:\n"
            "    get:\n"
            "      summary: List pets\n"
            "      responses:\n"
            "        200:\n"
            "          description: OK\n"
        ))
        spec = load_spec(path)
        assert get_paths(spec)["/pets"]["get"]["summary"] == "List pets"

    def test_internal_refs_kept(self, write_spec, users_spec):
        spec = load_spec(write_spec("users.json", users_spec))
        items = spec["paths"]["/users"]["get"]["responses"]["200"]["content"]["application/json"]["schema"]["items"]
        assert items == {"$ref": "#/components/schemas/User"}

    def test_external_ref_bundled(self, write_spec):
        write_spec("common.json", {
            "components": {
                "schemas": {
                    "Error": {"type": "object", "properties": {"message": {"type": "string"}}},
                    "Problem": {"$ref": "#/components/schemas/Error"},
                }
            }
        })
        path = write_spec("api.json", {
            "paths": {},
            "components": {
                "schemas": {
                    "Error": {"$ref": "common.json#/components/schemas/Error"},
                    "Problem": {"$ref": "common.json#/components/schemas/Problem"},
                }
            },
        })
        schemas = get_schemas(load_spec(path))
        assert schemas["Error"] == {"type": "object", "properties": {"message": {"type": "string"}}}
        assert schemas["Problem"] == schemas["Error"]

    def test_same_fragment_shared(self, write_spec):
        """One external fragment becomes one object, so synthesis can dedupe it."""
        write_spec("address.json", {"type": "object", "properties": {"city": {"type": "string"}}})
        path = write_spec("api.json", {
            "components": {
                "schemas": {
                    "Order": {
                        "type": "object",
                        "properties": {
                            "billing": {"$ref": "address.json"},
                            "shipping": {"$ref": "address.json"},
                        },
                    }
                }
            }
        })
        props = get_schemas(load_spec(path))["Order"]["properties"]
        assert props["billing"] is props["shipping"]

    def test_missing_file(self, tmp_path):
        with pytest.raises(LoaderError):
            load_spec(tmp_path / "nope.json")

    def test_malformed_json(self, write_spec):
        with pytest.raises(LoaderError, match="malformed"):
            load_spec(write_spec("broken.json", "{ not json"))

    def test_invalid_utf8(self, write_spec):
        path = write_spec("bad.json", "")
        path.write_bytes(b"{\"paths\": \xff}")
        with pytest.raises(LoaderError, match="cannot read"):
            load_spec(path)

    def test_malformed_yaml(self, write_spec):
        with pytest.raises(LoaderError):
            load_spec(write_spec("broken.yaml", "paths: [unclosed"))

    def test_not_an_object(self, write_spec):
        with pytest.raises(LoaderError):
            load_spec(write_spec("list.json", [1, 2, 3]))

    def test_unresolvable_external_ref(self, write_spec):
        write_spec("common.json", {"components": {}})
        path = write_spec("api.json", {"components": {"schemas": {
            "Missing": {"$ref": "common.json#/components/schemas/Missing"},
        }}})
        with pytest.raises(LoaderError, match="unresolvable"):
            load_spec(path)

    def test_circular_external_ref(self, write_spec):
        write_spec("a.json", {"next": {"$ref": "b.json"}})
        write_spec("b.json", {"next": {"$ref": "a.json"}})
        path = write_spec("api.json", {"components": {"schemas": {"A": {"$ref": "a.json"}}}})
        with pytest.raises(LoaderError, match="circular"):
            load_spec(path)


class TestHelpers:
    """Test pointer resolution and accessors."""

    def test_resolve_pointer(self):
        doc = {"a": {"b/c": [{"d": 1}]}}
        assert resolve_pointer(doc, "/a/b~1c/0/d") == 1

    def test_resolve_root(self):
        doc = {"a": 1}
        assert resolve_pointer(doc, "") is doc

    def test_resolve_missing(self):
        with pytest.raises(KeyError):
            resolve_pointer({"a": 1}, "/b")

    def test_accessors_default_empty(self):
        assert get_paths({}) == {}
        assert get_schemas({"components": {}}) == {}


class TestRecursiveExternalSchemas:
    """Self-referencing schemas in another file stay as named references."""

    @staticmethod
    def _common(write_spec):
        write_spec("common.json", {"components": {"schemas": {"Node": {
            "type": "object",
            "properties": {
                "label": {"type": "string"},
                "next": {"$ref": "#/components/schemas/Node"},
            },
        }}}})

    def test_same_name_in_root(self, write_spec):
        self._common(write_spec)
        path = write_spec("api.json", {"components": {"schemas": {
            "Node": {"$ref": "common.json#/components/schemas/Node"},
        }}})
        schemas = get_schemas(load_spec(path))
        assert list(schemas) == ["Node"]
        assert schemas["Node"]["properties"]["next"] == {"$ref": "#/components/schemas/Node"}

    def test_hoisted_into_root(self, write_spec):
        self._common(write_spec)
        path = write_spec("api.json", {"paths": {}, "components": {"schemas": {
            "Tree": {"$ref": "common.json#/components/schemas/Node"},
        }}})
        schemas = get_schemas(load_spec(path))
        assert sorted(schemas) == ["Node", "Tree"]
        assert schemas["Node"] == schemas["Tree"]
        assert schemas["Node"] is not schemas["Tree"]

    def test_hoisted_without_components(self, write_spec):
        self._common(write_spec)
        path = write_spec("api.json", {"paths": {"/n": {"get": {"responses": {"200": {"content": {
            "application/json": {"schema": {"$ref": "common.json#/components/schemas/Node"}},
        }}}}}}})
        schemas = get_schemas(load_spec(path))
        assert schemas["Node"]["properties"]["next"] == {"$ref": "#/components/schemas/Node"}

    def test_name_clash_with_root(self, write_spec):
        self._common(write_spec)
        path = write_spec("api.json", {"components": {"schemas": {
            "Tree": {"$ref": "common.json#/components/schemas/Node"},
            "Node": {"type": "object", "properties": {"id": {"type": "string"}}},
        }}})
        with pytest.raises(LoaderError, match="clashes"):
            load_spec(path)
