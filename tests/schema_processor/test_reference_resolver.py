"""Tests for the reference resolver."""

import copy

import pytest

from src.schema_processor.data_classes import InlineSchema, ResolverConfig
from src.schema_processor.errors import ConversionError, ResolutionError
from src.schema_processor.reference_resolver import ReferenceResolver
from tests.schema_processor.test_helpers import ERROR_RESPONSE, FakeFetch

MEMBER_URL = "https://example.com/build/LicensedMember.json"
MEMBER_SCHEMA = {
    "type": "object",
    "properties": {"memberId": {"type": "string"}, "createdAt": {"type": "integer"}},
}

NAME_OBJECT = {"type": "object", "properties": {"firstName": {"type": "string"}}}


def make_resolver(documents=None, **config_overrides):
    """Resolver with a fake fetch and a fixed base directory."""
    config = ResolverConfig(base_dir="/schemas", **config_overrides)
    fetch = FakeFetch(documents)
    return ReferenceResolver(config, fetch=fetch), fetch


class TestDereference:
    """Test cases for ReferenceResolver.dereference."""

    @pytest.mark.asyncio
    async def test_schema_without_references_round_trips(self):
        """Test that a schema with no $ref comes back unchanged."""
        resolver, _ = make_resolver()

        result = await resolver.dereference(ERROR_RESPONSE)

        assert result == ERROR_RESPONSE

    @pytest.mark.asyncio
    async def test_inlines_local_definitions(self):
        """Test that definitions references are inlined and the definitions removed."""
        resolver, _ = make_resolver()
        schema = {
            "type": "object",
            "properties": {"name": {"$ref": "#/definitions/nameObject"}},
            "definitions": {"nameObject": NAME_OBJECT},
        }

        result = await resolver.dereference(schema)

        assert result == {"type": "object", "properties": {"name": NAME_OBJECT}}

    @pytest.mark.asyncio
    async def test_inlines_defs_keyword(self):
        """Test that $defs is handled like definitions."""
        resolver, _ = make_resolver()
        schema = {
            "type": "array",
            "items": {"$ref": "#/$defs/item"},
            "$defs": {"item": {"type": "integer"}},
        }

        result = await resolver.dereference(schema)

        assert result == {"type": "array", "items": {"type": "integer"}}

    @pytest.mark.asyncio
    async def test_repairs_root_reference(self):
        """Test that a root $ref into definitions is merged into the root."""
        resolver, _ = make_resolver()
        schema = {"$ref": "#/definitions/Foo", "definitions": {"Foo": {"type": "string"}}}

        result = await resolver.dereference(schema)

        assert result == {"type": "string"}

    @pytest.mark.asyncio
    async def test_repairs_poorly_dereferenced_schema(self):
        """Test a root carrying both its own keywords and a $ref."""
        resolver, _ = make_resolver()
        schema = {
            "type": "object",
            "$ref": "#/definitions/nameObject",
            "definitions": {"nameObject": NAME_OBJECT},
        }

        result = await resolver.dereference(schema)

        assert result == {"type": "object", "properties": {"firstName": {"type": "string"}}}

    @pytest.mark.asyncio
    async def test_root_self_reference_raises(self):
        """Test that a root pointing at itself cannot be repaired."""
        resolver, _ = make_resolver()

        with pytest.raises(ResolutionError) as exc_info:
            await resolver.dereference({"$ref": "#"})

        assert exc_info.value.ref == "#"

    @pytest.mark.asyncio
    async def test_non_converging_repair_raises(self):
        """Test that repair gives up after the configured number of passes."""
        resolver, _ = make_resolver(max_repair_passes=2)
        schema = {"$ref": "#/definitions/A", "definitions": {"A": {"$ref": "#/definitions/A"}}}

        with pytest.raises(ResolutionError) as exc_info:
            await resolver.dereference(schema)

        assert "did not converge after 2 passes" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_missing_definition_raises(self):
        """Test that a pointer to a missing definition names the reference."""
        resolver, _ = make_resolver()
        schema = {"properties": {"a": {"$ref": "#/definitions/Missing"}}, "definitions": {}}

        with pytest.raises(ResolutionError) as exc_info:
            await resolver.dereference(schema)

        assert exc_info.value.ref == "#/definitions/Missing"
        assert "Missing" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_component_references_are_preserved(self):
        """Test that #/components/ references are left for the final document."""
        resolver, _ = make_resolver()
        schema = {"type": "array", "items": {"$ref": "#/components/schemas/Agency"}}

        result = await resolver.dereference(schema)

        assert result == schema

    @pytest.mark.asyncio
    async def test_recursive_references_stay_references(self):
        """Test that a definition referring to itself is kept as a $ref."""
        resolver, _ = make_resolver()
        node = {"type": "object", "properties": {"next": {"$ref": "#/definitions/Node"}}}
        schema = {
            "type": "object",
            "properties": {"head": {"$ref": "#/definitions/Node"}},
            "definitions": {"Node": node},
        }

        result = await resolver.dereference(schema)

        assert result["properties"]["head"]["properties"]["next"] == {"$ref": "#/definitions/Node"}
        assert result["definitions"] == {"Node": node}

    @pytest.mark.asyncio
    async def test_sibling_keywords_override_target(self):
        """Test that keywords next to a $ref are merged over the target."""
        resolver, _ = make_resolver()
        schema = {
            "properties": {"name": {"$ref": "#/definitions/Name", "description": "Display name"}},
            "definitions": {"Name": {"type": "string", "description": "A name"}},
        }

        result = await resolver.dereference(schema)

        assert result["properties"]["name"] == {"type": "string", "description": "Display name"}

    @pytest.mark.asyncio
    async def test_literal_values_are_not_resolved(self):
        """Test that $ref-shaped data inside examples and defaults is left alone."""
        resolver, fetch = make_resolver()
        schema = {
            "type": "object",
            "example": {"$ref": "not-a-schema.json"},
            "default": {"$ref": "#/definitions/Nothing"},
        }

        result = await resolver.dereference(schema)

        assert result == schema
        assert fetch.calls == []

    @pytest.mark.asyncio
    async def test_remote_schema_url(self):
        """Test dereferencing a schema given as a URL."""
        resolver, fetch = make_resolver({MEMBER_URL: MEMBER_SCHEMA})

        result = await resolver.dereference(MEMBER_URL)

        assert result == MEMBER_SCHEMA
        assert fetch.calls == [MEMBER_URL]

    @pytest.mark.asyncio
    async def test_schema_source_value(self):
        """Test that an already classified schema source is accepted."""
        resolver, _ = make_resolver()

        result = await resolver.dereference(InlineSchema(ERROR_RESPONSE))

        assert result == ERROR_RESPONSE

    @pytest.mark.asyncio
    async def test_remote_schema_not_found(self):
        """Test that a 404 surfaces as a ResolutionError naming the URL."""
        resolver, _ = make_resolver()

        with pytest.raises(ResolutionError) as exc_info:
            await resolver.dereference(MEMBER_URL)

        assert exc_info.value.ref == MEMBER_URL
        assert "404" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_remote_references_disabled(self):
        """Test that remote fetching can be switched off."""
        resolver, fetch = make_resolver({MEMBER_URL: MEMBER_SCHEMA}, allow_remote_refs=False)

        with pytest.raises(ResolutionError) as exc_info:
            await resolver.dereference(MEMBER_URL)

        assert "Remote references are disabled" in str(exc_info.value)
        assert fetch.calls == []

    @pytest.mark.asyncio
    async def test_file_references_disabled(self):
        """Test that file references can be switched off."""
        resolver, _ = make_resolver(allow_file_refs=False)
        schema = {"properties": {"address": {"$ref": "address.json"}}}

        with pytest.raises(ResolutionError) as exc_info:
            await resolver.dereference(schema)

        assert exc_info.value.ref == "/schemas/address.json"

    @pytest.mark.asyncio
    async def test_fetch_errors_are_wrapped(self):
        """Test that unexpected fetch failures become ResolutionErrors with a cause."""

        async def broken_fetch(location):
            raise ValueError("bad payload")

        resolver = ReferenceResolver(ResolverConfig(base_dir="/schemas"), fetch=broken_fetch)

        with pytest.raises(ResolutionError) as exc_info:
            await resolver.dereference(MEMBER_URL)

        assert isinstance(exc_info.value.cause, ValueError)

    @pytest.mark.asyncio
    async def test_invalid_input_raises(self):
        """Test that an absent schema is rejected."""
        resolver, _ = make_resolver()

        with pytest.raises(ConversionError) as exc_info:
            await resolver.dereference(None)

        assert str(exc_info.value) == "Expected a file path, URL, or object. Got undefined"

    @pytest.mark.asyncio
    async def test_input_is_not_modified(self):
        """Test that the caller's schema is left untouched."""
        resolver, _ = make_resolver()
        schema = {
            "$ref": "#/definitions/nameObject",
            "definitions": {"nameObject": NAME_OBJECT},
        }
        original = copy.deepcopy(schema)

        await resolver.dereference(schema)

        assert schema == original


class TestExternalReferences:
    """Test cases for references into other documents."""

    @pytest.mark.asyncio
    async def test_file_reference_relative_to_base_dir(self):
        """Test that a relative file reference is resolved against the base directory."""
        address = {"type": "object", "properties": {"street": {"type": "string"}}}
        resolver, fetch = make_resolver({"/schemas/common/address.json": address})
        schema = {"type": "object", "properties": {"address": {"$ref": "common/address.json"}}}

        result = await resolver.dereference(schema)

        assert result == {"type": "object", "properties": {"address": address}}
        assert fetch.calls == ["/schemas/common/address.json"]

    @pytest.mark.asyncio
    async def test_reference_with_fragment(self):
        """Test a reference into a definition of another document."""
        common = {"definitions": {"id": {"type": "string", "format": "uuid"}}}
        resolver, _ = make_resolver({"/schemas/common.json": common})
        schema = {"properties": {"id": {"$ref": "common.json#/definitions/id"}}}

        result = await resolver.dereference(schema)

        assert result == {"properties": {"id": {"type": "string", "format": "uuid"}}}

    @pytest.mark.asyncio
    async def test_internal_references_of_external_document(self):
        """Test that pointers inside a fetched document resolve within that document."""
        address = {
            "type": "object",
            "properties": {"country": {"$ref": "#/definitions/country"}},
            "definitions": {"country": {"type": "string"}},
        }
        resolver, _ = make_resolver({"/schemas/address.json": address})
        schema = {"properties": {"address": {"$ref": "address.json"}}}

        result = await resolver.dereference(schema)

        assert result["properties"]["address"]["properties"]["country"] == {"type": "string"}
        assert "definitions" not in result

    @pytest.mark.asyncio
    async def test_relative_reference_from_remote_document(self):
        """Test that references inside a remote document resolve against its URL."""
        member = {"type": "object", "properties": {"address": {"$ref": "address.json"}}}
        address = {"type": "object", "properties": {"street": {"type": "string"}}}
        resolver, fetch = make_resolver(
            {MEMBER_URL: member, "https://example.com/build/address.json": address}
        )

        result = await resolver.dereference(MEMBER_URL)

        assert result == {"type": "object", "properties": {"address": address}}
        assert fetch.calls == [MEMBER_URL, "https://example.com/build/address.json"]

    @pytest.mark.asyncio
    async def test_documents_referencing_each_other(self):
        """Test that mutually referencing documents are fetched once and terminate."""
        documents = {
            "/schemas/a.json": {"type": "object", "properties": {"b": {"$ref": "b.json"}}},
            "/schemas/b.json": {"type": "object", "properties": {"a": {"$ref": "a.json"}}},
        }
        resolver, fetch = make_resolver(documents)
        schema = {"properties": {"a": {"$ref": "a.json"}}}

        result = await resolver.dereference(schema)

        assert fetch.calls == ["/schemas/a.json", "/schemas/b.json"]
        b = result["properties"]["a"]["properties"]["b"]
        assert b["properties"]["a"] == {"$ref": "#/definitions/a"}

    @pytest.mark.asyncio
    async def test_missing_external_document(self):
        """Test that an unreachable external document raises a ResolutionError."""
        resolver, _ = make_resolver()
        schema = {"properties": {"address": {"$ref": "address.json"}}}

        with pytest.raises(ResolutionError) as exc_info:
            await resolver.dereference(schema)

        assert exc_info.value.ref == "/schemas/address.json"

    @pytest.mark.asyncio
    async def test_unsupported_scheme(self):
        """Test that references with unknown schemes are rejected."""
        resolver, _ = make_resolver()
        schema = {"properties": {"a": {"$ref": "ftp://example.com/a.json"}}}

        with pytest.raises(ResolutionError) as exc_info:
            await resolver.dereference(schema)

        assert "Unsupported reference scheme" in str(exc_info.value)


class TestBundle:
    """Test cases for ReferenceResolver.bundle."""

    @pytest.mark.asyncio
    async def test_bundle_places_documents_under_definitions(self):
        """Test that external documents are inlined once under definitions."""
        address = {"type": "object"}
        resolver, fetch = make_resolver({"/schemas/address.json": address})
        schema = {
            "properties": {
                "home": {"$ref": "address.json"},
                "work": {"$ref": "address.json"},
            }
        }

        bundled = await resolver.bundle(schema)

        assert bundled == {
            "properties": {
                "home": {"$ref": "#/definitions/address"},
                "work": {"$ref": "#/definitions/address"},
            },
            "definitions": {"address": address},
        }
        assert fetch.calls == ["/schemas/address.json"]

    @pytest.mark.asyncio
    async def test_bundle_keys_do_not_clash(self):
        """Test that documents sharing a file name get distinct keys."""
        documents = {
            "/schemas/v1/address.json": {"type": "string"},
            "/schemas/v2/address.json": {"type": "object"},
        }
        resolver, _ = make_resolver(documents)
        schema = {
            "properties": {
                "old": {"$ref": "v1/address.json"},
                "new": {"$ref": "v2/address.json"},
            },
            "definitions": {"local": {"type": "integer"}},
        }

        bundled = await resolver.bundle(schema)

        assert bundled["properties"]["old"] == {"$ref": "#/definitions/address"}
        assert bundled["properties"]["new"] == {"$ref": "#/definitions/address_2"}
        assert set(bundled["definitions"]) == {"local", "address", "address_2"}

    @pytest.mark.asyncio
    async def test_bundle_leaves_internal_references(self):
        """Test that references of the root document itself are not rewritten."""
        resolver, fetch = make_resolver()
        schema = {
            "properties": {"name": {"$ref": "#/definitions/nameObject"}},
            "definitions": {"nameObject": NAME_OBJECT},
        }

        bundled = await resolver.bundle(schema)

        assert bundled == schema
        assert fetch.calls == []
