"""Dialect Converter turning JSON Schema drafts into OpenAPI 3.0 Schema Objects."""

import copy
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Set, Tuple

from .errors import ConversionError
from .reference_resolver import DEFINITION_KEYWORDS
from .reference_scanner import build_pointer, component_ref
from .validator import SchemaObjectValidator

logger = logging.getLogger(__name__)

# Keywords with no OpenAPI 3.0 counterpart
DROPPED_KEYWORDS = (
    "$schema",
    "$id",
    "$comment",
    "dependencies",
    "dependentRequired",
    "dependentSchemas",
    "patternProperties",
    "propertyNames",
    "contains",
    "additionalItems",
    "unevaluatedProperties",
    "unevaluatedItems",
    "contentMediaType",
    "contentEncoding",
)

CONDITIONAL_KEYWORDS = ("if", "then", "else")
COMPOSITION_KEYWORDS = ("allOf", "anyOf", "oneOf")
SINGLE_SCHEMA_KEYWORDS = ("not", "if", "then", "else", "contains", "propertyNames", "additionalItems")
SCHEMA_MAP_KEYWORDS = ("properties", "patternProperties", "dependentSchemas")


@dataclass
class _ConversionState:
    """Names handed out while converting one schema."""

    requested_name: str
    # Original pointer of each extracted definition -> its output name
    pointer_names: Dict[str, str] = field(default_factory=dict)
    extracted: Dict[str, Any] = field(default_factory=dict)
    conditions: Dict[str, Any] = field(default_factory=dict)
    used_names: Set[str] = field(default_factory=set)

    def __post_init__(self):
        self.used_names.add(self.requested_name)

    def unique_name(self, base: str) -> str:
        name = base
        counter = 2
        while name in self.used_names:
            name = f"{base}_{counter}"
            counter += 1
        self.used_names.add(name)
        return name


class DialectConverter:
    """Converts a dereferenced schema into a set of named OpenAPI Schema Objects."""

    def __init__(self):
        self.validator = SchemaObjectValidator()

    def convert(self, schema: Any, requested_name: str) -> Dict[str, Dict[str, Any]]:
        """
        Convert a schema into one or more named OpenAPI Schema Objects.

        Args:
            schema: Dereferenced JSON Schema (not modified)
            requested_name: Name for the top-level schema

        Returns:
            Mapping of schema name to Schema Object. The requested name comes
            first; extracted definitions and conditions follow.

        Raises:
            ConversionError: If the schema cannot be represented in OpenAPI
        """
        if not requested_name:
            raise ConversionError("A schema name is required for conversion")
        if schema is None:
            raise ConversionError("Expected a schema object. Got undefined", schema_name=requested_name)
        if not isinstance(schema, (dict, bool)):
            raise ConversionError(
                f"Expected a schema object. Got {type(schema).__name__}", schema_name=requested_name
            )

        state = _ConversionState(requested_name=requested_name)
        root = copy.deepcopy(schema)
        self._collect_definitions(root, [], state)

        converted = {requested_name: self._convert_node(root, state)}
        for name, entry in state.extracted.items():
            converted[name] = self._convert_node(entry, state)
        converted.update(state.conditions)

        for name, value in converted.items():
            result = self.validator.validate(value)
            for warning in result.warnings:
                logger.debug(f"Schema '{name}': {warning}")
            if not result.is_valid:
                raise ConversionError(
                    f"Converted schema '{name}' is not a valid OpenAPI Schema Object: "
                    + "; ".join(result.errors),
                    schema_name=requested_name,
                )

        if len(converted) > 1:
            logger.debug(f"Converted '{requested_name}' into {len(converted)} schemas")
        return converted

    def _collect_definitions(self, node: Any, path: List[str], state: _ConversionState) -> None:
        """Pop definitions maps out of the tree, recording where each entry lived."""
        if not isinstance(node, dict):
            return

        for keyword in DEFINITION_KEYWORDS:
            if keyword not in node:
                continue
            entries = node.pop(keyword)
            if not isinstance(entries, dict):
                raise ConversionError(
                    f"'{keyword}' must be an object", schema_name=state.requested_name
                )
            for key, entry in entries.items():
                name = state.unique_name(key)
                state.pointer_names[build_pointer(path + [keyword, key])] = name
                state.extracted[name] = entry
                self._collect_definitions(entry, path + [keyword, key], state)

        for subschema, subpath in self._subschemas(node, path):
            self._collect_definitions(subschema, subpath, state)

    def _subschemas(self, node: Dict[str, Any], path: List[str]) -> Iterator[Tuple[Any, List[str]]]:
        """Yield each nested schema with its pointer path."""
        for keyword, value in node.items():
            if keyword in SCHEMA_MAP_KEYWORDS and isinstance(value, dict):
                for name, subschema in value.items():
                    yield subschema, path + [keyword, name]
            elif keyword in COMPOSITION_KEYWORDS + ("prefixItems",) and isinstance(value, list):
                for index, subschema in enumerate(value):
                    yield subschema, path + [keyword, str(index)]
            elif keyword == "items" and isinstance(value, list):
                for index, subschema in enumerate(value):
                    yield subschema, path + [keyword, str(index)]
            elif keyword in SINGLE_SCHEMA_KEYWORDS + ("items", "additionalProperties"):
                if isinstance(value, dict):
                    yield value, path + [keyword]

    def _rewrite_ref(self, ref: Any, state: _ConversionState) -> str:
        """Point a reference at components.schemas."""
        if not isinstance(ref, str):
            raise ConversionError(f"$ref must be a string, got {ref!r}", schema_name=state.requested_name)
        if ref == "#":
            return component_ref(state.requested_name)
        if ref.startswith("#/components/"):
            return ref
        if ref in state.pointer_names:
            return component_ref(state.pointer_names[ref])
        raise ConversionError(
            f"Cannot express reference '{ref}' as a component reference", schema_name=state.requested_name
        )

    def _convert_node(self, node: Any, state: _ConversionState) -> Dict[str, Any]:
        """Convert one schema node and everything below it."""
        if isinstance(node, bool):
            return {} if node else {"not": {}}
        if not isinstance(node, dict):
            raise ConversionError(
                f"Expected a schema object, got {type(node).__name__}", schema_name=state.requested_name
            )

        result = {}
        for keyword, value in node.items():
            if keyword == "$ref":
                result[keyword] = self._rewrite_ref(value, state)
            elif keyword in DROPPED_KEYWORDS:
                logger.debug(f"Dropping unsupported keyword '{keyword}' from '{state.requested_name}'")
            elif keyword in CONDITIONAL_KEYWORDS:
                continue
            elif keyword == "type":
                self._convert_type(value, result)
            elif keyword == "const":
                result["enum"] = [copy.deepcopy(value)]
            elif keyword == "examples":
                if isinstance(value, list) and value and "example" not in node:
                    result["example"] = copy.deepcopy(value[0])
            elif keyword == "properties" and isinstance(value, dict):
                result[keyword] = {
                    name: self._convert_node(subschema, state) for name, subschema in value.items()
                }
            elif keyword in COMPOSITION_KEYWORDS and isinstance(value, list):
                converted = [self._convert_node(subschema, state) for subschema in value]
                self._add_composition(result, keyword, converted)
            elif keyword == "items":
                result[keyword] = self._convert_items(value, state)
            elif keyword == "prefixItems":
                continue
            elif keyword in ("not", "additionalProperties") and isinstance(value, (dict, bool)):
                if keyword == "additionalProperties" and isinstance(value, bool):
                    result[keyword] = value
                else:
                    result[keyword] = self._convert_node(value, state)
            else:
                result[keyword] = copy.deepcopy(value)

        if isinstance(node.get("prefixItems"), list):
            self._convert_prefix_items(node, result, state)

        self._convert_bounds(node, result)

        if "if" in node and ("then" in node or "else" in node):
            self._convert_conditional(node, result, state)

        return result

    def _convert_type(self, value: Any, result: Dict[str, Any]) -> None:
        """Map a JSON Schema type (possibly a list, possibly null) onto OpenAPI."""
        types = value if isinstance(value, list) else [value]
        concrete = [schema_type for schema_type in types if schema_type != "null"]

        if len(concrete) == 1:
            result["type"] = concrete[0]
        elif len(concrete) > 1:
            self._add_composition(result, "anyOf", [{"type": schema_type} for schema_type in concrete])

        if "null" in types:
            result["nullable"] = True

    def _convert_items(self, value: Any, state: _ConversionState) -> Dict[str, Any]:
        """Tuple validation has no OpenAPI form; allow any of the listed schemas."""
        if isinstance(value, list):
            if not value:
                return {}
            return {"anyOf": [self._convert_node(subschema, state) for subschema in value]}
        return self._convert_node(value, state)

    def _convert_prefix_items(
        self, node: Dict[str, Any], result: Dict[str, Any], state: _ConversionState
    ) -> None:
        """Positional items and any trailing items schema become one anyOf."""
        schemas = [self._convert_node(subschema, state) for subschema in node["prefixItems"]]
        rest = node.get("items")
        if isinstance(rest, dict) or rest is True:
            schemas.append(result["items"])
        if schemas:
            result["items"] = {"anyOf": schemas}

    def _convert_bounds(self, node: Dict[str, Any], result: Dict[str, Any]) -> None:
        """Numeric exclusive bounds become minimum/maximum plus a boolean flag."""
        for exclusive, inclusive, stricter in (
            ("exclusiveMinimum", "minimum", max),
            ("exclusiveMaximum", "maximum", min),
        ):
            bound = node.get(exclusive)
            if isinstance(bound, bool) or not isinstance(bound, (int, float)):
                continue

            limit = node.get(inclusive)
            if isinstance(limit, (int, float)) and stricter(limit, bound) == limit and limit != bound:
                # The inclusive bound is the tighter one
                result.pop(exclusive, None)
                continue

            result[inclusive] = bound
            result[exclusive] = True

    def _convert_conditional(
        self, node: Dict[str, Any], result: Dict[str, Any], state: _ConversionState
    ) -> None:
        """Rewrite if/then/else as oneOf over an extracted condition schema."""
        condition_name = state.unique_name(f"{state.requested_name}Condition")
        # Reserve the slot so nested conditions are ordered after this one
        state.conditions[condition_name] = None
        state.conditions[condition_name] = self._convert_node(node["if"], state)

        positive = {"$ref": component_ref(condition_name)}
        if "then" in node:
            positive = {"allOf": [positive, self._convert_node(node["then"], state)]}

        negative = {"not": {"$ref": component_ref(condition_name)}}
        if "else" in node:
            negative = {"allOf": [negative, self._convert_node(node["else"], state)]}

        self._add_composition(result, "oneOf", [positive, negative])

    def _add_composition(self, result: Dict[str, Any], keyword: str, schemas: List[Any]) -> None:
        """Add a composition, nesting it under allOf when the keyword is taken."""
        if keyword not in result:
            result[keyword] = schemas
            return
        result.setdefault("allOf", []).append({keyword: schemas})
