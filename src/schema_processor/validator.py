"""Validator for converted OpenAPI 3.0 Schema Objects."""

from dataclasses import dataclass
from typing import Any, List

from .reference_scanner import COMPONENT_SCHEMA_PREFIX


@dataclass
class ValidationResult:
    """Result of Schema Object validation."""

    is_valid: bool
    errors: List[str] = None
    warnings: List[str] = None

    def __post_init__(self):
        if self.errors is None:
            self.errors = []
        if self.warnings is None:
            self.warnings = []


OPENAPI_TYPES = {"string", "number", "integer", "boolean", "array", "object"}

# JSON Schema keywords that are not part of the OpenAPI 3.0 Schema Object
FORBIDDEN_KEYWORDS = {
    "$schema",
    "$id",
    "$defs",
    "$comment",
    "definitions",
    "if",
    "then",
    "else",
    "const",
    "dependencies",
    "dependentRequired",
    "dependentSchemas",
    "patternProperties",
    "propertyNames",
    "contains",
    "prefixItems",
    "additionalItems",
    "unevaluatedProperties",
    "unevaluatedItems",
}

SUBSCHEMA_LIST_KEYWORDS = ("allOf", "anyOf", "oneOf")


class SchemaObjectValidator:
    """Checks that a schema uses only OpenAPI 3.0 Schema Object constructs."""

    def validate(self, schema: Any) -> ValidationResult:
        """
        Validate a converted schema.

        Args:
            schema: Schema Object to check

        Returns:
            ValidationResult with validation status and any errors/warnings
        """
        if schema is None:
            return ValidationResult(is_valid=False, errors=["Schema is None"])

        if not isinstance(schema, dict):
            return ValidationResult(is_valid=False, errors=["Schema must be an object"])

        errors = []
        warnings = []
        self._validate_node(schema, "#", errors, warnings)

        return ValidationResult(is_valid=len(errors) == 0, errors=errors, warnings=warnings)

    def _validate_node(self, node: Any, path: str, errors: List[str], warnings: List[str]) -> None:
        """Validate one schema node and recurse into its subschemas."""
        if not isinstance(node, dict):
            errors.append(f"{path}: schema must be an object, got {type(node).__name__}")
            return

        for keyword in node:
            if keyword in FORBIDDEN_KEYWORDS:
                errors.append(f"{path}: keyword '{keyword}' is not allowed in an OpenAPI Schema Object")

        ref = node.get("$ref")
        if ref is not None:
            if not isinstance(ref, str) or not ref.startswith(COMPONENT_SCHEMA_PREFIX):
                errors.append(f"{path}: $ref '{ref}' must point at {COMPONENT_SCHEMA_PREFIX}...")

        type_error = self._validate_type(node)
        if type_error:
            errors.append(f"{path}: {type_error}")

        if node.get("type") == "array" and "items" not in node:
            warnings.append(f"{path}: array schema has no 'items'")

        self._validate_subschemas(node, path, errors, warnings)

    def _validate_type(self, node: dict) -> str:
        """Validate the type keyword."""
        if "type" not in node:
            return None

        schema_type = node["type"]
        if not isinstance(schema_type, str):
            return "type must be a single string"

        if schema_type not in OPENAPI_TYPES:
            return f"type '{schema_type}' is not an OpenAPI type"

        return None

    def _validate_subschemas(
        self, node: dict, path: str, errors: List[str], warnings: List[str]
    ) -> None:
        """Recurse into nested schemas."""
        properties = node.get("properties")
        if properties is not None:
            if not isinstance(properties, dict):
                errors.append(f"{path}: properties must be an object")
            else:
                for name, subschema in properties.items():
                    self._validate_node(subschema, f"{path}/properties/{name}", errors, warnings)

        for keyword in SUBSCHEMA_LIST_KEYWORDS:
            if keyword not in node:
                continue
            subschemas = node[keyword]
            if not isinstance(subschemas, list):
                errors.append(f"{path}: {keyword} must be a list")
                continue
            for index, subschema in enumerate(subschemas):
                self._validate_node(subschema, f"{path}/{keyword}/{index}", errors, warnings)

        for keyword in ("items", "not"):
            if keyword in node:
                self._validate_node(node[keyword], f"{path}/{keyword}", errors, warnings)

        additional = node.get("additionalProperties")
        if additional is not None and not isinstance(additional, bool):
            self._validate_node(additional, f"{path}/additionalProperties", errors, warnings)
