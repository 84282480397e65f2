"""Schema processor package resolving JSON Schemas into OpenAPI components."""

from .component_registry import ComponentRegistry
from .data_classes import (InlineSchema, ModelDeclaration, RemoteSchema,
                           ResolverConfig, schema_source_from_value)
from .dialect_converter import DialectConverter
from .errors import (ConversionError, RegistryConflict, ResolutionError,
                     SchemaEngineError)
from .fetcher import SchemaFetcher
from .model_catalog import ModelCatalog
from .reference_resolver import ReferenceResolver
from .schema_handler import SchemaHandler

__all__ = [
    "ComponentRegistry",
    "ConversionError",
    "DialectConverter",
    "InlineSchema",
    "ModelCatalog",
    "ModelDeclaration",
    "ReferenceResolver",
    "RegistryConflict",
    "RemoteSchema",
    "ResolutionError",
    "ResolverConfig",
    "SchemaEngineError",
    "SchemaFetcher",
    "SchemaHandler",
    "schema_source_from_value",
]
