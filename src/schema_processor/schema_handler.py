"""Schema Handler orchestrating model resolution, conversion and registration."""

import logging
from typing import Any, Dict, List, Optional

from ..utils.config import Config
from .component_registry import ComponentRegistry
from .data_classes import ModelDeclaration, ResolverConfig
from .dialect_converter import DialectConverter
from .errors import SchemaEngineError
from .fetcher import FetchFunction
from .model_catalog import ModelCatalog
from .reference_resolver import ReferenceResolver

logger = logging.getLogger(__name__)


class SchemaHandler:
    """
    Turns model declarations and ad-hoc schemas into components.schemas entries.

    One handler serves one generation run: it owns a fresh registry and model
    reference table, and processes models strictly in declaration order.
    """

    def __init__(
        self,
        documentation: Optional[Dict[str, Any]] = None,
        provider_request_schemas: Optional[Dict[str, Any]] = None,
        config: Optional[Config] = None,
        fetch: Optional[FetchFunction] = None,
    ):
        self.config = config or Config()

        # Initialize subcomponents
        self.catalog = ModelCatalog(documentation, provider_request_schemas)
        self.resolver = ReferenceResolver(ResolverConfig.from_config(self.config), fetch=fetch)
        self.converter = DialectConverter()
        self.registry = ComponentRegistry()

        # Run state
        self.model_references: Dict[str, str] = {}
        self.failed_models: List[str] = []

        # Configuration
        self.continue_on_error = self.config.continue_on_error
        self.log_progress = self.config.log_processing_progress

    @property
    def models(self) -> List[ModelDeclaration]:
        return self.catalog.models

    @property
    def components(self) -> Dict[str, Any]:
        """Copy of the accumulated components.schemas map."""
        return self.registry.schemas

    async def add_models_to_openapi(self) -> Dict[str, str]:
        """
        Register every catalog model.

        Models are processed in declaration order; a later model with the same
        name as an earlier one is renamed by the registry and takes over the
        model reference table entry.

        Returns:
            Copy of the model reference table (model name -> $ref)

        Raises:
            SchemaEngineError: The first model failure, unless continue_on_error
        """
        if self.log_progress:
            logger.info(f"Adding {len(self.catalog)} models to components")

        for model in self.catalog:
            try:
                ref = await self._register_model(model)
            except SchemaEngineError as e:
                e.with_schema_name(model.name)
                if not self.continue_on_error:
                    raise
                logger.error(f"Skipping model '{model.name}': {e}")
                self.failed_models.append(model.name)
                continue

            if self.log_progress:
                logger.info(f"  {model.name} -> {ref}")

        if self.log_progress:
            logger.info(f"Registered {len(self.registry)} component schemas")

        return dict(self.model_references)

    async def create_schema(self, name: str, schema: Any = None) -> str:
        """
        Register an ad-hoc schema, or look up a model by name.

        Args:
            name: Requested component name
            schema: Inline schema, URL or file path. When None, name must be a
                registered model.

        Returns:
            Reference string for the registered schema

        Raises:
            ConversionError: If schema is None and name is not a known model
            ResolutionError: If a reference in the schema cannot be resolved
        """
        if schema is None and name in self.model_references:
            return self.model_references[name]

        try:
            final_names = await self._resolve_and_register(name, schema)
        except SchemaEngineError as e:
            raise e.with_schema_name(name)

        return self.registry.to_ref(final_names[name])

    def apply_to(self, open_api: Dict[str, Any]) -> Dict[str, Any]:
        """Merge the registered schemas into an OpenAPI document."""
        return self.registry.merge_into(open_api)

    async def _register_model(self, model: ModelDeclaration) -> str:
        """Register one model and record its reference."""
        final_names = await self._resolve_and_register(model.name, model.schema)
        ref = self.registry.to_ref(final_names[model.name])
        self.model_references[model.name] = ref
        return ref

    async def _resolve_and_register(self, name: str, schema: Any) -> Dict[str, str]:
        """Dereference, convert and register; nothing is written if any step fails."""
        dereferenced = await self.resolver.dereference(schema)
        converted = self.converter.convert(dereferenced, name)
        return self.registry.register_all(converted)
