"""Model Catalog normalizing model declarations from every supported syntax."""

import logging
from typing import Any, Dict, List, Optional

from .data_classes import ModelDeclaration
from .errors import ConversionError

logger = logging.getLogger(__name__)


class ModelCatalog:
    """
    Collects model declarations into one ordered list of ModelDeclaration.

    Sources, in order: documentation "models", documentation "modelsList",
    then the provider-level request schema map. Each declaration may give its
    schema directly ({name, contentType, schema}) or through a content map
    ({name, content: {<mediaType>: {schema}}}).
    """

    def __init__(
        self,
        documentation: Optional[Dict[str, Any]] = None,
        provider_request_schemas: Optional[Dict[str, Any]] = None,
    ):
        self.documentation = documentation or {}
        self.provider_request_schemas = provider_request_schemas or {}
        self.models = self._standardise_models()

    def __iter__(self):
        return iter(self.models)

    def __len__(self) -> int:
        return len(self.models)

    def names(self) -> List[str]:
        return [model.name for model in self.models]

    def _standardise_models(self) -> List[ModelDeclaration]:
        """Normalize and concatenate every source, keeping declaration order."""
        models = []

        for source in ("models", "modelsList"):
            declarations = self.documentation.get(source) or []
            if not isinstance(declarations, list):
                raise ConversionError(f"Documentation '{source}' must be a list")
            for declaration in declarations:
                models.append(self.standardise_model(declaration, source))

        for key, declaration in self.provider_request_schemas.items():
            models.append(
                self.standardise_model(declaration, "providerRequestSchemas", default_name=key)
            )

        logger.debug(f"Standardised {len(models)} models")
        return models

    def standardise_model(
        self, declaration: Dict[str, Any], source: str = "models", default_name: Optional[str] = None
    ) -> ModelDeclaration:
        """
        Normalize one declaration into a ModelDeclaration.

        Args:
            declaration: Raw model declaration
            source: Which list or map the declaration came from
            default_name: Name to use when the declaration has none

        Returns:
            ModelDeclaration with the schema lifted to the top level

        Raises:
            ConversionError: If the declaration has no name or no schema
        """
        if not isinstance(declaration, dict):
            raise ConversionError(f"Model declaration in '{source}' must be an object")

        name = declaration.get("name") or default_name
        if not name:
            raise ConversionError(f"Model declaration in '{source}' has no name")

        content = declaration.get("content")
        content_type = declaration.get("contentType")
        example = declaration.get("example")
        examples = declaration.get("examples")

        if "schema" in declaration:
            schema = declaration["schema"]
            if content_type is None and isinstance(content, dict) and content:
                content_type = self._first_media_type(name, content)
        elif isinstance(content, dict) and content:
            content_type = self._first_media_type(name, content)
            media = content[content_type] or {}
            if not isinstance(media, dict):
                raise ConversionError(
                    f"Content entry '{content_type}' must be an object", schema_name=name
                )
            schema = media.get("schema")
            example = media.get("example", example)
            examples = media.get("examples", examples)
        else:
            raise ConversionError(
                "Model declaration has neither 'schema' nor 'content'", schema_name=name
            )

        return ModelDeclaration(
            name=name,
            schema=schema,
            content_type=content_type,
            description=declaration.get("description"),
            example=example,
            examples=examples,
            source=source,
        )

    def _first_media_type(self, name: str, content: Dict[str, Any]) -> str:
        """Take the media type of a content map."""
        media_types = list(content.keys())
        if len(media_types) > 1:
            logger.warning(
                f"Model '{name}' declares {len(media_types)} media types, using '{media_types[0]}'"
            )
        return media_types[0]
