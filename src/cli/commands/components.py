"""Components command - resolve documentation models into components.schemas."""

import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from src.schema_processor.errors import SchemaEngineError
from src.schema_processor.parser import SchemaDocumentParser
from src.schema_processor.schema_handler import SchemaHandler
from src.utils.config import Config

logger = logging.getLogger(__name__)


def components_command(
    config: Config,
    documentation_path: str,
    request_schemas_path: Optional[str] = None,
    openapi_path: Optional[str] = None,
    output_path: Optional[str] = None,
    output_format: str = "yaml",
):
    """Resolve every model in a documentation file and write the components."""
    asyncio.run(
        _components_command_async(
            config, documentation_path, request_schemas_path, openapi_path, output_path, output_format
        )
    )


async def _components_command_async(
    config: Config,
    documentation_path: str,
    request_schemas_path: Optional[str],
    openapi_path: Optional[str],
    output_path: Optional[str],
    output_format: str,
):
    """Async implementation of components command."""
    documentation = load_document(documentation_path)
    request_schemas = load_document(request_schemas_path) if request_schemas_path else None

    try:
        handler = SchemaHandler(documentation, request_schemas, config=config)
        logger.info(f"📋 Found {len(handler.models)} models in {documentation_path}")
        await handler.add_models_to_openapi()
    except SchemaEngineError as e:
        logger.error(f"❌ {e}")
        sys.exit(1)

    if handler.failed_models:
        logger.warning(f"⚠️ Skipped {len(handler.failed_models)} models: {', '.join(handler.failed_models)}")

    if openapi_path:
        result = handler.apply_to(load_document(openapi_path))
    else:
        result = {"components": {"schemas": handler.components}}

    write_output(result, output_path, output_format)
    logger.info(f"✅ Wrote {len(handler.components)} component schemas")


def load_document(path: str) -> Dict[str, Any]:
    """Load a JSON or YAML document, exiting on failure."""
    result = SchemaDocumentParser().parse_file(path)
    if not result.success:
        logger.error(f"❌ {result.error}")
        sys.exit(1)
    return result.data


def write_output(document: Dict[str, Any], output_path: Optional[str], output_format: str):
    """Serialize a document to a file, or stdout when no path is given."""
    if output_format == "json":
        text = json.dumps(document, indent=2) + "\n"
    else:
        text = yaml.safe_dump(document, sort_keys=False, allow_unicode=True)

    if output_path:
        Path(output_path).write_text(text, encoding="utf-8")
        logger.info(f"💾 Output written to {output_path}")
    else:
        sys.stdout.write(text)
