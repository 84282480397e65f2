"""Convert command - turn one JSON Schema into OpenAPI component schemas."""

import asyncio
import logging
import sys
from typing import Optional

from src.cli.commands.components import write_output
from src.schema_processor.data_classes import ResolverConfig
from src.schema_processor.dialect_converter import DialectConverter
from src.schema_processor.errors import SchemaEngineError
from src.schema_processor.reference_resolver import ReferenceResolver
from src.utils.config import Config

logger = logging.getLogger(__name__)


def convert_command(
    config: Config,
    name: str,
    schema: str,
    output_path: Optional[str] = None,
    output_format: str = "yaml",
):
    """Dereference and convert a schema file or URL without registering it."""
    asyncio.run(_convert_command_async(config, name, schema, output_path, output_format))


async def _convert_command_async(
    config: Config, name: str, schema: str, output_path: Optional[str], output_format: str
):
    """Async implementation of convert command."""
    resolver = ReferenceResolver(ResolverConfig.from_config(config))
    converter = DialectConverter()

    try:
        dereferenced = await resolver.dereference(schema)
        converted = converter.convert(dereferenced, name)
    except SchemaEngineError as e:
        logger.error(f"❌ {e.with_schema_name(name)}")
        sys.exit(1)

    logger.info(f"✅ Converted '{name}' into {len(converted)} schemas")
    write_output(converted, output_path, output_format)
