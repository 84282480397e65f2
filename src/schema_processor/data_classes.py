"""Data classes for the schema processing engine."""

import os
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, Optional, Union
from urllib.parse import urlparse

from .errors import ConversionError, ResolutionError

if TYPE_CHECKING:
    from ..utils.config import Config

REMOTE_SCHEMES = ("http", "https")


@dataclass
class ModelDeclaration:
    """A normalized model: one named schema for one media type."""

    name: str
    schema: Any
    content_type: Optional[str] = None  # None means "unspecified"
    description: Optional[str] = None
    example: Any = None
    examples: Optional[Dict[str, Any]] = None
    source: str = "models"  # "models", "modelsList" or "providerRequestSchemas"


@dataclass(frozen=True)
class InlineSchema:
    """A schema given directly as a JSON object."""

    schema: Dict[str, Any]


@dataclass(frozen=True)
class RemoteSchema:
    """A schema hosted elsewhere: an HTTP(S) URL or a file path."""

    location: str

    @property
    def is_url(self) -> bool:
        return urlparse(self.location).scheme in REMOTE_SCHEMES


SchemaSource = Union[InlineSchema, RemoteSchema]


def schema_source_from_value(value: Any) -> SchemaSource:
    """
    Classify a raw schema value as inline or remote.

    Args:
        value: A schema object, or a string holding a URL or file path

    Returns:
        InlineSchema or RemoteSchema

    Raises:
        ConversionError: If the value is missing or not an object/string
        ResolutionError: If the value is a malformed or unsupported URL
    """
    if isinstance(value, (InlineSchema, RemoteSchema)):
        return value

    if isinstance(value, dict):
        return InlineSchema(schema=value)

    if isinstance(value, str) and value.strip():
        location = value.strip()
        parsed = urlparse(location)
        if parsed.scheme in REMOTE_SCHEMES:
            if not parsed.netloc:
                raise ResolutionError(f"Malformed schema URL: {location}", ref=location)
            return RemoteSchema(location=location)
        # Single letter schemes are Windows drive letters, not URLs
        if parsed.scheme and len(parsed.scheme) > 1 and parsed.scheme != "file":
            raise ResolutionError(
                f"Unsupported schema URL scheme '{parsed.scheme}': {location}", ref=location
            )
        if parsed.scheme == "file":
            location = parsed.path
        return RemoteSchema(location=location)

    shown = "undefined" if value is None or value == "" else type(value).__name__
    raise ConversionError(f"Expected a file path, URL, or object. Got {shown}")


@dataclass
class ResolverConfig:
    """Configuration for reference resolution and fetching."""

    base_dir: str = field(default_factory=os.getcwd)
    allow_remote_refs: bool = True
    allow_file_refs: bool = True
    fetch_timeout: float = 30.0
    max_repair_passes: int = 5

    @classmethod
    def from_env(cls) -> "ResolverConfig":
        """Create configuration from environment variables."""
        return cls(
            base_dir=os.getenv("SCHEMA_BASE_DIR", os.getcwd()),
            allow_remote_refs=os.getenv("SCHEMA_ALLOW_REMOTE_REFS", "true").lower() == "true",
            allow_file_refs=os.getenv("SCHEMA_ALLOW_FILE_REFS", "true").lower() == "true",
            fetch_timeout=float(os.getenv("SCHEMA_FETCH_TIMEOUT", "30")),
            max_repair_passes=int(os.getenv("SCHEMA_MAX_REPAIR_PASSES", "5")),
        )

    @classmethod
    def from_config(cls, config: "Config") -> "ResolverConfig":
        """Create config from Config object."""
        return cls(
            base_dir=config.schema_base_dir,
            allow_remote_refs=config.allow_remote_refs,
            allow_file_refs=config.allow_file_refs,
            fetch_timeout=config.fetch_timeout,
            max_repair_passes=config.max_repair_passes,
        )
