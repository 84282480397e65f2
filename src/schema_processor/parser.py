"""Schema document parser for JSON and YAML content."""

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Union
from urllib.parse import urlparse

import yaml


@dataclass
class ParseResult:
    """Result of parsing a schema document."""

    success: bool
    data: Dict[str, Any] = None
    error: str = None
    file_type: str = None  # 'json' or 'yaml'


class SchemaDocumentParser:
    """Parses JSON Schema documents in JSON or YAML format."""

    def parse_file(self, file_path: Union[str, Path]) -> ParseResult:
        """
        Parse a schema document file.

        Args:
            file_path: Path to the schema file (.json, .yaml, .yml or no extension)

        Returns:
            ParseResult with parsed data or error information
        """
        file_path = Path(file_path)

        if not file_path.exists():
            return ParseResult(success=False, error=f"File not found: {file_path}")

        if not file_path.is_file():
            return ParseResult(success=False, error=f"Path is not a file: {file_path}")

        try:
            content = file_path.read_text(encoding="utf-8")
        except UnicodeDecodeError as e:
            return ParseResult(success=False, error=f"Unable to read file as UTF-8: {e}")
        except OSError as e:
            return ParseResult(success=False, error=f"Error reading file: {e}")

        return self.parse_content(content, str(file_path))

    def parse_content(self, content: str, source: str = "", content_type: str = "") -> ParseResult:
        """
        Parse document text fetched from a file or URL.

        The format is chosen by file extension, then by media type. Anything
        else is parsed as YAML, which also accepts JSON.
        """
        file_type = self._get_file_type(source, content_type)

        if file_type == "json":
            return self._check_object(self._parse_json(content, file_type))
        return self._check_object(self._parse_yaml(content, "yaml"))

    def _get_file_type(self, source: str, content_type: str) -> str:
        """Determine document type from extension or media type."""
        path = urlparse(source).path if "://" in source else source
        extension = Path(path).suffix.lower()
        if extension == ".json":
            return "json"
        elif extension in [".yaml", ".yml"]:
            return "yaml"
        elif "json" in content_type:
            return "json"
        else:
            return "unknown"

    def _check_object(self, result: ParseResult) -> ParseResult:
        """Schema documents must decode to an object."""
        if result.success and not isinstance(result.data, dict):
            return ParseResult(
                success=False,
                error=f"Schema document must be an object, got {type(result.data).__name__}",
                file_type=result.file_type,
            )
        return result

    def _parse_json(self, content: str, file_type: str) -> ParseResult:
        """Parse JSON content."""
        try:
            data = json.loads(content)
            return ParseResult(success=True, data=data, file_type=file_type)
        except json.JSONDecodeError as e:
            return ParseResult(success=False, error=f"Invalid JSON format: {e}", file_type=file_type)

    def _parse_yaml(self, content: str, file_type: str) -> ParseResult:
        """Parse YAML content."""
        try:
            data = yaml.safe_load(content)
            return ParseResult(success=True, data=data, file_type=file_type)
        except yaml.YAMLError as e:
            return ParseResult(success=False, error=f"Invalid YAML format: {e}", file_type=file_type)
