"""Reference Resolver for bundling and dereferencing JSON Schema $refs."""

import copy
import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Set, Tuple
from urllib.parse import urljoin, urlparse

from .data_classes import (REMOTE_SCHEMES, RemoteSchema, ResolverConfig,
                           schema_source_from_value)
from .errors import ResolutionError, SchemaEngineError
from .fetcher import FetchFunction, SchemaFetcher
from .reference_scanner import (ReferenceScanner, build_pointer,
                                pointer_segments, resolve_pointer,
                                split_reference)

logger = logging.getLogger(__name__)

DEFINITION_KEYWORDS = ("definitions", "$defs")

# Keywords whose values are maps of name -> schema
SCHEMA_MAP_KEYWORDS = ("properties", "patternProperties", "dependentSchemas") + DEFINITION_KEYWORDS

# Keywords whose values are data, never schemas
LITERAL_KEYWORDS = ("enum", "const", "default", "example", "examples")


@dataclass
class _BundleState:
    """Documents pulled into one bundle."""

    # Absolute location -> pointer segments where the document lives in the bundle
    documents: Dict[str, List[str]] = field(default_factory=dict)
    # Definitions key -> bundled external document
    definitions: Dict[str, Any] = field(default_factory=dict)
    taken_keys: Set[str] = field(default_factory=set)


class ReferenceResolver:
    """Resolves every $ref in a schema into one self-contained tree."""

    def __init__(self, config: Optional[ResolverConfig] = None, fetch: Optional[FetchFunction] = None):
        """
        Initialize the resolver.

        Args:
            config: Resolver configuration
            fetch: Coroutine function returning the document at a URL or file path.
                Defaults to SchemaFetcher.
        """
        self.config = config or ResolverConfig()
        self.fetch = fetch or SchemaFetcher(self.config)
        self.scanner = ReferenceScanner()

    async def dereference(self, schema_or_url: Any) -> Dict[str, Any]:
        """
        Produce a fully dereferenced schema tree.

        Args:
            schema_or_url: Inline schema object, URL/file path string, or SchemaSource

        Returns:
            New schema dict with no $ref into definitions (recursive refs excepted)

        Raises:
            ResolutionError: If a reference cannot be located or fetched, or
                self-reference repair does not converge
        """
        source = schema_source_from_value(schema_or_url)

        if isinstance(source, RemoteSchema):
            base = self._absolute_location(source.location, None)
            schema = await self._fetch_document(base)
        else:
            base = None
            schema = source.schema

        repairs = 0
        while True:
            bundled = await self.bundle(schema, base)
            dereferenced = self._dereference_document(bundled)

            if not self._is_degenerate(dereferenced):
                break

            if repairs >= self.config.max_repair_passes:
                raise ResolutionError(
                    f"Self-reference repair did not converge after {repairs} passes",
                    ref=dereferenced.get("$ref"),
                )

            logger.debug(f"Repairing degenerate root reference {bundled.get('$ref')}")
            schema = self._repair(dereferenced)
            repairs += 1

        if self.scanner.find_references(bundled):
            dereferenced = self._drop_unused_definitions(dereferenced)

        return dereferenced

    async def bundle(self, schema: Dict[str, Any], base: Optional[str] = None) -> Dict[str, Any]:
        """
        Inline every external document referenced from schema.

        External documents are placed under the root "definitions" map and the
        references to them rewritten to internal pointers.

        Args:
            schema: Schema to bundle (not modified)
            base: Location of the schema document, used for relative references

        Returns:
            New self-contained schema dict
        """
        state = _BundleState()
        existing = schema.get("definitions")
        if isinstance(existing, dict):
            state.taken_keys.update(existing.keys())
        if base:
            state.documents[base] = []

        bundled = await self._bundle_node(copy.deepcopy(schema), base, [], state)

        if state.definitions:
            definitions = bundled.get("definitions")
            if not isinstance(definitions, dict):
                definitions = {}
            definitions.update(state.definitions)
            bundled["definitions"] = definitions
            logger.debug(f"Bundled {len(state.definitions)} external documents")

        return bundled

    async def _bundle_node(
        self, node: Any, base: Optional[str], prefix: List[str], state: _BundleState
    ) -> Any:
        """Rewrite references in a node of the document found at base."""
        if isinstance(node, list):
            return [await self._bundle_node(item, base, prefix, state) for item in node]
        if not isinstance(node, dict):
            return node

        result = {}
        for key, value in node.items():
            if key == "$ref" and isinstance(value, str):
                result[key] = await self._bundle_ref(value, base, prefix, state)
            elif key in LITERAL_KEYWORDS:
                result[key] = value
            else:
                result[key] = await self._bundle_node(value, base, prefix, state)
        return result

    async def _bundle_ref(
        self, ref: str, base: Optional[str], prefix: List[str], state: _BundleState
    ) -> str:
        """Map a reference to a pointer inside the bundle."""
        location, fragment = split_reference(ref)

        if not location:
            if not prefix or fragment.startswith("#/components/"):
                return ref
            # Internal pointer of an external document
            return build_pointer(prefix + pointer_segments(fragment))

        absolute = self._absolute_location(location, base)
        document_prefix = await self._include_document(absolute, state)
        return build_pointer(document_prefix + pointer_segments(fragment))

    async def _include_document(self, location: str, state: _BundleState) -> List[str]:
        """Fetch and bundle an external document once, returning where it lives."""
        if location in state.documents:
            return state.documents[location]

        key = self._unique_key(location, state.taken_keys)
        prefix = ["definitions", key]
        # Registered before recursing so documents that reference each other terminate
        state.documents[location] = prefix
        state.taken_keys.add(key)

        document = await self._fetch_document(location)
        state.definitions[key] = await self._bundle_node(document, location, prefix, state)
        logger.debug(f"Inlined {location} as definitions/{key}")
        return prefix

    async def _fetch_document(self, location: str) -> Dict[str, Any]:
        """Fetch a document through the injected fetch function."""
        is_url = urlparse(location).scheme in REMOTE_SCHEMES
        if is_url and not self.config.allow_remote_refs:
            raise ResolutionError(f"Remote references are disabled: {location}", ref=location)
        if not is_url and not self.config.allow_file_refs:
            raise ResolutionError(f"File references are disabled: {location}", ref=location)

        try:
            document = await self.fetch(location)
        except SchemaEngineError:
            raise
        except Exception as e:
            raise ResolutionError(f"Error fetching {location}: {e}", ref=location, cause=e) from e

        if not isinstance(document, dict):
            raise ResolutionError(f"Document at {location} is not a schema object", ref=location)
        return copy.deepcopy(document)

    def _absolute_location(self, location: str, base: Optional[str]) -> str:
        """Resolve a reference location against the location of its document."""
        parsed = urlparse(location)
        if parsed.scheme in REMOTE_SCHEMES:
            if not parsed.netloc:
                raise ResolutionError(f"Malformed reference URL: {location}", ref=location)
            return location
        if parsed.scheme == "file":
            return os.path.normpath(parsed.path)
        if parsed.scheme and len(parsed.scheme) > 1:
            raise ResolutionError(f"Unsupported reference scheme: {location}", ref=location)

        if base and urlparse(base).scheme in REMOTE_SCHEMES:
            return urljoin(base, location)

        base_dir = os.path.dirname(base) if base else self.config.base_dir
        return os.path.normpath(os.path.join(base_dir, location))

    def _unique_key(self, location: str, taken: Set[str]) -> str:
        """Derive a definitions key from the document's file name."""
        stem = Path(urlparse(location).path).stem
        stem = re.sub(r"[^A-Za-z0-9._-]", "_", stem) or "external"
        key = stem
        counter = 2
        while key in taken:
            key = f"{stem}_{counter}"
            counter += 1
        return key

    def _dereference_document(self, document: Dict[str, Any]) -> Dict[str, Any]:
        """
        Replace internal references with the values they point to.

        The root is the resolution base, so a root-level $ref is left in place
        for the repair step.
        """
        result = {}
        for key, value in document.items():
            if key == "$ref":
                result[key] = value
            elif key in DEFINITION_KEYWORDS and isinstance(value, dict):
                result[key] = {
                    name: self._expand(entry, document, ("#", build_pointer([key, name])))
                    for name, entry in value.items()
                }
            elif key in LITERAL_KEYWORDS:
                result[key] = copy.deepcopy(value)
            elif key in SCHEMA_MAP_KEYWORDS and isinstance(value, dict):
                result[key] = {
                    name: self._expand(entry, document, ("#",)) for name, entry in value.items()
                }
            else:
                result[key] = self._expand(value, document, ("#",))
        return result

    def _expand(self, node: Any, document: Dict[str, Any], active: Tuple[str, ...]) -> Any:
        """Recursively expand references below node."""
        if isinstance(node, list):
            return [self._expand(item, document, active) for item in node]
        if not isinstance(node, dict):
            return node

        ref = node.get("$ref")
        if isinstance(ref, str):
            return self._expand_ref(node, ref, document, active)

        result = {}
        for key, value in node.items():
            if key in LITERAL_KEYWORDS:
                result[key] = copy.deepcopy(value)
            elif key in SCHEMA_MAP_KEYWORDS and isinstance(value, dict):
                result[key] = {
                    name: self._expand(entry, document, active) for name, entry in value.items()
                }
            else:
                result[key] = self._expand(value, document, active)
        return result

    def _expand_ref(
        self, node: Dict[str, Any], ref: str, document: Dict[str, Any], active: Tuple[str, ...]
    ) -> Any:
        """Expand a single $ref node, merging sibling keywords over the target."""
        siblings = {
            key: self._expand(value, document, active) for key, value in node.items() if key != "$ref"
        }

        # OpenAPI component refs and recursive refs stay as references
        if ref.startswith("#/components/") or ref in active:
            return {"$ref": ref, **siblings}

        if not ref.startswith("#"):
            raise ResolutionError(f"Unbundled external reference: {ref}", ref=ref)

        try:
            target = resolve_pointer(document, ref)
        except KeyError as e:
            raise ResolutionError(
                f"Reference target not found: {ref} (missing key '{e.args[0]}')", ref=ref
            ) from e

        expanded = self._expand(target, document, active + (ref,))
        if siblings and isinstance(expanded, dict):
            merged = dict(expanded)
            merged.update(siblings)
            return merged
        return expanded

    def _is_degenerate(self, schema: Dict[str, Any]) -> bool:
        """A root left holding an internal pointer into itself."""
        ref = schema.get("$ref")
        return isinstance(ref, str) and ref.startswith("#") and not ref.startswith("#/components/")

    def _repair(self, dereferenced: Dict[str, Any]) -> Dict[str, Any]:
        """Merge the root reference target into the root and drop the reference."""
        root_ref = dereferenced["$ref"]
        if root_ref == "#":
            raise ResolutionError("Schema root references itself", ref=root_ref)

        try:
            target = resolve_pointer(dereferenced, root_ref)
        except KeyError as e:
            raise ResolutionError(f"Reference target not found: {root_ref}", ref=root_ref) from e

        if not isinstance(target, dict):
            raise ResolutionError(f"Reference target is not a schema: {root_ref}", ref=root_ref)

        repaired = {key: value for key, value in dereferenced.items() if key != "$ref"}
        repaired.update(copy.deepcopy(target))
        return self._drop_unused_definitions(repaired)

    def _drop_unused_definitions(self, schema: Dict[str, Any]) -> Dict[str, Any]:
        """Remove definitions entries no remaining reference points into."""
        body = {key: value for key, value in schema.items() if key not in DEFINITION_KEYWORDS}
        needed: Set[Tuple[str, str]] = set()
        pending = self.scanner.find_references(body)

        while pending:
            ref = pending.pop()
            segments = pointer_segments(ref) if ref.startswith("#") else []
            if len(segments) < 2 or segments[0] not in DEFINITION_KEYWORDS:
                continue
            entry_key = (segments[0], segments[1])
            entries = schema.get(segments[0])
            if entry_key in needed or not isinstance(entries, dict) or segments[1] not in entries:
                continue
            needed.add(entry_key)
            pending.extend(self.scanner.find_references(entries[segments[1]]))

        result = dict(body)
        for keyword in DEFINITION_KEYWORDS:
            entries = schema.get(keyword)
            if not isinstance(entries, dict):
                continue
            kept = {name: value for name, value in entries.items() if (keyword, name) in needed}
            if kept:
                result[keyword] = kept
        return result
