"""Reference Scanner for finding and rewriting $ref pointers in schema content."""

from typing import Any, Callable, Dict, List, Optional, Union
from urllib.parse import unquote

COMPONENT_SCHEMA_PREFIX = "#/components/schemas/"


def split_reference(ref: str) -> tuple:
    """Split a reference into (location, fragment). Location is "" for internal refs."""
    location, _, fragment = ref.partition("#")
    return location, "#" + fragment


def pointer_segments(ref: str) -> List[str]:
    """
    Parse an internal reference into JSON Pointer segments.

    Handles URL decoding and RFC 6901 escaping (~1 for /, ~0 for ~).
    """
    pointer = ref[1:] if ref.startswith("#") else ref
    if not pointer:
        return []
    return [
        unquote(segment).replace("~1", "/").replace("~0", "~")
        for segment in pointer.lstrip("/").split("/")
    ]


def build_pointer(segments: List[str]) -> str:
    """Build an internal reference from JSON Pointer segments."""
    if not segments:
        return "#"
    escaped = [str(segment).replace("~", "~0").replace("/", "~1") for segment in segments]
    return "#/" + "/".join(escaped)


def resolve_pointer(document: Any, ref: str) -> Any:
    """
    Resolve an internal reference against a document.

    Raises:
        KeyError: If any segment of the pointer does not exist
    """
    current = document
    for segment in pointer_segments(ref):
        if isinstance(current, dict):
            if segment not in current:
                raise KeyError(segment)
            current = current[segment]
        elif isinstance(current, list):
            try:
                current = current[int(segment)]
            except (ValueError, IndexError):
                raise KeyError(segment)
        else:
            raise KeyError(segment)
    return current


def component_ref(name: str) -> str:
    """Format a components.schemas reference."""
    return f"{COMPONENT_SCHEMA_PREFIX}{name}"


class ReferenceScanner:
    """Scans schema content for $ref references."""

    def find_references(self, content: Union[Dict, List, Any]) -> List[str]:
        """
        Find all $ref strings in content.

        Args:
            content: Schema content to scan (dict, list, or other)

        Returns:
            List of unique $ref strings found
        """
        refs = set()
        self._scan_recursive(content, refs)
        return sorted(list(refs))

    def rewrite_references(
        self, content: Any, rewrite: Callable[[str], Optional[str]]
    ) -> Any:
        """
        Return a copy of content with every $ref passed through rewrite.

        A rewrite result of None keeps the original reference.
        """
        if isinstance(content, dict):
            result = {}
            for key, value in content.items():
                if key == "$ref" and isinstance(value, str):
                    new_ref = rewrite(value)
                    result[key] = value if new_ref is None else new_ref
                else:
                    result[key] = self.rewrite_references(value, rewrite)
            return result
        if isinstance(content, list):
            return [self.rewrite_references(item, rewrite) for item in content]
        return content

    def _scan_recursive(self, obj: Any, refs: set) -> None:
        """Recursively scan object for $ref occurrences."""
        if isinstance(obj, dict):
            self._scan_dict(obj, refs)
        elif isinstance(obj, list):
            self._scan_list(obj, refs)

    def _scan_dict(self, obj: Dict[str, Any], refs: set) -> None:
        """Scan dictionary for $ref keys and recurse into values."""
        for key, value in obj.items():
            if key == "$ref" and isinstance(value, str):
                refs.add(value)
            else:
                self._scan_recursive(value, refs)

    def _scan_list(self, obj: List[Any], refs: set) -> None:
        """Scan list items recursively."""
        for item in obj:
            self._scan_recursive(item, refs)
