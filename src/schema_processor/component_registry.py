"""Component Registry owning the components.schemas namespace of one run."""

import copy
import json
import logging
import uuid
from typing import Any, Dict, Iterable, Optional

from .errors import RegistryConflict
from .reference_scanner import (COMPONENT_SCHEMA_PREFIX, ReferenceScanner,
                                component_ref)

logger = logging.getLogger(__name__)


class ComponentRegistry:
    """
    Single writer of components.schemas for one generation run.

    Names are unique at all times. Entries are never deleted or changed once
    written, so every reference handed out stays valid for the whole run.
    """

    def __init__(self):
        self._schemas: Dict[str, Any] = {}
        self.scanner = ReferenceScanner()

    def __contains__(self, name: str) -> bool:
        return self.exists(name)

    def __len__(self) -> int:
        return len(self._schemas)

    @property
    def schemas(self) -> Dict[str, Any]:
        """Copy of the components.schemas map."""
        return copy.deepcopy(self._schemas)

    def get(self, name: str) -> Optional[Any]:
        """Copy of the schema stored under name, or None."""
        if name not in self._schemas:
            return None
        return copy.deepcopy(self._schemas[name])

    def exists(self, name: str) -> bool:
        """Whether a schema is registered under name."""
        return name in self._schemas

    def is_same_schema(self, schema: Any, name: str) -> bool:
        """Deep equality between schema and the entry stored under name, as JSON."""
        return self.exists(name) and self._canonical(self._schemas[name]) == self._canonical(schema)

    def add(self, name: str, schema: Any) -> None:
        """Insert or overwrite an entry unconditionally."""
        self._schemas[name] = copy.deepcopy(schema)

    def register(self, name: str, schema: Any) -> str:
        """
        Register a schema under name, renaming on conflict.

        Args:
            name: Requested component name
            schema: Schema Object

        Returns:
            The name the schema is stored under: name itself when it was free or
            already held an equal schema, otherwise a newly minted name.
        """
        if not self.exists(name):
            self.add(name, schema)
            logger.debug(f"Registered component '{name}'")
            return name

        if self.is_same_schema(schema, name):
            return name

        final_name = self._mint_name(name)
        self.add(final_name, schema)
        logger.info(f"Component '{name}' already exists with different content, registered as '{final_name}'")
        return final_name

    def register_all(self, schemas: Dict[str, Any]) -> Dict[str, str]:
        """
        Register a converted schema set as one unit.

        Every name is decided before anything is written. When a member has to
        be renamed, references to it from the other members are rewritten to
        the new name, which can in turn make a member differ from its existing
        entry; planning repeats until no more renames are needed.

        Args:
            schemas: Mapping of local name to Schema Object

        Returns:
            Mapping of local name to final registered name
        """
        renames: Dict[str, str] = {}

        while True:
            staged = {
                name: self._rewrite_local_refs(schema, schemas, renames)
                for name, schema in schemas.items()
            }
            changed = False
            for name, schema in staged.items():
                if name in renames:
                    continue
                if self.exists(name) and not self.is_same_schema(schema, name):
                    renames[name] = self._mint_name(name, reserved=renames.values())
                    changed = True
            if not changed:
                break

        for minted in renames.values():
            if self.exists(minted):
                raise RegistryConflict(f"Minted component name '{minted}' is already taken")

        final_names = {}
        for name, schema in staged.items():
            final_name = renames.get(name, name)
            if not self.exists(final_name):
                self.add(final_name, schema)
            final_names[name] = final_name

        if renames:
            logger.info(f"Renamed conflicting components: {renames}")
        return final_names

    def to_ref(self, name: str) -> str:
        """Format the reference string for a component."""
        return component_ref(name)

    def merge_into(self, document: Dict[str, Any]) -> Dict[str, Any]:
        """Write the registered schemas into an OpenAPI document's components."""
        components = document.setdefault("components", {})
        schemas = components.setdefault("schemas", {})
        schemas.update(self.schemas)
        return document

    def _canonical(self, schema: Any) -> str:
        """Canonical JSON text of a schema; true and 1 stay distinct."""
        return json.dumps(schema, sort_keys=True)

    def _mint_name(self, name: str, reserved: Iterable[str] = ()) -> str:
        """Suffix name with a fresh UUID, re-minting on the unlikely collision."""
        reserved = set(reserved)
        for _ in range(10):
            candidate = f"{name}-{uuid.uuid4()}"
            if not self.exists(candidate) and candidate not in reserved:
                return candidate
            logger.warning(f"Minted component name '{candidate}' collided, minting again")
        raise RegistryConflict(f"Unable to mint a unique component name for '{name}'")

    def _rewrite_local_refs(
        self, schema: Any, members: Dict[str, Any], renames: Dict[str, str]
    ) -> Any:
        """Point references between set members at their final names."""
        if not renames:
            return schema

        def rewrite(ref: str) -> Optional[str]:
            if not ref.startswith(COMPONENT_SCHEMA_PREFIX):
                return None
            target = ref[len(COMPONENT_SCHEMA_PREFIX):]
            if target in members and target in renames:
                return component_ref(renames[target])
            return None

        return self.scanner.rewrite_references(schema, rewrite)
