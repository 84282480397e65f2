"""Test helpers for schema processor tests."""

import copy
from typing import Any, Dict

from src.schema_processor.errors import ResolutionError
from src.utils.config import Config


class FakeFetch:
    """Injected fetch function serving documents from a dict, 404 otherwise."""

    def __init__(self, documents: Dict[str, Any] = None):
        self.documents = documents or {}
        self.calls = []

    async def __call__(self, location: str) -> Dict[str, Any]:
        self.calls.append(location)
        if location not in self.documents:
            raise ResolutionError(f"HTTP ERROR 404 fetching {location}", ref=location)
        return copy.deepcopy(self.documents[location])


def make_config(**overrides) -> Config:
    """Config with deterministic defaults for tests."""
    config = Config()
    config.schema_base_dir = "/schemas"
    config.allow_remote_refs = True
    config.allow_file_refs = True
    config.max_repair_passes = 5
    config.continue_on_error = False
    config.log_processing_progress = False
    for key, value in overrides.items():
        setattr(config, key, value)
    return config


ERROR_RESPONSE = {"type": "object", "properties": {"error": {"type": "string"}}}

MODELS_DOCUMENT = {
    "models": [
        {
            "name": "ErrorResponse",
            "description": "An error response",
            "contentType": "application/json",
            "schema": ERROR_RESPONSE,
        }
    ]
}

MODELS_ALT_DOCUMENT = {
    "models": [
        {
            "name": "ErrorResponse",
            "description": "An error response",
            "content": {"application/json": {"schema": ERROR_RESPONSE}},
        }
    ]
}

CONDITIONAL_ADDRESS = {
    "type": "object",
    "properties": {
        "street_address": {"type": "string"},
        "country": {
            "default": "United States of America",
            "enum": ["United States of America", "Canada"],
        },
    },
    "if": {"properties": {"country": {"const": "United States of America"}}},
    "then": {"properties": {"postal_code": {"pattern": "[0-9]{5}(-[0-9]{4})?"}}},
    "else": {"properties": {"postal_code": {"pattern": "[A-Z][0-9][A-Z] [0-9][A-Z][0-9]"}}},
}
