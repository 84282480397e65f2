"""Configuration management for the schema processing engine."""

import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv


class Config:
    """Configuration loaded from .env file."""

    def __init__(self, env_file: Optional[str] = None):
        """Load configuration from .env file."""
        if env_file:
            load_dotenv(env_file)
        else:
            # Load from project root .env
            project_root = Path(__file__).parent.parent.parent
            env_path = project_root / ".env"
            if env_path.exists():
                load_dotenv(env_path)

        # Reference resolution
        self.schema_base_dir = os.getenv("SCHEMA_BASE_DIR", os.getcwd())
        self.allow_remote_refs = os.getenv("SCHEMA_ALLOW_REMOTE_REFS", "true").lower() == "true"
        self.allow_file_refs = os.getenv("SCHEMA_ALLOW_FILE_REFS", "true").lower() == "true"
        self.fetch_timeout = float(os.getenv("SCHEMA_FETCH_TIMEOUT", "30"))
        self.max_repair_passes = int(os.getenv("SCHEMA_MAX_REPAIR_PASSES", "5"))

        # Model processing
        self.continue_on_error = os.getenv("SCHEMA_CONTINUE_ON_ERROR", "false").lower() == "true"
        self.log_processing_progress = os.getenv("LOG_PROCESSING_PROGRESS", "true").lower() == "true"
