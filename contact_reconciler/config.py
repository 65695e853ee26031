"""
Runtime settings for the command-line and HTTP wrappers.

Values come from the environment (a `.env` file is loaded by the entry
points via python-dotenv); the pipeline itself takes no configuration.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field

ENV_PREFIX = "CONTACTS_"


class ReconcilerSettings(BaseModel):
    """Where the exports live and how loudly to report."""

    contacts_dir: Path = Path("public")
    google_file: str = "google_contacts.vcf"
    apple_file: str = "apple_contacts.vcf"
    output_dir: Optional[Path] = None  # Defaults to contacts_dir
    log_level: str = "WARNING"
    sample_size: int = Field(default=20, ge=0)

    @classmethod
    def from_env(cls) -> ReconcilerSettings:
        """Build settings from CONTACTS_* environment variables."""
        mapping = {
            "contacts_dir": "DIR",
            "google_file": "GOOGLE_FILE",
            "apple_file": "APPLE_FILE",
            "output_dir": "OUTPUT_DIR",
            "log_level": "LOG_LEVEL",
            "sample_size": "SAMPLE_SIZE",
        }
        values = {
            field: os.environ[ENV_PREFIX + suffix]
            for field, suffix in mapping.items()
            if os.environ.get(ENV_PREFIX + suffix)
        }
        return cls.model_validate(values)

    @property
    def google_path(self) -> Path:
        return self.contacts_dir / self.google_file

    @property
    def apple_path(self) -> Path:
        return self.contacts_dir / self.apple_file

    @property
    def resolved_output_dir(self) -> Path:
        return self.output_dir if self.output_dir is not None else self.contacts_dir
