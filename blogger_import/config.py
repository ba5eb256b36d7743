"""
Configuration loading for the Blogger import.

Configuration is supplied via a JSON file path or directly as a dictionary.
Missing keys are filled with defaults and a few values can be supplied from
the environment.  The ``import`` section is validated into
:class:`ImportSettings`, the settings object handed to the pipeline stages.
"""

from __future__ import annotations

import json
import os
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_CONFIG_FILE = "config/import_config.json"


class ImportSettings(BaseModel):
    model_config = ConfigDict(extra="ignore")

    create_new_users: bool = False
    download_media: bool = False
    default_author_id: str = ""
    media_timeout: float = Field(15.0, gt=0)
    fetch_retries: int = Field(3, ge=1)
    max_media_bytes: int = Field(20 * 1024 * 1024, gt=0)
    topic_concurrency: int = Field(4, ge=1)


def load_config(config: Optional[Dict[str, Any]] = None, *, config_file: Optional[str] = None) -> Dict[str, Any]:
    if config_file and os.path.exists(config_file):
        with open(config_file, "r", encoding="utf-8") as f:
            config = json.load(f)
    elif config is None:
        config = {}

    # Ensure essential keys exist to prevent KeyErrors
    config.setdefault("import", {})
    config["import"].setdefault("create_new_users", False)
    config["import"].setdefault("download_media", False)
    config["import"].setdefault("default_author_id", os.getenv("BLOGGER_IMPORT_DEFAULT_AUTHOR", ""))
    config["import"].setdefault("media_timeout", 15.0)
    config["import"].setdefault("fetch_retries", 3)
    config["import"].setdefault("max_media_bytes", 20 * 1024 * 1024)
    config["import"].setdefault("topic_concurrency", 4)

    config.setdefault("store", {})
    config["store"].setdefault("database", os.getenv("BLOGGER_IMPORT_DB", "data/blog.duckdb"))
    config["store"].setdefault("media_root", os.getenv("BLOGGER_IMPORT_MEDIA_ROOT", "data/media"))

    config.setdefault("logging", {})
    config["logging"].setdefault("level", "INFO")
    config["logging"].setdefault("report_dir", os.path.join("reports", "import"))
    return config


def import_settings(config: Dict[str, Any]) -> ImportSettings:
    return ImportSettings(**config.get("import", {}))
