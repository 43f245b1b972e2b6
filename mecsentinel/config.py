"""Application settings.

Loads an optional YAML settings file, then environment variables
(a .env file in the working directory is honoured).
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional, Union

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field

load_dotenv()

DEFAULT_DATA_DIR = Path.cwd() / "vehicles"


class LLMSettings(BaseModel):
    """Chat completion settings."""
    model: str = "gpt-4o"
    temperature: float = 0.7
    max_tokens: int = 1000


class Settings(BaseModel):
    """Top-level application settings."""
    data_dir: str = str(DEFAULT_DATA_DIR)
    secret_key: str = "dev-secret-key-change-in-prod"
    llm: LLMSettings = Field(default_factory=LLMSettings)

    @classmethod
    def load(cls, path: Optional[Union[str, Path]] = None) -> Settings:
        """Load settings from a YAML file (if any), then apply environment overrides."""
        path = path or os.getenv("MECSENTINEL_CONFIG")
        data = {}
        if path and Path(path).exists():
            with open(path, encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}

        if os.getenv("MECSENTINEL_DATA_DIR"):
            data["data_dir"] = os.environ["MECSENTINEL_DATA_DIR"]
        if os.getenv("SECRET_KEY"):
            data["secret_key"] = os.environ["SECRET_KEY"]
        return cls(**data)


def get_openai_api_key() -> str:
    """Get OpenAI API key from environment."""
    key = os.getenv("OPENAI_API_KEY", "")
    if not key:
        raise ValueError("OPENAI_API_KEY not set in environment")
    return key
