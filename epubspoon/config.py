"""Configuration loader for the EpubSpoon application."""

import logging
import os
import sys
from pathlib import Path

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field

DEFAULT_INSTRUCTION = """You are my English reading assistant. I will send you passages from an English book one at a time. For each passage, please respond in the following format:

## Translation
Translate every sentence, keeping the original sentence order. Place the English sentence first, followed by the translation on the next line, with a blank line between each pair.

## Key Vocabulary
List 5-10 important or difficult words/phrases from this passage in a table:
| Word/Phrase | Meaning | Example from text |

## Summary
Summarize the main idea of this passage in 2-3 sentences.

---
Keep this format consistent for every passage I send. No need to confirm or repeat instructions. Just wait for my first passage."""


class AppInfo(BaseModel):
    """Application metadata."""

    name: str = "EpubSpoon"
    version: str = "1.0.0"


class ExtractionConfig(BaseModel):
    """Chapter extraction and boilerplate filtering."""

    min_chapter_chars: int = 100
    boilerplate_keywords: list[str] = Field(
        default_factory=lambda: [
            "table of contents",
            "contents",
            "copyright",
            "all rights reserved",
            "published by",
            "isbn",
            "cover",
            "title page",
        ]
    )
    stripped_tags: list[str] = Field(
        default_factory=lambda: ["img", "table", "svg", "script", "style", "nav"]
    )


class SegmentingConfig(BaseModel):
    """Excerpt segmentation configuration."""

    target_words: int = Field(default=300, ge=1)


class StorageConfig(BaseModel):
    """Storage paths configuration."""

    sqlite_path: str = "./db/epubspoon.db"


class SyncConfig(BaseModel):
    """Cross-process progress synchronization."""

    enabled: bool = True
    poll_interval_seconds: float = Field(default=0.5, gt=0)


class PromptConfig(BaseModel):
    """Chat assistant prompt defaults."""

    instruction: str = DEFAULT_INSTRUCTION


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = "INFO"


class AppConfig(BaseModel):
    """Root application configuration."""

    app: AppInfo = Field(default_factory=AppInfo)
    extraction: ExtractionConfig = Field(default_factory=ExtractionConfig)
    segmenting: SegmentingConfig = Field(default_factory=SegmentingConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    sync: SyncConfig = Field(default_factory=SyncConfig)
    prompt: PromptConfig = Field(default_factory=PromptConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


def load_config(config_path: str | Path = "config.yaml") -> AppConfig:
    """Load configuration from YAML file and environment variables.

    Args:
        config_path: Path to the YAML configuration file.

    Returns:
        Fully populated AppConfig instance.
    """
    load_dotenv()

    yaml_data: dict = {}
    config_file = Path(config_path)
    if config_file.exists():
        with open(config_file, encoding="utf-8") as f:
            yaml_data = yaml.safe_load(f) or {}

    config = AppConfig(**yaml_data)

    # Environment overrides
    sqlite_path = os.getenv("EPUBSPOON_SQLITE_PATH")
    if sqlite_path:
        config.storage.sqlite_path = sqlite_path
    log_level = os.getenv("EPUBSPOON_LOG_LEVEL")
    if log_level:
        config.logging.level = log_level.upper()

    return config


def setup_logging(level: str | int = logging.INFO) -> None:
    """Configures the root logger with a standard format."""
    logging.basicConfig(
        level=level,
        format="[%(asctime)s] %(levelname)s - %(name)s - %(message)s",
        datefmt="%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
    )
