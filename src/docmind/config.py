"""Pydantic Settings with YAML profile support.

Priority (highest first): env vars > .env > config.yaml > config.default.yaml
"""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Any

from dotenv import load_dotenv
from pydantic import BaseModel, ValidationError
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict, YamlConfigSettingsSource


# ---------------------------------------------------------------------------
# Sub-models
# ---------------------------------------------------------------------------

class LLMProfile(BaseModel):
    """One named model configuration profile."""

    chat_model: str = "gemini/gemini-2.5-flash"
    embed_model: str = "gemini/text-embedding-004"
    embed_dim: int = 768
    vision_model: str = "gemini/gemini-2.5-flash"
    temperature: float = 0.1
    max_tokens: int = 4096


class StoreConfig(BaseModel):
    path: str = "./data/docmind.db"


class ChunkerConfig(BaseModel):
    chunk_size: int = 1000


class IngestConfig(BaseModel):
    """Embedding calls per document run one at a time unless raised."""

    concurrency: int = 1


class ChatConfig(BaseModel):
    """Defaults for retrieval-augmented answering."""

    top_k: int = 5
    history_turns: int = 5


class AdminConfig(BaseModel):
    """The account seeded on first start."""

    name: str = "System Administrator"
    email: str = "admin@test.com"
    password: str = "admin"


class PromptsConfig(BaseModel):
    """Prompts and canned replies used by the chat engine."""

    system_prompt: str = (
        "You are a helpful and professional assistant.\n"
        "Answer the user's question using ONLY the context provided below.\n"
        "If the answer is not in the context, politely say you don't have that "
        "information in the provided documents.\n"
        "Do not make up information.\n\n"
        "CONTEXT:\n{context}"
    )
    no_context_message: str = (
        "I couldn't find any information in the uploaded documents to answer your question."
    )
    error_message: str = "I encountered an error while trying to answer your question."
    empty_response_message: str = (
        "I processed the context but couldn't generate a response."
    )
    extraction_prompt: str = (
        "Extract all the text content from this document. Return ONLY the extracted text. "
        "If it is an image or a spreadsheet, describe the data in detail structurally. "
        "Do not add markdown formatting like ```text."
    )
    file_chat_prompt: str = (
        "You are an intelligent document assistant. The user has uploaded a file. "
        "Answer questions strictly based on the content of this file. If the answer "
        "is not in the file, politely state that you cannot find the information. "
        "Be concise, professional, and helpful."
    )


# ---------------------------------------------------------------------------
# Main settings
# ---------------------------------------------------------------------------

def _yaml_files() -> list[Path]:
    """Return YAML config file paths, highest priority first.

    Each file becomes its own settings source so that a partial config.yaml
    is deep-merged over the defaults instead of replacing whole sections.
    """
    root = Path(os.environ.get("DOCMIND_ROOT", "."))
    files = [root / "config.default.yaml"]
    user_cfg = root / "config.yaml"
    if user_cfg.exists():
        files.insert(0, user_cfg)
    return files


class Settings(BaseSettings):
    """Application settings loaded from YAML + env vars."""

    model_config = SettingsConfigDict(
        env_prefix="DOCMIND_",
        env_nested_delimiter="__",
    )

    active_profile: str = "default"
    profiles: dict[str, LLMProfile] = {}
    store: StoreConfig = StoreConfig()
    chunker: ChunkerConfig = ChunkerConfig()
    ingest: IngestConfig = IngestConfig()
    chat: ChatConfig = ChatConfig()
    admin: AdminConfig = AdminConfig()
    prompts: PromptsConfig = PromptsConfig()

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,
            env_settings,
            *(
                YamlConfigSettingsSource(settings_cls, yaml_file=path)
                for path in _yaml_files()
            ),
        )

    @property
    def llm(self) -> LLMProfile:
        """Return the currently active model profile."""
        if self.active_profile not in self.profiles:
            available = ", ".join(self.profiles.keys()) or "(none)"
            raise KeyError(
                f"Profile '{self.active_profile}' not found. Available: {available}"
            )
        return self.profiles[self.active_profile]


# ---------------------------------------------------------------------------
# Singleton accessor
# ---------------------------------------------------------------------------

@lru_cache(maxsize=1)
def get_settings(**kwargs: Any) -> Settings:
    """Lazy singleton for settings. Call reset_settings() to reload."""
    root = Path(os.environ.get("DOCMIND_ROOT", "."))
    load_dotenv(root / ".env", override=False)
    return Settings(**kwargs)


def reset_settings() -> None:
    """Clear the settings cache so the next get_settings() reloads from disk."""
    get_settings.cache_clear()


# ---------------------------------------------------------------------------
# Config persistence
# ---------------------------------------------------------------------------

def _nest(key: str, value: Any) -> dict:
    """``("chat.top_k", 7)`` -> ``{"chat": {"top_k": 7}}``."""
    node: Any = value
    for part in reversed(key.split(".")):
        node = {part: node}
    return node


def _merge_into(base: dict, override: dict) -> dict:
    for key, value in override.items():
        if isinstance(base.get(key), dict) and isinstance(value, dict):
            _merge_into(base[key], value)
        else:
            base[key] = value
    return base


def _check_setting(key: str, value: Any) -> None:
    """Raise ValueError unless *key* names a real setting and *value* fits it."""
    if key.split(".")[0] not in Settings.model_fields:
        raise ValueError(f"Unknown setting '{key}'")
    try:
        dumped = Settings(**_nest(key, value)).model_dump()
    except ValidationError as e:
        raise ValueError(f"Invalid value for '{key}': {e.errors()[0]['msg']}") from e

    node: Any = dumped
    for part in key.split("."):
        if not isinstance(node, dict) or part not in node:
            raise ValueError(f"Unknown setting '{key}'")
        node = node[part]


def save_user_config(key: str, value: Any) -> Path:
    """Persist one dotted setting (``chat.top_k``) to config.yaml.

    The value is validated first, so a typo never reaches disk. Other keys
    already in config.yaml are preserved. Resets the settings cache.
    """
    import yaml

    _check_setting(key, value)

    root = Path(os.environ.get("DOCMIND_ROOT", "."))
    config_path = root / "config.yaml"

    existing: dict = {}
    if config_path.exists():
        with open(config_path) as f:
            existing = yaml.safe_load(f) or {}

    _merge_into(existing, _nest(key, value))

    with open(config_path, "w") as f:
        yaml.safe_dump(existing, f, default_flow_style=False, allow_unicode=True, sort_keys=False)

    reset_settings()
    return config_path
