"""Configuration handling."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import List, Optional

import yaml

from .errors import ConfigError

DEFAULT_CONFIG_PATH = "sessionscribe_config.yml"

DEFAULT_SECTIONS = [
    {"id": "overview", "title": "Session Overview"},
    {"id": "content", "title": "Session Content"},
    {"id": "observations", "title": "Clinical Observations"},
    {"id": "plan", "title": "Treatment Plan"},
    {"id": "homework", "title": "Homework"},
]


@dataclass
class AudioConfig:
    sample_rate_hz: int = 16000
    bit_depth: int = 16
    channels: int = 1


@dataclass
class TranscriptionConfig:
    backend: str = "openai"
    model: str = "whisper-1"
    local_model: str = "small"
    language: Optional[str] = None


@dataclass
class FormattingConfig:
    model: str = "gpt-4o"
    polish_model: str = "gpt-4"


@dataclass
class SegmentationConfig:
    words_per_second: float = 3.0


@dataclass
class OpenAIConfig:
    api_key: Optional[str] = None
    base_url: Optional[str] = None


@dataclass
class SupabaseConfig:
    url: Optional[str] = None
    key: Optional[str] = None


@dataclass
class Config:
    base_dir: str = ""
    device_name: Optional[str] = None
    user_id: Optional[str] = None
    store: str = "supabase"
    audio: AudioConfig = field(default_factory=AudioConfig)
    transcription: TranscriptionConfig = field(default_factory=TranscriptionConfig)
    formatting: FormattingConfig = field(default_factory=FormattingConfig)
    segmentation: SegmentationConfig = field(default_factory=SegmentationConfig)
    openai: OpenAIConfig = field(default_factory=OpenAIConfig)
    supabase: SupabaseConfig = field(default_factory=SupabaseConfig)
    sections: List[dict] = field(default_factory=lambda: [dict(s) for s in DEFAULT_SECTIONS])


def _section(data: dict, key: str, cls):
    value = data.get(key) or {}
    if not isinstance(value, dict):
        raise ConfigError(f"'{key}' must be a mapping.")
    try:
        return cls(**value)
    except TypeError as exc:
        raise ConfigError(f"Invalid '{key}' settings: {exc}") from exc


def apply_env_overrides(config: Config) -> Config:
    if not config.openai.api_key:
        config.openai.api_key = os.environ.get("OPENAI_API_KEY")
    if not config.supabase.url:
        config.supabase.url = os.environ.get("SUPABASE_URL")
    if not config.supabase.key:
        config.supabase.key = os.environ.get("SUPABASE_KEY")
    return config


def load_config(path: str = DEFAULT_CONFIG_PATH) -> Config:
    if not os.path.exists(path):
        return apply_env_overrides(Config())

    try:
        with open(path, "r", encoding="utf-8") as handle:
            data = yaml.safe_load(handle) or {}
    except yaml.YAMLError as exc:
        raise ConfigError(f"Could not parse {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"{path} must contain a mapping at the top level.")

    sections = data.get("sections") or [dict(s) for s in DEFAULT_SECTIONS]
    for item in sections:
        if not isinstance(item, dict) or not item.get("title"):
            raise ConfigError("Each entry in 'sections' needs a title.")

    config = Config(
        base_dir=data.get("base_dir", ""),
        device_name=data.get("device_name"),
        user_id=data.get("user_id"),
        store=data.get("store", "supabase"),
        audio=_section(data, "audio", AudioConfig),
        transcription=_section(data, "transcription", TranscriptionConfig),
        formatting=_section(data, "formatting", FormattingConfig),
        segmentation=_section(data, "segmentation", SegmentationConfig),
        openai=_section(data, "openai", OpenAIConfig),
        supabase=_section(data, "supabase", SupabaseConfig),
        sections=sections,
    )
    if config.store not in ("supabase", "local"):
        raise ConfigError(f"Unknown store '{config.store}'.")
    if config.transcription.backend not in ("openai", "local"):
        raise ConfigError(
            f"Unknown transcription backend '{config.transcription.backend}'."
        )
    if config.segmentation.words_per_second <= 0:
        raise ConfigError("'segmentation.words_per_second' must be greater than zero.")
    return apply_env_overrides(config)


def save_config(path: str, config: Config) -> None:
    data = {
        "base_dir": config.base_dir,
        "device_name": config.device_name,
        "user_id": config.user_id,
        "store": config.store,
        "audio": {
            "sample_rate_hz": config.audio.sample_rate_hz,
            "bit_depth": config.audio.bit_depth,
            "channels": config.audio.channels,
        },
        "transcription": {
            "backend": config.transcription.backend,
            "model": config.transcription.model,
            "local_model": config.transcription.local_model,
            "language": config.transcription.language,
        },
        "formatting": {
            "model": config.formatting.model,
            "polish_model": config.formatting.polish_model,
        },
        "segmentation": {
            "words_per_second": config.segmentation.words_per_second,
        },
        "openai": {
            "api_key": config.openai.api_key,
            "base_url": config.openai.base_url,
        },
        "supabase": {
            "url": config.supabase.url,
            "key": config.supabase.key,
        },
        "sections": config.sections,
    }
    with open(path, "w", encoding="utf-8") as handle:
        yaml.safe_dump(data, handle, sort_keys=False)
