from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

from ..excel.classifier import DEFAULT_SECTION_EMPTY_MARGIN, RowClassifier
from ..excel.layout_registry import LayoutRegistry, default_registry
from ..excel.reconciler import DEFAULT_LITERAL_PREFIXES, KeyReconciler
from ..storage.blob_store import DEFAULT_LEGACY_KEY

"""Config loader.

Responsibilities:
- Load YAML config/finsheets.yml
- Validate against config_schema.json (shipped next to this module)
- Apply defaults for every optional section
- Build the immutable collaborators (layout registry, classifier, reconciler)

Secrets never live in the YAML file; they are read from the environment at
load time (the CLI loads .env first).
"""

__all__ = [
    "ConfigError",
    "StorageConfig",
    "NotificationConfig",
    "AppConfig",
    "DEFAULT_CHANNELS",
    "DEFAULT_CONFIG_PATH",
    "SCHEMA_PATH",
    "load_config",
    "default_config",
]

SCHEMA_PATH = Path(__file__).with_name("config_schema.json")
DEFAULT_CONFIG_PATH = Path("config/finsheets.yml")

DEFAULT_CHANNELS: tuple[str, ...] = (
    "AMAZON.IN",
    "FLIPKART",
    "MYNTRA",
    "INDIAN ART VILLA.IN",
    "BULK DOMESTIC",
    "INDIAN ART VILLA.COM",
    "BULK EXPORT",
)


class ConfigError(Exception):
    pass


@dataclass(frozen=True)
class StorageConfig:
    backend: str = "local"  # local | s3
    root: str = "./data/store"
    bucket: str = ""
    region: str | None = None
    endpoint_url: str | None = None
    legacy_key: str = DEFAULT_LEGACY_KEY
    access_key: str | None = None  # env STORAGE_ACCESS_KEY
    secret_key: str | None = None  # env STORAGE_SECRET_KEY


@dataclass(frozen=True)
class NotificationConfig:
    endpoint: str = "https://api.resend.com/emails"
    sender: str = "onboarding@resend.dev"
    recipients: tuple[str, ...] = ()
    api_key: str | None = None  # env NOTES_API_KEY


@dataclass(frozen=True)
class AppConfig:
    storage: StorageConfig = field(default_factory=StorageConfig)
    registry: LayoutRegistry = field(default_factory=default_registry)
    channels: tuple[str, ...] = DEFAULT_CHANNELS
    classifier: RowClassifier = field(default_factory=RowClassifier)
    reconciler: KeyReconciler = field(default_factory=KeyReconciler)
    notifications: NotificationConfig = field(default_factory=NotificationConfig)
    username: str = "admin"
    password: str | None = None  # env FINSHEETS_PASSWORD


def _env(name: str) -> str | None:
    value = os.environ.get(name, "").strip()
    return value or None


def _validate_config_schema(data: dict[str, Any]) -> None:
    """Validate config data against the JSON schema.

    Raises:
        ConfigError: schema file missing or not JSON, or the data violates it
    """
    if not SCHEMA_PATH.exists():
        raise ConfigError(f"config schema not found: {SCHEMA_PATH}")
    try:
        schema = json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
        jsonschema.validate(data, schema)
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid schema file: {e}") from e
    except ValidationError as e:
        raise ConfigError(f"config validation failed: {e.message}") from e


def _build(data: dict[str, Any]) -> AppConfig:
    storage_raw = data.get("storage", {})
    storage = StorageConfig(
        backend=storage_raw.get("backend", "local"),
        root=storage_raw.get("root", "./data/store"),
        bucket=storage_raw.get("bucket", ""),
        region=storage_raw.get("region"),
        endpoint_url=storage_raw.get("endpoint_url"),
        legacy_key=storage_raw.get("legacy_key", DEFAULT_LEGACY_KEY),
        access_key=_env("STORAGE_ACCESS_KEY"),
        secret_key=_env("STORAGE_SECRET_KEY"),
    )
    if storage.backend == "s3" and not storage.bucket:
        raise ConfigError("config validation failed: storage.bucket is required for the s3 backend")

    classifier_raw = data.get("classifier", {})
    classifier = RowClassifier.from_settings(
        section_empty_margin=classifier_raw.get("section_empty_margin", DEFAULT_SECTION_EMPTY_MARGIN),
        total_prefixes=classifier_raw.get("total_prefixes"),
    )

    notes_raw = data.get("notifications", {})
    defaults = NotificationConfig()
    notifications = NotificationConfig(
        endpoint=notes_raw.get("endpoint", defaults.endpoint),
        sender=notes_raw.get("sender", defaults.sender),
        recipients=tuple(notes_raw.get("recipients", ())),
        api_key=_env("NOTES_API_KEY"),
    )

    return AppConfig(
        storage=storage,
        registry=default_registry().with_overrides(data.get("sheet_layouts", {})),
        channels=tuple(data.get("channels", DEFAULT_CHANNELS)),
        classifier=classifier,
        reconciler=KeyReconciler.with_prefixes(data.get("literal_prefixes", DEFAULT_LITERAL_PREFIXES)),
        notifications=notifications,
        username=data.get("auth", {}).get("username", "admin"),
        password=_env("FINSHEETS_PASSWORD"),
    )


def load_config(path: Path) -> AppConfig:
    if not path.exists():
        raise ConfigError(f"config file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError("config validation failed: top level must be a mapping")

    _validate_config_schema(data)
    return _build(data)


def default_config() -> AppConfig:
    """Built-in defaults plus environment secrets, no file."""
    return _build({})
