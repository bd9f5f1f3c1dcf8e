"""Reconciliation settings: mapping rules, image directory and removal policy.

Settings come from a TOML file found via ``PAGEKEEPER_CONFIG`` or
``<data dir>/config.toml``. A missing file yields defaults. Example::

    [directories]
    images = "/srv/gallery/images"

    [image]
    remove_on_update = true

    [[metadata.source_mapping]]
    match = "e-hentai.org"
    ignore_case = true
    name = "E-Hentai"

    [[metadata.tag_mapping]]
    match = ["femdom", "female domination"]
    ignore_case = true
    namespace = "female"
    name = "femdom"
"""

from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, cast

from pagekeeper.domain.mapping import SourceMappingRule, TagMappingRule

from .env import env_flag
from .errors import ConfigurationError
from .storage import StorageConfig, get_storage_config


@dataclass(frozen=True, slots=True)
class DirectoriesConfig:
    images: Path


@dataclass(frozen=True, slots=True)
class ImageConfig:
    remove_on_update: bool = False


@dataclass(frozen=True, slots=True)
class MetadataConfig:
    source_mapping: tuple[SourceMappingRule, ...] = ()
    tag_mapping: tuple[TagMappingRule, ...] = ()


@dataclass(frozen=True, slots=True)
class Settings:
    directories: DirectoriesConfig
    image: ImageConfig = field(default_factory=ImageConfig)
    metadata: MetadataConfig = field(default_factory=MetadataConfig)


def get_settings(
    *,
    path: Path | None = None,
    storage: StorageConfig | None = None,
) -> Settings:
    """Load settings from ``path`` (or the configured location) with env overrides."""

    storage_config = storage or get_storage_config()
    config_path = path or _configured_path(storage_config)
    document = _read_document(config_path) if config_path.is_file() else {}
    return parse_settings(document, storage=storage_config)


def parse_settings(document: dict[str, Any], *, storage: StorageConfig) -> Settings:
    """Build settings from an already parsed TOML document."""

    directories = _table(document, "directories")
    image = _table(document, "image")
    metadata = _table(document, "metadata")

    images_dir = os.getenv("PAGEKEEPER_IMAGES_DIR") or directories.get("images")
    if images_dir is not None and not isinstance(images_dir, str):
        raise ConfigurationError("directories.images must be a string path")

    remove_on_update = env_flag("PAGEKEEPER_REMOVE_ON_UPDATE")
    if remove_on_update is None:
        remove_on_update = image.get("remove_on_update", False)
    if not isinstance(remove_on_update, bool):
        raise ConfigurationError("image.remove_on_update must be a boolean")

    return Settings(
        directories=DirectoriesConfig(
            images=Path(images_dir).expanduser() if images_dir else storage.images_dir()
        ),
        image=ImageConfig(remove_on_update=remove_on_update),
        metadata=MetadataConfig(
            source_mapping=tuple(
                _source_rule(index, entry)
                for index, entry in enumerate(_array(metadata, "source_mapping"))
            ),
            tag_mapping=tuple(
                _tag_rule(index, entry)
                for index, entry in enumerate(_array(metadata, "tag_mapping"))
            ),
        ),
    )


def _configured_path(storage: StorageConfig) -> Path:
    env_path = os.getenv("PAGEKEEPER_CONFIG")
    if env_path:
        return Path(env_path).expanduser()
    return storage.config_path()


def _read_document(path: Path) -> dict[str, Any]:
    try:
        with path.open("rb") as handle:
            return tomllib.load(handle)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigurationError(f"Invalid configuration file {path}: {exc}") from exc


def _table(document: dict[str, Any], name: str) -> dict[str, Any]:
    value = document.get(name, {})
    if not isinstance(value, dict):
        raise ConfigurationError(f"[{name}] must be a table")
    return cast(dict[str, Any], value)


def _array(table: dict[str, Any], name: str) -> list[dict[str, Any]]:
    value = table.get(name, [])
    if not isinstance(value, list) or not all(isinstance(item, dict) for item in value):
        raise ConfigurationError(f"metadata.{name} must be an array of tables")
    return cast(list[dict[str, Any]], value)


def _optional_str(entry: dict[str, Any], key: str, where: str) -> str | None:
    value = entry.get(key)
    if value is not None and not isinstance(value, str):
        raise ConfigurationError(f"{where}.{key} must be a string")
    return value


def _ignore_case(entry: dict[str, Any], where: str) -> bool:
    value = entry.get("ignore_case", False)
    if not isinstance(value, bool):
        raise ConfigurationError(f"{where}.ignore_case must be a boolean")
    return value


def _source_rule(index: int, entry: dict[str, Any]) -> SourceMappingRule:
    where = f"metadata.source_mapping[{index}]"
    match = entry.get("match")
    if not isinstance(match, str) or not match:
        raise ConfigurationError(f"{where}.match must be a non-empty string")
    return SourceMappingRule(
        match=match,
        ignore_case=_ignore_case(entry, where),
        name=_optional_str(entry, "name", where),
    )


def _tag_rule(index: int, entry: dict[str, Any]) -> TagMappingRule:
    where = f"metadata.tag_mapping[{index}]"
    raw_match = entry.get("match")
    if isinstance(raw_match, str):
        raw_match = [raw_match]
    if not isinstance(raw_match, list) or not all(isinstance(item, str) for item in raw_match):
        raise ConfigurationError(f"{where}.match must be a string or an array of strings")
    return TagMappingRule(
        match=frozenset(cast(list[str], raw_match)),
        ignore_case=_ignore_case(entry, where),
        match_namespace=_optional_str(entry, "match_namespace", where),
        namespace=_optional_str(entry, "namespace", where),
        name=_optional_str(entry, "name", where),
    )
