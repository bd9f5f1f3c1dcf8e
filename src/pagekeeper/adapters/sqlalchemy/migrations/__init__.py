"""Alembic helpers that keep the pagekeeper schema at head.

Options come from the ``[tool.alembic]`` table of the project's
``pyproject.toml`` when running from a checkout; an installed package falls
back to the migrations shipped next to this module.
"""

from __future__ import annotations

import tomllib
from pathlib import Path
from typing import TYPE_CHECKING, Any, Final

from alembic import command
from alembic.config import Config

from pagekeeper.config.storage import get_database_uri

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

MIGRATIONS_PATH: Final[Path] = Path(__file__).resolve().parent
PROJECT_ROOT: Final[Path] = MIGRATIONS_PATH.parents[4]
PYPROJECT_PATH: Final[Path] = PROJECT_ROOT / "pyproject.toml"


def alembic_options(pyproject: Path = PYPROJECT_PATH) -> dict[str, str]:
    """Return ``[tool.alembic]`` from ``pyproject`` as strings, empty when absent."""

    if not pyproject.is_file():
        return {}
    with pyproject.open("rb") as handle:
        document: dict[str, Any] = tomllib.load(handle)
    section: dict[str, Any] = document.get("tool", {}).get("alembic", {})
    return {str(key): str(value) for key, value in section.items()}


def _project_path(value: str) -> Path:
    path = Path(value)
    return path if path.is_absolute() else (PROJECT_ROOT / path).resolve()


def _set_option(config: Config, key: str, value: str) -> None:
    # main options go through ConfigParser interpolation
    config.set_main_option(key, value.replace("%", "%%"))


def build_config(*, database_uri: str | None = None) -> Config:
    """Return an Alembic config pointing at the pagekeeper migrations."""

    options = alembic_options()
    config = Config()

    script_location = _project_path(options.pop("script_location", str(MIGRATIONS_PATH)))
    if not script_location.is_dir():
        script_location = MIGRATIONS_PATH
    _set_option(config, "script_location", str(script_location))
    prepend = _project_path(options.pop("prepend_sys_path", "."))
    _set_option(config, "prepend_sys_path", str(prepend))

    for key, value in options.items():
        _set_option(config, key, value)
    if database_uri is not None:
        _set_option(config, "sqlalchemy.url", database_uri)
    return config


def upgrade_head(*, engine: Engine | None = None, database_uri: str | None = None) -> None:
    """Migrate to the latest revision, on ``engine``'s connection when given."""

    if engine is None:
        command.upgrade(build_config(database_uri=database_uri or get_database_uri()), "head")
        return

    config = build_config()
    with engine.begin() as connection:
        config.attributes["connection"] = connection
        command.upgrade(config, "head")
