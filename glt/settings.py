"""Settings resolution with named profile support."""

import os
from collections.abc import Mapping
from functools import lru_cache
from pathlib import Path

import tomlkit
import typer
from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

CONFIG_PATH = Path.home() / ".config" / "glt" / "config.toml"


class GltSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="GLT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    default_profile: str | None = None

    url: str = ""  # server root, e.g. https://gitlab.example.com
    token: SecretStr | None = None  # sent as PRIVATE-TOKEN
    project_id: int | None = None  # None searches across all projects
    timeout: float = 30.0


@lru_cache(maxsize=1)
def _load_toml() -> tomlkit.TOMLDocument:
    """Load ~/.config/glt/config.toml, returning empty document if missing."""
    if not CONFIG_PATH.exists():
        return tomlkit.document()
    return tomlkit.load(CONFIG_PATH.open())


def _list_profiles(config: Mapping) -> list[str]:
    # tomlkit Table implements MutableMapping but not dict, so check Mapping
    return [k for k, v in config.items() if isinstance(v, Mapping)]


def active_profile(profile: str | None = None) -> str | None:
    """Name of the profile in effect.

    Precedence (highest to lowest):
    1. profile argument (--profile CLI flag)
    2. GLT_DEFAULT_PROFILE env var
    3. default_profile key in ~/.config/glt/config.toml
    4. First profile defined in ~/.config/glt/config.toml
    """
    toml_config = _load_toml()
    return (
        profile
        or os.environ.get("GLT_DEFAULT_PROFILE")
        or toml_config.get("default_profile")
        or ((_profiles := _list_profiles(toml_config)) and _profiles[0] or None)
    )


def get_settings(profile: str | None = None) -> GltSettings:
    """Resolve the active profile and return a fully populated GltSettings."""
    toml_config = _load_toml()
    active = active_profile(profile)

    profile_defaults: dict = {}
    if active:
        if active in toml_config and isinstance(toml_config[active], Mapping):
            profile_defaults = dict(toml_config[active])
        else:
            profiles = _list_profiles(toml_config)
            typer.echo(f"Profile '{active}' not found in {CONFIG_PATH}. Available: {profiles or '(none)'}")
            raise typer.Exit(1)

    # env vars + .env always override profile defaults
    settings = GltSettings(**profile_defaults)

    if not settings.url:
        typer.echo(f"Missing GitLab URL. Set GLT_URL or url in the [{active or 'profile'}] section of {CONFIG_PATH}")
        raise typer.Exit(1)
    if not settings.token:
        typer.echo(
            f"Missing GitLab token. Set GLT_TOKEN or token in the [{active or 'profile'}] section of {CONFIG_PATH}"
        )
        raise typer.Exit(1)

    return settings


def save_profile(profile: str, config: Mapping, make_default: bool = False) -> None:
    """Write a profile table to the config file, keeping existing comments and profiles."""
    CONFIG_PATH.parent.mkdir(parents=True, exist_ok=True)
    doc = tomlkit.load(CONFIG_PATH.open()) if CONFIG_PATH.exists() else tomlkit.document()

    table = tomlkit.table()
    for key, value in config.items():
        if value is not None:
            table[key] = value
    doc[profile] = table
    if make_default:
        doc["default_profile"] = profile

    CONFIG_PATH.write_text(tomlkit.dumps(doc))
    _load_toml.cache_clear()
