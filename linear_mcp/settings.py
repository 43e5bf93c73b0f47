"""Settings resolution with workspace profiles from an optional TOML file."""

import os
import tempfile
from collections.abc import Mapping
from functools import lru_cache
from pathlib import Path

import tomlkit
import typer
from pydantic import AliasChoices, Field, SecretStr
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

CONFIG_PATH = Path.home() / ".config" / "linear-mcp" / "config.toml"
DEFAULT_CACHE_DIR = Path(tempfile.gettempdir()) / "linear-mcp-images"


class ServerSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="LINEAR_MCP_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    default_workspace: str | None = None

    api_key: SecretStr | None = Field(
        default=None,
        validation_alias=AliasChoices("LINEAR_API_KEY", "LINEAR_MCP_API_KEY"),
    )
    cache_dir: Path = DEFAULT_CACHE_DIR

    page_size: int = Field(default=20, ge=1, le=100)  # "my issues" listing
    my_issues_concurrency: int = Field(default=3, ge=1)
    search_concurrency: int = Field(default=5, ge=1)

    log_level: str = "INFO"

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        # Profile values are passed as init kwargs and act as defaults; env and .env win.
        return env_settings, dotenv_settings, init_settings, file_secret_settings


@lru_cache(maxsize=1)
def _load_toml() -> tomlkit.TOMLDocument:
    """Load ~/.config/linear-mcp/config.toml, returning empty document if missing."""
    if not CONFIG_PATH.exists():
        return tomlkit.document()
    with CONFIG_PATH.open() as f:
        return tomlkit.load(f)


def _list_profiles(config: Mapping) -> list[str]:
    # tomlkit Table implements MutableMapping but not dict, so check Mapping
    return [k for k, v in config.items() if isinstance(v, Mapping)]


def get_settings(workspace: str | None = None, require_api_key: bool = True) -> ServerSettings:
    """Resolve the active workspace profile and return populated ServerSettings.

    Workspace precedence (highest to lowest):
    1. workspace argument (--workspace CLI flag)
    2. LINEAR_MCP_WORKSPACE env var
    3. default_workspace key in ~/.config/linear-mcp/config.toml
    4. First profile defined in ~/.config/linear-mcp/config.toml

    Top-level scalar keys in the file apply to every workspace. Environment
    variables override anything read from the file.
    """
    toml_config = _load_toml().unwrap()
    profiles = _list_profiles(toml_config)

    active = (
        workspace
        or os.environ.get("LINEAR_MCP_WORKSPACE")
        or toml_config.get("default_workspace")
        or (profiles[0] if profiles else None)
    )

    defaults = {k: v for k, v in toml_config.items() if not isinstance(v, Mapping)}
    if active:
        if active not in profiles:
            typer.echo(f"Workspace '{active}' not found in {CONFIG_PATH}. Available: {profiles or '(none)'}", err=True)
            raise typer.Exit(1)
        defaults.update(toml_config[active])

    settings = ServerSettings(**defaults)

    if require_api_key and not settings.api_key:
        typer.echo(
            "Missing Linear credentials. Set LINEAR_API_KEY or "
            f"api_key in the [{active or 'workspace'}] section of {CONFIG_PATH}",
            err=True,
        )
        raise typer.Exit(1)

    return settings
