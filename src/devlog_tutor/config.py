"""Application configuration using pydantic-settings."""

import functools
from pathlib import Path
from typing import Any

import yaml
from pydantic import Field
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict


def _find_project_root() -> Path:
    """Find project root by locating pyproject.toml."""
    current = Path(__file__).resolve()
    for parent in [current] + list(current.parents):
        if (parent / "pyproject.toml").exists():
            return parent
    return Path(__file__).resolve().parent.parent.parent


class YamlSettingsSource(PydanticBaseSettingsSource):
    """Custom settings source that loads from settings.yaml."""

    def get_field_value(self, field_name: str) -> tuple[Any, str, bool]:
        """Not used - we implement __call__ instead."""
        return None, "", False

    def __call__(self) -> dict[str, Any]:
        """Load settings from YAML file."""
        yaml_path = _find_project_root() / "config" / "settings.yaml"
        if not yaml_path.exists():
            return {}

        with open(yaml_path, encoding='utf-8') as f:
            data = yaml.safe_load(f) or {}

        # Flatten nested structure to match Settings field names
        flattened = {}
        if 'server' in data:
            flattened['host'] = data['server'].get('host')
            flattened['port'] = data['server'].get('port')
        if 'openai' in data:
            flattened['tutor_model'] = data['openai'].get('model')
            flattened['openai_base_url'] = data['openai'].get('base_url')
        if 'tutor' in data:
            flattened['tutor_language'] = data['tutor'].get('language')
        if 'portfolio' in data:
            portfolio = data['portfolio']
            flattened['summary_char_limit'] = portfolio.get('summary_char_limit')
            flattened['portfolio_pacing_seconds'] = portfolio.get('pacing_seconds')

        return {k: v for k, v in flattened.items() if v is not None}


class Settings(BaseSettings):
    """Application settings loaded from environment and config files."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # OpenAI (empty key is tolerated at startup and fails downstream)
    openai_api_key: str = Field(default="", description="OpenAI API key")
    openai_base_url: str | None = Field(default=None)
    tutor_model: str = Field(default="gpt-4o-mini")
    tutor_language: str = Field(default="Spanish")

    # Authentication (optional: None disables auth)
    app_secret: str | None = Field(default=None)

    # Server
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8000)

    # Portfolio
    summary_char_limit: int = Field(default=15000)
    portfolio_pacing_seconds: float = Field(default=0.8)

    # Paths
    project_root: Path = Field(default_factory=_find_project_root)

    @property
    def data_dir(self) -> Path:
        d = self.project_root / "data"
        d.mkdir(parents=True, exist_ok=True)
        return d

    @property
    def templates_path(self) -> Path:
        return self.project_root / "config" / "templates.yaml"

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Customise settings sources to include YAML file.

        Priority order (highest to lowest):
        1. init_settings (arguments passed to Settings())
        2. env_settings (environment variables)
        3. dotenv_settings (.env file)
        4. YamlSettingsSource (settings.yaml)
        5. file_secret_settings
        """
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            YamlSettingsSource(settings_cls),
            file_secret_settings,
        )


@functools.lru_cache
def get_settings() -> Settings:
    """Get application settings singleton."""
    return Settings()


def load_templates(path: Path | None = None) -> dict:
    """Load the built-in roadmap templates from YAML."""
    templates_path = path or _find_project_root() / "config" / "templates.yaml"
    if not templates_path.exists():
        raise FileNotFoundError(f"Templates file not found: {templates_path}")
    with open(templates_path, encoding='utf-8') as f:
        data = yaml.safe_load(f)
    return data.get('templates', {})
