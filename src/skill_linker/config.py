"""Configuration for skill-linker."""

from pathlib import Path
from typing import Any, Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

from .registry import SkillRegistry, validate_skill_name

# Skill directories shipped alongside this project
DEFAULT_SKILLS = ["svelte5", "rust-axum-backend", "rust-style"]

# src/skill_linker/config.py -> project root
DEFAULT_SOURCE_ROOT = Path(__file__).resolve().parents[2]

DEFAULT_DESTINATION_ROOT = Path.home() / ".claude" / "skills"

DEFAULT_CONFIG_PATH = Path.home() / ".config" / "skill-linker" / "config.toml"


class SkillLinkerConfig(BaseSettings):
    """Configuration for the skill linker."""

    model_config = SettingsConfigDict(
        env_prefix="SKILL_LINKER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Registry: skill directory names, processed in order
    skills: list[str] = Field(
        default_factory=lambda: list(DEFAULT_SKILLS),
        description="Skill directory names to manage",
    )

    source_root: Path = Field(
        default=DEFAULT_SOURCE_ROOT,
        description="Directory containing one subdirectory per skill",
    )

    destination_root: Path = Field(
        default=DEFAULT_DESTINATION_ROOT,
        description="Directory the agent reads skills from",
    )

    # Exit non-zero when any skill ends in a conflict or fails
    strict: bool = Field(
        default=False,
        description="Exit with status 2 if any skill could not be linked or removed",
    )

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="WARNING",
        description="Log level for diagnostic output",
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        # Config file values are passed as init kwargs; environment wins over them
        return env_settings, dotenv_settings, init_settings, file_secret_settings

    @field_validator("skills")
    @classmethod
    def _validate_skills(cls, value: list[str]) -> list[str]:
        names = [validate_skill_name(name) for name in value]
        # Raises on duplicates
        SkillRegistry(names)
        return names

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalize_log_level(cls, value: Any) -> Any:
        return value.upper() if isinstance(value, str) else value

    def registry(self) -> SkillRegistry:
        """Build the skill registry from the configured names."""
        return SkillRegistry(self.skills)


def _anchor(value: str, base: Path) -> Path:
    """Expand ~ and resolve relative paths against the config file's directory."""
    path = Path(value).expanduser()
    if not path.is_absolute():
        path = base / path
    return path


def load_config(config_file: str | Path | None = None) -> SkillLinkerConfig:
    """Load configuration from config file, with environment variable overrides.

    Priority (highest to lowest):
    1. Environment variables (SKILL_LINKER_*)
    2. Provided config file
    3. Default config file (~/.config/skill-linker/config.toml)
    4. Default values

    Args:
        config_file: Optional path to a config file

    Returns:
        Loaded configuration
    """
    import tomllib

    config_path = Path(config_file) if config_file else DEFAULT_CONFIG_PATH

    file_config: dict[str, Any] = {}
    if config_path.exists():
        with open(config_path, "rb") as f:
            data = tomllib.load(f)
        file_config = dict(data.get("linker", {}))

        base = config_path.resolve().parent
        for key in ("source_root", "destination_root"):
            if isinstance(file_config.get(key), str):
                file_config[key] = _anchor(file_config[key], base)

    return SkillLinkerConfig(**file_config)
