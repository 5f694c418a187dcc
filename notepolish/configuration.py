"""Layered configuration loader: YAML files, .env, then process environment."""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Literal, Mapping, Optional, Sequence

import yaml
from dotenv import dotenv_values
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic import ValidationError as PydanticValidationError

from .errors import ConfigurationError, ValidationError
from .structures import TargetLanguageSet

APP_NAME = "notepolish"
CONFIG_FILENAMES = ("notepolish.yaml", "config.yaml")


class NotePolishConfig(BaseModel):
    """Schema describing all supported configuration options."""

    model_config = ConfigDict(extra="ignore")

    LLM_PROVIDER: Literal["azure_openai", "openai"] = Field(
        default="openai",
        description="Large language model client selection.",
    )
    AZURE_OPENAI_API_KEY: Optional[str] = Field(default=None, repr=False)
    AZURE_OPENAI_ENDPOINT: Optional[str] = None
    AZURE_OPENAI_API_VERSION: Optional[str] = None
    AZURE_OPENAI_DEPLOYMENT_NAME: Optional[str] = None
    OPENAI_API_KEY: Optional[str] = Field(default=None, repr=False)
    NOTEPOLISH_SERVICE: str = Field(
        default="openai",
        description="Transformation service: openai, legacy-openai or echo.",
    )
    NOTEPOLISH_MODEL: Optional[str] = None
    NOTEPOLISH_TARGET_LANGUAGES: str = Field(
        default="en,hi,ur",
        description="Comma separated translation target language codes.",
    )
    NOTEPOLISH_REQUEST_TIMEOUT: float = Field(
        default=30.0,
        gt=0,
        description="Per-call timeout in seconds for the transformation service.",
    )
    NOTEPOLISH_PROVIDER_DEBUG: bool = False

    @model_validator(mode="before")
    @classmethod
    def _normalise_provider(cls, data: Any) -> Any:
        if isinstance(data, dict):
            raw_value = data.get("LLM_PROVIDER")
            if isinstance(raw_value, str):
                normalized = raw_value.strip().lower().replace("-", "_")
                synonyms = {
                    "azure_open_ai": "azure_openai",
                    "azureopenai": "azure_openai",
                }
                normalized = synonyms.get(normalized, normalized)
                if normalized not in {"openai", "azure_openai"}:
                    normalized = "openai"
                data["LLM_PROVIDER"] = normalized
        return data

    @field_validator("NOTEPOLISH_TARGET_LANGUAGES")
    @classmethod
    def _check_languages(cls, value: str) -> str:
        try:
            languages = TargetLanguageSet.parse(value)
        except ValidationError as exc:
            raise ValueError(str(exc)) from exc
        return ",".join(languages.codes)

    def target_languages(self) -> TargetLanguageSet:
        return TargetLanguageSet.parse(self.NOTEPOLISH_TARGET_LANGUAGES)


def discover_config_files(app_dir: Path) -> List[Path]:
    """Return existing YAML files, lowest precedence first."""

    config_home = Path(os.getenv("XDG_CONFIG_HOME") or Path.home() / ".config")
    candidates = [config_home / APP_NAME / "config.yaml"]
    candidates.extend(app_dir / name for name in CONFIG_FILENAMES)
    return [path for path in candidates if path.is_file()]


def _load_yaml_layers(paths: Sequence[Path]) -> Dict[str, Any]:
    result: Dict[str, Any] = {}
    for path in paths:
        try:
            with open(path, encoding="utf-8") as handle:
                parsed = yaml.safe_load(handle)
        except (OSError, yaml.YAMLError) as exc:
            raise ConfigurationError(f"Configuration file {path} could not be read: {exc}") from exc
        if parsed is None:
            continue
        if not isinstance(parsed, Mapping):
            raise ConfigurationError(
                f"Invalid configuration file {path}: expected a mapping at the root."
            )
        result.update(parsed)
    return result


def _merge_env_sources(target: Dict[str, Any], *, app_dir: Path) -> None:
    """Merge .env and process environment variables into the target mapping."""

    allowed = set(NotePolishConfig.model_fields)

    def merge_values(values: Mapping[str, Optional[str]]) -> None:
        for key, value in sorted(values.items()):
            if value is None or key not in allowed:
                continue
            target[key] = value

    dotenv_path = app_dir / ".env"
    if dotenv_path.exists():
        merge_values(dotenv_values(dotenv_path))

    merge_values(dict(os.environ))


@lru_cache(maxsize=1)
def _load_settings(app_dir: Path) -> NotePolishConfig:
    """Load configuration layers once and cache the validated model."""

    combined = _load_yaml_layers(discover_config_files(app_dir))
    _merge_env_sources(combined, app_dir=app_dir)
    try:
        return NotePolishConfig.model_validate(combined)
    except PydanticValidationError as exc:
        raise ConfigurationError(_format_validation_errors(exc.errors())) from exc


def _format_validation_errors(entries: Sequence[Mapping[str, Any]]) -> str:
    details: list[str] = []
    for entry in entries:
        location = ".".join(str(part) for part in entry.get("loc") or () if part not in {None, ""})
        message = str(entry.get("msg") or "Invalid value")
        prefix = f"{location}: " if location else ""
        details.append(f"- {prefix}{message}")
    return "Configuration validation errors detected:\n" + "\n".join(details)


def require_credentials(settings: NotePolishConfig) -> None:
    """Raise ConfigurationError unless the selected LLM client can be built."""

    errors: list[str] = []
    if settings.LLM_PROVIDER == "openai":
        if not settings.OPENAI_API_KEY:
            errors.append("OPENAI_API_KEY is required when LLM_PROVIDER is 'openai'.")
    else:
        missing = [
            name
            for name, value in {
                "AZURE_OPENAI_API_KEY": settings.AZURE_OPENAI_API_KEY,
                "AZURE_OPENAI_ENDPOINT": settings.AZURE_OPENAI_ENDPOINT,
                "AZURE_OPENAI_API_VERSION": settings.AZURE_OPENAI_API_VERSION,
                "AZURE_OPENAI_DEPLOYMENT_NAME": settings.AZURE_OPENAI_DEPLOYMENT_NAME,
            }.items()
            if not value
        ]
        if missing:
            errors.append(
                "The following Azure OpenAI settings must be provided when "
                f"LLM_PROVIDER is 'azure_openai': {', '.join(missing)}."
            )

    if errors:
        bullet_list = "\n".join(f"- {message}" for message in errors)
        raise ConfigurationError("Configuration validation errors detected:\n" + bullet_list)


def get_settings(app_dir: Path | None = None) -> NotePolishConfig:
    """Return the validated settings for the given directory (default: cwd)."""

    return _load_settings((app_dir or Path.cwd()).resolve())


def clear_settings_cache() -> None:
    _load_settings.cache_clear()
