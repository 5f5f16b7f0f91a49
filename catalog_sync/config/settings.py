"""Process configuration, read once from the environment and an optional .env file."""

from pathlib import Path
from typing import Annotated, List, Optional

from pydantic import Field, SecretStr, field_validator, model_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

DEFAULT_SOURCE_LANG = "en"
DEFAULT_LOCALES_DIR = "locales"


class Settings(BaseSettings):
    """Catalog sync settings."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Languages
    source_lang: str = DEFAULT_SOURCE_LANG
    target_langs: Annotated[List[str], NoDecode] = Field(default_factory=list)

    # Storage
    locales_root_path: Optional[Path] = None
    catalog_extension: str = "json"
    discard_unreadable_targets: bool = True

    # Translation provider
    openai_secret_key: Optional[SecretStr] = None
    openai_model: str = "gpt-4-turbo-preview"
    openai_temperature: float = Field(default=0.3, ge=0.0, le=2.0)
    request_timeout: float = Field(default=60.0, gt=0)
    max_retries: int = Field(default=3, ge=1)

    # Concurrency
    max_concurrent_translations: int = Field(default=1, ge=1)
    max_concurrent_languages: int = Field(default=1, ge=1)

    debug: bool = False

    @field_validator("source_lang", mode="before")
    @classmethod
    def _normalize_source_lang(cls, value):
        if value is None or str(value).strip() == "":
            return DEFAULT_SOURCE_LANG
        return str(value).strip()

    @field_validator("target_langs", mode="before")
    @classmethod
    def _split_target_langs(cls, value):
        if value is None:
            return []
        if isinstance(value, str):
            value = value.split(",")
        return [str(lang).strip() for lang in value if str(lang).strip()]

    @field_validator("catalog_extension")
    @classmethod
    def _strip_extension_dot(cls, value: str) -> str:
        return value.lstrip(".")

    @model_validator(mode="after")
    def _drop_source_from_targets(self):
        # dict.fromkeys keeps the configured order while removing duplicates
        source = self.source_lang.lower()
        langs = [lang for lang in self.target_langs if lang.lower() != source]
        self.target_langs = list(dict.fromkeys(langs))
        return self

    @property
    def locales_dir(self) -> Path:
        """Directory holding one ``<lang>.<ext>`` file per language."""
        if self.locales_root_path is None:
            return Path(DEFAULT_LOCALES_DIR)
        return self.locales_root_path / DEFAULT_LOCALES_DIR

    @property
    def openai_api_key(self) -> Optional[str]:
        if self.openai_secret_key is None:
            return None
        return self.openai_secret_key.get_secret_value()
