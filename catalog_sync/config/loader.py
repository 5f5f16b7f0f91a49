"""Build and validate :class:`Settings`."""

from pathlib import Path
from typing import Any, Optional

import structlog
from pydantic import ValidationError

from ..errors import ConfigurationError
from .settings import Settings

logger = structlog.get_logger(__name__)


def load_config(env_file: Optional[Path] = None, **overrides: Any) -> Settings:
    """Load settings from the environment, an optional env file and overrides.

    Overrides whose value is ``None`` are ignored so CLI flags that were not
    passed fall back to the environment.

    Raises:
        ConfigurationError: If a value is invalid or no target languages are
            configured.
    """
    if env_file is not None and not Path(env_file).is_file():
        raise ConfigurationError(f"Env file not found: {env_file}", config_key="env_file")

    values = {key: value for key, value in overrides.items() if value is not None}
    kwargs = {"_env_file": env_file} if env_file is not None else {}

    try:
        settings = Settings(**kwargs, **values)
    except ValidationError as e:
        first = e.errors()[0]
        key = ".".join(str(part) for part in first.get("loc", ())) or None
        raise ConfigurationError(
            f"Invalid configuration: {first.get('msg', str(e))}",
            config_key=key,
            previous_error=e,
        ) from e

    if not settings.target_langs:
        raise ConfigurationError("No target languages specified", config_key="target_langs")

    logger.debug(
        "Configuration loaded",
        source_lang=settings.source_lang,
        target_langs=settings.target_langs,
        locales_dir=str(settings.locales_dir),
    )
    return settings
