"""Translation provider boundary."""

from typing import Optional, Protocol

import openai
import structlog
from openai import AsyncOpenAI
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from ..config import Settings
from ..errors import ConfigurationError, TranslationError

logger = structlog.get_logger(__name__)

SYSTEM_PROMPT = (
    "You are a professional translator. Translate the text to {language} maintaining "
    "the exact meaning, tone, and any special formatting or variables. Keep technical "
    "terms, variables (like {{count}}, {{count, plural, =0 {{...}} }}, etc), and special "
    "characters unchanged. Only respond with the translation, no explanations."
)

# Worth another attempt; everything else from the SDK fails the leaf at once
TRANSIENT_ERRORS = (
    openai.RateLimitError,
    openai.APITimeoutError,
    openai.APIConnectionError,
    openai.InternalServerError,
)


class Translator(Protocol):
    """Anything that turns one text into another language."""

    async def translate(self, text: str, target_language: str, key: Optional[str] = None) -> str:
        ...


class OpenAITranslator:
    """Translates single strings with the OpenAI chat completions API."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = "gpt-4-turbo-preview",
        temperature: float = 0.3,
        timeout: float = 60.0,
        max_attempts: int = 3,
        client: Optional[AsyncOpenAI] = None,
        wait=None,
    ):
        """Initialize the translator.

        Args:
            api_key: OpenAI API key, unused when ``client`` is given
            model: Chat model name
            temperature: Sampling temperature
            timeout: Per-request timeout in seconds
            max_attempts: Attempts per text, including the first one
            client: Preconfigured client
            wait: tenacity wait strategy between attempts
        """
        # retries are handled by tenacity
        self.client = client or AsyncOpenAI(api_key=api_key, timeout=timeout, max_retries=0)
        self.model = model
        self.temperature = temperature
        self.max_attempts = max_attempts
        self.wait = wait if wait is not None else wait_exponential(multiplier=1, min=1, max=10)

    @classmethod
    def from_settings(cls, settings: Settings) -> "OpenAITranslator":
        if not settings.openai_api_key:
            raise ConfigurationError("OPENAI_SECRET_KEY is not set", config_key="openai_secret_key")
        return cls(
            api_key=settings.openai_api_key,
            model=settings.openai_model,
            temperature=settings.openai_temperature,
            timeout=settings.request_timeout,
            max_attempts=settings.max_retries,
        )

    async def translate(self, text: str, target_language: str, key: Optional[str] = None) -> str:
        """Translate ``text`` into ``target_language``.

        Whitespace-only text is returned as is. Leading and trailing
        whitespace of ``text`` is kept around the translation.

        Raises:
            TranslationError: On provider failure or an unusable response.
        """
        if not text.strip():
            return text

        logger.info("Translating text", language=target_language, key=key, text=text)

        try:
            response = await self._complete(text, target_language)
        except TRANSIENT_ERRORS as e:
            raise TranslationError(
                f"Translation to {target_language} failed after {self.max_attempts} attempts: {e}",
                language=target_language,
                key=key,
                is_temporary=True,
                previous_error=e,
            ) from e
        except openai.OpenAIError as e:
            raise TranslationError(
                f"Translation to {target_language} failed: {e}",
                language=target_language,
                key=key,
                previous_error=e,
            ) from e

        choices = getattr(response, "choices", None) or []
        content = choices[0].message.content if choices else None
        if not isinstance(content, str) or not content.strip():
            raise TranslationError(
                f"Empty translation returned for {target_language}",
                language=target_language,
                key=key,
            )
        return keep_padding(text, content.strip())

    async def _complete(self, text: str, target_language: str):
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=self.wait,
            retry=retry_if_exception_type(TRANSIENT_ERRORS),
            before_sleep=_log_retry,
            reraise=True,
        )
        async for attempt in retrying:
            with attempt:
                return await self.client.chat.completions.create(
                    model=self.model,
                    messages=[
                        {"role": "system", "content": SYSTEM_PROMPT.format(language=target_language)},
                        {"role": "user", "content": text},
                    ],
                    temperature=self.temperature,
                )

    async def aclose(self) -> None:
        await self.client.close()


def _log_retry(retry_state) -> None:
    error = retry_state.outcome.exception() if retry_state.outcome else None
    logger.warning(
        "Retrying translation request",
        attempt=retry_state.attempt_number,
        error=str(error),
    )


def keep_padding(source: str, translated: str) -> str:
    """Wrap ``translated`` in the leading and trailing whitespace of ``source``."""
    stripped = source.strip()
    if not stripped:
        return source
    start = source.index(stripped)
    return source[:start] + translated + source[start + len(stripped):]
