"""Text transformation service abstractions."""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from typing import Any, Optional

from openai import AzureOpenAI, OpenAI

from .configuration import NotePolishConfig, require_credentials
from .errors import ConfigurationError, ServiceError
from .prompts import (
    FORMALIZE_SYSTEM_PROMPT,
    TRANSLATE_SYSTEM_PROMPT,
    build_formalize_prompt,
    build_translate_prompt,
)
from .structures import KNOWN_LANGUAGE_NAMES

logger = logging.getLogger(__name__)

_QUOTE_PAIRS = {'"': '"', "'": "'", "\u201c": "\u201d", "\u00ab": "\u00bb"}


class TextTransformationService(ABC):
    """Adapter for the external formalize/translate capability.

    Each call is an isolated unit of work and raises ``ServiceError`` on
    failure.
    """

    @abstractmethod
    def formalize(self, text: str) -> str:
        """Rewrite informal text into report register."""

    @abstractmethod
    def translate(self, text: str, target_language: str) -> str:
        """Translate text into the language identified by its code."""


class EchoTransformationService(TextTransformationService):
    """A service that returns the original text (useful for dry runs)."""

    def formalize(self, text: str) -> str:
        return text

    def translate(self, text: str, target_language: str) -> str:
        return text


def strip_code_fence(text: str) -> str:
    """Remove leading/trailing markdown code fences if present."""

    stripped = text.strip()
    if not stripped.startswith("```"):
        return stripped

    # Drop opening fence and optional language hint.
    first_newline = stripped.find("\n")
    if first_newline == -1:
        return stripped.strip("`").strip()
    body = stripped[first_newline + 1 :]
    closing_index = body.rfind("```")
    if closing_index != -1:
        body = body[:closing_index]
    return body.strip()


def clean_response_text(text: str) -> str:
    """Strip fences and a single pair of wrapping quotes from model output."""

    cleaned = strip_code_fence(text)
    if len(cleaned) >= 2 and _QUOTE_PAIRS.get(cleaned[0]) == cleaned[-1]:
        cleaned = cleaned[1:-1].strip()
    return cleaned


class OpenAITransformationService(TextTransformationService):
    """Transformation service that uses OpenAI models via the Responses API."""

    DEFAULT_MODEL = "gpt-5-mini"

    def __init__(
        self,
        *,
        settings: NotePolishConfig,
        model: Optional[str] = None,
        debug: bool = False,
        client: Any = None,
    ) -> None:
        self.settings = settings
        self.debug = debug
        self.timeout = settings.NOTEPOLISH_REQUEST_TIMEOUT
        if client is None:
            client, default_model = self._build_client()
        else:
            default_model = self.DEFAULT_MODEL
        self._client = client
        self.model = model or settings.NOTEPOLISH_MODEL or default_model

    def _build_client(self) -> tuple[Any, str]:
        require_credentials(self.settings)
        if self.settings.LLM_PROVIDER == "azure_openai":
            client = AzureOpenAI(
                api_key=self.settings.AZURE_OPENAI_API_KEY,
                api_version=self.settings.AZURE_OPENAI_API_VERSION,
                azure_endpoint=self.settings.AZURE_OPENAI_ENDPOINT,
                timeout=self.timeout,
                max_retries=0,
            )
            return client, self.settings.AZURE_OPENAI_DEPLOYMENT_NAME  # type: ignore[return-value]

        client = OpenAI(
            api_key=self.settings.OPENAI_API_KEY,
            timeout=self.timeout,
            max_retries=0,
        )
        return client, self.DEFAULT_MODEL

    def formalize(self, text: str) -> str:
        return self._complete(
            system_prompt=FORMALIZE_SYSTEM_PROMPT,
            user_text=build_formalize_prompt(text),
            label="formalize",
        )

    def translate(self, text: str, target_language: str) -> str:
        language_name = KNOWN_LANGUAGE_NAMES.get(target_language, target_language)
        return self._complete(
            system_prompt=TRANSLATE_SYSTEM_PROMPT,
            user_text=build_translate_prompt(text, language_name),
            label=f"translate:{target_language}",
        )

    def _complete(self, *, system_prompt: str, user_text: str, label: str) -> str:
        self._log_debug(f"provider.request.{label}", user_text)
        raw = self._invoke_model(system_prompt=system_prompt, user_text=user_text)
        result = clean_response_text(raw)
        self._log_debug(f"provider.response.{label}", result)
        if not result:
            raise ServiceError(f"Transformation service returned an empty result ({label}).")
        return result

    def _invoke_model(self, *, system_prompt: str, user_text: str) -> str:
        """Call the OpenAI Responses API and return the output text."""

        try:
            response = self._client.responses.create(
                model=self.model,
                input=[
                    {
                        "role": "system",
                        "content": [{"type": "input_text", "text": system_prompt}],
                    },
                    {
                        "role": "user",
                        "content": [{"type": "input_text", "text": user_text}],
                    },
                ],
            )
        except Exception as exc:  # pragma: no cover - network call
            raise ServiceError(f"Transformation service unavailable: {exc}") from exc
        self._log_debug("provider.response.raw", self._safe_dump_response(response))
        return self._extract_text(response)

    def _extract_text(self, response: Any) -> str:
        """Pull plain text out of a Responses API result."""

        output_text = getattr(response, "output_text", None)
        if hasattr(output_text, "value"):
            output_text = output_text.value
        if output_text:
            return str(output_text)

        parts: list[str] = []
        for item in getattr(response, "output", None) or []:
            for part in getattr(item, "content", None) or []:
                text_value = getattr(part, "text", None)
                if hasattr(text_value, "value"):
                    text_value = text_value.value
                if text_value:
                    parts.append(str(text_value))
        if parts:
            return "\n".join(parts)

        raise ServiceError("Transformation service response empty or unrecognised.")

    def _log_debug(self, label: str, payload: Any) -> None:
        """Emit request/response payloads when provider debugging is enabled."""

        if not self.debug:
            return
        if isinstance(payload, (dict, list)):
            message = json.dumps(payload, ensure_ascii=False, indent=2, default=str)
        else:
            message = str(payload)
        logger.debug("%s:\n%s", label, message)

    def _safe_dump_response(self, response: Any) -> Any:
        """Best-effort conversion of SDK response objects into JSON-friendly data."""

        dump = getattr(response, "model_dump", None)
        if callable(dump):
            try:
                return dump()
            except (TypeError, ValueError):
                pass
        return str(response)


class LegacyOpenAITransformationService(OpenAITransformationService):
    """Transformation service that uses the Chat Completions API for compatibility."""

    def _invoke_model(self, *, system_prompt: str, user_text: str) -> str:
        """Call the Chat Completions API and return the message content."""

        try:
            response = self._client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_text},
                ],
            )
        except Exception as exc:  # pragma: no cover - network call
            raise ServiceError(f"Transformation service unavailable: {exc}") from exc
        self._log_debug("provider.response.raw", self._safe_dump_response(response))

        for choice in getattr(response, "choices", None) or []:
            message = getattr(choice, "message", None)
            content = getattr(message, "content", None) if message is not None else None
            if content:
                return str(content)

        raise ServiceError("Transformation service response empty or unrecognised.")


def build_service(
    name: str | None,
    *,
    settings: NotePolishConfig,
    model: str | None = None,
    debug: bool = False,
) -> TextTransformationService:
    """Factory to create transformation services by name."""

    normalized = (name or settings.NOTEPOLISH_SERVICE or "openai").strip().lower()
    if normalized in {"openai", "gpt", "default"}:
        return OpenAITransformationService(settings=settings, model=model, debug=debug)
    if normalized in {"legacy-openai", "legacy_openai", "legacy", "openai-legacy"}:
        return LegacyOpenAITransformationService(settings=settings, model=model, debug=debug)
    if normalized in {"echo", "noop", "mock"}:
        return EchoTransformationService()
    raise ConfigurationError(f"Unknown transformation service '{name}'.")
