"""Instructions sent to the text transformation service."""

from __future__ import annotations

FORMALIZE_SYSTEM_PROMPT = (
    "You are a professional editor of vehicle inspection reports. "
    "Rewrite the inspector's note in professional, concise Modern Standard Arabic. "
    "Correct spelling and grammar and keep the technical meaning exact. "
    "Do not translate, do not add an introduction or a conclusion, "
    "and return only the rewritten text."
)

TRANSLATE_SYSTEM_PROMPT = (
    "You are a professional translator of vehicle inspection reports. "
    "Use correct automotive terminology in the target language. "
    "Return only the translated text, without comments, quotes or formatting."
)


def build_formalize_prompt(text: str) -> str:
    return f'Text: "{text}"'


def build_translate_prompt(text: str, language_name: str) -> str:
    return (
        f"Translate the following formal Arabic inspection note into {language_name}.\n"
        f'Text: "{text}"'
    )
