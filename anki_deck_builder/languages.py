"""Supported languages (ISO 639-1 code and English name)."""
from dataclasses import dataclass
from typing import List, Optional

LANGUAGES = {
    "hr": "Croatian",
    "es": "Spanish",
    "en": "English",
    "fr": "French",
    "de": "German",
    "it": "Italian",
    "pt": "Portuguese",
    "ru": "Russian",
    "ja": "Japanese",
    "ko": "Korean",
    "zh": "Chinese",
    "ar": "Arabic",
    "hi": "Hindi",
    "nl": "Dutch",
    "pl": "Polish",
    "sv": "Swedish",
    "no": "Norwegian",
    "da": "Danish",
    "fi": "Finnish",
    "el": "Greek",
    "tr": "Turkish",
}

# Shown first in listings, in this order
PRIORITY_CODES = ["hr", "es", "en", "fr", "de", "it", "pt"]


@dataclass(frozen=True)
class Language:
    code: str
    name: str

    def __str__(self) -> str:
        return f"{self.name} ({self.code})"


def get_language(code_or_name: str) -> Optional[Language]:
    """Look up a language by code or name, case-insensitively."""
    needle = code_or_name.strip().lower()
    if needle in LANGUAGES:
        return Language(needle, LANGUAGES[needle])
    for code, name in LANGUAGES.items():
        if name.lower() == needle:
            return Language(code, name)
    return None


def is_supported(code_or_name: str) -> bool:
    return get_language(code_or_name) is not None


def supported_languages() -> List[Language]:
    return sorted((Language(c, n) for c, n in LANGUAGES.items()), key=lambda l: l.name)


def prioritized_languages() -> List[Language]:
    first = [Language(c, LANGUAGES[c]) for c in PRIORITY_CODES]
    rest = [l for l in supported_languages() if l.code not in PRIORITY_CODES]
    return first + rest
