"""Configuration constants and defaults."""
import os
from dataclasses import dataclass, field
from datetime import timedelta
from pathlib import Path
from typing import Mapping, Optional

# AnkiConnect
DEFAULT_ANKICONNECT_URL = "http://localhost:8765"
ANKICONNECT_VERSION = 6
MODEL_NAME = "Basic"

# Translation providers
DEFAULT_MYMEMORY_URL = "https://api.mymemory.translated.net/get"
DEEPL_FREE_URL = "https://api-free.deepl.com/v2/translate"
DEEPL_PRO_URL = "https://api.deepl.com/v2/translate"
DEFAULT_TRANSLATION_DELAY = 0.1  # seconds between uncached requests

# Frequency data
DEFAULT_WORDS_PER_POS = 100
FREQUENCY_TTL = timedelta(days=30)
FREQUENCY_WORDS_URL = (
    "https://raw.githubusercontent.com/hermitdave/FrequencyWords/"
    "master/content/2018/{code}/{code}_50k.txt"
)

DEFAULT_REQUEST_TIMEOUT = 30.0

# Cache namespaces (subdirectories of the cache root)
FREQUENCY_NAMESPACE = "frequency"
TRANSLATION_NAMESPACE = "translations"

BASE_TAGS = ["auto-generated", "language-learning"]

APP_NAME = "anki-deck-builder"


def default_cache_dir(environ: Optional[Mapping[str, str]] = None) -> Path:
    env = os.environ if environ is None else environ
    base = env.get("XDG_CACHE_HOME") or str(Path.home() / ".cache")
    return Path(base) / APP_NAME


@dataclass(frozen=True)
class Config:
    """Endpoint URLs, credentials and cache location for one run."""

    ankiconnect_url: str = DEFAULT_ANKICONNECT_URL
    libretranslate_url: Optional[str] = None
    mymemory_url: str = DEFAULT_MYMEMORY_URL
    deepl_api_key: Optional[str] = field(default=None, repr=False)
    cache_dir: Path = field(default_factory=default_cache_dir)
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    translation_delay: float = DEFAULT_TRANSLATION_DELAY
    frequency_ttl: timedelta = FREQUENCY_TTL

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Config":
        """Build a Config from environment variables, falling back to defaults."""
        env = os.environ if environ is None else environ
        cache_dir = env.get("ANKI_DECK_BUILDER_CACHE_DIR")
        return cls(
            ankiconnect_url=env.get("ANKICONNECT_URL") or DEFAULT_ANKICONNECT_URL,
            libretranslate_url=env.get("LIBRETRANSLATE_URL") or None,
            mymemory_url=env.get("MYMEMORY_URL") or DEFAULT_MYMEMORY_URL,
            deepl_api_key=(env.get("DEEPL_API_KEY") or "").strip() or None,
            cache_dir=Path(cache_dir) if cache_dir else default_cache_dir(env),
        )

    @property
    def frequency_cache_dir(self) -> Path:
        return self.cache_dir / FREQUENCY_NAMESPACE

    @property
    def translation_cache_dir(self) -> Path:
        return self.cache_dir / TRANSLATION_NAMESPACE
