"""Word translation with caching and rate limiting."""
import logging
import threading
import time
from abc import ABC, abstractmethod
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence, Tuple

import keyring
import keyring.errors
import requests

from .cache import CacheStore
from .config import (
    DEEPL_FREE_URL,
    DEEPL_PRO_URL,
    DEFAULT_REQUEST_TIMEOUT,
    DEFAULT_TRANSLATION_DELAY,
    TRANSLATION_NAMESPACE,
    Config,
)
from .errors import CacheError, TranslationError
from .frequency import PartOfSpeech, WordRecord
from .normalize import normalize_word

logger = logging.getLogger(__name__)

KEYRING_SERVICE = "anki-deck-builder"
KEYRING_USERNAME = "deepl-api-key"


def get_stored_api_key() -> Optional[str]:
    """Return the DeepL key from the OS credential store, if any."""
    try:
        return keyring.get_password(KEYRING_SERVICE, KEYRING_USERNAME)
    except keyring.errors.KeyringError as e:
        logger.debug("Credential store unavailable: %s", e)
        return None


def store_api_key(key: str) -> None:
    """Store the DeepL key in the OS credential store."""
    keyring.set_password(KEYRING_SERVICE, KEYRING_USERNAME, key)


def delete_api_key() -> None:
    """Remove the DeepL key from the OS credential store."""
    try:
        keyring.delete_password(KEYRING_SERVICE, KEYRING_USERNAME)
    except keyring.errors.PasswordDeleteError:
        pass


# ======================================================================
# Backends
# ======================================================================


def _json_body(response: requests.Response, provider: str) -> dict:
    if not response.ok:
        raise TranslationError(
            f"{provider} returned HTTP {response.status_code}: {response.text[:200]}"
        )
    try:
        body = response.json()
    except ValueError as e:
        raise TranslationError(f"{provider} returned malformed JSON: {e}") from e
    if not isinstance(body, dict):
        raise TranslationError(f"{provider} returned unexpected response: {body!r}")
    return body


def _require_text(value, provider: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise TranslationError(f"{provider} returned no translation")
    return value


class TranslationBackend(ABC):
    """Capability: translate a single text between two languages."""

    name = "backend"

    @abstractmethod
    def translate_one(self, text: str, source: str, target: str) -> str:
        """Return the translation or raise TranslationError."""

    def close(self) -> None:
        pass


class _HttpBackend(TranslationBackend):
    def __init__(
        self,
        session: Optional[requests.Session] = None,
        timeout: float = DEFAULT_REQUEST_TIMEOUT,
    ):
        self.session = session or requests.Session()
        self.timeout = timeout

    def _request(self, method: str, url: str, **kwargs) -> requests.Response:
        try:
            return self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            raise TranslationError(f"{self.name} request failed: {e}") from e

    def close(self) -> None:
        self.session.close()


class MyMemoryBackend(_HttpBackend):
    """MyMemory public API. Free, no key required."""

    name = "MyMemory"

    def __init__(self, url: str, session=None, timeout: float = DEFAULT_REQUEST_TIMEOUT):
        super().__init__(session, timeout)
        self.url = url

    def translate_one(self, text: str, source: str, target: str) -> str:
        response = self._request(
            "GET", self.url, params={"q": text, "langpair": f"{source}|{target}"}
        )
        body = _json_body(response, self.name)

        # Errors such as invalid language pairs come back as HTTP 200
        status = body.get("responseStatus", 200)
        if str(status) != "200":
            detail = body.get("responseDetails") or status
            raise TranslationError(f"{self.name} error: {detail}")

        data = body.get("responseData")
        if not isinstance(data, dict):
            raise TranslationError(f"{self.name} response has no responseData")
        return _require_text(data.get("translatedText"), self.name)


class LibreTranslateBackend(_HttpBackend):
    name = "LibreTranslate"

    def __init__(
        self,
        base_url: str,
        api_key: Optional[str] = None,
        session=None,
        timeout: float = DEFAULT_REQUEST_TIMEOUT,
    ):
        super().__init__(session, timeout)
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key

    def translate_one(self, text: str, source: str, target: str) -> str:
        payload = {"q": text, "source": source, "target": target, "format": "text"}
        if self.api_key:
            payload["api_key"] = self.api_key
        response = self._request("POST", f"{self.base_url}/translate", json=payload)
        body = _json_body(response, self.name)
        return _require_text(body.get("translatedText"), self.name)


class DeepLBackend(_HttpBackend):
    """DeepL API. Keys ending in ':fx' belong to the free tier."""

    name = "DeepL"

    def __init__(self, api_key: str, session=None, timeout: float = DEFAULT_REQUEST_TIMEOUT):
        super().__init__(session, timeout)
        self.api_key = api_key
        self.url = DEEPL_FREE_URL if api_key.endswith(":fx") else DEEPL_PRO_URL

    def translate_one(self, text: str, source: str, target: str) -> str:
        response = self._request(
            "POST",
            self.url,
            headers={"Authorization": f"DeepL-Auth-Key {self.api_key}"},
            data={
                "text": text,
                "source_lang": source.upper(),
                "target_lang": target.upper(),
            },
        )
        body = _json_body(response, self.name)
        translations = body.get("translations")
        if (
            not isinstance(translations, list)
            or not translations
            or not isinstance(translations[0], dict)
        ):
            raise TranslationError(f"{self.name} response has no translations")
        return _require_text(translations[0].get("text"), self.name)


class FallbackBackend(TranslationBackend):
    """Tries each backend in order; fails only if all of them fail."""

    def __init__(self, backends: Sequence[TranslationBackend]):
        if not backends:
            raise ValueError("FallbackBackend needs at least one backend")
        self.backends = list(backends)
        self.name = " → ".join(b.name for b in self.backends)

    def translate_one(self, text: str, source: str, target: str) -> str:
        errors = []
        for backend in self.backends:
            try:
                return backend.translate_one(text, source, target)
            except TranslationError as e:
                logger.debug("%s failed for %r: %s", backend.name, text, e)
                errors.append(f"{backend.name}: {e}")
        raise TranslationError("; ".join(errors))

    def close(self) -> None:
        for backend in self.backends:
            backend.close()


def build_backend(config: Config) -> TranslationBackend:
    """Select backends from configuration: DeepL, LibreTranslate, MyMemory."""
    backends: List[TranslationBackend] = []
    if config.deepl_api_key:
        backends.append(DeepLBackend(config.deepl_api_key, timeout=config.request_timeout))
    if config.libretranslate_url:
        backends.append(
            LibreTranslateBackend(config.libretranslate_url, timeout=config.request_timeout)
        )
    backends.append(MyMemoryBackend(config.mymemory_url, timeout=config.request_timeout))

    if len(backends) == 1:
        return backends[0]
    return FallbackBackend(backends)


# ======================================================================
# Translator
# ======================================================================


class RateLimiter:
    """Fixed minimum spacing between calls, shared across threads."""

    def __init__(
        self,
        interval: float,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.interval = interval
        self._clock = clock
        self._sleep = sleep
        self._lock = threading.Lock()
        self._last: Optional[float] = None

    def wait(self) -> None:
        with self._lock:
            now = self._clock()
            if self._last is not None:
                remaining = self.interval - (now - self._last)
                if remaining > 0:
                    self._sleep(remaining)
                    now = self._clock()
            self._last = now


@dataclass(frozen=True)
class TranslationPair:
    source_word: str
    source_lang: str
    target_lang: str
    translated: str
    pos: PartOfSpeech


@dataclass
class BatchResult:
    """Successful pairs in input order, plus (word, reason) failures."""

    pairs: List[TranslationPair] = field(default_factory=list)
    failures: List[Tuple[str, str]] = field(default_factory=list)
    cache_hits: int = 0


ProgressCallback = Callable[[int, int], None]
WordInput = Tuple[str, PartOfSpeech]


class Translator:
    """Cached, rate-limited batch translation over a pluggable backend.

    Cache entries never expire: the translation of a word between two
    languages does not go stale.
    """

    def __init__(
        self,
        backend: TranslationBackend,
        cache: CacheStore,
        delay: float = DEFAULT_TRANSLATION_DELAY,
        max_workers: int = 1,
        limiter: Optional[RateLimiter] = None,
    ):
        self.backend = backend
        self.cache = cache
        self.limiter = limiter or RateLimiter(delay)
        self.max_workers = max(1, max_workers)

    @staticmethod
    def cache_key(text: str, source: str, target: str) -> str:
        return f"{source}|{target}|{normalize_word(text)}"

    def cached(self, text: str, source: str, target: str) -> Optional[str]:
        value = self.cache.get(TRANSLATION_NAMESPACE, self.cache_key(text, source, target))
        return value if isinstance(value, str) and value else None

    def _fetch(self, text: str, source: str, target: str) -> str:
        """Uncached path: rate limit, call the backend, store the result."""
        self.limiter.wait()
        logger.debug("Translating %r from %s to %s", text, source, target)
        try:
            translated = self.backend.translate_one(text, source, target)
        except (AttributeError, IndexError, KeyError, TypeError) as e:
            raise TranslationError(
                f"{self.backend.name} returned an unexpected response: {e!r}"
            ) from e
        try:
            self.cache.put(
                TRANSLATION_NAMESPACE, self.cache_key(text, source, target), translated
            )
        except CacheError as e:
            logger.warning("Failed to cache translation: %s", e)
        return translated

    def translate(self, text: str, source: str, target: str) -> str:
        """Translate one word. Raises TranslationError on failure."""
        hit = self.cached(text, source, target)
        if hit is not None:
            return hit
        return self._fetch(text, source, target)

    def translate_batch(
        self,
        words: Sequence[WordRecord | WordInput],
        source: str,
        target: str,
        on_progress: Optional[ProgressCallback] = None,
    ) -> BatchResult:
        """Translate every word, continuing past individual failures."""
        items = [_as_input(w) for w in words]
        total = len(items)
        outcomes: List[Optional[Tuple[bool, str]]] = [None] * total
        done = 0

        def advance():
            nonlocal done
            done += 1
            if on_progress:
                on_progress(done, total)

        hits = []
        misses = []
        for i, (text, _pos) in enumerate(items):
            hit = self.cached(text, source, target)
            if hit is not None:
                outcomes[i] = (True, hit)
                hits.append(i)
                advance()
            else:
                misses.append(i)

        def run(i: int) -> Tuple[bool, str]:
            text = items[i][0]
            # an earlier duplicate in this batch may have filled the cache
            hit = self.cached(text, source, target)
            if hit is not None:
                hits.append(i)
                return True, hit
            try:
                return True, self._fetch(text, source, target)
            except TranslationError as e:
                logger.warning("Failed to translate %r: %s", text, e)
                return False, str(e)

        if self.max_workers == 1 or len(misses) < 2:
            for i in misses:
                outcomes[i] = run(i)
                advance()
        else:
            with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
                for i, outcome in zip(misses, pool.map(run, misses)):
                    outcomes[i] = outcome
                    advance()

        cache_hits = len(hits)
        result = BatchResult(cache_hits=cache_hits)
        for (text, pos), (ok, value) in zip(items, outcomes):
            if ok:
                result.pairs.append(TranslationPair(text, source, target, value, pos))
            else:
                result.failures.append((text, value))

        logger.info(
            "Translated %d/%d words (%d from cache, %d failed)",
            len(result.pairs), total, cache_hits, len(result.failures),
        )
        return result

    def close(self) -> None:
        self.backend.close()


def _as_input(word: WordRecord | WordInput) -> WordInput:
    if isinstance(word, WordRecord):
        return word.text, word.pos
    text, pos = word
    return text, pos
