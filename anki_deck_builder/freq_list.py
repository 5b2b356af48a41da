"""Frequency list loading with an expiring on-disk cache."""
import logging
from datetime import timedelta
from typing import Iterable

from .cache import CacheStore
from .config import FREQUENCY_NAMESPACE, FREQUENCY_TTL
from .errors import CacheError, FrequencySourceError
from .freq_sources import FrequencySource, RawRecord
from .frequency import FrequencyData, PartOfSpeech, WordRecord

logger = logging.getLogger(__name__)


def build_frequency_data(language: str, records: Iterable[RawRecord]) -> FrequencyData:
    """Bucket raw records by part of speech.

    Records with an unknown part of speech or an empty word are dropped,
    and a repeated (word, pos) pair keeps its best rank. Each bucket is
    sorted by source rank and renumbered 1..n.
    """
    best: dict[tuple[str, PartOfSpeech], int] = {}
    for record in records:
        text = str(record.get("word", "")).strip()
        if not text:
            continue
        try:
            pos = PartOfSpeech.parse(str(record.get("pos", "")))
            rank = int(record.get("rank", 0))
        except (TypeError, ValueError):
            logger.debug("Skipping malformed record: %r", record)
            continue
        key = (text, pos)
        if key not in best or rank < best[key]:
            best[key] = rank

    data = FrequencyData(language=language)
    for pos in PartOfSpeech:
        entries = sorted(
            ((rank, text) for (text, p), rank in best.items() if p is pos),
        )
        for new_rank, (_rank, text) in enumerate(entries, start=1):
            data.add_word(WordRecord(text=text, pos=pos, rank=new_rank))
    return data


class FrequencyLoader:
    """Resolves a language code to FrequencyData, cache first."""

    def __init__(
        self,
        cache: CacheStore,
        source: FrequencySource,
        ttl: timedelta = FREQUENCY_TTL,
    ):
        self.cache = cache
        self.source = source
        self.ttl = ttl

    @staticmethod
    def cache_key(language_code: str) -> str:
        return f"{language_code}_frequency"

    def load(self, language_code: str) -> FrequencyData:
        """Load frequency data. Never raises for missing data: returns empty."""
        code = language_code.strip().lower()
        key = self.cache_key(code)

        cached = self.cache.get(FREQUENCY_NAMESPACE, key, max_age=self.ttl)
        if cached is not None:
            try:
                data = FrequencyData.from_dict(cached)
            except (KeyError, TypeError, ValueError) as e:
                logger.warning("Cached frequency data for %s is invalid: %s", code, e)
            else:
                logger.info("Loaded frequency data from cache for %s", code)
                return data

        try:
            records = self.source.fetch(code)
        except FrequencySourceError as e:
            # transient; do not cache
            logger.warning("Frequency source %s failed: %s", self.source.name, e)
            return FrequencyData(language=code)

        data = build_frequency_data(code, records or [])
        if data.is_empty():
            logger.warning("No frequency data for %s, returning empty dataset", code)

        self._save(code, key, data)
        return data

    def _save(self, code: str, key: str, data: FrequencyData) -> None:
        try:
            path = self.cache.put(FREQUENCY_NAMESPACE, key, data.to_dict())
        except CacheError as e:
            logger.warning("%s", e)
            return
        logger.info("Saved %s frequency data to cache: %s", code, path)
