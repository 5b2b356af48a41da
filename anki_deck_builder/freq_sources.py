"""Frequency data providers.

A source turns a language code into raw records
(``{"word": str, "pos": str, "rank": int}``), or None when it has no
data for that language. The loader does not care whether records come
from embedded tables or the network.
"""
import logging
from abc import ABC, abstractmethod
from typing import Dict, List, Optional

import requests

from .config import DEFAULT_REQUEST_TIMEOUT, FREQUENCY_WORDS_URL
from .errors import FrequencySourceError
from .frequency import PartOfSpeech
from .word_lists import WORD_LISTS

logger = logging.getLogger(__name__)

RawRecord = Dict[str, object]


class FrequencySource(ABC):
    """Capability: fetch raw frequency records for a language."""

    name = "source"

    @abstractmethod
    def fetch(self, language_code: str) -> Optional[List[RawRecord]]:
        """Return raw records, or None if the language is not supported."""

    def close(self) -> None:
        pass


class EmbeddedFrequencySource(FrequencySource):
    """Serves the static word tables shipped with the package."""

    name = "embedded"

    def __init__(self, tables: Optional[dict] = None):
        self.tables = WORD_LISTS if tables is None else tables

    def fetch(self, language_code: str) -> Optional[List[RawRecord]]:
        table = self.tables.get(language_code)
        if table is None:
            logger.warning("No embedded data for %s", language_code)
            return None

        logger.info("Loading %s frequency data (embedded)", language_code)
        records: List[RawRecord] = []
        for pos, words in table.items():
            for rank, word in enumerate(words, start=1):
                records.append({"word": word, "pos": pos, "rank": rank})
        return records


# ----------------------------------------------------------------------
# Remote lists (hermitdave/FrequencyWords) with heuristic POS tagging
# ----------------------------------------------------------------------

_HR_PREPOSITIONS = {
    "u", "na", "za", "s", "sa", "iz", "do", "od", "po", "prema", "kroz",
}
_HR_PRONOUNS = {
    "ja", "ti", "on", "ona", "ono", "mi", "vi", "oni", "me", "te", "se",
}
_HR_CONJUNCTIONS = {"i", "ali", "ili", "da", "ako", "jer", "kad", "dok"}


def guess_croatian_pos(word: str) -> PartOfSpeech:
    """Guess the part of speech of a Croatian word from its form.

    Closed word classes are matched exactly; open classes by suffix.
    Anything unmatched counts as a noun.
    """
    w = word.lower()

    if w in _HR_PREPOSITIONS:
        return PartOfSpeech.PREPOSITION
    if w in _HR_PRONOUNS:
        return PartOfSpeech.PRONOUN
    if w in _HR_CONJUNCTIONS:
        return PartOfSpeech.CONJUNCTION

    if w.endswith(("ti", "ći", "am", "aš", "im", "iš")):
        return PartOfSpeech.VERB
    if w.endswith(("ski", "ški", "čki")):
        return PartOfSpeech.ADJECTIVE
    if w.endswith(("no", "ko")) or (w.endswith("je") and len(w) > 4):
        return PartOfSpeech.ADVERB

    return PartOfSpeech.NOUN


POS_TAGGERS = {
    "hr": guess_croatian_pos,
}


def parse_frequency_file(
    content: str,
    tagger,
    max_words: Optional[int] = None,
) -> List[RawRecord]:
    """Parse a "word count" per line list into raw records.

    Lines that are malformed or hold a single-character word are skipped.
    ``rank`` is the word's line position in the overall list.
    """
    records: List[RawRecord] = []
    for rank, line in enumerate(content.splitlines(), start=1):
        parts = line.split()
        if len(parts) < 2:
            continue
        word = parts[0]
        if len(word) < 2:
            continue
        records.append({"word": word, "pos": tagger(word).value, "rank": rank})
        if max_words is not None and len(records) >= max_words:
            break
    return records


class RemoteFrequencySource(FrequencySource):
    """Downloads frequency lists from the FrequencyWords repository."""

    name = "remote"

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        url_template: str = FREQUENCY_WORDS_URL,
        timeout: float = DEFAULT_REQUEST_TIMEOUT * 2,
        max_words: int = 5000,
        taggers: Optional[dict] = None,
    ):
        self.session = session or requests.Session()
        self.url_template = url_template
        self.timeout = timeout
        self.max_words = max_words
        self.taggers = POS_TAGGERS if taggers is None else taggers

    def fetch(self, language_code: str) -> Optional[List[RawRecord]]:
        tagger = self.taggers.get(language_code)
        if tagger is None:
            logger.warning("No part-of-speech tagger for %s", language_code)
            return None

        url = self.url_template.format(code=language_code)
        logger.info("Fetching %s frequency data from %s", language_code, url)
        try:
            response = self.session.get(url, timeout=self.timeout)
        except requests.RequestException as e:
            raise FrequencySourceError(
                f"Failed to fetch {language_code} frequency data: {e}"
            ) from e

        if not response.ok:
            raise FrequencySourceError(
                f"HTTP {response.status_code}: could not download "
                f"{language_code} frequency list"
            )

        records = parse_frequency_file(response.text, tagger, self.max_words)
        logger.info("Parsed %d words from frequency list", len(records))
        return records

    def close(self) -> None:
        self.session.close()
