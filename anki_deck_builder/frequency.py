"""Word frequency data model."""
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List


class PartOfSpeech(str, Enum):
    NOUN = "noun"
    VERB = "verb"
    ADJECTIVE = "adjective"
    ADVERB = "adverb"
    PREPOSITION = "preposition"
    PRONOUN = "pronoun"
    CONJUNCTION = "conjunction"
    INTERJECTION = "interjection"

    @classmethod
    def parse(cls, value: str) -> "PartOfSpeech":
        """Accept either the value ("noun") or the member name ("NOUN")."""
        try:
            return cls(value.strip().lower())
        except ValueError:
            raise ValueError(f"Unknown part of speech: {value!r}") from None

    @property
    def label(self) -> str:
        return self.value


@dataclass(frozen=True)
class WordRecord:
    text: str
    pos: PartOfSpeech
    rank: int  # 1 = most frequent within its part of speech


@dataclass
class FrequencyData:
    """Words for one language, bucketed by part of speech and ordered by rank."""

    language: str
    words: Dict[PartOfSpeech, List[WordRecord]] = field(default_factory=dict)

    def add_word(self, word: WordRecord) -> None:
        self.words.setdefault(word.pos, []).append(word)

    def top_words(self, pos: PartOfSpeech, count: int) -> List[WordRecord]:
        return list(self.words.get(pos, [])[:count])

    def all_top_words(self, count_per_pos: int) -> List[WordRecord]:
        """Top N words of every part of speech, in enum order."""
        selected: List[WordRecord] = []
        for pos in PartOfSpeech:
            selected.extend(self.top_words(pos, count_per_pos))
        return selected

    @property
    def total_words(self) -> int:
        return sum(len(bucket) for bucket in self.words.values())

    def is_empty(self) -> bool:
        return self.total_words == 0

    def to_dict(self) -> dict:
        return {
            "language": self.language,
            "words": {
                pos.value: [[w.text, w.rank] for w in bucket]
                for pos, bucket in self.words.items()
            },
        }

    @classmethod
    def from_dict(cls, data: dict) -> "FrequencyData":
        """Rebuild from ``to_dict`` output. Raises on malformed input."""
        if not isinstance(data, dict) or not isinstance(data.get("words"), dict):
            raise ValueError(f"not a frequency data mapping: {data!r:.80}")
        result = cls(language=data["language"])
        for pos_value, bucket in data["words"].items():
            pos = PartOfSpeech.parse(pos_value)
            for text, rank in bucket:
                result.add_word(WordRecord(text=str(text), pos=pos, rank=int(rank)))
        return result
