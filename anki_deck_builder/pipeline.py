"""End-to-end deck creation: connect, load words, translate, submit cards."""
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, List, Optional, Tuple

from .anki_connect import AnkiConnectClient, Note
from .config import BASE_TAGS, DEFAULT_WORDS_PER_POS
from .errors import AnkiConnectError, DataUnavailableError, DeckBuilderError, DuplicateNoteError
from .freq_list import FrequencyLoader
from .frequency import PartOfSpeech
from .languages import Language
from .translator import TranslationPair, Translator

logger = logging.getLogger(__name__)

# (phase, done, total); phase is "translate" or "submit"
ProgressCallback = Callable[[str, int, int], None]


class Stage(str, Enum):
    INIT = "init"
    CONNECTION_VERIFIED = "connection-verified"
    DATA_LOADED = "data-loaded"
    TRANSLATED = "translated"
    DECK_ENSURED = "deck-ensured"
    CARDS_SUBMITTED = "cards-submitted"
    REPORTED = "reported"
    ABORTED = "aborted"


@dataclass
class DeckRequest:
    target: Language
    base: Language
    words_per_pos: int = DEFAULT_WORDS_PER_POS
    deck_name: Optional[str] = None
    dry_run: bool = False
    bidirectional: bool = False


@dataclass
class RunReport:
    """Outcome of one run.

    ``failed`` only counts cards AnkiConnect rejected; duplicates are
    counted apart because they mean the card already exists.
    """

    deck_name: str
    dry_run: bool = False
    words_selected: int = 0
    words_by_pos: Dict[PartOfSpeech, int] = field(default_factory=dict)
    pairs: List[TranslationPair] = field(default_factory=list)
    translation_failures: List[Tuple[str, str]] = field(default_factory=list)
    deck_id: Optional[int] = None
    attempted: int = 0
    succeeded: int = 0
    duplicates: int = 0
    failed: int = 0
    failures: List[Tuple[str, str]] = field(default_factory=list)

    @property
    def translated(self) -> int:
        return len(self.pairs)

    @property
    def ok(self) -> bool:
        return self.failed == 0


def default_deck_name(target: Language, base: Language, words_per_pos: int, pos_count: int) -> str:
    return f"{target.name} → {base.name} (Top {words_per_pos * pos_count} Words)"


def direction_tag(source: Language, dest: Language) -> str:
    return f"{source.name.lower()}-to-{dest.name.lower()}"


def build_notes(
    pair: TranslationPair,
    deck_name: str,
    request: DeckRequest,
) -> List[Note]:
    """One card word → translation, plus the reverse card if bidirectional."""
    pos_tag = f"pos::{pair.pos.value}"
    notes = [
        Note(
            deck_name=deck_name,
            front=pair.source_word,
            back=f"{pair.translated} ({pair.pos.label})",
            tags=BASE_TAGS + [direction_tag(request.target, request.base), pos_tag],
        )
    ]
    if request.bidirectional:
        notes.append(
            Note(
                deck_name=deck_name,
                front=pair.translated,
                back=f"{pair.source_word} ({pair.pos.label})",
                tags=BASE_TAGS + [direction_tag(request.base, request.target), pos_tag],
            )
        )
    return notes


class DeckBuilder:
    """Runs the deck creation pipeline.

    Connection or missing-data failures abort the run by raising.
    Translation and per-card failures are recorded in the report and
    never stop the loop they happen in. Cards already submitted stay in
    the deck if the run is interrupted.
    """

    def __init__(
        self,
        anki: AnkiConnectClient,
        loader: FrequencyLoader,
        translator: Translator,
        progress: Optional[ProgressCallback] = None,
    ):
        self.anki = anki
        self.loader = loader
        self.translator = translator
        self.progress = progress
        self.stage = Stage.INIT
        self.report: Optional[RunReport] = None

    def _advance(self, stage: Stage) -> None:
        logger.info("Stage: %s -> %s", self.stage.value, stage.value)
        self.stage = stage

    def _tick(self, phase: str, done: int, total: int) -> None:
        if self.progress:
            self.progress(phase, done, total)

    def run(self, request: DeckRequest) -> RunReport:
        self.stage = Stage.INIT
        self.report = None
        try:
            return self._run(request)
        except (DeckBuilderError, KeyboardInterrupt):
            self._advance(Stage.ABORTED)
            raise

    def _run(self, request: DeckRequest) -> RunReport:
        if not request.dry_run:
            self.anki.verify_connection()
            self._advance(Stage.CONNECTION_VERIFIED)

        data = self.loader.load(request.target.code)
        words = data.all_top_words(request.words_per_pos)
        if not words:
            raise DataUnavailableError(request.target.code)

        by_pos: Dict[PartOfSpeech, int] = {}
        for word in words:
            by_pos[word.pos] = by_pos.get(word.pos, 0) + 1
        deck_name = request.deck_name or default_deck_name(
            request.target, request.base, request.words_per_pos, len(by_pos)
        )
        report = self.report = RunReport(
            deck_name=deck_name,
            dry_run=request.dry_run,
            words_selected=len(words),
            words_by_pos=by_pos,
        )
        self._advance(Stage.DATA_LOADED)

        batch = self.translator.translate_batch(
            words,
            request.target.code,
            request.base.code,
            on_progress=lambda done, total: self._tick("translate", done, total),
        )
        report.pairs = batch.pairs
        report.translation_failures = batch.failures
        self._advance(Stage.TRANSLATED)

        if request.dry_run:
            logger.info("Dry run: skipping deck creation and card submission")
            self._advance(Stage.REPORTED)
            return report

        report.deck_id = self.anki.create_deck(deck_name)
        self._advance(Stage.DECK_ENSURED)

        self._submit(report, batch.pairs, request)
        self._advance(Stage.CARDS_SUBMITTED)

        logger.info(
            "Submitted %d cards: %d added, %d duplicates, %d failed",
            report.attempted, report.succeeded, report.duplicates, report.failed,
        )
        self._advance(Stage.REPORTED)
        return report

    def _submit(self, report: RunReport, pairs: List[TranslationPair], request: DeckRequest) -> None:
        notes = [n for pair in pairs for n in build_notes(pair, report.deck_name, request)]
        total = len(notes)
        for i, note in enumerate(notes, 1):
            report.attempted += 1
            try:
                self.anki.add_note(note)
            except DuplicateNoteError:
                logger.debug("Duplicate note skipped: %s", note.front)
                report.duplicates += 1
            except AnkiConnectError as e:
                logger.warning("Failed to add note for '%s→%s': %s", note.front, note.back, e)
                report.failed += 1
                report.failures.append((note.front, str(e)))
            else:
                report.succeeded += 1
            self._tick("submit", i, total)
