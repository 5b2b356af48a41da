"""Exception hierarchy for the deck builder."""


class DeckBuilderError(Exception):
    """Base class for every error raised by this package."""


class ConfigurationError(DeckBuilderError):
    """Invalid user input or configuration (unknown language, same pair...)."""


class CacheError(DeckBuilderError):
    """A cache entry could not be written."""


class FrequencySourceError(DeckBuilderError):
    """A frequency data source failed to produce records."""


class DataUnavailableError(DeckBuilderError):
    """No frequency data exists for the requested language."""

    def __init__(self, language: str):
        super().__init__(f"Frequency data not available for language: {language}")
        self.language = language


class TranslationError(DeckBuilderError):
    """Translating a single word failed."""


class AnkiConnectError(DeckBuilderError):
    """AnkiConnect returned an error or a call could not be completed."""


class ConnectivityError(AnkiConnectError):
    """AnkiConnect is not running or is unreachable."""

    def __init__(self, url: str, reason: str = ""):
        message = f"AnkiConnect is not running or unreachable at {url}"
        if reason:
            message += f" ({reason})"
        super().__init__(message)
        self.url = url


class ProtocolError(ConnectivityError):
    """AnkiConnect answered, but speaks an incompatible protocol version."""


class DuplicateNoteError(AnkiConnectError):
    """The note already exists in the target deck."""
