"""Build language learning Anki decks from word frequency lists."""

__version__ = "0.1.0"
