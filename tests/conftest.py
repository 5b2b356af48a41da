"""Shared fakes for the pipeline tests. Nothing here touches the network."""
import json

import pytest

from anki_deck_builder.cache import CacheStore
from anki_deck_builder.errors import (
    AnkiConnectError,
    ConnectivityError,
    DuplicateNoteError,
    TranslationError,
)
from anki_deck_builder.translator import RateLimiter, TranslationBackend


class FakeResponse:
    def __init__(self, body=None, status_code=200, text=None):
        self.status_code = status_code
        self._body = body
        self.text = text if text is not None else json.dumps(body)

    @property
    def ok(self):
        return 200 <= self.status_code < 400

    def json(self):
        return json.loads(self.text)


class FakeSession:
    """Stands in for requests.Session; replies come from ``handler``."""

    def __init__(self, handler):
        self.handler = handler
        self.calls = []
        self.closed = False

    def request(self, method, url, **kwargs):
        self.calls.append((method, url, kwargs))
        result = self.handler(method, url, kwargs)
        if isinstance(result, Exception):
            raise result
        return result

    def get(self, url, **kwargs):
        return self.request("GET", url, **kwargs)

    def post(self, url, **kwargs):
        return self.request("POST", url, **kwargs)

    def close(self):
        self.closed = True


class FakeBackend(TranslationBackend):
    name = "fake"

    def __init__(self, translations=None, failing=()):
        self.translations = translations or {}
        self.failing = set(failing)
        self.calls = []

    def translate_one(self, text, source, target):
        self.calls.append((text, source, target))
        if text in self.failing:
            raise TranslationError(f"no translation for {text}")
        return self.translations.get(text, f"{text}-{target}")


class FakeAnki:
    def __init__(self, duplicates=(), failing=(), unreachable=False):
        self.duplicates = set(duplicates)
        self.failing = set(failing)
        self.unreachable = unreachable
        self.verify_calls = 0
        self.created_decks = []
        self.notes = []

    def verify_connection(self):
        self.verify_calls += 1
        if self.unreachable:
            raise ConnectivityError("http://localhost:8765", "connection refused")
        return 6

    def list_decks(self):
        return ["Default"] + self.created_decks

    def create_deck(self, name):
        self.created_decks.append(name)
        return 1700000000000

    def add_note(self, note):
        self.notes.append(note)
        if note.front in self.duplicates:
            raise DuplicateNoteError("cannot create note because it is a duplicate")
        if note.front in self.failing:
            raise AnkiConnectError("AnkiConnect returned an error: model was not found")
        return len(self.notes)

    def close(self):
        pass


@pytest.fixture
def cache(tmp_path):
    return CacheStore(tmp_path / "cache")


@pytest.fixture
def no_wait():
    return RateLimiter(0.0, sleep=lambda s: None)
