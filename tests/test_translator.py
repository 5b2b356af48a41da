import pytest
import requests

from anki_deck_builder.config import Config
from anki_deck_builder.errors import TranslationError
from anki_deck_builder.frequency import PartOfSpeech, WordRecord
from anki_deck_builder.translator import (
    DeepLBackend,
    FallbackBackend,
    LibreTranslateBackend,
    MyMemoryBackend,
    RateLimiter,
    Translator,
    build_backend,
)

from conftest import FakeBackend, FakeResponse, FakeSession

NOUN = PartOfSpeech.NOUN
VERB = PartOfSpeech.VERB


def test_same_word_twice_hits_backend_once(cache, no_wait):
    backend = FakeBackend({"kuća": "casa"})
    translator = Translator(backend, cache, limiter=no_wait)

    first = translator.translate_batch([("kuća", NOUN)], "hr", "es")
    second = translator.translate_batch([("kuća", NOUN)], "hr", "es")

    assert len(backend.calls) == 1
    assert first.pairs == second.pairs
    assert second.cache_hits == 1
    assert first.pairs[0].translated == "casa"


def test_cache_is_per_language_pair(cache, no_wait):
    backend = FakeBackend()
    translator = Translator(backend, cache, limiter=no_wait)

    translator.translate("dan", "hr", "es")
    translator.translate("dan", "hr", "en")

    assert len(backend.calls) == 2


def test_cache_key_normalizes_source_text(cache, no_wait):
    backend = FakeBackend({"Dan": "Día"})
    translator = Translator(backend, cache, limiter=no_wait)

    assert translator.translate("Dan", "hr", "es") == "Día"
    assert translator.translate(" dan ", "hr", "es") == "Día"
    assert len(backend.calls) == 1


def test_translation_is_used_as_is(cache, no_wait):
    backend = FakeBackend({"berlin": "Berlín!"})
    translator = Translator(backend, cache, limiter=no_wait)

    assert translator.translate("berlin", "hr", "es") == "Berlín!"


def test_failed_word_does_not_abort_batch(cache, no_wait):
    backend = FakeBackend(failing={"vrijeme"})
    translator = Translator(backend, cache, limiter=no_wait)
    words = [
        WordRecord("dan", NOUN, 1),
        WordRecord("vrijeme", NOUN, 2),
        WordRecord("dio", NOUN, 3),
        WordRecord("biti", VERB, 1),
    ]

    result = translator.translate_batch(words, "hr", "es")

    assert [p.source_word for p in result.pairs] == ["dan", "dio", "biti"]
    assert [p.pos for p in result.pairs] == [NOUN, NOUN, VERB]
    assert len(result.failures) == 1
    assert result.failures[0][0] == "vrijeme"
    assert "no translation" in result.failures[0][1]


def test_failures_are_not_cached(cache, no_wait):
    backend = FakeBackend(failing={"vrijeme"})
    translator = Translator(backend, cache, limiter=no_wait)

    translator.translate_batch([("vrijeme", NOUN)], "hr", "es")
    translator.translate_batch([("vrijeme", NOUN)], "hr", "es")

    assert len(backend.calls) == 2


def test_duplicate_word_within_batch_translated_once(cache, no_wait):
    backend = FakeBackend()
    translator = Translator(backend, cache, limiter=no_wait)

    result = translator.translate_batch([("oko", NOUN), ("oko", NOUN)], "hr", "es")

    assert len(backend.calls) == 1
    assert len(result.pairs) == 2


def test_progress_reports_every_word(cache, no_wait):
    translator = Translator(FakeBackend(failing={"b"}), cache, limiter=no_wait)
    seen = []

    translator.translate_batch(
        [("a", NOUN), ("b", NOUN), ("c", NOUN)], "hr", "es",
        on_progress=lambda done, total: seen.append((done, total)),
    )

    assert seen == [(1, 3), (2, 3), (3, 3)]


def test_concurrent_batch_preserves_order(cache, no_wait):
    words = [(f"rijec{i}", NOUN) for i in range(20)]
    translator = Translator(FakeBackend(failing={"rijec7"}), cache, limiter=no_wait, max_workers=4)

    result = translator.translate_batch(words, "hr", "es")

    expected = [w for w, _ in words if w != "rijec7"]
    assert [p.source_word for p in result.pairs] == expected
    assert [p.translated for p in result.pairs] == [f"{w}-es" for w in expected]
    assert result.failures[0][0] == "rijec7"


class FakeClock:
    def __init__(self):
        self.now = 100.0
        self.sleeps = []

    def time(self):
        return self.now

    def sleep(self, seconds):
        self.sleeps.append(seconds)
        self.now += seconds


def test_rate_limiter_spaces_calls():
    clock = FakeClock()
    limiter = RateLimiter(0.1, clock=clock.time, sleep=clock.sleep)

    limiter.wait()
    limiter.wait()
    clock.now += 0.5
    limiter.wait()

    assert clock.sleeps == [pytest.approx(0.1)]


def test_rate_limit_only_applies_to_uncached_calls(cache):
    clock = FakeClock()
    limiter = RateLimiter(0.1, clock=clock.time, sleep=clock.sleep)
    translator = Translator(FakeBackend(), cache, limiter=limiter)
    words = [("dan", NOUN), ("dio", NOUN), ("kuća", NOUN)]

    translator.translate_batch(words, "hr", "es")
    assert len(clock.sleeps) == 2

    translator.translate_batch(words, "hr", "es")
    assert len(clock.sleeps) == 2


# ----------------------------------------------------------------------
# Backends
# ----------------------------------------------------------------------


def test_mymemory_backend_parses_response():
    session = FakeSession(lambda method, url, kw: FakeResponse(
        {"responseStatus": 200, "responseData": {"translatedText": "casa"}}
    ))
    backend = MyMemoryBackend("https://mymemory.example/get", session=session)

    assert backend.translate_one("kuća", "hr", "es") == "casa"
    method, url, kwargs = session.calls[0]
    assert method == "GET"
    assert kwargs["params"] == {"q": "kuća", "langpair": "hr|es"}


def test_mymemory_error_status_in_body_is_failure():
    session = FakeSession(lambda method, url, kw: FakeResponse(
        {"responseStatus": 403, "responseDetails": "INVALID LANGUAGE PAIR",
         "responseData": {"translatedText": "INVALID LANGUAGE PAIR"}}
    ))
    backend = MyMemoryBackend("https://mymemory.example/get", session=session)

    with pytest.raises(TranslationError, match="INVALID LANGUAGE PAIR"):
        backend.translate_one("kuća", "hr", "xx")


@pytest.mark.parametrize(
    "reply",
    [
        FakeResponse(text="<html>oops</html>"),
        FakeResponse({"error": "busy"}, status_code=503),
        FakeResponse({"responseStatus": 200, "responseData": {"translatedText": ""}}),
        requests.ConnectionError("offline"),
    ],
)
def test_mymemory_bad_replies_raise_translation_error(reply):
    backend = MyMemoryBackend(
        "https://mymemory.example/get", session=FakeSession(lambda m, u, kw: reply)
    )

    with pytest.raises(TranslationError):
        backend.translate_one("kuća", "hr", "es")


@pytest.mark.parametrize(
    "body",
    [
        {"translations": {"text": "x"}},
        {"translations": []},
        {"translations": ["Tag"]},
        {"translations": [{"text": 42}]},
        {"message": "Quota exceeded"},
    ],
)
def test_deepl_malformed_bodies_raise_translation_error(body):
    backend = DeepLBackend("abc:fx", session=FakeSession(lambda m, u, kw: FakeResponse(body)))

    with pytest.raises(TranslationError):
        backend.translate_one("dan", "hr", "de")


def test_malformed_deepl_reply_fails_only_that_word(cache, no_wait):
    replies = iter([{"translations": {"text": "x"}}, {"translations": [{"text": "Teil"}]}])
    session = FakeSession(lambda m, u, kw: FakeResponse(next(replies)))
    translator = Translator(DeepLBackend("abc:fx", session=session), cache, limiter=no_wait)

    result = translator.translate_batch([("dan", NOUN), ("dio", NOUN)], "hr", "de")

    assert [p.translated for p in result.pairs] == ["Teil"]
    assert [w for w, _ in result.failures] == ["dan"]


class ShapeErrorBackend(FakeBackend):
    def translate_one(self, text, source, target):
        self.calls.append((text, source, target))
        return {"text": text}["translation"]


def test_unexpected_backend_exception_becomes_word_failure(cache, no_wait):
    translator = Translator(ShapeErrorBackend(), cache, limiter=no_wait)

    result = translator.translate_batch([("dan", NOUN)], "hr", "es")

    assert result.pairs == []
    assert result.failures[0][0] == "dan"
    assert "unexpected response" in result.failures[0][1]


def test_libretranslate_backend_posts_json():
    session = FakeSession(lambda m, u, kw: FakeResponse({"translatedText": "día"}))
    backend = LibreTranslateBackend("http://localhost:5000/", api_key="k", session=session)

    assert backend.translate_one("dan", "hr", "es") == "día"
    method, url, kwargs = session.calls[0]
    assert (method, url) == ("POST", "http://localhost:5000/translate")
    assert kwargs["json"] == {
        "q": "dan", "source": "hr", "target": "es", "format": "text", "api_key": "k",
    }


def test_deepl_backend_uses_free_endpoint_for_fx_keys():
    session = FakeSession(lambda m, u, kw: FakeResponse({"translations": [{"text": "Tag"}]}))
    backend = DeepLBackend("abc:fx", session=session)

    assert backend.translate_one("dan", "hr", "de") == "Tag"
    method, url, kwargs = session.calls[0]
    assert url.startswith("https://api-free.deepl.com/")
    assert kwargs["headers"]["Authorization"] == "DeepL-Auth-Key abc:fx"
    assert kwargs["data"]["target_lang"] == "DE"


def test_fallback_backend_tries_next_on_failure():
    primary = FakeBackend(failing={"dan"})
    fallback = FakeBackend({"dan": "día"})

    backend = FallbackBackend([primary, fallback])

    assert backend.translate_one("dan", "hr", "es") == "día"
    assert len(primary.calls) == 1


def test_fallback_backend_fails_when_all_fail():
    backend = FallbackBackend([FakeBackend(failing={"dan"}), FakeBackend(failing={"dan"})])

    with pytest.raises(TranslationError):
        backend.translate_one("dan", "hr", "es")


def test_build_backend_defaults_to_mymemory(tmp_path):
    backend = build_backend(Config(cache_dir=tmp_path))

    assert isinstance(backend, MyMemoryBackend)


def test_build_backend_prefers_premium_key(tmp_path):
    config = Config(
        cache_dir=tmp_path,
        deepl_api_key="secret:fx",
        libretranslate_url="http://localhost:5000",
    )

    backend = build_backend(config)

    assert isinstance(backend, FallbackBackend)
    assert [type(b) for b in backend.backends] == [
        DeepLBackend, LibreTranslateBackend, MyMemoryBackend,
    ]
