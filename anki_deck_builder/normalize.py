"""Word normalization for cache lookups."""
import re
import unicodedata

_HTML_TAG_RE = re.compile(r"<[^>]+>")


def normalize_word(text: str) -> str:
    """Normalize a source word for use in a cache key.

    1. Unicode NFC normalization
    2. Strip HTML tags
    3. Replace non-breaking spaces with spaces
    4. Collapse whitespace
    5. Lowercase

    Only the key is normalized; the text sent to a translator and the
    translation it returns are used as-is.
    """
    text = unicodedata.normalize("NFC", text)
    text = _HTML_TAG_RE.sub("", text)
    text = text.replace("&nbsp;", " ").replace("\xa0", " ")
    text = " ".join(text.split())
    return text.lower()
