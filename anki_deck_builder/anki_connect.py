"""AnkiConnect JSON-RPC client."""
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import requests

from .config import (
    ANKICONNECT_VERSION,
    BASE_TAGS,
    DEFAULT_ANKICONNECT_URL,
    DEFAULT_REQUEST_TIMEOUT,
    MODEL_NAME,
)
from .errors import AnkiConnectError, ConnectivityError, DuplicateNoteError, ProtocolError

logger = logging.getLogger(__name__)


@dataclass
class Note:
    """A Basic note about to be submitted to AnkiConnect."""

    deck_name: str
    front: str
    back: str
    tags: List[str] = field(default_factory=lambda: list(BASE_TAGS))
    model_name: str = MODEL_NAME

    def to_params(self) -> dict:
        return {
            "note": {
                "deckName": self.deck_name,
                "modelName": self.model_name,
                "fields": {"Front": self.front, "Back": self.back},
                "tags": self.tags,
                "options": {
                    "allowDuplicate": False,
                    "duplicateScope": "deck",
                },
            }
        }


class AnkiConnectClient:
    """Typed wrapper around the AnkiConnect add-on's HTTP endpoint.

    Every action is a POST of ``{"action", "version", "params"}``; the
    reply is ``{"result", "error"}``.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_ANKICONNECT_URL,
        session: Optional[requests.Session] = None,
        timeout: float = DEFAULT_REQUEST_TIMEOUT,
    ):
        self.base_url = base_url
        self.session = session or requests.Session()
        self.timeout = timeout

    def close(self):
        self.session.close()

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()

    def _post(self, action: str, params: Optional[Dict[str, Any]] = None) -> dict:
        """Send one action and return the decoded reply envelope."""
        logger.debug("AnkiConnect action: %s", action)
        payload = {"action": action, "version": ANKICONNECT_VERSION, "params": params or {}}
        try:
            response = self.session.post(self.base_url, json=payload, timeout=self.timeout)
        except requests.RequestException as e:
            raise ConnectivityError(self.base_url, str(e)) from e

        try:
            body = response.json()
        except ValueError as e:
            raise ConnectivityError(self.base_url, f"malformed JSON response: {e}") from e

        if not isinstance(body, dict) or "result" not in body or "error" not in body:
            raise ConnectivityError(self.base_url, f"unexpected response: {body!r}")
        return body

    def invoke(self, action: str, **params) -> Any:
        """Run an action, raising AnkiConnectError if it reports an error."""
        body = self._post(action, params)
        if body["error"] is not None:
            raise AnkiConnectError(f"AnkiConnect returned an error: {body['error']}")
        return body["result"]

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    def verify_connection(self) -> int:
        """Check that AnkiConnect is running. Returns its protocol version."""
        logger.debug("Verifying connection to AnkiConnect at %s", self.base_url)
        body = self._post("version")
        if body["error"] is not None:
            raise ProtocolError(self.base_url, str(body["error"]))

        version = body["result"]
        if not isinstance(version, int) or version < ANKICONNECT_VERSION:
            raise ProtocolError(
                self.base_url,
                f"unsupported version {version!r}, need {ANKICONNECT_VERSION} or newer",
            )
        logger.info("Connected to AnkiConnect (version %s)", version)
        return version

    def list_decks(self) -> List[str]:
        result = self.invoke("deckNames")
        if not isinstance(result, list):
            raise AnkiConnectError("No deck names returned")
        return result

    def create_deck(self, name: str) -> Optional[int]:
        """Create a deck, or return the id of the existing deck with this name."""
        logger.debug("Creating deck: %s", name)
        body = self._post("createDeck", {"deck": name})
        error = body["error"]
        if error is not None:
            if "already exists" in str(error).lower():
                logger.info("Deck %r already exists", name)
                return None
            raise AnkiConnectError(f"AnkiConnect returned an error: {error}")

        deck_id = body["result"]
        if deck_id is None:
            raise AnkiConnectError("No deck ID returned")
        logger.info("Deck %r has ID %s", name, deck_id)
        return deck_id

    def add_note(self, note: Note) -> int:
        """Add a note. Raises DuplicateNoteError if the deck already has it."""
        logger.debug("Adding note to deck %s: %s", note.deck_name, note.front)
        body = self._post("addNote", note.to_params())
        error = body["error"]
        if error is not None:
            if "duplicate" in str(error).lower():
                raise DuplicateNoteError(str(error))
            raise AnkiConnectError(f"AnkiConnect returned an error: {error}")

        note_id = body["result"]
        if note_id is None:
            raise AnkiConnectError("No note ID returned")
        logger.debug("Added note with ID: %s", note_id)
        return note_id
