from __future__ import annotations

import logging
import os
from urllib.parse import quote

import requests

from blockwatch.errors import ConfigurationError


logger = logging.getLogger(__name__)

CHATWORK_API_BASE = "https://api.chatwork.com/v2"


def resolve_chatwork_credentials(token: str | None, room_id: str | None) -> tuple[str, str]:
    """Settings first, then CHATWORK_TOKEN / CHATWORK_ROOM_ID from the environment."""
    tok = str(token or "").strip() or os.environ.get("CHATWORK_TOKEN", "").strip()
    room = str(room_id or "").strip() or os.environ.get("CHATWORK_ROOM_ID", "").strip()
    if tok == "" or room == "":
        raise ConfigurationError(
            "Chatwork credentials missing: set chatwork.token/chatwork.room_id or CHATWORK_TOKEN/CHATWORK_ROOM_ID"
        )
    return tok, room


class ChatworkAlertSink:
    def __init__(
        self,
        token: str,
        room_id: str,
        timeout: float = 30.0,
        api_base: str = CHATWORK_API_BASE,
        session: requests.Session | None = None,
    ) -> None:
        self.token = token
        self.room_id = room_id
        self.timeout = float(timeout)
        self.api_base = api_base.rstrip("/")
        self.session = session or requests.Session()

    @property
    def url(self) -> str:
        return f"{self.api_base}/rooms/{quote(str(self.room_id), safe='')}/messages"

    def send(self, message: str) -> bool:
        try:
            resp = self.session.post(
                self.url,
                data={"body": message},
                headers={"X-ChatWorkToken": self.token},
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            logger.error("Chatwork request failed: %s", exc)
            return False
        if not 200 <= resp.status_code < 300:
            logger.error("Chatwork API failed (HTTP %s): %s", resp.status_code, resp.text[:500])
            return False
        logger.info("Chatwork message delivered to room %s", self.room_id)
        return True


class RecordingAlertSink:
    """Keeps every message; `succeed=False` simulates a failed delivery."""

    def __init__(self, succeed: bool = True) -> None:
        self.succeed = succeed
        self.messages: list[str] = []

    def send(self, message: str) -> bool:
        self.messages.append(message)
        return self.succeed
