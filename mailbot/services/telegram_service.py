"""Telegram Bot API client and long-polling loop.

Uses plain ``requests`` against https://api.telegram.org. Inbound text
messages are handed to a callback on a worker pool so several messages can
be processed at once.
"""

import time
from concurrent.futures import ThreadPoolExecutor
from threading import BoundedSemaphore
from typing import Any, Callable, Dict, List, Optional

import requests

from mailbot.config import Config
from mailbot.models import ConversationContext
from mailbot.utils.error_handler import TransportError
from mailbot.utils.logging_utils import get_logger

logger = get_logger(__name__)

API_BASE = "https://api.telegram.org"


class TelegramClient:
    """Thin wrapper over the two Bot API methods the relay needs."""

    def __init__(self, bot_token: Optional[str] = None, session: Optional[requests.Session] = None):
        self.bot_token = bot_token or Config.TELEGRAM_BOT_TOKEN
        self.session = session or requests.Session()

    def _url(self, method: str) -> str:
        return f"{API_BASE}/bot{self.bot_token}/{method}"

    def _call(self, method: str, payload: Dict[str, Any], timeout: float) -> Any:
        try:
            response = self.session.post(self._url(method), json=payload, timeout=timeout)
        except requests.exceptions.RequestException as e:
            raise TransportError(f"Telegram {method} request failed: {e}") from e

        try:
            data = response.json()
        except ValueError:
            data = {}

        if response.status_code != 200 or not data.get("ok"):
            raise TransportError(
                f"Telegram {method} failed: status={response.status_code}, "
                f"description={data.get('description')}"
            )
        return data.get("result")

    def send_message(self, chat_id: str, text: str, timeout: float = 10):
        """Send a text message to ``chat_id``."""
        self._call("sendMessage", {"chat_id": chat_id, "text": text}, timeout)
        logger.debug(f"Telegram message sent to chat {chat_id}")

    def get_updates(self, offset: Optional[int], poll_timeout: int) -> List[Dict[str, Any]]:
        """Long-poll for new message updates."""
        payload: Dict[str, Any] = {
            "timeout": poll_timeout,
            "allowed_updates": ["message"],
        }
        if offset is not None:
            payload["offset"] = offset
        # HTTP timeout must outlast the server-side long poll
        return self._call("getUpdates", payload, timeout=poll_timeout + 10) or []


def to_context(update: Dict[str, Any]) -> Optional[ConversationContext]:
    """ConversationContext for a text message update, None for anything else."""
    message = update.get("message") or {}
    text = message.get("text")
    chat_id = (message.get("chat") or {}).get("id")
    if not text or chat_id is None:
        return None
    return ConversationContext(conversation_id=str(chat_id), raw_text=text)


class TelegramPoller:
    """
    Polls Telegram and submits each text message to ``handler`` on a pool.

    At most ``max_pending`` messages are queued or running at once; when the
    pool is saturated, polling waits for a slot instead of queueing more.
    """

    def __init__(
        self,
        client: TelegramClient,
        handler: Callable[[ConversationContext], None],
        poll_timeout: Optional[int] = None,
        max_workers: Optional[int] = None,
        retry_delay: float = 5.0,
        max_pending: Optional[int] = None,
    ):
        self.client = client
        self.handler = handler
        self.poll_timeout = Config.TELEGRAM_POLL_TIMEOUT if poll_timeout is None else poll_timeout
        workers = max_workers or Config.MAX_WORKERS
        self.executor = ThreadPoolExecutor(max_workers=workers)
        self._slots = BoundedSemaphore(max_pending or workers * 2)
        self.offset: Optional[int] = None
        self.retry_delay = retry_delay

    def poll_once(self) -> int:
        """Fetch one batch of updates and dispatch it. Returns number dispatched."""
        updates = self.client.get_updates(self.offset, self.poll_timeout)
        dispatched = 0
        for update in updates:
            self.offset = update["update_id"] + 1
            ctx = to_context(update)
            if ctx is None:
                logger.debug(f"Skipping non-text update {update['update_id']}")
                continue
            self._slots.acquire()
            future = self.executor.submit(self.handler, ctx)
            future.add_done_callback(self._release_slot)
            dispatched += 1
        return dispatched

    def _release_slot(self, future):
        self._slots.release()
        if future.exception() is not None:
            logger.error(f"Message handler failed: {future.exception()}")

    def run_forever(self):
        logger.info("🤖 Telegram bot started and listening for messages.")
        try:
            while True:
                try:
                    self.poll_once()
                except TransportError as e:
                    logger.warning(f"Polling failed, retrying in {self.retry_delay}s: {e.message}")
                    time.sleep(self.retry_delay)
                except Exception as e:
                    logger.error(f"Unexpected polling error, retrying in {self.retry_delay}s: {e}", exc_info=True)
                    time.sleep(self.retry_delay)
        finally:
            self.executor.shutdown(wait=True)
