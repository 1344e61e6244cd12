"""
Conversation bridge - runs extract → dispatch for one chat message and
replies to the sender.

This is the only place failures become user-visible text, and that text
never carries internal error detail.
"""

from typing import Callable, Optional

from mailbot.models import ConversationContext, EmailCommand, Failure, SendResult, Success
from mailbot.services.gmail_service import GmailDispatcher
from mailbot.services.intent_service import IntentExtractor
from mailbot.utils.logging_utils import get_logger

logger = get_logger(__name__)

EXTRACTION_FAILED_TEXT = "❌ Could not extract email details. Try rephrasing."
SEND_FAILED_TEXT = "❌ Failed to send email. Try again later."
SENT_TEXT = "✅ Email sent to {recipient} successfully!"

Reply = Callable[[str, str], None]


def acknowledgment(command: Optional[EmailCommand], result: Optional[SendResult]) -> str:
    """Text to send back for an extraction result and a dispatch result."""
    if command is None:
        return EXTRACTION_FAILED_TEXT
    if isinstance(result, Success):
        return SENT_TEXT.format(recipient=command.recipient)
    return SEND_FAILED_TEXT


class ConversationBridge:
    """
    Handles inbound chat messages independently of each other.

    Parameters
    ----------
    extractor : IntentExtractor
    dispatcher : GmailDispatcher
    reply : callable
        ``reply(conversation_id, text)`` delivers the acknowledgment
    """

    def __init__(self, extractor: IntentExtractor, dispatcher: GmailDispatcher, reply: Reply):
        self.extractor = extractor
        self.dispatcher = dispatcher
        self.reply = reply

    def on_message(self, ctx: ConversationContext):
        logger.info(f"Received message in conversation {ctx.conversation_id}")
        try:
            command = self.extractor.extract(ctx.raw_text)
            result = self.dispatcher.send(command) if command is not None else None
        except Exception as e:
            logger.error(f"Unexpected error handling message: {e}", exc_info=True)
            self._send_reply(ctx.conversation_id, SEND_FAILED_TEXT)
            return

        if isinstance(result, Failure):
            logger.warning(f"Dispatch failed for conversation {ctx.conversation_id}: {result.reason}")

        self._send_reply(ctx.conversation_id, acknowledgment(command, result))

    def _send_reply(self, conversation_id: str, text: str):
        try:
            self.reply(conversation_id, text)
        except Exception as e:
            logger.error(f"Failed to deliver reply to {conversation_id}: {e}", exc_info=True)
