"""
Intent extraction - turns a free-form chat message into an EmailCommand.

The model output is untrusted text: it may wrap the JSON in prose, emit
malformed JSON or leave fields out. Extraction is split in two pure stages
so each can be tested on its own:

1. ``find_json_candidate`` locates the brace-delimited span
2. ``parse_command`` parses and validates it
"""

import json
import re
from typing import Optional

import openai

from mailbot.models import EmailCommand
from mailbot.services.llm_service import LLMService
from mailbot.utils.error_handler import ExtractionFailure
from mailbot.utils.logging_utils import get_logger
from mailbot.utils.validators import InputValidator

logger = get_logger(__name__)

SYSTEM_PROMPT = "You are a helpful AI that extracts email data as structured JSON."

USER_PROMPT = """
You are an email assistant. Analyze the following message and respond with a JSON object in this exact format:
{{"email": "recipient@example.com", "subject": "email subject", "body": "email content"}}

Message to analyze: {message}
"""

# Greedy: first "{" through last "}", across newlines
_JSON_SPAN = re.compile(r"\{.*\}", re.DOTALL)

REQUIRED_FIELDS = ("email", "subject", "body")


def find_json_candidate(text: str) -> Optional[str]:
    """Return the greedy brace-delimited span of ``text``, or None."""
    if not text:
        return None
    match = _JSON_SPAN.search(text)
    return match.group(0) if match else None


def parse_command(candidate: str) -> EmailCommand:
    """
    Parse a JSON candidate into an EmailCommand.

    Raises
    ------
    ExtractionFailure
        If the JSON is malformed, is not an object, or any of
        email/subject/body is missing, blank or not a string
    """
    try:
        data = json.loads(candidate)
    except json.JSONDecodeError as e:
        raise ExtractionFailure(f"Invalid JSON in model output: {e}") from e

    if not isinstance(data, dict):
        raise ExtractionFailure("Model output is not a JSON object")

    missing = [
        name for name in REQUIRED_FIELDS
        if not isinstance(data.get(name), str) or not data[name].strip()
    ]
    if missing:
        raise ExtractionFailure(f"Missing required fields in AI output: {', '.join(missing)}")

    recipient = InputValidator.validate_header_value("To", data["email"])
    InputValidator.validate_email(recipient)
    subject = InputValidator.validate_header_value("Subject", data["subject"])

    return EmailCommand(recipient=recipient, subject=subject, body=data["body"])


class IntentExtractor:
    """Asks the language model for a send-email intent and parses its answer."""

    def __init__(self, llm: Optional[LLMService] = None):
        self.llm = llm or LLMService()

    def build_messages(self, raw_text: str) -> list[dict]:
        return [
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": USER_PROMPT.format(message=raw_text)},
        ]

    def extract(self, raw_text: str) -> Optional[EmailCommand]:
        """
        Extract an EmailCommand from ``raw_text``.

        Returns None on any failure: transport errors, empty output,
        no JSON, malformed JSON or missing fields. Nothing is raised.
        """
        try:
            content = self.llm.chat_completion_text(self.build_messages(raw_text))
        except openai.APIError as e:
            logger.error(f"Completion request failed: {e}")
            return None

        if not content:
            logger.warning("No response from model")
            return None

        candidate = find_json_candidate(content)
        if candidate is None:
            logger.warning("No JSON found in model output")
            return None

        try:
            command = parse_command(candidate)
        except ExtractionFailure as e:
            logger.warning(f"AI parse error: {e.message}")
            return None

        logger.info(f"Extracted email command for {command.recipient}")
        return command
