"""
Process entry point.

Chooses one of two startup modes, once:
- RUN_PIPELINE when a Gmail refresh token is configured: poll Telegram and
  relay each message through extract → dispatch → acknowledge
- RUN_CONSENT_FLOW otherwise: print the Google consent URL and serve the
  OAuth callback until a refresh token has been issued
"""

import sys
from enum import Enum

from mailbot.config import Config
from mailbot.utils.error_handler import ConfigError
from mailbot.utils.logging_utils import configure_logging, get_logger
from mailbot.utils.oauth_utils import build_authorization_url, build_google_flow
from mailbot.api.oauth_routes import create_consent_app
from mailbot.orchestrator.conversation_bridge import ConversationBridge
from mailbot.services.gmail_service import GmailDispatcher
from mailbot.services.intent_service import IntentExtractor
from mailbot.services.llm_service import LLMService
from mailbot.services.telegram_service import TelegramClient, TelegramPoller
from mailbot.services.token_manager import TokenManager

logger = get_logger(__name__)


class StartupMode(Enum):
    RUN_CONSENT_FLOW = "consent"
    RUN_PIPELINE = "pipeline"


def select_mode(token_manager: TokenManager) -> StartupMode:
    if token_manager.has_refresh_token:
        return StartupMode.RUN_PIPELINE
    return StartupMode.RUN_CONSENT_FLOW


def build_bridge(token_manager: TokenManager, telegram: TelegramClient) -> ConversationBridge:
    extractor = IntentExtractor(LLMService())
    dispatcher = GmailDispatcher(token_manager)
    return ConversationBridge(extractor, dispatcher, reply=telegram.send_message)


def run_pipeline(token_manager: TokenManager):
    logger.info("✅ Refresh token available, starting Telegram bot...")
    telegram = TelegramClient()
    bridge = build_bridge(token_manager, telegram)
    TelegramPoller(telegram, bridge.on_message).run_forever()


def run_consent_flow():
    flow = build_google_flow()
    auth_url, state = build_authorization_url(flow)
    logger.info(f"Visit this URL to authorize the app:\n{auth_url}")

    app = create_consent_app(flow, state)
    logger.info(f"OAuth server listening on http://localhost:{Config.OAUTH_PORT}")
    app.run(host="0.0.0.0", port=Config.OAUTH_PORT)


def run():
    configure_logging()
    try:
        Config.require()
    except ConfigError as e:
        logger.critical(f"❌ {e.message}")
        sys.exit(1)

    logger.info(f"Configuration: {Config.summary()}")
    token_manager = TokenManager.from_config()

    mode = select_mode(token_manager)
    if mode is StartupMode.RUN_PIPELINE:
        run_pipeline(token_manager)
    else:
        run_consent_flow()
