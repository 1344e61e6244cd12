"""Services: token management, LLM access, intent extraction, Gmail and Telegram clients."""
