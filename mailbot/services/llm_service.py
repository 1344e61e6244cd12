"""
LLM Service - handles chat completion calls.

Talks to any OpenAI-compatible endpoint (OpenRouter by default) through the
official OpenAI SDK.
"""

from typing import List, Dict, Any, Optional
from openai import OpenAI

from mailbot.config import Config
from mailbot.utils.logging_utils import get_logger

logger = get_logger(__name__)


class LLMService:
    """
    Service for chat completions.

    Centralizes LLM access to provide:
    - Consistent error logging
    - Model configuration management
    - Easy testing and mocking
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        base_url: Optional[str] = None,
        temperature: Optional[float] = None,
    ):
        """
        Initialize the LLM service.

        Parameters
        ----------
        api_key : str, optional
            Bearer key for the completion endpoint (defaults to Config.OPENAI_API_KEY)
        model : str, optional
            Default model to use (defaults to Config.LLM_MODEL)
        base_url : str, optional
            Endpoint root (defaults to Config.LLM_BASE_URL)
        temperature : float, optional
            Sampling temperature (defaults to Config.LLM_TEMPERATURE)
        """
        self.api_key = api_key or Config.OPENAI_API_KEY
        self.default_model = model or Config.LLM_MODEL
        self.base_url = base_url or Config.LLM_BASE_URL
        self.default_temperature = (
            Config.LLM_TEMPERATURE if temperature is None else temperature
        )
        self.client: Optional[OpenAI] = None

        logger.info(f"LLMService initialized with model: {self.default_model}")

    def get_client(self) -> OpenAI:
        """Get or create the OpenAI client."""
        if self.client is None:
            self.client = OpenAI(api_key=self.api_key, base_url=self.base_url)
        return self.client

    def chat_completion(
        self,
        messages: List[Dict[str, Any]],
        model: Optional[str] = None,
        temperature: Optional[float] = None,
    ) -> Any:
        """
        Generate a chat completion.

        Parameters
        ----------
        messages : list
            List of message dicts with 'role' and 'content'
        model : str, optional
            Model to use (defaults to self.default_model)
        temperature : float, optional
            Sampling temperature (defaults to self.default_temperature)

        Returns
        -------
        Response object from the OpenAI SDK

        Raises
        ------
        openai.APIError
            On transport failure or a non-2xx response
        """
        client = self.get_client()
        model_name = model or self.default_model

        try:
            logger.debug(f"Chat completion request: model={model_name}")
            response = client.chat.completions.create(
                model=model_name,
                messages=messages,
                temperature=self.default_temperature if temperature is None else temperature,
            )
            logger.debug("Chat completion successful")
            return response
        except Exception as e:
            logger.error(f"LLMService chat_completion failed: {e}")
            raise

    def chat_completion_text(
        self,
        messages: List[Dict[str, Any]],
        model: Optional[str] = None,
        temperature: Optional[float] = None,
    ) -> str:
        """
        Generate a chat completion and return the primary message content.

        Returns an empty string when the response has no choices or no content.
        """
        response = self.chat_completion(
            messages=messages,
            model=model,
            temperature=temperature,
        )
        choices = getattr(response, "choices", None) or []
        if not choices:
            return ""
        message = getattr(choices[0], "message", None)
        return (getattr(message, "content", None) or "").strip()
