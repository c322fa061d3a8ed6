"""LLM Provider abstraction for DeepSeek-compatible, Claude and Ollama services."""
from abc import ABC, abstractmethod
from typing import Optional, List, Dict

import anthropic
import httpx
import ollama

from ..config import settings
from ..exceptions import (
    AIParseError,
    AIResponseError,
    AIServiceError,
    ConfigurationError,
)
from ..utils.logger import logger


class LLMProvider(ABC):
    """Abstract base class for LLM providers."""

    @abstractmethod
    async def chat(
        self,
        messages: List[Dict],
        system: Optional[str] = None,
        max_tokens: int = 2000,
        temperature: float = 0.3,
    ) -> str:
        """Send chat completion request.

        Args:
            messages: List of message dicts with 'role' and 'content'
            system: Optional system prompt
            max_tokens: Maximum tokens to generate
            temperature: Sampling temperature

        Returns:
            Generated text response (may be empty)

        Raises:
            AIResponseError: if the service answers with a non-success status
            AIServiceError: if the service cannot be reached
        """
        pass

    @abstractmethod
    def get_name(self) -> str:
        """Return provider name for logging."""
        pass


class ChatCompletionsProvider(LLMProvider):
    """OpenAI-compatible chat-completions provider (DeepSeek by default)."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[int] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize the provider.

        Args:
            api_key: Bearer token. Defaults to settings.deepseek_api_key
            model: Model name. Defaults to settings.deepseek_model
            base_url: API base URL. Defaults to settings.llm_base_url
            timeout: Request timeout in seconds. Defaults to settings.default_timeout
            transport: Optional httpx transport (used by tests)

        Raises:
            ConfigurationError: if no API key is configured
        """
        self.api_key = api_key or settings.deepseek_api_key
        if not self.api_key:
            raise ConfigurationError("DEEPSEEK_API_KEY environment variable is not set")
        self.model = model or settings.deepseek_model
        self.base_url = (base_url or settings.llm_base_url).rstrip("/")
        self.timeout = timeout or settings.default_timeout
        self._transport = transport

    async def chat(
        self,
        messages: List[Dict],
        system: Optional[str] = None,
        max_tokens: int = 2000,
        temperature: float = 0.3,
    ) -> str:
        """Send chat completion request to the chat-completions endpoint."""
        payload_messages = []
        if system:
            payload_messages.append({"role": "system", "content": system})
        payload_messages.extend(messages)

        logger.info(f"[LLM] Calling {self.get_name()}...")
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self._transport
            ) as client:
                response = await client.post(
                    f"{self.base_url}/chat/completions",
                    headers={
                        "Content-Type": "application/json",
                        "Authorization": f"Bearer {self.api_key}",
                    },
                    json={
                        "model": self.model,
                        "messages": payload_messages,
                        "temperature": temperature,
                        "max_tokens": max_tokens,
                    },
                )
        except httpx.RequestError as e:
            logger.error(f"[LLM] {self.get_name()} request failed: {e}")
            raise AIServiceError(f"Completion request failed: {str(e)}") from e

        if response.status_code >= 400:
            raise AIResponseError(
                f"Completion API error: {response.status_code} {response.text}",
                status_code=response.status_code,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise AIParseError(f"Completion API returned a non-JSON body: {str(e)}") from e

        if not isinstance(data, dict):
            raise AIParseError("Completion API returned a body that is not a JSON object")

        choices = data.get("choices") or []
        if not isinstance(choices, list):
            raise AIParseError("Completion API returned malformed choices")
        if not choices:
            logger.warning(f"[LLM] {self.get_name()} returned no choices")
            return ""

        message = choices[0].get("message") if isinstance(choices[0], dict) else None
        if not isinstance(message, dict):
            raise AIParseError("Completion API returned a choice without a message")
        content = message.get("content")
        if content is not None and not isinstance(content, str):
            raise AIParseError("Completion message content is not a string")

        logger.info(f"[LLM] {self.get_name()} responded")
        return content or ""

    def get_name(self) -> str:
        """Return provider name for logging."""
        return f"ChatCompletions ({self.model})"


class ClaudeProvider(LLMProvider):
    """Claude API provider."""

    def __init__(self, model: str = "claude-sonnet-4-20250514", api_key: Optional[str] = None):
        """Initialize Claude provider.

        Args:
            model: Model name to use
            api_key: Anthropic API key. Defaults to settings.anthropic_api_key

        Raises:
            ConfigurationError: if no API key is configured
        """
        api_key = api_key or settings.anthropic_api_key
        if not api_key:
            raise ConfigurationError("ANTHROPIC_API_KEY environment variable is not set")
        self.client = anthropic.AsyncAnthropic(api_key=api_key)
        self.model = model

    async def chat(
        self,
        messages: List[Dict],
        system: Optional[str] = None,
        max_tokens: int = 2000,
        temperature: float = 0.3,
    ) -> str:
        """Send chat completion request to Claude API."""
        logger.info(f"[LLM] Calling Claude {self.model}...")
        try:
            response = await self.client.messages.create(
                model=self.model,
                max_tokens=max_tokens,
                temperature=temperature,
                system=system or "",
                messages=messages,
            )
        except anthropic.APIStatusError as e:
            logger.error(f"[LLM] Claude {self.model} failed: {e}")
            raise AIResponseError(
                f"Claude API error: {e.status_code} {e.message}", status_code=e.status_code
            ) from e
        except anthropic.APIError as e:
            logger.error(f"[LLM] Claude {self.model} failed: {e}")
            raise AIServiceError(f"Claude API error: {str(e)}") from e

        logger.info(f"[LLM] Claude {self.model} responded")
        return "".join(
            block.text for block in response.content if getattr(block, "text", None)
        )

    def get_name(self) -> str:
        """Return provider name for logging."""
        return f"Claude ({self.model})"


class OllamaProvider(LLMProvider):
    """Ollama API provider (local)."""

    def __init__(self, model: str = "qwen2.5:7b", host: Optional[str] = None):
        """Initialize Ollama provider.

        Args:
            model: Model name to use
            host: Ollama server host (defaults to settings.ollama_host)
        """
        self.model = model
        self.host = host or settings.ollama_host
        self.client = ollama.AsyncClient(host=self.host)
        logger.info(f"[LLM] Initialized Ollama client at {self.host}")

    async def chat(
        self,
        messages: List[Dict],
        system: Optional[str] = None,
        max_tokens: int = 2000,
        temperature: float = 0.3,
    ) -> str:
        """Send chat completion request to Ollama API."""
        all_messages = []
        if system:
            all_messages.append({"role": "system", "content": system})
        all_messages.extend(messages)

        logger.info(f"[LLM] Calling Ollama {self.model}...")
        try:
            response = await self.client.chat(
                model=self.model,
                messages=all_messages,
                options={"num_predict": max_tokens, "temperature": temperature},
            )
        except ollama.ResponseError as e:
            logger.error(f"[LLM] Ollama {self.model} failed: {e}")
            raise AIResponseError(
                f"Ollama error: {e.status_code} {e.error}", status_code=e.status_code
            ) from e
        except (httpx.HTTPError, ConnectionError) as e:
            logger.error(f"[LLM] Ollama {self.model} failed: {e}")
            raise AIServiceError(f"Ollama request failed: {str(e)}") from e

        logger.info(f"[LLM] Ollama {self.model} responded")
        return response["message"]["content"] or ""

    def get_name(self) -> str:
        """Return provider name for logging."""
        return f"Ollama ({self.model})"


def get_llm_provider(provider_type: Optional[str] = None) -> LLMProvider:
    """Get the configured LLM provider for slot extraction.

    Args:
        provider_type: "deepseek", "claude" or "ollama". Defaults to settings.llm_provider

    Returns:
        LLM provider instance

    Raises:
        ConfigurationError: if the provider is unknown or lacks credentials
    """
    provider_type = provider_type or settings.llm_provider
    if provider_type == "claude":
        return ClaudeProvider(model=settings.claude_model)
    if provider_type == "ollama":
        return OllamaProvider(model=settings.ollama_model)
    if provider_type == "deepseek":
        return ChatCompletionsProvider()
    raise ConfigurationError(f"Unknown LLM provider: {provider_type}")
