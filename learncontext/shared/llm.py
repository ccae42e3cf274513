"""
Chat-completion transport supporting OpenAI and Anthropic.
Takes a fully assembled message list and returns the reply text plus usage.
"""

from dataclasses import dataclass
from typing import Optional, Dict, Any, List
from enum import Enum

from openai import AsyncOpenAI
from anthropic import AsyncAnthropic

from learncontext.shared.config import settings
from learncontext.shared.exceptions import TransportError
from learncontext.shared.tokens import count_tokens


class LLMProvider(str, Enum):
    """Supported LLM providers."""
    OPENAI = "openai"
    ANTHROPIC = "anthropic"


class LLMError(TransportError):
    """Base error for LLM operations."""
    pass


@dataclass
class Completion:
    """Reply from the chat-completion API."""
    text: str
    tokens_used: Optional[int] = None


class LLMClient:
    """Chat-completion client for a single configured provider."""

    def __init__(
        self,
        provider: Optional[str] = None,
        model: Optional[str] = None,
        api_key: Optional[str] = None,
        temperature: float = 0.7,
        max_tokens: Optional[int] = None
    ):
        self.provider = provider or settings.llm.provider
        self.model = model or settings.llm.default_model
        self.temperature = temperature
        self.max_tokens = max_tokens or settings.llm.max_tokens

        if self.provider == LLMProvider.OPENAI:
            api_key = api_key or settings.llm.openai_api_key
            if not api_key:
                raise LLMError("OpenAI API key not configured")
            self.client = AsyncOpenAI(api_key=api_key)
        elif self.provider == LLMProvider.ANTHROPIC:
            api_key = api_key or settings.llm.anthropic_api_key
            if not api_key:
                raise LLMError("Anthropic API key not configured")
            self.client = AsyncAnthropic(api_key=api_key)
        else:
            raise LLMError(f"Unsupported provider: {self.provider}")

    async def send(
        self,
        messages: List[Dict[str, str]],
        model: Optional[str] = None,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        **kwargs
    ) -> Completion:
        """
        Send an ordered message list and return the reply.

        Args:
            messages: [{"role": ..., "content": ...}], system message first
            model: Override default model
            temperature: Override default temperature
            max_tokens: Override default max_tokens
            **kwargs: Additional provider-specific parameters

        Returns:
            Completion with reply text and token usage

        Raises:
            LLMError if the provider call fails
        """
        model = model or self.model
        temperature = temperature if temperature is not None else self.temperature
        max_tokens = max_tokens or self.max_tokens

        try:
            if self.provider == LLMProvider.OPENAI:
                return await self._openai_send(messages, model, temperature, max_tokens, **kwargs)
            return await self._anthropic_send(messages, model, temperature, max_tokens, **kwargs)
        except Exception as e:
            raise LLMError(f"LLM completion failed: {str(e)}") from e

    async def _openai_send(
        self,
        messages: List[Dict[str, str]],
        model: str,
        temperature: float,
        max_tokens: int,
        **kwargs
    ) -> Completion:
        """OpenAI-specific completion."""
        response = await self.client.chat.completions.create(
            model=model,
            messages=messages,
            temperature=temperature,
            max_tokens=max_tokens,
            **kwargs
        )
        text = response.choices[0].message.content or ""

        usage = getattr(response, "usage", None)
        tokens_used = usage.total_tokens if usage else count_tokens(text, model)
        return Completion(text=text, tokens_used=tokens_used)

    async def _anthropic_send(
        self,
        messages: List[Dict[str, str]],
        model: str,
        temperature: float,
        max_tokens: int,
        **kwargs
    ) -> Completion:
        """Anthropic-specific completion."""
        # Anthropic uses system parameter, not system message
        system_parts = [m["content"] for m in messages if m["role"] == "system"]
        chat = [m for m in messages if m["role"] != "system"]

        completion_kwargs: Dict[str, Any] = {
            "model": model,
            "max_tokens": max_tokens,
            "temperature": temperature,
            "messages": chat,
            **kwargs
        }
        if system_parts:
            completion_kwargs["system"] = "\n\n".join(system_parts)

        response = await self.client.messages.create(**completion_kwargs)
        text = "".join(
            block.text for block in response.content if getattr(block, "type", "text") == "text"
        )

        usage = getattr(response, "usage", None)
        if usage:
            tokens_used = usage.input_tokens + usage.output_tokens
        else:
            tokens_used = count_tokens(text, model)
        return Completion(text=text, tokens_used=tokens_used)
