"""
Base LLM Interface
==================

Abstract interface for LLM providers. Completions are untrusted text.
"""

import asyncio
from abc import ABC, abstractmethod

from nl_gateway.errors import LLMUnavailable
from nl_gateway.models import LLMResponse


class LLMInterface(ABC):
    """Abstract interface for LLM providers."""

    @abstractmethod
    async def generate(
        self,
        prompt: str,
        system_prompt: str | None = None,
        model: str | None = None,
        max_tokens: int = 1024,
        temperature: float = 0.0,
    ) -> LLMResponse:
        """
        Generate a response from the LLM.

        Args:
            prompt: The user content
            system_prompt: Optional instruction text
            model: Model identifier, provider default when omitted
            max_tokens: Maximum output size
            temperature: Sampling temperature

        Returns:
            LLMResponse with generated content

        Raises:
            LLMUnavailable: the provider could not be reached or refused
        """
        pass

    async def close(self) -> None:
        """Release provider resources."""


class TimeLimitedLLM(LLMInterface):
    """
    Bounds every completion of another provider by a wall-clock deadline.

    Provider retries count against the same deadline, so a hanging upstream
    surfaces as LLMUnavailable and the caller's fallbacks still run inside
    the request timeout.
    """

    def __init__(self, inner: LLMInterface, timeout: float) -> None:
        self.inner = inner
        self.timeout = timeout

    async def generate(
        self,
        prompt: str,
        system_prompt: str | None = None,
        model: str | None = None,
        max_tokens: int = 1024,
        temperature: float = 0.0,
    ) -> LLMResponse:
        try:
            return await asyncio.wait_for(
                self.inner.generate(
                    prompt,
                    system_prompt=system_prompt,
                    model=model,
                    max_tokens=max_tokens,
                    temperature=temperature,
                ),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError as exc:
            raise LLMUnavailable(f"LLM request exceeded {self.timeout:g}s") from exc

    async def close(self) -> None:
        await self.inner.close()
