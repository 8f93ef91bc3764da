"""
Anthropic LLM
=============

Claude completions through the Anthropic async SDK.
"""

import anthropic

from nl_gateway.errors import LLMUnavailable
from nl_gateway.llm.base import LLMInterface
from nl_gateway.models import LLMResponse


class AnthropicLLM(LLMInterface):
    def __init__(
        self,
        api_key: str,
        default_model: str = "claude-sonnet-4-5",
        timeout: float = 15.0,
        max_retries: int = 1,
        client: anthropic.AsyncAnthropic | None = None,
    ) -> None:
        self.default_model = default_model
        self.client = client or anthropic.AsyncAnthropic(
            api_key=api_key, timeout=timeout, max_retries=max_retries
        )

    async def generate(
        self,
        prompt: str,
        system_prompt: str | None = None,
        model: str | None = None,
        max_tokens: int = 1024,
        temperature: float = 0.0,
    ) -> LLMResponse:
        kwargs = {
            "model": model or self.default_model,
            "max_tokens": max_tokens,
            "temperature": temperature,
            "messages": [{"role": "user", "content": prompt}],
        }
        if system_prompt:
            kwargs["system"] = system_prompt

        try:
            response = await self.client.messages.create(**kwargs)
        except anthropic.APIError as exc:
            raise LLMUnavailable(f"LLM request failed: {type(exc).__name__}") from exc

        text = "".join(
            block.text for block in response.content if getattr(block, "type", "") == "text"
        )
        usage = response.usage
        return LLMResponse(
            content=text.strip(),
            model=response.model,
            tokens_used=usage.input_tokens + usage.output_tokens,
        )

    async def close(self) -> None:
        await self.client.close()
