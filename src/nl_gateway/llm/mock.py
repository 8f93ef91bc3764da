"""
Mock LLM
========

Mock LLM implementation for testing and offline demos.
"""

from nl_gateway.llm.base import LLMInterface
from nl_gateway.models import LLMResponse


class MockLLM(LLMInterface):
    """
    Mock LLM returning canned completions.

    Every call is recorded in ``calls`` as (system_prompt, prompt) so tests
    can assert how many times the model was asked.
    """

    def __init__(
        self,
        responses: dict[str, list[str]] | None = None,
        default: str = "SELECT 1",
    ) -> None:
        """
        Initialize with canned responses.

        Args:
            responses: Dict mapping prompt substrings to a list of completions.
                       Each completion is returned in sequence (for testing
                       regeneration); the last one repeats.
            default: Completion when no key matches
        """
        self.responses = responses or {}
        self.default = default
        self.call_counts: dict[str, int] = {}
        self.calls: list[tuple[str | None, str]] = []

    async def generate(
        self,
        prompt: str,
        system_prompt: str | None = None,
        model: str | None = None,
        max_tokens: int = 1024,
        temperature: float = 0.0,
    ) -> LLMResponse:
        self.calls.append((system_prompt, prompt))

        for key, completions in self.responses.items():
            if key.lower() in prompt.lower():
                count = self.call_counts.get(key, 0)
                self.call_counts[key] = count + 1
                attempt_idx = min(count, len(completions) - 1)
                return LLMResponse(content=completions[attempt_idx], model="mock-llm-v1")

        return LLMResponse(content=self.default, model="mock-llm-v1")

    def reset(self) -> None:
        """Reset call state for fresh test runs."""
        self.call_counts = {}
        self.calls = []
