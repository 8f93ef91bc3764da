"""
LLM Module
==========

Pluggable LLM interfaces for SQL drafting and answer summaries.
"""

from nl_gateway.llm.base import LLMInterface, TimeLimitedLLM
from nl_gateway.llm.claude import AnthropicLLM
from nl_gateway.llm.mock import MockLLM

__all__ = [
    "LLMInterface",
    "TimeLimitedLLM",
    "AnthropicLLM",
    "MockLLM",
]
