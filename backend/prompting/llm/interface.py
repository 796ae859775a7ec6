"""LLM client interface: provider-agnostic classification contract.

The model receives: system persona instructions + rendered context + normalized input.
The model returns: raw text expected to parse as the ModelReply JSON schema.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class LLMRequest:
    system_prompt: str
    context_block: str
    user_input: str

    def user_message(self) -> str:
        """Context and input folded into one user turn."""
        if self.context_block:
            return f"{self.context_block}\n\nUser input: {self.user_input}"
        return f"User input: {self.user_input}"


@dataclass
class LLMResponse:
    text: str
    latency_ms: float
    model: str = ""


class LLMClient(ABC):
    """Abstract language-model client."""

    @abstractmethod
    async def complete(self, request: LLMRequest) -> LLMResponse:
        """Issue one classification request.

        Raises ClassificationNetworkError / ServiceUnavailableError on transport
        or provider failure. Must tolerate task cancellation.
        """
        ...

    @abstractmethod
    async def is_healthy(self) -> bool:
        ...
