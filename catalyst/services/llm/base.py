"""Abstract completion provider interface. All providers must implement this."""

from abc import ABC, abstractmethod

# Substituted when the provider answers but the payload carries no text
NO_ANSWER_MESSAGE = "Desculpe, não consegui processar sua solicitação."

# Generation parameters shared by providers that accept them
TEMPERATURE = 0.7
TOP_K = 40
TOP_P = 0.95
MAX_OUTPUT_TOKENS = 1024


class BaseLLMProvider(ABC):
    name: str = "base"

    @abstractmethod
    async def complete(self, prompt: str) -> str:
        """Return the completion text for a single prompt.

        Raises UpstreamFailure on any provider error, including timeouts.
        """
        ...
