"""
Generative Model - Text-in/text-out client for the concept mapping LLM

Part of the Concept Mapper implementation.
Query: Model invocation

License: MIT
"""

from abc import ABC, abstractmethod
import logging

import openai

from ..exceptions import UpstreamError
from ..infrastructure.monitoring import llm_generation_duration_tracker

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are an assistant that maps educational video transcripts to NCERT textbook "
    "concepts. Base every answer on the given context and follow the requested output "
    "format exactly."
)


class GenerativeModel(ABC):
    """Opaque text completion interface."""

    model: str = "unknown"

    @abstractmethod
    def complete(self, prompt: str) -> str:
        """
        Send a rendered prompt to the model and return its raw reply.

        Raises:
            UpstreamError: If the call fails or times out
        """
        ...


class OpenAIChatModel(GenerativeModel):
    """
    Chat-completions model client.

    A fixed system message sets the task; the whole rendered prompt follows
    as a single user message.
    """

    def __init__(
        self,
        model: str = "gpt-4.1",
        temperature: float = 0.5,
        max_tokens: int = 1000,
        timeout: float = 60.0,
        max_retries: int = 0,
        client=None,
    ):
        """
        Initialize the chat model client.

        Args:
            model: OpenAI chat model to use
            temperature: Sampling temperature
            max_tokens: Maximum tokens in the reply
            timeout: Per-request timeout in seconds
            max_retries: Retries performed by the SDK itself
            client: Pre-built OpenAI client (optional)
        """
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.timeout = timeout
        self.max_retries = max_retries
        self._client = client

    @property
    def client(self):
        """Lazy initialization of OpenAI client."""
        if self._client is None:
            self._client = openai.OpenAI(timeout=self.timeout, max_retries=self.max_retries)
        return self._client

    def complete(self, prompt: str) -> str:
        try:
            with llm_generation_duration_tracker(self.model):
                response = self.client.chat.completions.create(
                    model=self.model,
                    messages=[
                        {"role": "system", "content": SYSTEM_PROMPT},
                        {"role": "user", "content": prompt},
                    ],
                    temperature=self.temperature,
                    max_tokens=self.max_tokens,
                )
        except openai.APITimeoutError as e:
            logger.error(f"Model request timed out: {str(e)}")
            raise UpstreamError(
                f"Model request timed out: {str(e)}", component="llm", timed_out=True
            ) from e
        except Exception as e:
            logger.error(f"Error generating model reply: {str(e)}")
            raise UpstreamError(f"Model request failed: {str(e)}", component="llm") from e

        content = response.choices[0].message.content
        if content is None:
            raise UpstreamError("Model returned an empty reply", component="llm")

        return content
