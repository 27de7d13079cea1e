import asyncio
import os
from typing import Any, Optional

from openai import AsyncOpenAI

from adapters.base import BaseLLM
from adapters.utils import create_session_with_pooling

DEFAULT_TEMPERATURE = 0.7


class OpenAILLM(BaseLLM):
    """OpenAI chat-completion provider used as a plain prompt-in, text-out call."""

    def __init__(
        self,
        model: str = "gpt-4o-mini",
        temperature: float = DEFAULT_TEMPERATURE,
        max_tokens: Optional[int] = None,
        **kwargs: Any,
    ):
        api_key = kwargs.pop("api_key", None) or os.environ.get("OPENAI_API_KEY")
        base_url = kwargs.pop("base_url", None)
        super().__init__(model, **kwargs)

        self.client = AsyncOpenAI(api_key=api_key, base_url=base_url)
        self.temperature = temperature
        self.max_tokens = max_tokens

    async def generate(self, prompt: str, **kwargs: Any) -> str:
        response = await self.client.chat.completions.create(
            model=self.model,
            messages=[{"role": "user", "content": prompt}],
            temperature=kwargs.get("temperature", self.temperature),
            max_tokens=kwargs.get("max_tokens", self.max_tokens),
        )
        return response.choices[0].message.content or ""


class OllamaLLM(BaseLLM):
    """Ollama local completion provider with connection pooling."""

    def __init__(
        self,
        model: str = "llama3",
        temperature: float = DEFAULT_TEMPERATURE,
        max_tokens: Optional[int] = None,
        base_url: str = "http://localhost:11434",
        **kwargs: Any,
    ):
        super().__init__(model, **kwargs)
        self.base_url = base_url.rstrip("/")
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.session = create_session_with_pooling()

    def _build_payload(self, prompt: str, **kwargs: Any) -> dict[str, Any]:
        """Build request payload for Ollama API."""
        payload: dict[str, Any] = {
            "model": self.model,
            "prompt": prompt,
            "stream": False,
            "options": {"temperature": kwargs.get("temperature", self.temperature)},
        }
        max_tokens = kwargs.get("max_tokens", self.max_tokens)
        if max_tokens:
            payload["options"]["num_predict"] = max_tokens
        return payload

    def _post_generate(self, payload: dict[str, Any]) -> str:
        response = self.session.post(
            f"{self.base_url}/api/generate",
            json=payload,
            timeout=120,
        )
        response.raise_for_status()
        return response.json()["response"]

    async def generate(self, prompt: str, **kwargs: Any) -> str:
        return await asyncio.to_thread(self._post_generate, self._build_payload(prompt, **kwargs))
