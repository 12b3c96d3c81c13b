"""Zhipu chat-completion provider.

This module provides the text-generation collaborator using the Zhipu
OpenAI-compatible ``/chat/completions`` endpoint.
"""

from typing import Any, Optional

import httpx

from skillsearch.providers.base import LLMProvider, ProviderConfig, ProviderError

DEFAULT_BASE_URL = "https://open.bigmodel.cn/api/paas/v4"


class ZhipuLLMProvider(LLMProvider):
    """LLM provider using the Zhipu chat API (GLM models)."""

    def __init__(self, config: ProviderConfig, client: Optional[httpx.AsyncClient] = None) -> None:
        """Initialize the Zhipu LLM provider.

        Args:
            config: Provider configuration with api_key, model_name, etc.
            client: Optional preconfigured HTTP client

        Raises:
            ProviderError: If no API key is configured and no client is given
        """
        super().__init__(config)
        self.model_name = config.model_name
        self.extra_params = config.extra_params

        if client is not None:
            self.client = client
            return

        if not config.api_key:
            raise ProviderError(message="API key is required", provider="zhipu")

        self.client = httpx.AsyncClient(
            base_url=config.base_url or DEFAULT_BASE_URL,
            headers={
                "Authorization": f"Bearer {config.api_key}",
                "Content-Type": "application/json",
            },
            timeout=config.timeout,
        )

    async def generate(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
    ) -> str:
        """Generate text completion using the chat API.

        Raises:
            ProviderError: If the request fails or the response has no content
        """
        messages = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": prompt})

        payload: dict[str, Any] = {
            "model": self.model_name,
            "messages": messages,
            "temperature": temperature if temperature is not None else self.extra_params.get("temperature", 0.3),
            "top_p": self.extra_params.get("top_p", 0.7),
        }
        if max_tokens:
            payload["max_tokens"] = max_tokens

        try:
            response = await self.client.post("/chat/completions", json=payload)
            response.raise_for_status()
            data = response.json()
            content = data["choices"][0]["message"]["content"]
        except httpx.HTTPStatusError as e:
            raise ProviderError(
                message=f"Zhipu API error: {e.response.status_code} - {e.response.text}",
                provider="zhipu",
                original_error=e,
            )
        except (httpx.HTTPError, ValueError, KeyError, IndexError, TypeError) as e:
            raise ProviderError(
                message=f"LLM generation failed: {e}",
                provider="zhipu",
                original_error=e,
            )

        if not isinstance(content, str) or not content.strip():
            raise ProviderError(message="Zhipu API returned an empty completion", provider="zhipu")
        return content.strip()

    async def close(self) -> None:
        """Close the HTTP client."""
        await self.client.aclose()
