"""Async client for a local Ollama server.

Used by the natural-language suggester to turn free text into a structured
``{kind, props}`` suggestion. Failures never raise: every call returns an
``OllamaResponse`` whose ``success`` flag tells the caller what happened.

Typical usage::

    client = OllamaClient()
    if await client.is_available():
        resp = await client.generate("Describe a login button", model="llama3.1:8b")
        print(resp.text)
"""

from __future__ import annotations

import httpx
from pydantic import BaseModel, Field


class OllamaResponse(BaseModel):
    """Outcome of one completion call; ``success`` is False on any transport error."""

    text: str = Field(default="", description="Generated text")
    model: str = Field(default="", description="Model that produced the response")
    duration_ms: float = Field(default=0.0, description="Server-side generation time in ms")
    success: bool = Field(default=True, description="Whether the request succeeded")
    error: str | None = Field(default=None, description="Error message on failure")


class OllamaClient:
    """Talks to ``/api/generate`` and ``/api/tags``; one short-lived
    ``httpx.AsyncClient`` per call."""

    def __init__(self, base_url: str = "http://localhost:11434", timeout: int = 30) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            timeout=httpx.Timeout(self.timeout, connect=5.0),
        )

    @staticmethod
    def _extract_text(data: dict) -> str:
        """Ollama's non-streaming response puts the full text in ``"response"``."""
        return data.get("response", "")

    @staticmethod
    def _extract_duration_ms(data: dict) -> float:
        """The API reports ``total_duration`` in nanoseconds."""
        ns = data.get("total_duration", 0)
        return ns / 1_000_000.0

    async def generate(
        self,
        prompt: str,
        model: str = "llama3.1:8b",
        system: str = "",
        json_mode: bool = False,
    ) -> OllamaResponse:
        """Run one non-streaming completion.

        With *json_mode* the server constrains the output to a JSON document,
        which is what the suggester asks for.
        """
        payload: dict = {"model": model, "prompt": prompt, "stream": False}
        if system:
            payload["system"] = system
        if json_mode:
            payload["format"] = "json"

        try:
            async with self._client() as client:
                response = await client.post("/api/generate", json=payload)
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPError as exc:
            return OllamaResponse(model=model, success=False, error=self._describe(exc))

        return OllamaResponse(
            text=self._extract_text(data),
            model=data.get("model", model),
            duration_ms=self._extract_duration_ms(data),
        )

    def _describe(self, exc: httpx.HTTPError) -> str:
        if isinstance(exc, httpx.ConnectError):
            return f"Cannot connect to Ollama at {self.base_url}"
        if isinstance(exc, httpx.TimeoutException):
            return f"Ollama timed out after {self.timeout}s"
        if isinstance(exc, httpx.HTTPStatusError):
            return f"Ollama answered HTTP {exc.response.status_code}: {exc.response.text[:200]}"
        return f"Unexpected error talking to Ollama: {exc}"

    async def is_available(self) -> bool:
        """Whether the server answers ``/api/tags``."""
        try:
            async with self._client() as client:
                response = await client.get("/api/tags")
        except httpx.HTTPError:
            return False
        return response.status_code == 200
