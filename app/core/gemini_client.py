"""Gemini client for structured JSON scoring calls.

Supports either a Gemini API key or Vertex AI (Application Default
Credentials) and always asks for ``application/json`` output.
"""

import asyncio
import json
import logging
import re
from typing import Any

from google import genai
from google.genai import types

from ..config import settings

logger = logging.getLogger(__name__)

_JSON_OBJECT = re.compile(r"\{.*\}", re.DOTALL)


def parse_json_response(text: str | None) -> dict[str, Any]:
    """
    Parse a model response into a JSON object.

    Tolerates markdown fences and chatter around the object by falling
    back to the outermost ``{...}`` span.

    Raises:
        ValueError: If no JSON object can be recovered
    """
    if not text or not text.strip():
        raise ValueError("Empty response from Gemini")

    try:
        data = json.loads(text)
    except json.JSONDecodeError:
        match = _JSON_OBJECT.search(text)
        if not match:
            raise ValueError(f"Invalid JSON response from Gemini: {text[:200]}")
        try:
            data = json.loads(match.group(0))
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON response from Gemini: {e}") from e

    if not isinstance(data, dict):
        raise ValueError(f"Expected a JSON object from Gemini, got {type(data).__name__}")

    return data


class GeminiClient:
    """
    Async client for Gemini JSON completions.

    Features:
    - API key or Vertex AI authentication
    - System instruction + user payload
    - Structured JSON output
    - Explicit per-call timeout
    """

    def __init__(self, client: Any | None = None):
        """Initialize Gemini client (``client`` overrides the SDK client, for tests)."""
        self.model_name = settings.gemini_model
        self.temperature = settings.gemini_temperature
        self.max_output_tokens = settings.gemini_max_output_tokens
        self.timeout_seconds = settings.gemini_timeout_seconds
        self.client = client or self._init_client()

        logger.info(f"Gemini async client initialized: model={self.model_name}")

    def _init_client(self) -> Any:
        """
        Initialize the async SDK client.

        Prefers an API key; falls back to Vertex AI when a project is set.
        Returns async client via .aio property.
        """
        if settings.gemini_api_key:
            return genai.Client(api_key=settings.gemini_api_key).aio

        if settings.vertex_ai_project_id:
            return genai.Client(
                vertexai=True,
                project=settings.vertex_ai_project_id,
                location=settings.gemini_location,
            ).aio

        raise ValueError("Gemini is not configured (set GEMINI_API_KEY or VERTEX_AI_PROJECT_ID)")

    async def generate_json(
        self,
        prompt: str,
        system_instruction: str,
        temperature: float | None = None,
    ) -> dict[str, Any]:
        """
        Run one completion and return the parsed JSON object.

        Raises:
            TimeoutError: If the call exceeds the configured timeout
            ValueError: If the response has no usable JSON object
            Exception: Any SDK/API error, unchanged
        """
        config = types.GenerateContentConfig(
            system_instruction=system_instruction,
            temperature=self.temperature if temperature is None else temperature,
            max_output_tokens=self.max_output_tokens,
            response_mime_type="application/json",  # Force JSON output
        )

        try:
            response = await asyncio.wait_for(
                self.client.models.generate_content(
                    model=self.model_name,
                    contents=prompt,
                    config=config,
                ),
                timeout=self.timeout_seconds,
            )
        except asyncio.TimeoutError:
            logger.error(f"Gemini API call timed out after {self.timeout_seconds} seconds")
            raise TimeoutError(f"Gemini API call timed out after {self.timeout_seconds} seconds")

        return parse_json_response(response.text)
