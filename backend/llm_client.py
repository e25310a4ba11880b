"""
Gemini client built on the google-genai SDK.
Returns the model's raw text; shaping that text is the contract validator's job.
"""

import logging
from typing import Optional

from google import genai
from google.genai import errors, types

logger = logging.getLogger(__name__)


class ModelInvocationError(Exception):
    """The model could not be reached or returned no usable text"""


class GeminiClient:
    def __init__(
        self,
        api_key: Optional[str],
        model: str = "gemini-2.5-flash",
        timeout: float = 60.0,
        client=None,
    ):
        self.model = model
        self._client = client
        if self._client is None and api_key:
            self._client = genai.Client(
                api_key=api_key,
                http_options=types.HttpOptions(timeout=int(timeout * 1000)),
            )

    @property
    def model_version(self) -> str:
        return self.model

    async def generate(self, prompt: str) -> str:
        if self._client is None:
            raise ModelInvocationError("GEMINI_API_KEY not configured")

        try:
            response = await self._client.aio.models.generate_content(
                model=self.model,
                contents=prompt,
                config=types.GenerateContentConfig(response_mime_type="application/json"),
            )
        except errors.APIError as e:
            raise ModelInvocationError(f"Gemini request failed: {e}") from e

        text = response.text
        if not text:
            candidates = response.candidates or []
            finish_reason = candidates[0].finish_reason if candidates else None
            raise ModelInvocationError(
                f"Gemini returned no text (finish reason: {finish_reason}, feedback: {response.prompt_feedback})"
            )
        return text
