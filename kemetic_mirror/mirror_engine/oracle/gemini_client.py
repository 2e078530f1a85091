# kemetic_mirror/mirror_engine/oracle/gemini_client.py
"""Gemini calls behind the "transmute my photo" feature.

The render loop never waits on these; the app runs them as a separate task
and only looks at the outcome.
"""

import logging
import os
from typing import Optional

from google import genai
from google.genai import errors as genai_errors
from google.genai import types
from pydantic import BaseModel

from ..common.errors import GenerationError
from .archetypes import Archetype

logger = logging.getLogger(__name__)

SILENT_SANDS = "The sands of time are silent."
FADED_HIEROGLYPHS = "The hieroglyphs are faded and cannot be read."

TRANSMUTE_PROMPT = """Edit this photo to show the person wearing this costume: {modifier}

Important:
- Maintain the person's facial identity and features.
- High quality, photorealistic, cinematic lighting.
- Do not distort the face."""

DECREE_PROMPT = (
    "Write a short, mystical, ancient Egyptian-style royal decree (max 2 sentences) for a {archetype}. "
    "Use archaic, grand language."
)


class Transmutation(BaseModel):
    image: bytes
    mime_type: str = "image/png"
    oracle_text: str


def _reason_name(reason) -> str:
    return getattr(reason, "name", None) or str(reason)


class OracleClient:
    """Image editing and decree generation through ``google-genai``."""

    def __init__(self, config: dict, client: Optional[genai.Client] = None):
        self.config = config
        self.image_model = config.get('image_model', 'gemini-2.5-flash-image')
        self.text_model = config.get('text_model', 'gemini-2.5-flash')
        if client is None:
            api_key_env = config.get('api_key_env', 'GEMINI_API_KEY')
            api_key = os.environ.get(api_key_env)
            if not api_key:
                raise GenerationError(f"{api_key_env} is missing from environment variables.")
            client = genai.Client(api_key=api_key)
        self._client = client

    async def transmute_image(self, jpeg_bytes: bytes, prompt_modifier: str) -> Transmutation:
        """Returns the edited image; raises GenerationError when the model gives none."""
        try:
            response = await self._client.aio.models.generate_content(
                model=self.image_model,
                contents=[
                    types.Part.from_bytes(data=jpeg_bytes, mime_type="image/jpeg"),
                    TRANSMUTE_PROMPT.format(modifier=prompt_modifier),
                ],
            )
        except genai_errors.APIError as e:
            raise GenerationError(f"Transmutation failed: {e}") from e
        except Exception as e:
            # Transport failures (connect errors, timeouts) never reach the API layer.
            logger.warning("Transmutation request failed: %s", e)
            raise GenerationError(f"Transmutation request failed: {e}") from e

        candidates = getattr(response, "candidates", None) or []
        if not candidates:
            raise GenerationError("The Oracle remained silent (No candidates returned).")
        candidate = candidates[0]

        reason = getattr(candidate, "finish_reason", None)
        if reason is not None and _reason_name(reason) != "STOP":
            logger.warning("Transmutation finish reason: %s", _reason_name(reason))
            if _reason_name(reason) == "SAFETY":
                raise GenerationError(
                    "The transformation was blocked by safety filters. "
                    "Please try a different pose or expression."
                )

        content = getattr(candidate, "content", None)
        parts = (getattr(content, "parts", None) if content is not None else None) or []
        for part in parts:
            inline = getattr(part, "inline_data", None)
            if inline is not None and inline.data:
                return Transmutation(image=inline.data, mime_type=getattr(inline, "mime_type", None) or "image/png", oracle_text="")

        text = next((part.text for part in parts if getattr(part, "text", None)), None)
        if text:
            logger.warning("Oracle answered with text only: %s", text)
            raise GenerationError(f'The Oracle spoke, but gave no image: "{text[:100]}..."')
        raise GenerationError("The Oracle's vision was clouded (No image data found in response).")

    async def consult_oracle(self, archetype_name: str) -> str:
        """Returns a short decree; never raises, falling back to a fixed line."""
        try:
            response = await self._client.aio.models.generate_content(
                model=self.text_model,
                contents=DECREE_PROMPT.format(archetype=archetype_name),
            )
        except Exception as e:
            logger.warning("Oracle failed: %s", e)
            return FADED_HIEROGLYPHS
        return getattr(response, "text", None) or SILENT_SANDS

    async def transmute(self, jpeg_bytes: bytes, archetype: Archetype) -> Transmutation:
        result = await self.transmute_image(jpeg_bytes, archetype.prompt_modifier)
        oracle_text = await self.consult_oracle(archetype.name)
        return result.model_copy(update={"oracle_text": oracle_text})
