# backend/app/gemini.py
import logging

import google.generativeai as genai

from . import config
from .errors import InvalidUpstreamResponseError

logger = logging.getLogger(__name__)

MODEL_NAME = "gemini-1.5-flash"
GENERATION_CONFIG = {"temperature": 0.2, "max_output_tokens": 400}


def call_gemini(prompt: str) -> str:
    """
    Generate text for prompt with Gemini.

    Raises MissingConfigurationError when GEMINI_API_KEY is not set; SDK and
    transport errors propagate to the caller.
    """
    api_key = config.get_api_key(config.GEMINI_API_KEY)
    genai.configure(api_key=api_key)
    model = genai.GenerativeModel(MODEL_NAME)

    logger.info("Sending request to Gemini (%s)", MODEL_NAME)
    response = model.generate_content(prompt, generation_config=GENERATION_CONFIG)
    text = (response.text or "").strip()
    if not text:
        raise InvalidUpstreamResponseError("Gemini returned an empty response")
    logger.info("Received summary from Gemini: %s...", text[:100])
    return text
