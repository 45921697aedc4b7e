from typing import Optional

from openai import OpenAI

from src.config import ExtractionSettings


def init_llm_openai(settings: ExtractionSettings) -> Optional[OpenAI]:
    """
    Initialize OpenAI LLM client.

    Args:
        settings: Extraction settings carrying the API key

    Returns:
        OpenAI client instance, or None when no API key is configured
    """
    if not settings.api_key:
        return None
    return OpenAI(api_key=settings.api_key)
