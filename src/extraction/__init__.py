"""
Extraction package: transcript text to structured episode content.

Modules:
    models: pydantic models (Track, Event, Guest, ExtractionPayload, ExtractedContent)
    extractor: OpenAIExtractor, output parsing and fallback content
"""

from .models import Event, ExtractedContent, ExtractionPayload, Guest, Track
from .extractor import OpenAIExtractor, build_fallback_content, parse_extraction_output

__all__ = [
    "Event",
    "ExtractedContent",
    "ExtractionPayload",
    "Guest",
    "Track",
    "OpenAIExtractor",
    "build_fallback_content",
    "parse_extraction_output",
]
