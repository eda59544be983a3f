"""Decoding of saved OCR provider responses into receipt text."""

import json
import logging
from pathlib import Path
from typing import Any, Dict

logger = logging.getLogger(__name__)


class OCRError(Exception):
    """The OCR provider returned no usable text; the user enters data manually."""


def extract_parsed_text(response: Dict[str, Any]) -> str:
    """
    Pull the recognized text out of an OCR provider response.

    Args:
        response: Decoded JSON with IsErroredOnProcessing / ParsedResults

    Returns:
        Text of all parsed pages joined by newlines

    Raises:
        OCRError: If the provider reported an error or returned no text
    """
    if not isinstance(response, dict):
        raise OCRError("OCR response is not a JSON object")

    if response.get('IsErroredOnProcessing'):
        message = response.get('ErrorMessage') or 'OCR processing failed'
        if isinstance(message, list):
            message = '; '.join(str(m) for m in message)
        raise OCRError(str(message))

    pages = [
        page.get('ParsedText') or ''
        for page in response.get('ParsedResults') or []
        if isinstance(page, dict)
    ]
    text = '\n'.join(page for page in pages if page.strip())
    if not text:
        raise OCRError("OCR response contains no recognized text")

    return text


def load_ocr_text(path: Path) -> str:
    """
    Read a saved OCR result.

    JSON files are decoded as provider responses; anything else is read
    as plain UTF-8 text.
    """
    path = Path(path)
    if path.suffix.lower() == '.json':
        try:
            with open(path, 'r', encoding='utf-8') as f:
                response = json.load(f)
        except json.JSONDecodeError as e:
            raise OCRError(f"Invalid OCR JSON in {path.name}: {e}") from e
        logger.debug(f"Loaded OCR response from {path.name}")
        return extract_parsed_text(response)

    return path.read_text(encoding='utf-8')
