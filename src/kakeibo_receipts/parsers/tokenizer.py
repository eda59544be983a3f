"""Line splitting shared by every receipt parser."""

from typing import List, Optional


def tokenize(text: Optional[str]) -> List[str]:
    """
    Split raw OCR text into trimmed, non-empty lines.

    Args:
        text: Raw OCR text (may be None or empty)

    Returns:
        Lines in document order
    """
    if not text:
        return []

    lines = []
    for line in text.split('\n'):
        line = line.strip()
        if line:
            lines.append(line)
    return lines
