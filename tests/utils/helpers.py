"""
Helpers for building test data.
"""

import json


def text_parts(text: str) -> str:
    """Serialized parts of a message holding a single text segment."""
    return json.dumps([{"type": "text", "text": text}])
