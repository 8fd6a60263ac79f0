"""
JSON encoder/decoder for the WebSocket event channel.

Every frame on the wire is a single JSON object carrying a ``type``
discriminator. Decoding enforces a size limit and the object shape; field
validation happens later, in the message models.
"""

import json
from typing import Any

# Frames larger than this many UTF-8 bytes are rejected before parsing.
MAX_FRAME_LEN = 4096


class DecodeError(Exception):
    """Error raised when an incoming frame cannot be decoded into a dict."""


def encode(data: dict[str, Any]) -> str:
    """
    Encode a dict to a compact JSON string.
    """
    return json.dumps(data, separators=(",", ":"), ensure_ascii=False)


def decode(data: str | bytes) -> dict[str, Any]:
    """
    Decode a JSON text (or UTF-8 bytes) frame to a dict.

    Raises DecodeError if data is not valid UTF-8 JSON, not an object, or exceeds the size limit.
    """
    size = len(data.encode("utf-8", errors="surrogatepass")) if isinstance(data, str) else len(data)
    if size > MAX_FRAME_LEN:
        raise DecodeError(f"frame too large: {size} bytes (max {MAX_FRAME_LEN})")
    try:
        text = data.decode("utf-8") if isinstance(data, bytes) else data
        result = json.loads(text)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise DecodeError(f"failed to decode JSON frame: {e}") from e

    if not isinstance(result, dict):
        raise DecodeError(f"expected object, got {type(result).__name__}")

    return result
