"""
MessagePack framing for the WebSocket protocol.

Every frame carries exactly one map. Decoding enforces size limits so a
hostile client cannot make the server allocate large buffers.
"""

from typing import Any

import msgpack

# Size limits to prevent resource exhaustion from malicious payloads.
MAX_BUFFER_LEN = 16 * 1024  # a full submission is well under 2KB
MAX_STR_LEN = 4 * 1024
MAX_BIN_LEN = 256
MAX_ARRAY_LEN = 64
MAX_MAP_LEN = 64
MAX_EXT_LEN = 256


class DecodeError(Exception):
    """Raised when an incoming frame is not a bounded MessagePack map."""


def encode(data: dict[str, Any]) -> bytes:
    return msgpack.packb(data, use_bin_type=True)


def decode(data: bytes) -> dict[str, Any]:
    """
    Decode one frame into a dict.

    Raises DecodeError if data is invalid, not a map, or exceeds the limits.
    """
    if len(data) > MAX_BUFFER_LEN:
        raise DecodeError(f"payload too large: {len(data)} bytes (max {MAX_BUFFER_LEN})")
    try:
        result = msgpack.unpackb(
            data,
            raw=False,
            strict_map_key=True,
            max_str_len=MAX_STR_LEN,
            max_bin_len=MAX_BIN_LEN,
            max_array_len=MAX_ARRAY_LEN,
            max_map_len=MAX_MAP_LEN,
            max_ext_len=MAX_EXT_LEN,
        )
    except (msgpack.UnpackException, ValueError) as e:
        raise DecodeError(f"failed to decode MessagePack data: {e}") from e

    if not isinstance(result, dict):
        raise DecodeError(f"expected map, got {type(result).__name__}")

    return result
