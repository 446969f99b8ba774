"""Room code generation and lookup normalization."""

import secrets

# No I, O, 0 or 1: codes are read aloud and typed by hand.
ROOM_CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
ROOM_CODE_LENGTH = 5


def generate_room_code() -> str:
    return "".join(secrets.choice(ROOM_CODE_ALPHABET) for _ in range(ROOM_CODE_LENGTH))


def normalize_room_code(raw: str) -> str:
    """Room codes are matched case-insensitively, ignoring surrounding whitespace."""
    return raw.strip().upper()
