"""Deterministic variation assignment using a djb2 (multiply-XOR) hash.

This MUST match the hash inlined in the embed script exactly: the browser
computes its own assignment and only reports the result, so the server-side
copy exists for parity checks and for analytics that need to recompute it.
"""

import random
import string
import time

from app.models.event import VARIATIONS, Variation

DJB2_SEED = 5381
DJB2_MULTIPLIER = 33
MASK_32 = 0xFFFFFFFF

KEY_SEPARATOR = ":"
VARIATION_ORDER: tuple[Variation, ...] = (Variation.A, Variation.B, Variation.C, Variation.D)

_BASE36 = string.digits + string.ascii_lowercase


def _utf16_units(data: str):
    """Yield UTF-16 code units, the same values String.charCodeAt returns."""
    raw = data.encode("utf-16-le", "surrogatepass")
    for i in range(0, len(raw), 2):
        yield raw[i] | (raw[i + 1] << 8)


def djb2(data: str) -> int:
    """Compute the 32-bit unsigned djb2-XOR hash of a string.

    The accumulator is truncated to 32 bits after every step; the overflow is
    part of the distribution and must wrap exactly like the JavaScript
    ``(h * 33) ^ c`` followed by ``h >>> 0``.
    """
    h = DJB2_SEED
    for unit in _utf16_units(data):
        h = ((h * DJB2_MULTIPLIER) ^ unit) & MASK_32
    return h


def assign_bucket(key: str, bucket_count: int) -> int:
    """Map a key to a bucket in ``[0, bucket_count)``."""
    if bucket_count <= 0:
        raise ValueError("bucket_count must be positive")
    return djb2(key) % bucket_count


def assignment_key(visitor_id: str, project_id: str) -> str:
    # Both ids are opaque generated tokens, so a bare separator is enough.
    return f"{visitor_id}{KEY_SEPARATOR}{project_id}"


def assign_variation(visitor_id: str, project_id: str) -> Variation:
    """Assign a visitor to one of the four variations for a project.

    ``djb2(f"{visitor_id}:{project_id}") % 4`` indexes into A, B, C, D.
    The same pair always yields the same variation.
    """
    bucket = assign_bucket(assignment_key(visitor_id, project_id), len(VARIATION_ORDER))
    return VARIATION_ORDER[bucket]


def is_valid_variation(value: str | None) -> bool:
    return value in VARIATIONS


def _to_base36(number: int) -> str:
    if number == 0:
        return "0"
    digits = []
    while number:
        number, rem = divmod(number, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits))


def generate_visitor_id() -> str:
    """Visitor token in the format the embed script persists:
    ``v_<ms timestamp base36>_<9 random base36 chars>``."""
    timestamp = _to_base36(int(time.time() * 1000))
    suffix = "".join(random.choices(_BASE36, k=9))
    return f"v_{timestamp}_{suffix}"
