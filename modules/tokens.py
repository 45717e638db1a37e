"""Job tokens and the QR payload that carries them.

A token is a prefix plus a short random number ('PS-482', 'FO-107'). QR codes
encode '<namespace>:<token>' so that arbitrary codes held up to the scanner
are rejected instead of being looked up.
"""

from __future__ import annotations

import random
from typing import Collection, Optional

from models.job import ONLINE_TOKEN_PREFIX, WALK_IN_TOKEN_PREFIX

DEFAULT_NAMESPACE = "PrintSmart-Token"
DEFAULT_DIGITS = 3


def token_prefix(is_walk_in: bool) -> str:
    return WALK_IN_TOKEN_PREFIX if is_walk_in else ONLINE_TOKEN_PREFIX


def generate_token(
    is_walk_in: bool,
    taken: Collection[str],
    rng: random.Random,
    digits: int = DEFAULT_DIGITS,
) -> str:
    """
    Draw a token that is not in `taken`.

    Numbers are drawn without a leading zero (100-999 for three digits).
    Once every number of the current width is taken for this prefix, the
    width grows by one digit, so generation always terminates.
    """
    prefix = token_prefix(is_walk_in)

    while True:
        low, high = 10 ** (digits - 1), 10 ** digits - 1
        used = sum(1 for t in taken if _has_width(t, prefix, digits))
        if used < high - low + 1:
            break
        digits += 1

    while True:
        candidate = f"{prefix}-{rng.randint(low, high)}"
        if candidate not in taken:
            return candidate


def qr_payload(token: str, namespace: str = DEFAULT_NAMESPACE) -> str:
    return f"{namespace}:{token}"


def parse_qr_payload(text: str, namespace: str = DEFAULT_NAMESPACE) -> Optional[str]:
    """Token from a decoded QR string, or None if it is not one of ours."""
    if not text:
        return None
    marker = f"{namespace}:"
    if not text.startswith(marker):
        return None
    token = text[len(marker):].strip()
    return token or None


def _has_width(token: str, prefix: str, digits: int) -> bool:
    head, _, number = token.partition("-")
    return head == prefix and number.isdigit() and len(number) == digits
