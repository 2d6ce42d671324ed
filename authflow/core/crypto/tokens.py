"""Random opaque tokens for ``state``, ``nonce`` and storage handles."""

from __future__ import annotations

import secrets
import string

from authflow.core.errors import InsecureRandomError

TOKEN_ALPHABET = string.ascii_letters + string.digits


def generate_random(length: int) -> str:
    """Generate a random string from a cryptographically secure source.

    Characters are drawn uniformly from ``[A-Za-z0-9]``.

    Args:
        length: Number of characters to return.

    Returns:
        A string of exactly ``length`` characters.

    Raises:
        ValueError: If length is not positive.
        InsecureRandomError: If the platform has no secure random source.
    """
    if length <= 0:
        raise ValueError(f"Token length must be positive, got {length}")

    try:
        return "".join(secrets.choice(TOKEN_ALPHABET) for _ in range(length))
    except NotImplementedError as e:
        # os.urandom has no source; never fall back to a predictable generator
        raise InsecureRandomError("No cryptographically secure random source available") from e
