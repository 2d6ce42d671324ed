"""Cryptographic helpers for the authorization flow."""

from authflow.core.crypto.tokens import TOKEN_ALPHABET, generate_random

__all__ = [
    "TOKEN_ALPHABET",
    "generate_random",
]
