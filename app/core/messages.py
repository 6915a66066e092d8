"""Text a wallet signs to prove ownership of an address for a given nonce."""

from typing import Tuple

LOGIN_MESSAGE_PREFIX = "Sign in to Grainlify"


def login_message(nonce: str) -> str:
    return f"{LOGIN_MESSAGE_PREFIX}\nNonce: {nonce}"


def legacy_login_message(nonce: str) -> str:
    """
    Older signing tools pasted the escaped form, so the separator is a literal
    backslash followed by ``n`` instead of a newline.
    """
    return f"{LOGIN_MESSAGE_PREFIX}\\nNonce: {nonce}"


def candidate_messages(nonce: str) -> Tuple[str, str]:
    """Messages accepted for a nonce, in the order they are tried."""
    return login_message(nonce), legacy_login_message(nonce)
