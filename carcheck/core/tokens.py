import secrets
import string

TOKEN_ALPHABET = string.ascii_letters + string.digits
TOKEN_LENGTH = 32


def generate_token(length: int = TOKEN_LENGTH) -> str:
    """Random alphanumeric bearer token drawn from the OS CSPRNG."""
    return "".join(secrets.choice(TOKEN_ALPHABET) for _ in range(length))


def mask_token(token: str) -> str:
    """Short, log-safe form of a bearer token."""
    return f"{token[:4]}…" if token else ""
