import re
import secrets
import string
from urllib.parse import urlparse

ALPHABET = string.ascii_letters + string.digits
CODE_PATTERN = re.compile(r"[A-Za-z0-9]{6,8}")
ALLOWED_SCHEMES = {"http", "https"}


def generate_code(length: int = 6) -> str:
    return "".join(secrets.choice(ALPHABET) for _ in range(length))


def is_valid_code(code: str) -> bool:
    """Codes are 6-8 ASCII letters or digits."""
    return isinstance(code, str) and CODE_PATTERN.fullmatch(code) is not None


def normalize_url(url: str) -> str:
    """Trim the input and default to https:// when no http(s) scheme is given.

    Nothing else is touched: casing, trailing slashes and query strings are
    kept as the user typed them.
    """
    url = url.strip()
    if not url.startswith(("http://", "https://")):
        return f"https://{url}"
    return url


def is_valid_url(url: str) -> bool:
    """Return True for an absolute http/https URL with a host."""
    if not url or any(ch.isspace() for ch in url):
        return False
    try:
        parsed = urlparse(url)
        # .port raises on a non-numeric or out of range port
        parsed.port
    except ValueError:
        return False
    # "https://ftp://x.com" parses with netloc "ftp:"
    if parsed.netloc.endswith(":"):
        return False
    return parsed.scheme in ALLOWED_SCHEMES and bool(parsed.hostname)
