import re
import secrets
import string
from urllib.parse import urlsplit

ALPHABET = string.ascii_letters + string.digits
CODE_MIN_LENGTH = 6
CODE_MAX_LENGTH = 8
MAX_URL_LENGTH = 2048

# Valid-looking codes that fixed routes would shadow
RESERVED_CODES = {"healthz"}

_CODE_RE = re.compile(rf"[A-Za-z0-9]{{{CODE_MIN_LENGTH},{CODE_MAX_LENGTH}}}")


def generate_code(length: int = CODE_MIN_LENGTH) -> str:
    return "".join(secrets.choice(ALPHABET) for _ in range(length))


def is_valid_code(code) -> bool:
    return isinstance(code, str) and _CODE_RE.fullmatch(code) is not None


def is_reserved_code(code: str) -> bool:
    return code.lower() in RESERVED_CODES


def is_valid_url(url) -> bool:
    """Accept absolute URLs only: a scheme and a host are required."""
    if not isinstance(url, str) or not url or len(url) > MAX_URL_LENGTH:
        return False
    if any(ch.isspace() for ch in url):
        return False
    try:
        parts = urlsplit(url)
        host = parts.hostname
    except ValueError:
        return False
    return bool(parts.scheme) and bool(host)
