import re
from urllib.parse import urlsplit, urlunsplit

TOKEN_SEPARATORS = re.compile(r"[\n\r\t ,]+")

# host.tld or localhost, optional port
HOST_PATTERN = re.compile(r"^(localhost|[A-Za-z0-9-]+(\.[A-Za-z0-9-]+)*\.[A-Za-z]{2,})(:\d+)?$")

def tokenize(text: str) -> list[str]:
    """Splits pasted text on newlines, tabs, spaces and commas; drops empty tokens."""
    return [t.strip() for t in TOKEN_SEPARATORS.split(text or "") if t.strip()]

def normalize_url(token: str) -> str:
    """
    Canonical form used for de-duplication.
    - A scheme-less host ("a.com") becomes https://a.com/.
    - A bare host URL gets a trailing slash; paths are kept as written.
    """
    value = token.strip()
    if "://" not in value:
        value = f"https://{value}"

    parts = urlsplit(value)
    path = parts.path or "/"
    return urlunsplit((parts.scheme.lower(), parts.netloc, path, parts.query, parts.fragment))

def looks_like_url(value: str) -> bool:
    """Minimal http(s) URL check, applied to normalized values."""
    if any(c.isspace() for c in value):
        return False
    try:
        parts = urlsplit(value)
    except ValueError:
        return False
    if parts.scheme not in ("http", "https"):
        return False
    return bool(HOST_PATTERN.match(parts.netloc))
