"""
URI and value helpers shared across the pipeline.
"""
import re
from typing import Any, Optional
from urllib.parse import urlparse

from embedscout.constants import MAX_URL_LENGTH
from embedscout.errors import MalformedInput

_SCHEME_RELATIVE_RE = re.compile(r"^//", re.IGNORECASE)
_HTTP_SCHEME_RE = re.compile(r"^https?://", re.IGNORECASE)


def prepare_uri(uri: Optional[str]) -> str:
    """
    Normalize a user supplied URI before any fetch or plugin work.

    Scheme-relative URIs ("//host/path") get "http:" prepended and bare
    hosts get "http://". Empty input, or input without a usable host,
    raises MalformedInput.

    Args:
        uri: Raw URI as given by the caller

    Returns:
        Absolute http(s) URI

    Raises:
        MalformedInput: If the URI is missing or has no host
    """
    if uri is None or not isinstance(uri, str):
        raise MalformedInput("'uri' expected")

    uri = uri.strip()
    if not uri:
        raise MalformedInput("'uri' expected")

    if _SCHEME_RELATIVE_RE.match(uri):
        uri = "http:" + uri
    elif not _HTTP_SCHEME_RE.match(uri):
        uri = "http://" + uri

    if len(uri) > MAX_URL_LENGTH:
        raise MalformedInput(f"URI longer than {MAX_URL_LENGTH} characters")

    if not extract_host(uri):
        raise MalformedInput(f"No host in URI: {uri}")

    return uri


def extract_host(uri: str) -> str:
    """Return the lower-cased hostname of a URI, or '' if there is none."""
    try:
        return (urlparse(uri).hostname or "").lower()
    except ValueError:
        return ""


def host_matches_domain(host: str, domain: str) -> bool:
    """True if host equals domain or is a subdomain of it."""
    if not host or not domain:
        return False
    host = host.lower().rstrip(".")
    domain = domain.lower().strip(".")
    return host == domain or host.endswith("." + domain)


def coerce_int(value: Any) -> Optional[int]:
    """
    Coerce a dimension-like value to a positive int.

    Returns None for missing, zero, negative or unparseable values so that
    callers can omit the field instead of emitting a placeholder.
    """
    if value is None or isinstance(value, bool):
        return None
    try:
        number = int(float(value))
    except (TypeError, ValueError):
        return None
    return number if number > 0 else None
