"""Extraction of the load balancer's request start time.

Front-line proxies (nginx, HAProxy, Heroku router) stamp requests with an
X-Request-Start header. Known encodings:

    t=1764410986.245        seconds with a "t=" prefix
    1764410986.245          bare seconds
    1764410986245           milliseconds
    1764410986245000        microseconds
"""

import re
from collections.abc import Mapping

# WSGI/CGI environ form first, then the raw header name.
HEADER_NAMES = ("HTTP_X_REQUEST_START", "X-Request-Start")

# Year 2100 in seconds. Anything larger cannot be seconds since epoch.
_MAX_PLAUSIBLE_SECONDS = 4_102_444_800

_PREFIXED = re.compile(r"t=([\d.]+)")
_BARE = re.compile(r"[\d.]+")


def find_request_start_header(headers: Mapping[str, str]) -> str | None:
    """Return the raw start time header value, or None if absent.

    Exact names are tried first; ASGI and most frameworks lowercase header
    names, so a case-insensitive match is the fallback.
    """
    for name in HEADER_NAMES:
        value = headers.get(name)
        if value is not None:
            return value
    wanted = {name.lower() for name in HEADER_NAMES}
    for name, value in headers.items():
        if name.lower() in wanted:
            return value
    return None


def normalize_epoch(timestamp: float) -> float:
    """Convert a millisecond or microsecond epoch value to seconds.

    Values up to year 2100 are taken as seconds. Larger values are
    classified by the digit count of their integer part: up to 10 digits
    stays as is, 11-13 digits is milliseconds, 14 or more is microseconds.
    """
    if timestamp <= _MAX_PLAUSIBLE_SECONDS:
        return timestamp
    digit_count = len(str(int(timestamp)))
    if digit_count <= 10:
        return timestamp
    if digit_count <= 13:
        return timestamp / 1_000.0
    return timestamp / 1_000_000.0


def parse_request_start(value: str) -> float | None:
    """Parse a start time header value into seconds since epoch.

    Args:
        value: Raw header value.

    Returns:
        Start time in seconds, or None if the value is malformed.
    """
    try:
        match = _PREFIXED.search(value)
        if match:
            raw = match.group(1)
        elif _BARE.fullmatch(value):
            raw = value
        else:
            return None
        return normalize_epoch(float(raw))
    except (TypeError, ValueError, OverflowError):
        return None


def extract_request_start(headers: Mapping[str, str]) -> float | None:
    """Extract the request start time from request headers.

    Never raises: a missing or malformed header yields None.

    Args:
        headers: Header mapping, or a WSGI environ.

    Returns:
        Start time in seconds since epoch, or None.
    """
    try:
        value = find_request_start_header(headers)
    except (AttributeError, TypeError):
        return None
    if value is None:
        return None
    return parse_request_start(str(value))
