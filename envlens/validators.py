"""Built-in validation predicates and transforms for value classification."""

import json
import logging
import re
from typing import Optional, Sequence

logger = logging.getLogger(__name__)

# Precompiled regex patterns
NUMBER_PATTERN = re.compile(r'^-?[0-9]+(?:\.[0-9]+)?$')
BOOLEAN_PATTERN = re.compile(r'^(?:true|false|yes|no|1|0)$', re.IGNORECASE)
IPV4_PATTERN = re.compile(r'^([0-9]{1,3})\.([0-9]{1,3})\.([0-9]{1,3})\.([0-9]{1,3})$')
URL_PATTERN = re.compile(
    r'^(https?)://([^/?#\s]+)(/[^?#\s]*)?(\?[^#\s]*)?(#\S*)?$', re.IGNORECASE
)
LOCALHOST_PATTERN = re.compile(
    r'^https?://(localhost|127\.0\.0\.1)(:[0-9]+)?(?:[/?#]\S*)?$', re.IGNORECASE
)
DATABASE_URL_PATTERN = re.compile(
    r'^([A-Za-z0-9+]+)://([^:/@\s]+:[^@\s]*@)?([^/:?\s]*)(:[0-9]+)?(/[^?\s]*)?(\?\S*)?$'
)
ISO_DATE_PATTERN = re.compile(r'^([0-9]{4})-([0-9]{2})-([0-9]{2})$')
ISO_TIME_PATTERN = re.compile(r'^([0-9]{2}):([0-9]{2}):([0-9]{2})$')
JSON_PATTERN = re.compile(r'^\s*[{\[].*[}\]]\s*$', re.DOTALL)
HEX_COLOR_PATTERN = re.compile(r'^#([0-9a-fA-F]{3}|[0-9a-fA-F]{6})$')

# Key/value fragments such as "DEBUG=yes"
KEY_VALUE_PATTERN = re.compile(r'^([A-Za-z_][A-Za-z0-9_]*)=(.*)$', re.DOTALL)

_AUTHORITY_PATTERN = re.compile(r'^([^:]+)(?::([0-9]+))?$')
_HOSTNAME_PATTERN = re.compile(r'^[A-Za-z0-9\-.]+$')
_URL_PATH_PATTERN = re.compile(r'^[A-Za-z0-9\-_./~%]*$')
_URL_QUERY_PATTERN = re.compile(r'^\?[A-Za-z0-9\-_.~=&%+]*$')
_URL_FRAGMENT_PATTERN = re.compile(r'^#[A-Za-z0-9\-_.~%]*$')
_HEX_DIGITS_PATTERN = re.compile(r'^[0-9a-fA-F]+$')

URL_SCHEMES = frozenset({
    "http", "https", "ftp", "sftp", "ws", "wss", "git", "ssh", "file",
})

DB_PROTOCOLS = frozenset({
    "postgresql",
    "postgres",
    "mysql",
    "mongodb",
    "mongodb+srv",
    "redis",
    "rediss",
    "sqlite",
    "mariadb",
    "cockroachdb",
})

TRUTHY_VALUES = frozenset({"true", "yes", "1"})

_THIRTY_DAY_MONTHS = (4, 6, 9, 11)

def _is_valid_port(port: Optional[str]) -> bool:
    """Check a port given as digits, with or without its leading colon."""
    if port is None:
        return True
    port = port.lstrip(':')
    if not port.isascii() or not port.isdigit():
        return False
    return 1 <= int(port) <= 65535

def is_boolean(value: str) -> bool:
    return BOOLEAN_PATTERN.match(value) is not None

def normalize_boolean(value: str) -> str:
    """Collapse a boolean literal to ``"true"`` or ``"false"``."""
    return "true" if value.lower() in TRUTHY_VALUES else "false"

def is_number(value: str) -> bool:
    return NUMBER_PATTERN.match(value) is not None

def _octets_in_range(octets: Sequence[str]) -> bool:
    if len(octets) != 4:
        return False
    for octet in octets:
        if not octet.isascii() or not octet.isdigit() or int(octet) > 255:
            return False
    return True

def is_valid_ipv4(value: str) -> bool:
    """
    Check that a dotted quad has every octet in 0..255.

    Args:
        value: Candidate address such as ``"192.168.0.1"``

    Returns:
        True if the value has four in-range octets
    """
    match = IPV4_PATTERN.match(value)
    if not match:
        return False
    return _octets_in_range(match.groups())

def is_valid_url(value: str) -> bool:
    """
    Validate a URL beyond its structural pattern.

    Checks the scheme against the allow-list, the host shape (dotted name
    or IPv4 literal), the optional port and the character sets of the
    path, query and fragment.

    Args:
        value: Candidate URL

    Returns:
        True if every component is acceptable
    """
    match = URL_PATTERN.match(value)
    if not match:
        return False

    scheme, authority, path, query, fragment = match.groups()
    if scheme.lower() not in URL_SCHEMES:
        return False

    authority_match = _AUTHORITY_PATTERN.match(authority)
    if not authority_match:
        return False
    host, port = authority_match.groups()

    if IPV4_PATTERN.match(host):
        if not is_valid_ipv4(host):
            return False
    else:
        is_hostname = (
            _HOSTNAME_PATTERN.match(host) is not None
            and not host.startswith('.')
            and not host.endswith('.')
            and '..' not in host
            and '.' in host
        )
        if not is_hostname:
            return False

    if not _is_valid_port(port):
        return False

    if path and not _URL_PATH_PATTERN.match(path):
        return False
    if query is not None and not _URL_QUERY_PATTERN.match(query):
        return False
    if fragment is not None and not _URL_FRAGMENT_PATTERN.match(fragment):
        return False

    return True

def is_valid_localhost(value: str) -> bool:
    match = LOCALHOST_PATTERN.match(value)
    if not match:
        return False
    host, port = match.groups()
    if host.lower() not in ("localhost", "127.0.0.1"):
        return False
    return _is_valid_port(port)

def is_valid_database_url(value: str) -> bool:
    """
    Validate a database connection string.

    Args:
        value: Candidate URL such as ``"postgres://user:pw@db:5432/app"``

    Returns:
        True if the scheme is a known database protocol and the
        scheme-specific rules hold
    """
    match = DATABASE_URL_PATTERN.match(value)
    if not match:
        return False

    protocol, _auth, host, port, path, _query = match.groups()
    protocol = protocol.lower()
    if protocol not in DB_PROTOCOLS:
        return False

    if not _is_valid_port(port):
        return False

    if protocol == "sqlite":
        # sqlite:///relative.db has an empty host but needs a real path
        return bool(path) and path != "/"

    if not host:
        return False

    if protocol == "mongodb+srv":
        if port:
            return False
        if '.' not in host:
            return False

    return True

def is_valid_json(value: str) -> bool:
    try:
        json.loads(value)
    except (ValueError, RecursionError):
        return False
    return True

def is_valid_hex_color(value: str) -> bool:
    """Check a ``#RGB`` or ``#RRGGBB`` color, expanding the short form first."""
    digits = value[1:]
    if len(digits) == 3:
        digits = "".join(c * 2 for c in digits)
    return len(digits) == 6 and _HEX_DIGITS_PATTERN.match(digits) is not None

def is_leap_year(year: int) -> bool:
    return (year % 4 == 0 and year % 100 != 0) or year % 400 == 0

def is_valid_date(value: str) -> bool:
    """
    Check that a ``YYYY-MM-DD`` string names a real calendar day.

    Args:
        value: Candidate date

    Returns:
        True for valid dates, False for out-of-range months or days
    """
    match = ISO_DATE_PATTERN.match(value)
    if not match:
        return False
    year, month, day = (int(part) for part in match.groups())

    if month < 1 or month > 12:
        return False
    if day < 1 or day > 31:
        return False
    if month in _THIRTY_DAY_MONTHS and day > 30:
        return False
    if month == 2:
        limit = 29 if is_leap_year(year) else 28
        if day > limit:
            return False
    return True

def is_valid_time(value: str) -> bool:
    match = ISO_TIME_PATTERN.match(value)
    if not match:
        return False
    hour, minute, second = (int(part) for part in match.groups())
    return 0 <= hour < 24 and 0 <= minute < 60 and 0 <= second < 60
