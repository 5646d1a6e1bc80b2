"""
Regular expression patterns for hours extraction.

Place pages embed their data inside script blocks, usually JSON-escaped,
so every quote below is written as an optionally backslash-escaped quote.
"""

import re

from ..models import DAY_NAMES

# Optionally escaped double quote: " or \"
Q = r'\\?"'

# Weekday name capture (Sunday..Saturday)
DAY_NAME = r'(' + '|'.join(DAY_NAMES) + r')'

# Quoted string body; tolerates \uXXXX escapes such as \u2013 (en dash)
FRAGMENT_TEXT = r'((?:\\u[0-9a-fA-F]{4}|[^"\\])*)'

# ============================================================
# STRUCTURED PERIOD PATTERNS
# ============================================================

# {"open":{"day":1,"time":"0900"},"close":{"day":2,"time":"0100"}}
PERIOD_TIME_PATTERN = re.compile(
    Q + r'open' + Q + r'\s*:\s*\{\s*' +
    Q + r'day' + Q + r'\s*:\s*([0-6])\s*,\s*' +
    Q + r'time' + Q + r'\s*:\s*' + Q + r'(\d{4})' + Q + r'\s*\}' +
    r'(?:\s*,\s*' + Q + r'close' + Q + r'\s*:\s*\{\s*' +
    Q + r'day' + Q + r'\s*:\s*([0-6])\s*,\s*' +
    Q + r'time' + Q + r'\s*:\s*' + Q + r'(\d{4})' + Q + r'\s*\})?'
)

# {"open":{"day":1,"hour":9,"minute":0},"close":{"day":1,"hour":17,"minute":30}}
PERIOD_HOUR_MINUTE_PATTERN = re.compile(
    Q + r'open' + Q + r'\s*:\s*\{\s*' +
    Q + r'day' + Q + r'\s*:\s*([0-6])\s*,\s*' +
    Q + r'hour' + Q + r'\s*:\s*(\d{1,2})\s*,\s*' +
    Q + r'minute' + Q + r'\s*:\s*(\d{1,2})\s*\}' +
    r'(?:\s*,\s*' + Q + r'close' + Q + r'\s*:\s*\{\s*' +
    Q + r'day' + Q + r'\s*:\s*([0-6])\s*,\s*' +
    Q + r'hour' + Q + r'\s*:\s*(\d{1,2})\s*,\s*' +
    Q + r'minute' + Q + r'\s*:\s*(\d{1,2})\s*\})?'
)

# ============================================================
# AM/PM TEXT PATTERNS
# ============================================================

# "Friday",["9 am–12 am"
AMPM_DAY_PATTERN = re.compile(
    Q + DAY_NAME + Q + r'\s*,\s*\[\s*' + Q + FRAGMENT_TEXT + Q
)

# ["Friday",5,[2024,1,5],[["9 am–12 am",[[9],[24]]]],0,1]
NESTED_DAY_PATTERN = re.compile(
    r'\[\s*' + Q + DAY_NAME + Q + r'\s*,\s*\d+\s*,\s*\[[^\]]*\]\s*,\s*\[\s*\[\s*' +
    Q + FRAGMENT_TEXT + Q
)

# 9 am / 5:30 pm / 12 / 10.30 p.m.
TIME_OF_DAY = r'(\d{1,2})(?:[:.](\d{2}))?\s*(am|pm|a\.m\.|p\.m\.)?'

# Range separator: en dash, em dash, hyphen or "to"
RANGE_SEPARATOR = r'\s*(?:–|—|-|\bto\b)\s*'

TIME_RANGE_PATTERN = re.compile(
    TIME_OF_DAY + RANGE_SEPARATOR + TIME_OF_DAY,
    re.IGNORECASE
)

HOURS_CLOSED = re.compile(r'\bclosed\b', re.IGNORECASE)
HOURS_24_HOURS = re.compile(r'\b(24\s*hours?|open\s*24)\b', re.IGNORECASE)

# ============================================================
# LEGACY 24-HOUR ARRAY PATTERN
# ============================================================

# ["Monday",1,[2024,1,1],[["9–17",[[9],[17]]]]] with optional minutes: [[12],[22,30]]
LEGACY_DAY_PATTERN = re.compile(
    r'\[\s*' + Q + DAY_NAME + Q + r'\s*,\s*\d+\s*,\s*\[[^\]]+\]\s*,\s*\[\s*\[\s*' +
    Q + FRAGMENT_TEXT + Q + r'\s*,\s*' +
    r'\[\s*\[\s*(\d{1,2})(?:\s*,\s*(\d{1,2}))?\s*\]\s*,\s*' +
    r'\[\s*(\d{1,2})(?:\s*,\s*(\d{1,2}))?\s*\]\s*\]\s*\]\s*\]'
)

# ============================================================
# URL PATTERNS
# ============================================================

# Share links that must redirect to a canonical place page
SHORT_LINK_PATTERN = re.compile(
    r'^https?://(?:maps\.app\.goo\.gl|goo\.gl/maps|share\.google)/',
    re.IGNORECASE
)

UNICODE_ESCAPE = re.compile(r'\\u([0-9a-fA-F]{4})')

# ============================================================
# HELPER FUNCTIONS
# ============================================================

def day_index(day: str) -> int:
    """Weekday index (Sunday=0) for a full or abbreviated day name."""
    prefix = day.strip().lower()[:3]
    if len(prefix) < 3:
        raise ValueError(f"Unknown day name: {day!r}")
    for index, name in enumerate(DAY_NAMES):
        if name.lower().startswith(prefix):
            return index
    raise ValueError(f"Unknown day name: {day!r}")


def clean_fragment(text: str) -> str:
    """
    Decode \\uXXXX escapes and fold the odd spaces place pages use
    (narrow no-break space before am/pm, thin spaces) into plain spaces.
    """
    if not text:
        return ""
    text = UNICODE_ESCAPE.sub(lambda m: chr(int(m.group(1), 16)), text)
    for odd_space in ('\u202f', '\u00a0', '\u2009'):
        text = text.replace(odd_space, ' ')
    return re.sub(r'\s+', ' ', text).strip()


def is_short_link(url: str) -> bool:
    return bool(SHORT_LINK_PATTERN.match(url.strip()))
