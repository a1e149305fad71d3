"""Track title normalization for matching.

Hey future me - external charts and local tags spell the same song differently:
"Song Title (Remastered 2011)", "Song Title [Live]", "Song Title feat. Someone".
normalize_title() reduces all of them to "song title" so the matcher can compare.

The steps run in a FIXED order; later steps assume the earlier cleanup happened
(e.g. punctuation stripping must come after the "feat." removal, otherwise the
dot is gone and the clause is no longer recognized).

Examples:
    >>> normalize_title("Song Title (Live) [Remaster] feat. Someone!!")
    'song title'
    >>> normalize_title(None)
    ''
"""

import re

PARENTHESES_PATTERN = re.compile(r"\s*\([^)]*\)")
BRACKETS_PATTERN = re.compile(r"\s*\[[^\]]*\]")
FEATURING_PATTERN = re.compile(r"\s+feat\..*$")
NON_ALPHANUMERIC_PATTERN = re.compile(r"[^a-z0-9\s]")
WHITESPACE_PATTERN = re.compile(r"\s+")


def normalize_title(title: str | None) -> str:
    """Canonicalize a track title for comparison.

    Args:
        title: Free-text track title (may be None)

    Returns:
        Lowercase title without parenthesized/bracketed parts, "feat." clause,
        punctuation or repeated whitespace. Empty string for empty input.
    """
    if not title:
        return ""

    normalized = title.lower()
    normalized = PARENTHESES_PATTERN.sub("", normalized)
    normalized = BRACKETS_PATTERN.sub("", normalized)
    normalized = FEATURING_PATTERN.sub("", normalized)
    normalized = NON_ALPHANUMERIC_PATTERN.sub("", normalized)
    return WHITESPACE_PATTERN.sub(" ", normalized).strip()
