"""Post identifier extraction from submission URLs."""

from __future__ import annotations

import re


# Returned when no identifier can be extracted. Never equal to a real id,
# and never treated as matching another NO_POST_ID record.
NO_POST_ID = ""

_POST_ID_PATTERNS = (
    re.compile(r"instagram\.com/p/([A-Za-z0-9_-]+)"),
    re.compile(r"instagram\.com/reels?/([A-Za-z0-9_-]+)"),
    re.compile(r"instagram\.com/[\w.]+/p/([A-Za-z0-9_-]+)"),
    re.compile(r"instagram\.com/[\w.]+/reels?/([A-Za-z0-9_-]+)"),
)


def extract_post_id(url: object) -> str:
    """
    Extract the post identifier from a submission URL.

    Args:
        url: Submission URL, e.g. "https://www.instagram.com/p/ABC123/".

    Returns:
        The identifier, or NO_POST_ID when the URL has no recognizable shape.
    """
    if not isinstance(url, str) or not url:
        return NO_POST_ID

    for pattern in _POST_ID_PATTERNS:
        match = pattern.search(url)
        if match:
            return match.group(1)

    return NO_POST_ID


def has_post_id(post_id: str) -> bool:
    return post_id != NO_POST_ID
