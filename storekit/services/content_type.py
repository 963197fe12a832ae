from __future__ import annotations

import filetype

DEFAULT_CONTENT_TYPE = "application/octet-stream"
TEXT_CONTENT_TYPE = "text/plain"

# Only the head of the content is needed to match magic numbers.
_SNIFF_BYTES = 8192


def detect_content_type(content: bytes) -> str:
    """Best-effort content type from the leading bytes of ``content``."""
    head = bytes(content[:_SNIFF_BYTES])
    guessed = filetype.guess_mime(head) if head else None
    if guessed:
        return guessed
    if head and _looks_like_text(head):
        return TEXT_CONTENT_TYPE
    return DEFAULT_CONTENT_TYPE


def _looks_like_text(head: bytes) -> bool:
    if b"\x00" in head:
        return False
    try:
        head.decode("utf-8")
    except UnicodeDecodeError as exc:
        # A multi-byte sequence cut at the sniff boundary is still text.
        return exc.start >= len(head) - 3 and exc.reason == "unexpected end of data"
    return True
