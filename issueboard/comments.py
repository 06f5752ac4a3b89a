"""Comment blob codec.

Comments are persisted as one text blob with a line per comment::

    Sarah Chen: Looks good
    Alex Rivera: Needs a test

The format is lossy on purpose. Per-comment ids and timestamps are not
stored, and a newline inside a comment's content splits it into several
comments when the blob is read back. Decoding never fails: a line without a
colon is attributed to ``UNKNOWN_AUTHOR``.
"""

from datetime import datetime
from typing import Iterable, Optional

from issueboard.schemas import Comment, utc_now

UNKNOWN_AUTHOR = "Unknown"


def encode_comments(comments: Iterable[Comment]) -> str:
    return "".join(f"{comment.author}: {comment.content}\n" for comment in comments)


def decode_comments(blob: Optional[str], decoded_at: Optional[datetime] = None) -> list[Comment]:
    """Rebuild comments from a blob.

    Each comment gets a sequential id (``c1``, ``c2``, ...) and the decode
    timestamp, since neither survives encoding.
    """
    if not blob:
        return []

    decoded_at = decoded_at or utc_now()
    comments: list[Comment] = []

    for line in blob.split("\n"):
        if not line.strip():
            continue

        author, sep, content = line.partition(":")
        if not sep:
            author, content = UNKNOWN_AUTHOR, line

        comments.append(
            Comment(
                id=f"c{len(comments) + 1}",
                author=author.strip(),
                content=content.strip(),
                created_at=decoded_at,
            )
        )

    return comments
