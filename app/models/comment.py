# app/models/comment.py
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional


class RemovalCause(Enum):
    SOFT = "soft"   # isActive flipped to false
    HARD = "hard"   # document deleted


def is_active(comment_data: Optional[Dict[str, Any]]) -> bool:
    """A comment counts until `isActive` is explicitly false."""
    if comment_data is None:
        return False
    return comment_data.get('isActive', True) is not False


def parent_id(comment_data: Optional[Dict[str, Any]]) -> Optional[str]:
    """Parent comment id for replies, None for top-level comments."""
    if not comment_data:
        return None
    return comment_data.get('parentCommentId') or None


@dataclass(frozen=True)
class CommentRemoved:
    """
    A comment stopped counting, regardless of whether it was soft- or hard-deleted.

    Replies decrement the parent's repliesCount, top-level comments the post's
    commentsCount.
    """
    post_id: str
    comment_id: str
    parent_comment_id: Optional[str]
    cause: RemovalCause

    @property
    def was_reply(self) -> bool:
        return self.parent_comment_id is not None
