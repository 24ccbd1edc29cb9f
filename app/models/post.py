# app/models/post.py
from dataclasses import dataclass
from typing import Any, Dict, Optional

from app.utils.datetime_utils import DateTimeUtils

# Computed per viewer on the client; meaningless in a copy shared by many recipients.
VIEWER_RELATIVE_FIELDS = ('isLikedByMe', 'isSavedByMe')


def build_feed_entry(post_data: Dict[str, Any], post_id: str) -> Dict[str, Any]:
    """
    Builds the denormalized copy written to users/{recipientId}/feed/{postId}.

    Shallow copy of the post with `id` forced to the post document id and the
    viewer-relative flags removed.
    """
    entry = dict(post_data)
    entry['id'] = post_id
    for key in VIEWER_RELATIVE_FIELDS:
        entry.pop(key, None)
    return DateTimeUtils.for_firestore(entry)


def first_media_url(post_data: Dict[str, Any]) -> Optional[str]:
    """URL of the post's first media item, used as the notification thumbnail."""
    media = post_data.get('media') or []
    if not media:
        return None
    first = media[0]
    if isinstance(first, dict):
        return first.get('url') or None
    if isinstance(first, str):
        return first or None
    return None


@dataclass
class FanoutResult:
    """Outcome of one post fan-out."""
    post_id: str
    recipient_count: int
    batch_count: int
