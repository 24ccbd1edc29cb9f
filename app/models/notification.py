# app/models/notification.py
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from app.models.user import Actor


class NotificationType(Enum):
    """Notification kinds produced by the pipeline."""
    LIKE = "like"
    COMMENT = "comment"


@dataclass
class Notification:
    """
    Document stored at users/{recipientId}/notifications/{id}.
    Field names follow the client's Firestore schema (camelCase).
    """
    id: str
    type: NotificationType
    actor: Actor
    post_id: str
    comment_id: Optional[str] = None
    post_image_url: Optional[str] = None
    is_read: bool = False

    def to_document(self, created_at: Any) -> Dict[str, Any]:
        """
        :param created_at: usually the store's SERVER_TIMESTAMP sentinel
        """
        return {
            'id': self.id,
            'type': self.type.value,
            'actorId': self.actor.id,
            'actorName': self.actor.name,
            'actorUsername': self.actor.username,
            'actorProfileImageUrl': self.actor.profile_image_url,
            'actorRole': self.actor.role,
            'actorVerificationStatus': self.actor.verification_status,
            'postId': self.post_id,
            'commentId': self.comment_id,
            'postImageUrl': self.post_image_url,
            'isRead': self.is_read,
            'createdAt': created_at
        }
