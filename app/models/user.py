# app/models/user.py
from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass
class Actor:
    """
    Denormalized snapshot of the user who triggered a notification.
    """
    id: str
    name: str = ""
    username: str = ""
    profile_image_url: Optional[str] = None
    role: Optional[str] = None
    verification_status: Optional[str] = None

    @classmethod
    def from_like(cls, user_id: str, like_data: Dict[str, Any]) -> 'Actor':
        """Likes carry the liker's profile as name/username/profileImageUrl/role/verificationStatus."""
        return cls(
            id=user_id,
            name=like_data.get('name') or "",
            username=like_data.get('username') or "",
            profile_image_url=like_data.get('profileImageUrl') or None,
            role=like_data.get('role'),
            verification_status=like_data.get('verificationStatus')
        )

    @classmethod
    def from_comment(cls, comment_data: Dict[str, Any]) -> 'Actor':
        """Comments carry the author's profile under author* keys."""
        return cls(
            id=comment_data.get('authorId') or "",
            name=comment_data.get('authorName') or "",
            username=comment_data.get('authorUsername') or "",
            profile_image_url=comment_data.get('authorProfileImageUrl') or None,
            role=comment_data.get('authorRole'),
            verification_status=comment_data.get('authorVerificationStatus')
        )

    @classmethod
    def from_user(cls, user_id: str, user_data: Dict[str, Any]) -> 'Actor':
        return cls(
            id=user_id,
            name=user_data.get('name') or "",
            username=user_data.get('username') or "",
            profile_image_url=user_data.get('profileImageUrl') or None,
            role=user_data.get('role'),
            verification_status=user_data.get('verificationStatus')
        )

    @property
    def display_name(self) -> str:
        return self.name or self.username or "Someone"


def push_token(user_data: Optional[Dict[str, Any]]) -> Optional[str]:
    """
    FCM token to push to, or None when the user cannot or does not want to receive pushes.
    A missing `notificationsEnabled` counts as enabled.
    """
    if not user_data:
        return None
    if user_data.get('notificationsEnabled') is False:
        return None
    token = user_data.get('fcmToken')
    if not isinstance(token, str) or not token.strip():
        return None
    return token
